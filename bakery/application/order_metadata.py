"""
Compact order description carried in the payment session's metadata.

The checkout builder encodes everything needed to create the order so the
confirmation path never has to consult the cart again. The provider limits
metadata values to 500 characters, hence the terse encoding.
"""
import json
from dataclasses import dataclass
from datetime import date
from typing import Optional

from bakery.domain.errors import ValidationError

@dataclass
class DraftLine:
    menu_item_id: int
    quantity: int
    unit_price_cents: int

    @property
    def line_total_cents(self) -> int:
        return self.unit_price_cents * self.quantity

@dataclass
class OrderDraft:
    user_id: int
    pickup_date: date
    pickup_window_id: int
    lines: list[DraftLine]
    subtotal_cents: int
    service_fee_cents: int
    delivery_fee_cents: int = 0
    tax_cents: int = 0
    delivery_address: Optional[dict] = None
    notes: Optional[str] = None

    @property
    def total_cents(self) -> int:
        return self.subtotal_cents + self.service_fee_cents + self.delivery_fee_cents + self.tax_cents

def encode_order_metadata(draft: OrderDraft) -> dict[str, str]:
    metadata = {
        "user_id": str(draft.user_id),
        "pickup_date": draft.pickup_date.isoformat(),
        "pickup_window": str(draft.pickup_window_id),
        "items": json.dumps(
            [[line.menu_item_id, line.quantity, line.unit_price_cents] for line in draft.lines],
            separators=(",", ":"),
        ),
        "subtotal": str(draft.subtotal_cents),
        "service_fee": str(draft.service_fee_cents),
        "delivery_fee": str(draft.delivery_fee_cents),
        "tax": str(draft.tax_cents),
    }
    if draft.delivery_address:
        metadata["delivery_address"] = json.dumps(draft.delivery_address, separators=(",", ":"))
    if draft.notes:
        metadata["notes"] = draft.notes
    return metadata

def decode_order_metadata(metadata: dict) -> OrderDraft:
    """Raises ValidationError when required keys are missing or malformed."""
    missing = [k for k in ("user_id", "pickup_date", "pickup_window", "items") if not metadata.get(k)]
    if missing:
        raise ValidationError(
            "Missing required order metadata",
            details=[{"field": k, "message": "required"} for k in missing],
        )
    try:
        lines = [
            DraftLine(menu_item_id=int(item_id), quantity=int(quantity), unit_price_cents=int(cents))
            for item_id, quantity, cents in json.loads(metadata["items"])
        ]
        address = metadata.get("delivery_address")
        draft = OrderDraft(
            user_id=int(metadata["user_id"]),
            pickup_date=date.fromisoformat(metadata["pickup_date"]),
            pickup_window_id=int(metadata["pickup_window"]),
            lines=lines,
            subtotal_cents=int(metadata.get("subtotal") or sum(line.line_total_cents for line in lines)),
            service_fee_cents=int(metadata.get("service_fee") or 0),
            delivery_fee_cents=int(metadata.get("delivery_fee") or 0),
            tax_cents=int(metadata.get("tax") or 0),
            delivery_address=json.loads(address) if address else None,
            notes=metadata.get("notes") or None,
        )
    except (TypeError, ValueError) as e:
        raise ValidationError("Malformed order metadata") from e
    if not draft.lines or any(line.quantity <= 0 for line in draft.lines):
        raise ValidationError("No items in order")
    return draft
