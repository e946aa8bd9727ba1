from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from typing import Optional
from sqlalchemy import select
from sqlalchemy.orm import Session
from bakery.core import get_logger
from bakery.core_settings import Settings, get_settings
from bakery.domain.errors import BusinessRuleError, InsufficientInventory, InternalError, ValidationError
from bakery.domain.models import MenuItem, PickupWindow, Profile
from bakery.infrastructure.payments import CheckoutSession, PaymentLine
from .inventory_service import InventoryService
from .order_metadata import DraftLine, OrderDraft, encode_order_metadata
from .pricing import PriceBreakdown, price_order, round_money, to_cents
from .schemas import CheckoutRequest
from .service_area import normalize_zip, zip_validation_error
from .settings_service import SettingsService

logger = get_logger(__name__)

@dataclass
class PricedLine:
    menu_item: MenuItem
    quantity: int

    @property
    def unit_price(self) -> Decimal:
        return round_money(self.menu_item.base_price)

    @property
    def line_total(self) -> Decimal:
        return round_money(self.unit_price * self.quantity)

@dataclass
class CheckoutQuote:
    lines: list[PricedLine]
    breakdown: PriceBreakdown

class CheckoutService:
    """
    Turns a cart into a hosted payment session.

    Prices always come from the menu table; whatever the client sent for
    prices or names is ignored.
    """

    def __init__(self, db: Session, gateway, config: Optional[Settings] = None, today: Optional[date] = None):
        self.db = db
        self.gateway = gateway
        self.config = config or get_settings()
        self.settings = SettingsService(db, self.config)
        self.today = today or date.today()

    def _validate(self, request: CheckoutRequest) -> dict[int, int]:
        if not request.items:
            raise ValidationError.for_field("items", "No items in cart")
        if request.delivery_date is None or request.delivery_window_id is None:
            raise ValidationError("Pickup date and window required", details=[
                {"field": f, "message": "required"}
                for f, v in (("deliveryDate", request.delivery_date), ("deliveryWindowId", request.delivery_window_id))
                if v is None
            ])
        if request.delivery_address is None:
            raise ValidationError.for_field("deliveryAddress", "Delivery address required")
        zip_error = zip_validation_error(request.delivery_address.postal_code)
        if zip_error:
            raise ValidationError.for_field("deliveryAddress.postalCode", zip_error)
        if request.delivery_date < self.today:
            raise ValidationError.for_field("deliveryDate", "Pickup date cannot be in the past")
        window = self.db.get(PickupWindow, request.delivery_window_id)
        if window is None or not window.active:
            raise ValidationError.for_field("deliveryWindowId", "Invalid pickup window")

        # merge repeated lines for the same item
        quantities: dict[int, int] = {}
        for item in request.items:
            quantities[item.menu_item_id] = quantities.get(item.menu_item_id, 0) + item.quantity
        return quantities

    def _price_lines(self, quantities: dict[int, int]) -> list[PricedLine]:
        menu_items = {
            m.id: m for m in self.db.execute(
                select(MenuItem).where(MenuItem.id.in_(list(quantities)), MenuItem.active.is_(True))
            ).scalars()
        }
        missing = [item_id for item_id in quantities if item_id not in menu_items]
        if missing:
            logger.error(
                "Checkout referenced unknown or inactive menu items",
                extra={'extra_fields': {'menu_item_ids': missing}}
            )
            raise InternalError("Failed to verify menu items")
        return [PricedLine(menu_items[item_id], qty) for item_id, qty in quantities.items()]

    def _check_availability(self, lines: list[PricedLine], pickup_date: date) -> None:
        inventory = InventoryService(self.db)
        for line in lines:
            if inventory.available(line.menu_item.id, pickup_date) < line.quantity:
                raise InsufficientInventory(
                    line.menu_item.id, pickup_date, line.quantity,
                    message=f"{line.menu_item.name} is not available in the requested quantity on {pickup_date.isoformat()}",
                )

    def quote(self, lines: list[PricedLine]) -> CheckoutQuote:
        delivery = self.settings.delivery()
        subtotal = sum((line.line_total for line in lines), Decimal("0"))
        breakdown = price_order(
            subtotal,
            self.settings.service_fee_rate(),
            delivery.free_minimum,
            delivery.fee,
            self.config.TAX_RATE,
        )
        return CheckoutQuote(lines=lines, breakdown=breakdown)

    def build_session(self, user: Profile, request: CheckoutRequest) -> CheckoutSession:
        if not self.settings.ordering_enabled():
            raise BusinessRuleError("Ordering is currently closed")
        quantities = self._validate(request)
        lines = self._price_lines(quantities)
        self._check_availability(lines, request.delivery_date)
        checkout = self.quote(lines)
        breakdown = checkout.breakdown

        payment_lines = [
            PaymentLine(name=line.menu_item.name, unit_amount=to_cents(line.unit_price), quantity=line.quantity)
            for line in lines
        ]
        if breakdown.service_fee > 0:
            payment_lines.append(PaymentLine(name="Service Fee", unit_amount=to_cents(breakdown.service_fee)))
        if breakdown.delivery_fee > 0:
            payment_lines.append(PaymentLine(name="Delivery Fee", unit_amount=to_cents(breakdown.delivery_fee)))
        if breakdown.tax > 0:
            payment_lines.append(PaymentLine(name="Tax", unit_amount=to_cents(breakdown.tax)))

        address = request.delivery_address.model_dump(exclude_none=True)
        address["postal_code"] = normalize_zip(address["postal_code"])
        draft = OrderDraft(
            user_id=user.id,
            pickup_date=request.delivery_date,
            pickup_window_id=request.delivery_window_id,
            lines=[
                DraftLine(line.menu_item.id, line.quantity, to_cents(line.unit_price))
                for line in lines
            ],
            subtotal_cents=to_cents(breakdown.subtotal),
            service_fee_cents=to_cents(breakdown.service_fee),
            delivery_fee_cents=to_cents(breakdown.delivery_fee),
            tax_cents=to_cents(breakdown.tax),
            delivery_address=address,
            notes=request.notes,
        )
        session = self.gateway.create_checkout_session(
            payment_lines,
            encode_order_metadata(draft),
            customer_email=user.email,
        )
        logger.info(
            "Checkout session created",
            extra={'extra_fields': {
                'session_id': session.id,
                'user_id': user.id,
                'subtotal': breakdown.subtotal,
                'total': breakdown.total,
            }}
        )
        return session
