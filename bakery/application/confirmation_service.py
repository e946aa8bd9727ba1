"""
Payment confirmation: turns a paid checkout session into exactly one order.

Two independent triggers reach this code for the same session, the client
polling `/orders/confirm` after the redirect and the provider's webhook,
possibly in different processes and in either order. The unique constraint
on `orders.stripe_session_id` arbitrates between them: whichever transaction
inserts the row first creates the order, reserves inventory and commits;
the loser hits the constraint, rolls back and returns the winner's order.
"""
from dataclasses import dataclass
from typing import Optional
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session
from bakery.core import get_logger
from bakery.domain.errors import InsufficientInventory, PaymentNotCompleted
from bakery.domain.models import Order
from bakery.infrastructure.payments import PaymentSession
from .inquiry_service import InquiryService
from .inventory_service import InventoryService
from .order_metadata import decode_order_metadata
from .order_service import OrderService
from .schemas import ConfirmationLine, OrderConfirmation

logger = get_logger(__name__)

ORDER_CREATING_EVENTS = {"checkout.session.completed", "checkout.session.async_payment_succeeded"}

@dataclass
class ConfirmationResult:
    order: Order
    created: bool

class PaymentConfirmationService:
    def __init__(self, db: Session, gateway):
        self.db = db
        self.gateway = gateway

    def confirm_payment(self, session_id: str) -> ConfirmationResult:
        """Client-poll entry point: looks the session up with the provider first."""
        session = self.gateway.retrieve_session(session_id)
        if not session.is_paid:
            raise PaymentNotCompleted()
        return self.finalize(session)

    def finalize(self, session: PaymentSession) -> ConfirmationResult:
        orders = OrderService(self.db)
        existing = orders.get_by_payment_session(session.id)
        if existing:
            logger.info(
                "Order already exists for payment session",
                extra={'extra_fields': {'session_id': session.id, 'order_id': existing.id}}
            )
            return ConfirmationResult(existing, created=False)

        draft = decode_order_metadata(session.metadata)
        if draft.tax_cents == 0 and session.amount_tax:
            # tax computed by the provider at payment time
            draft.tax_cents = session.amount_tax
        if session.amount_total is not None and session.amount_total != draft.total_cents:
            logger.warning(
                "Provider total differs from checkout breakdown",
                extra={'extra_fields': {
                    'session_id': session.id,
                    'provider_total': session.amount_total,
                    'computed_total': draft.total_cents,
                }}
            )

        try:
            order = orders.create_with_items(draft, session.id)
            # only the transaction that inserted the order reserves inventory
            inventory = InventoryService(self.db)
            for line in draft.lines:
                inventory.reserve(line.menu_item_id, draft.pickup_date, line.quantity)
            self.db.commit()
        except IntegrityError:
            self.db.rollback()
            existing = orders.get_by_payment_session(session.id)
            if existing is None:
                raise
            logger.info(
                "Concurrent confirmation already created the order",
                extra={'extra_fields': {'session_id': session.id, 'order_id': existing.id}}
            )
            return ConfirmationResult(existing, created=False)
        except InsufficientInventory as e:
            self.db.rollback()
            logger.error(
                "Paid session cannot be fulfilled: inventory exhausted",
                extra={'extra_fields': {
                    'session_id': session.id,
                    'user_id': draft.user_id,
                    'menu_item_id': e.menu_item_id,
                    'pickup_date': draft.pickup_date,
                }}
            )
            raise
        except Exception:
            self.db.rollback()
            raise

        logger.info(
            "Order created from payment session",
            extra={'extra_fields': {
                'session_id': session.id,
                'order_id': order.id,
                'total': order.total_amount,
            }}
        )
        return ConfirmationResult(order, created=True)

    def handle_event(self, event: dict) -> Optional[ConfirmationResult]:
        """Dispatches a verified webhook event. Unknown types are acknowledged and ignored."""
        event_type = event.get("type")
        data = (event.get("data") or {}).get("object") or {}

        if event_type in ORDER_CREATING_EVENTS:
            session = PaymentSession.from_payload(data)
            if not session.is_paid:
                logger.info(
                    f"Ignoring {event_type} for unpaid session",
                    extra={'extra_fields': {'session_id': session.id, 'payment_status': session.payment_status}}
                )
                return None
            if not session.is_storefront_order:
                # payment-link sessions pay custom-cake quotes, never orders
                InquiryService(self.db).record_quote_payment(session)
                return None
            return self.finalize(session)

        if event_type == "checkout.session.expired":
            logger.info("Checkout session expired", extra={'extra_fields': {'session_id': data.get("id")}})
        elif event_type == "payment_intent.payment_failed":
            logger.info("Payment failed", extra={'extra_fields': {'payment_intent': data.get("id")}})
        else:
            logger.info(f"Unhandled event type: {event_type}")
        return None

def build_confirmation(order: Order) -> OrderConfirmation:
    return OrderConfirmation(
        order_id=order.id,
        order_number=order.order_number,
        pickup_date=order.pickup_date,
        pickup_window=order.pickup_window.label if order.pickup_window else None,
        total=float(order.total_amount),
        items=[
            ConfirmationLine(name=item.name_snapshot or "Item", quantity=item.quantity, price=float(item.line_total))
            for item in order.items
        ],
    )
