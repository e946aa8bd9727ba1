from datetime import date, datetime, timezone
from decimal import Decimal
from typing import List, Optional
from sqlalchemy import select
from sqlalchemy.orm import Session, selectinload
from bakery.core import get_logger
from bakery.domain.errors import BusinessRuleError, NotFoundError
from bakery.domain.models import MenuItem, Order, OrderItem
from bakery.domain.state_machines import ORDER_STATE_MACHINE, OrderStatus
from .inventory_service import InventoryService
from .order_metadata import OrderDraft
from .pricing import ZERO, from_cents

logger = get_logger(__name__)

COMPLETED_STATUSES = {OrderStatus.PICKED_UP.value, OrderStatus.CANCELED.value}

class OrderService:
    def __init__(self, db: Session):
        self.db = db

    def _query(self):
        return select(Order).options(selectinload(Order.items), selectinload(Order.pickup_window))

    def get(self, order_id: int) -> Optional[Order]:
        return self.db.execute(self._query().where(Order.id == order_id)).scalar_one_or_none()

    def get_for_user(self, order_id: int, user_id: int) -> Optional[Order]:
        return self.db.execute(
            self._query().where(Order.id == order_id, Order.user_id == user_id)
        ).scalar_one_or_none()

    def get_by_payment_session(self, session_id: str) -> Optional[Order]:
        return self.db.execute(
            self._query().where(Order.stripe_session_id == session_id)
        ).scalar_one_or_none()

    def list(self, pickup_date: Optional[date] = None, status: Optional[OrderStatus] = None) -> List[Order]:
        stmt = self._query().order_by(Order.created_at.desc(), Order.id.desc())
        if pickup_date is not None:
            stmt = stmt.where(Order.pickup_date == pickup_date)
        if status is not None:
            stmt = stmt.where(Order.status == OrderStatus(status).value)
        return list(self.db.execute(stmt).scalars())

    def list_for_user(self, user_id: int, scope: Optional[str] = None) -> List[Order]:
        orders = list(self.db.execute(
            self._query().where(Order.user_id == user_id).order_by(Order.pickup_date.desc(), Order.id.desc())
        ).scalars())
        if scope == "upcoming":
            return [o for o in orders if o.status not in COMPLETED_STATUSES]
        if scope == "past":
            return [o for o in orders if o.status in COMPLETED_STATUSES]
        return orders

    def create_with_items(self, draft: OrderDraft, session_id: str) -> Order:
        """
        Adds the order and its line items and flushes them.

        The flush is where the unique payment-session constraint is enforced;
        committing is left to the caller so that inventory reservations land
        in the same transaction.
        """
        names = dict(self.db.execute(
            select(MenuItem.id, MenuItem.name).where(MenuItem.id.in_([line.menu_item_id for line in draft.lines]))
        ).all())
        order = Order(
            user_id=draft.user_id,
            pickup_date=draft.pickup_date,
            pickup_window_id=draft.pickup_window_id,
            status=OrderStatus.PAID.value,
            subtotal_amount=from_cents(draft.subtotal_cents),
            service_fee_amount=from_cents(draft.service_fee_cents),
            delivery_fee_amount=from_cents(draft.delivery_fee_cents),
            tax_amount=from_cents(draft.tax_cents),
            total_amount=from_cents(draft.total_cents),
            stripe_session_id=session_id,
            delivery_address=draft.delivery_address,
            notes=draft.notes,
        )
        order.items = [
            OrderItem(
                menu_item_id=line.menu_item_id,
                quantity=line.quantity,
                unit_price=from_cents(line.unit_price_cents),
                line_total=from_cents(line.line_total_cents),
                name_snapshot=names.get(line.menu_item_id),
            )
            for line in draft.lines
        ]
        self.db.add(order)
        self.db.flush()
        return order

    def transition(self, order: Order, target: OrderStatus) -> Order:
        """
        Applies one status change after checking the transition table.

        Cancellation releases the reserved inventory of every line. Nothing
        is committed here.
        """
        target = OrderStatus(target)
        ORDER_STATE_MACHINE.ensure_can_transition(order.status, target)
        previous = order.status
        order.status = target.value
        order.updated_at = datetime.now(timezone.utc)
        if target == OrderStatus.CANCELED:
            inventory = InventoryService(self.db)
            for item in order.items:
                inventory.release(item.menu_item_id, order.pickup_date, item.quantity)
        logger.info(
            f"Order {order.id} moved from {previous} to {target.value}",
            extra={'extra_fields': {'order_id': order.id, 'from': previous, 'to': target.value}}
        )
        return order

    def update_status(self, order_id: int, status: OrderStatus) -> Order:
        order = self.get(order_id)
        if not order:
            raise NotFoundError("Order")
        self.transition(order, status)
        self.db.commit()
        return order

    def delete(self, order_id: int) -> None:
        order = self.get(order_id)
        if not order:
            raise NotFoundError("Order")
        if order.status != OrderStatus.CANCELED.value:
            raise BusinessRuleError("Only canceled orders can be deleted")
        self.db.delete(order)
        self.db.commit()

    def statistics(self, pickup_date: date) -> dict:
        by_status = {status.value: 0 for status in OrderStatus}
        revenue = ZERO
        for order in self.list(pickup_date=pickup_date):
            by_status[order.status] = by_status.get(order.status, 0) + 1
            if order.status != OrderStatus.CANCELED.value:
                revenue += Decimal(order.total_amount)
        return {
            "total": sum(by_status.values()),
            "by_status": by_status,
            "total_revenue": float(revenue),
        }
