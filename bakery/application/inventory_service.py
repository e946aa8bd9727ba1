from datetime import date
from typing import Optional
from sqlalchemy import select, update, case
from sqlalchemy.orm import Session
from bakery.core import get_logger
from bakery.domain.errors import InsufficientInventory, NotFoundError, ValidationError
from bakery.domain.models import Inventory, MenuItem

logger = get_logger(__name__)

def available_quantity(daily_cap: int, reserved_quantity: int) -> int:
    """Display availability; never negative even if reservations overshot the cap."""
    return max(0, daily_cap - reserved_quantity)

class InventoryService:
    """
    Per-item, per-date capacity.

    `reserve` and `release` are single conditional UPDATE statements so that
    concurrent checkouts cannot both pass a read-then-write check. Neither
    commits: they join the caller's transaction.
    """

    def __init__(self, db: Session):
        self.db = db

    def get(self, menu_item_id: int, pickup_date: date) -> Optional[Inventory]:
        return self.db.execute(
            select(Inventory).where(
                Inventory.menu_item_id == menu_item_id,
                Inventory.pickup_date == pickup_date,
            )
        ).scalar_one_or_none()

    def available(self, menu_item_id: int, pickup_date: date) -> int:
        row = self.db.execute(
            select(Inventory.daily_cap, Inventory.reserved_quantity).where(
                Inventory.menu_item_id == menu_item_id,
                Inventory.pickup_date == pickup_date,
            )
        ).first()
        if row is None:
            return 0
        return available_quantity(row.daily_cap, row.reserved_quantity)

    def reserve(self, menu_item_id: int, pickup_date: date, quantity: int) -> None:
        if quantity <= 0:
            raise ValidationError.for_field("quantity", "Quantity must be greater than zero")
        result = self.db.execute(
            update(Inventory)
            .where(
                Inventory.menu_item_id == menu_item_id,
                Inventory.pickup_date == pickup_date,
                Inventory.reserved_quantity + quantity <= Inventory.daily_cap,
            )
            .values(reserved_quantity=Inventory.reserved_quantity + quantity)
            .execution_options(synchronize_session=False)
        )
        if result.rowcount != 1:
            logger.warning(
                "Inventory reservation rejected",
                extra={'extra_fields': {
                    'menu_item_id': menu_item_id,
                    'pickup_date': pickup_date,
                    'quantity': quantity,
                }}
            )
            raise InsufficientInventory(menu_item_id, pickup_date, quantity)
        logger.info(
            "Inventory reserved",
            extra={'extra_fields': {
                'menu_item_id': menu_item_id,
                'pickup_date': pickup_date,
                'quantity': quantity,
            }}
        )

    def release(self, menu_item_id: int, pickup_date: date, quantity: int) -> None:
        if quantity <= 0:
            return
        self.db.execute(
            update(Inventory)
            .where(
                Inventory.menu_item_id == menu_item_id,
                Inventory.pickup_date == pickup_date,
            )
            .values(reserved_quantity=case(
                (Inventory.reserved_quantity >= quantity, Inventory.reserved_quantity - quantity),
                else_=0,
            ))
            .execution_options(synchronize_session=False)
        )
        logger.info(
            "Inventory released",
            extra={'extra_fields': {
                'menu_item_id': menu_item_id,
                'pickup_date': pickup_date,
                'quantity': quantity,
            }}
        )

    def set_daily_cap(self, menu_item_id: int, pickup_date: date, daily_cap: int) -> Inventory:
        if daily_cap < 0:
            raise ValidationError.for_field("daily_cap", "Daily cap cannot be negative")
        if self.db.get(MenuItem, menu_item_id) is None:
            raise NotFoundError("Menu item")
        inventory = self.get(menu_item_id, pickup_date)
        if inventory is None:
            inventory = Inventory(
                menu_item_id=menu_item_id,
                pickup_date=pickup_date,
                daily_cap=daily_cap,
                reserved_quantity=0,
            )
            self.db.add(inventory)
        else:
            inventory.daily_cap = daily_cap
        self.db.commit()
        self.db.refresh(inventory)
        return inventory

    def list_for_date(self, pickup_date: date) -> list[Inventory]:
        return list(self.db.execute(
            select(Inventory).where(Inventory.pickup_date == pickup_date).order_by(Inventory.menu_item_id)
        ).scalars())
