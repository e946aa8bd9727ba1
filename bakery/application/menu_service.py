from datetime import date
from typing import List, Optional
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session
from bakery.domain.errors import ConflictError, NotFoundError
from bakery.domain.models import Inventory, MenuItem, PickupWindow
from .inventory_service import available_quantity
from .schemas import MenuItemCreate, MenuItemUpdate

class MenuService:
    def __init__(self, db: Session):
        self.db = db

    def get(self, menu_item_id: int) -> Optional[MenuItem]:
        return self.db.get(MenuItem, menu_item_id)

    def list(self, include_inactive: bool = False) -> List[MenuItem]:
        stmt = select(MenuItem).order_by(MenuItem.id)
        if not include_inactive:
            stmt = stmt.where(MenuItem.active.is_(True))
        return list(self.db.execute(stmt).scalars())

    def list_for_date(self, pickup_date: date) -> List[dict]:
        """Active items scheduled for the date, with their remaining availability."""
        rows = self.db.execute(
            select(MenuItem, Inventory.daily_cap, Inventory.reserved_quantity)
            .join(Inventory, Inventory.menu_item_id == MenuItem.id)
            .where(Inventory.pickup_date == pickup_date, MenuItem.active.is_(True))
            .order_by(MenuItem.id)
        ).all()
        result = []
        for item, daily_cap, reserved in rows:
            available = available_quantity(daily_cap, reserved)
            result.append({
                "id": item.id,
                "slug": item.slug,
                "name": item.name,
                "description": item.description,
                "base_price": float(item.base_price),
                "category": item.category,
                "dietary_tags": item.dietary_tags or [],
                "image_url": item.image_url,
                "active": item.active,
                "pickup_date": pickup_date,
                "daily_cap": daily_cap,
                "reserved_quantity": reserved,
                "available_quantity": available,
                "is_sold_out": available == 0,
            })
        return result

    def create(self, data: MenuItemCreate) -> MenuItem:
        item = MenuItem(**data.model_dump())
        self.db.add(item)
        try:
            self.db.commit()
        except IntegrityError as e:
            self.db.rollback()
            raise ConflictError(f"Menu item '{data.slug}' already exists") from e
        self.db.refresh(item)
        return item

    def update(self, menu_item_id: int, data: MenuItemUpdate) -> MenuItem:
        item = self.get(menu_item_id)
        if not item:
            raise NotFoundError("Menu item")
        # existing order lines keep their captured unit price
        for field, value in data.model_dump(exclude_unset=True).items():
            setattr(item, field, value)
        self.db.commit()
        self.db.refresh(item)
        return item

    def list_pickup_windows(self) -> List[PickupWindow]:
        return list(self.db.execute(
            select(PickupWindow).where(PickupWindow.active.is_(True)).order_by(PickupWindow.start_time)
        ).scalars())
