from datetime import date
from typing import Optional
from fastapi import APIRouter, Body, Depends
from sqlalchemy.orm import Session
from bakery.infrastructure.db import get_db
from bakery.application.inquiry_service import InquiryService
from bakery.application.inventory_service import InventoryService
from bakery.application.menu_service import MenuService
from bakery.application.order_service import OrderService
from bakery.application.settings_service import SettingsService
from bakery.application.schemas import (
    InquiryImageCreate, InquiryImageRead, InquiryRead, InquiryStatistics, InquiryStatusUpdate,
    InventoryRead, InventoryUpsert, MenuItemCreate, MenuItemRead, MenuItemUpdate,
    OrderRead, OrderStatistics, OrderStatusUpdate, QuoteCreate, QuoteRead,
)
from bakery.domain.errors import NotFoundError
from bakery.domain.state_machines import InquiryStatus, OrderStatus
from .deps import get_gateway, require_admin

router = APIRouter(prefix="/admin", tags=["admin"], dependencies=[Depends(require_admin)])

# --- Orders ---

@router.get("/orders", response_model=list[OrderRead])
def list_orders(
    pickup_date: Optional[date] = None,
    status: Optional[OrderStatus] = None,
    db: Session = Depends(get_db),
):
    return OrderService(db).list(pickup_date=pickup_date, status=status)

@router.get("/orders/stats", response_model=OrderStatistics)
def order_statistics(pickup_date: Optional[date] = None, db: Session = Depends(get_db)):
    """Per-status counts and revenue for a pickup date (today by default)."""
    return OrderService(db).statistics(pickup_date or date.today())

@router.get("/orders/{order_id}", response_model=OrderRead)
def get_order(order_id: int, db: Session = Depends(get_db)):
    order = OrderService(db).get(order_id)
    if not order:
        raise NotFoundError("Order")
    return order

@router.put("/orders/{order_id}/status", response_model=OrderRead)
def update_order_status(order_id: int, payload: OrderStatusUpdate, db: Session = Depends(get_db)):
    return OrderService(db).update_status(order_id, payload.status)

@router.delete("/orders/{order_id}", status_code=204)
def delete_order(order_id: int, db: Session = Depends(get_db)):
    OrderService(db).delete(order_id)
    return None

# --- Inquiries ---

@router.get("/inquiries", response_model=list[InquiryRead])
def list_inquiries(status: Optional[InquiryStatus] = None, db: Session = Depends(get_db)):
    return InquiryService(db).list(status)

@router.get("/inquiries/stats", response_model=InquiryStatistics)
def inquiry_statistics(db: Session = Depends(get_db)):
    return InquiryService(db).statistics()

@router.get("/inquiries/{inquiry_id}", response_model=InquiryRead)
def get_inquiry(inquiry_id: int, db: Session = Depends(get_db)):
    inquiry = InquiryService(db).get(inquiry_id)
    if not inquiry:
        raise NotFoundError("Inquiry")
    return inquiry

@router.put("/inquiries/{inquiry_id}/status", response_model=InquiryRead)
def update_inquiry_status(inquiry_id: int, payload: InquiryStatusUpdate, db: Session = Depends(get_db)):
    return InquiryService(db).update_status(inquiry_id, payload.status)

@router.delete("/inquiries/{inquiry_id}", status_code=204)
def delete_inquiry(inquiry_id: int, db: Session = Depends(get_db)):
    InquiryService(db).delete(inquiry_id)
    return None

@router.post("/inquiries/{inquiry_id}/images", response_model=InquiryImageRead, status_code=201)
def add_inquiry_image(inquiry_id: int, payload: InquiryImageCreate, db: Session = Depends(get_db)):
    return InquiryService(db).add_image(inquiry_id, payload.image_url)

@router.post("/inquiries/{inquiry_id}/quotes", response_model=QuoteRead, status_code=201)
def create_quote(inquiry_id: int, payload: QuoteCreate, db: Session = Depends(get_db), gateway=Depends(get_gateway)):
    return InquiryService(db).create_quote(inquiry_id, payload, gateway=gateway)

# --- Menu & inventory ---

@router.get("/menu-items", response_model=list[MenuItemRead])
def list_menu_items(db: Session = Depends(get_db)):
    return MenuService(db).list(include_inactive=True)

@router.post("/menu-items", response_model=MenuItemRead, status_code=201)
def create_menu_item(payload: MenuItemCreate, db: Session = Depends(get_db)):
    return MenuService(db).create(payload)

@router.put("/menu-items/{menu_item_id}", response_model=MenuItemRead)
def update_menu_item(menu_item_id: int, payload: MenuItemUpdate, db: Session = Depends(get_db)):
    return MenuService(db).update(menu_item_id, payload)

@router.get("/inventory", response_model=list[InventoryRead])
def list_inventory(pickup_date: date, db: Session = Depends(get_db)):
    return InventoryService(db).list_for_date(pickup_date)

@router.put("/inventory", response_model=InventoryRead)
def set_inventory(payload: InventoryUpsert, db: Session = Depends(get_db)):
    """Sets the daily cap for an item and date, creating the row when absent."""
    return InventoryService(db).set_daily_cap(payload.menu_item_id, payload.pickup_date, payload.daily_cap)

# --- Runtime settings ---

@router.get("/settings")
def get_settings_values(db: Session = Depends(get_db)):
    return SettingsService(db).get_all()

@router.put("/settings/{key}")
def update_setting(key: str, value: dict = Body(...), db: Session = Depends(get_db)):
    return SettingsService(db).set(key, value).model_dump(mode="json")
