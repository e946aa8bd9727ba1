from datetime import date
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from bakery.infrastructure.db import get_db
from bakery.application.menu_service import MenuService
from bakery.application.schemas import MenuItemAvailability, PickupWindowRead

router = APIRouter(tags=["menu"])

@router.get("/menu", response_model=list[MenuItemAvailability])
def get_menu(pickup_date: date, db: Session = Depends(get_db)):
    """Active items scheduled for the pickup date, with remaining quantity."""
    return MenuService(db).list_for_date(pickup_date)

@router.get("/pickup-windows", response_model=list[PickupWindowRead])
def list_pickup_windows(db: Session = Depends(get_db)):
    return MenuService(db).list_pickup_windows()
