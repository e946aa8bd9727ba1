from typing import Literal, Optional
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from bakery.infrastructure.db import get_db
from bakery.application.confirmation_service import PaymentConfirmationService, build_confirmation
from bakery.application.order_service import OrderService
from bakery.application.schemas import OrderConfirmation, OrderRead
from bakery.domain.errors import NotFoundError, ValidationError
from bakery.domain.models import Profile
from .deps import get_current_user, get_gateway

router = APIRouter(prefix="/orders", tags=["orders"])

@router.get("/confirm", response_model=OrderConfirmation)
def confirm_order(session_id: Optional[str] = None, db: Session = Depends(get_db), gateway=Depends(get_gateway)):
    """
    Called by the client after the payment redirect.

    Safe to call repeatedly and concurrently with the payment webhook; every
    call for the same session returns the same order.
    """
    if not session_id:
        raise ValidationError.for_field("session_id", "Session ID required")
    result = PaymentConfirmationService(db, gateway).confirm_payment(session_id)
    return build_confirmation(result.order)

@router.get("", response_model=list[OrderRead])
def list_my_orders(
    scope: Optional[Literal["upcoming", "past"]] = None,
    db: Session = Depends(get_db),
    user: Profile = Depends(get_current_user),
):
    return OrderService(db).list_for_user(user.id, scope)

@router.get("/{order_id}", response_model=OrderRead)
def get_my_order(order_id: int, db: Session = Depends(get_db), user: Profile = Depends(get_current_user)):
    order = OrderService(db).get_for_user(order_id, user.id)
    if not order:
        raise NotFoundError("Order")
    return order
