from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from bakery.infrastructure.db import get_db
from bakery.application.checkout_service import CheckoutService
from bakery.application.schemas import CheckoutRequest, CheckoutResponse
from bakery.domain.models import Profile
from .deps import checkout_rate_limit, get_current_user, get_gateway

router = APIRouter(prefix="/checkout", tags=["checkout"])

@router.post("", response_model=CheckoutResponse, dependencies=[Depends(checkout_rate_limit)])
def create_checkout(
    payload: CheckoutRequest,
    db: Session = Depends(get_db),
    user: Profile = Depends(get_current_user),
    gateway=Depends(get_gateway),
):
    """Start a hosted payment session for the cart. No order exists until payment succeeds."""
    session = CheckoutService(db, gateway).build_session(user, payload)
    return CheckoutResponse(url=session.url, session_id=session.id)
