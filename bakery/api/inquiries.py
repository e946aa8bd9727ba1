from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from bakery.infrastructure.db import get_db
from bakery.application.inquiry_service import InquiryService
from bakery.application.schemas import InquiryCreate, InquiryRead
from bakery.domain.errors import NotFoundError
from bakery.domain.models import Profile
from .deps import get_current_user

router = APIRouter(prefix="/inquiries", tags=["inquiries"])

@router.post("", response_model=InquiryRead, status_code=201)
def submit_inquiry(payload: InquiryCreate, db: Session = Depends(get_db), user: Profile = Depends(get_current_user)):
    """Custom cake request. The event must be at least a month away."""
    return InquiryService(db).create(user.id, payload)

@router.get("", response_model=list[InquiryRead])
def list_my_inquiries(db: Session = Depends(get_db), user: Profile = Depends(get_current_user)):
    return InquiryService(db).list_for_user(user.id)

@router.get("/{inquiry_id}", response_model=InquiryRead)
def get_my_inquiry(inquiry_id: int, db: Session = Depends(get_db), user: Profile = Depends(get_current_user)):
    inquiry = InquiryService(db).get_for_user(inquiry_id, user.id)
    if not inquiry:
        raise NotFoundError("Inquiry")
    return inquiry
