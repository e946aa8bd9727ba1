import calendar
from datetime import date, datetime, timezone
from typing import List, Optional
from sqlalchemy import select
from sqlalchemy.orm import Session, selectinload
from bakery.core import get_logger
from bakery.core_settings import Settings, get_settings
from bakery.domain.errors import BusinessRuleError, NotFoundError, ValidationError
from bakery.domain.models import Inquiry, InquiryImage, Quote
from bakery.domain.state_machines import INQUIRY_STATE_MACHINE, InquiryStatus, QuoteStatus
from bakery.infrastructure.payments import PaymentSession
from .pricing import to_cents
from .schemas import InquiryCreate, QuoteCreate

logger = get_logger(__name__)

CLOSED_STATUSES = {InquiryStatus.COMPLETED.value, InquiryStatus.REJECTED.value, InquiryStatus.CLOSED.value}

def add_months(day: date, months: int) -> date:
    """Calendar-month arithmetic, clamping to the last day of the target month."""
    month_index = day.month - 1 + months
    year = day.year + month_index // 12
    month = month_index % 12 + 1
    return date(year, month, min(day.day, calendar.monthrange(year, month)[1]))

class InquiryService:
    def __init__(self, db: Session, config: Optional[Settings] = None):
        self.db = db
        self.config = config or get_settings()

    def _query(self):
        return select(Inquiry).options(selectinload(Inquiry.images), selectinload(Inquiry.quotes))

    def get(self, inquiry_id: int) -> Optional[Inquiry]:
        return self.db.execute(self._query().where(Inquiry.id == inquiry_id)).scalar_one_or_none()

    def get_for_user(self, inquiry_id: int, user_id: int) -> Optional[Inquiry]:
        return self.db.execute(
            self._query().where(Inquiry.id == inquiry_id, Inquiry.user_id == user_id)
        ).scalar_one_or_none()

    def list(self, status: Optional[InquiryStatus] = None) -> List[Inquiry]:
        stmt = self._query().order_by(Inquiry.created_at.desc(), Inquiry.id.desc())
        if status is not None:
            stmt = stmt.where(Inquiry.status == InquiryStatus(status).value)
        return list(self.db.execute(stmt).scalars())

    def list_for_user(self, user_id: int) -> List[Inquiry]:
        return list(self.db.execute(
            self._query().where(Inquiry.user_id == user_id).order_by(Inquiry.created_at.desc(), Inquiry.id.desc())
        ).scalars())

    def create(self, user_id: int, data: InquiryCreate, today: Optional[date] = None) -> Inquiry:
        earliest = add_months(today or date.today(), self.config.MIN_INQUIRY_LEAD_MONTHS)
        if data.event_date < earliest:
            months = self.config.MIN_INQUIRY_LEAD_MONTHS
            raise ValidationError.for_field(
                "event_date", f"Event date must be at least {months} month{'s' if months != 1 else ''} from today"
            )
        if len(data.image_urls) > self.config.MAX_INQUIRY_IMAGES:
            raise ValidationError.for_field(
                "image_urls", f"Maximum {self.config.MAX_INQUIRY_IMAGES} images allowed per inquiry"
            )
        inquiry = Inquiry(
            user_id=user_id,
            status=InquiryStatus.NEW.value,
            **data.model_dump(mode="json", exclude={"image_urls", "event_date"}),
            event_date=data.event_date,
        )
        inquiry.images = [InquiryImage(image_url=url) for url in data.image_urls]
        self.db.add(inquiry)
        self.db.commit()
        logger.info("Inquiry submitted", extra={'extra_fields': {'inquiry_id': inquiry.id, 'user_id': user_id}})
        return self.get(inquiry.id)

    def update_status(self, inquiry_id: int, status: InquiryStatus) -> Inquiry:
        inquiry = self.get(inquiry_id)
        if not inquiry:
            raise NotFoundError("Inquiry")
        INQUIRY_STATE_MACHINE.ensure_can_transition(inquiry.status, status)
        previous = inquiry.status
        inquiry.status = InquiryStatus(status).value
        inquiry.updated_at = datetime.now(timezone.utc)
        self.db.commit()
        logger.info(
            f"Inquiry {inquiry.id} moved from {previous} to {inquiry.status}",
            extra={'extra_fields': {'inquiry_id': inquiry.id, 'from': previous, 'to': inquiry.status}}
        )
        return inquiry

    def delete(self, inquiry_id: int) -> None:
        inquiry = self.get(inquiry_id)
        if not inquiry:
            raise NotFoundError("Inquiry")
        if inquiry.status not in CLOSED_STATUSES:
            raise BusinessRuleError("Only closed inquiries can be deleted")
        self.db.delete(inquiry)
        self.db.commit()

    def add_image(self, inquiry_id: int, image_url: str) -> InquiryImage:
        inquiry = self.get(inquiry_id)
        if not inquiry:
            raise NotFoundError("Inquiry")
        if len(inquiry.images) >= self.config.MAX_INQUIRY_IMAGES:
            raise ValidationError.for_field(
                "image_url", f"Maximum {self.config.MAX_INQUIRY_IMAGES} images allowed per inquiry"
            )
        image = InquiryImage(inquiry_id=inquiry.id, image_url=image_url)
        self.db.add(image)
        self.db.commit()
        self.db.refresh(image)
        return image

    def create_quote(self, inquiry_id: int, data: QuoteCreate, gateway=None) -> Quote:
        inquiry = self.get(inquiry_id)
        if not inquiry:
            raise NotFoundError("Inquiry")
        if INQUIRY_STATE_MACHINE.is_terminal(inquiry.status):
            raise BusinessRuleError("Cannot quote a closed inquiry")
        if data.deposit_amount is not None and data.deposit_amount > data.total_price:
            raise ValidationError.for_field("deposit_amount", "Deposit cannot exceed the quoted price")
        quote = Quote(
            inquiry_id=inquiry.id,
            total_price=data.total_price,
            deposit_amount=data.deposit_amount,
            expires_at=data.expires_at,
            status=QuoteStatus.DRAFT.value,
        )
        if data.send_payment_link and gateway is None:
            raise ValidationError.for_field("send_payment_link", "Payment links are not available")
        self.db.add(quote)
        if data.send_payment_link:
            # the quote id travels with the link
            self.db.flush()
            amount = data.deposit_amount if data.deposit_amount is not None else data.total_price
            try:
                link = gateway.create_payment_link(
                    to_cents(amount),
                    "Custom Cake Order",
                    {"inquiry_id": str(inquiry.id), "quote_id": str(quote.id)},
                )
            except Exception:
                self.db.rollback()
                raise
            quote.payment_link_id = link.id
            quote.payment_link_url = link.url
            quote.status = QuoteStatus.SENT.value
            # an inquiry has one payable quote at a time
            for previous in inquiry.quotes:
                if previous.id != quote.id and previous.status == QuoteStatus.SENT.value:
                    previous.status = QuoteStatus.EXPIRED.value
        self.db.commit()
        self.db.refresh(quote)
        logger.info(
            "Quote created",
            extra={'extra_fields': {'inquiry_id': inquiry.id, 'quote_id': quote.id, 'status': quote.status}}
        )
        return quote

    def record_quote_payment(self, session: PaymentSession) -> Optional[Quote]:
        """
        Marks the quote behind a paid payment-link session as paid.

        The quote is found by its stored link id, falling back to the
        `quote_id` carried in the session metadata. Redelivered events are
        no-ops. A quoted inquiry is moved to accepted.
        """
        quote = None
        if session.payment_link:
            quote = self.db.execute(
                select(Quote).where(Quote.payment_link_id == session.payment_link)
            ).scalar_one_or_none()
        if quote is None and str(session.metadata.get("quote_id") or "").isdigit():
            quote = self.db.get(Quote, int(session.metadata["quote_id"]))
        if quote is None:
            logger.warning(
                "Paid session matches no quote",
                extra={'extra_fields': {'session_id': session.id, 'payment_link': session.payment_link}}
            )
            return None
        if quote.status == QuoteStatus.PAID.value:
            return quote

        quote.status = QuoteStatus.PAID.value
        inquiry = quote.inquiry
        if INQUIRY_STATE_MACHINE.can_transition(inquiry.status, InquiryStatus.ACCEPTED):
            inquiry.status = InquiryStatus.ACCEPTED.value
            inquiry.updated_at = datetime.now(timezone.utc)
        self.db.commit()
        logger.info(
            "Quote paid",
            extra={'extra_fields': {
                'session_id': session.id,
                'quote_id': quote.id,
                'inquiry_id': inquiry.id,
                'inquiry_status': inquiry.status,
            }}
        )
        return quote

    def statistics(self) -> dict:
        by_status: dict[str, int] = {}
        for status in self.db.execute(select(Inquiry.status)).scalars():
            by_status[status] = by_status.get(status, 0) + 1
        return {
            "total": sum(by_status.values()),
            "by_status": by_status,
            "new_count": by_status.get(InquiryStatus.NEW.value, 0),
            "pending_review_count": by_status.get(InquiryStatus.NEW.value, 0) + by_status.get(InquiryStatus.IN_REVIEW.value, 0),
        }
