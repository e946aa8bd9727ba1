from fastapi import APIRouter, Depends, Request
from fastapi.concurrency import run_in_threadpool
from sqlalchemy.orm import Session
from bakery.core import get_logger
from bakery.infrastructure.db import get_db
from bakery.application.confirmation_service import PaymentConfirmationService
from bakery.domain.errors import WebhookSignatureError
from .deps import get_gateway

logger = get_logger(__name__)

router = APIRouter(prefix="/webhooks", tags=["webhooks"])

@router.post("/payment")
async def payment_webhook(request: Request, db: Session = Depends(get_db), gateway=Depends(get_gateway)):
    """Payment provider events. Signature is checked against the raw body before anything else."""
    payload = await request.body()
    signature = request.headers.get("stripe-signature")
    if not signature:
        logger.warning("Webhook received without signature header")
        raise WebhookSignatureError("Missing signature")

    try:
        event = gateway.parse_webhook_event(payload, signature)
    except WebhookSignatureError as e:
        logger.error(
            "Webhook signature verification failed",
            extra={'extra_fields': {
                'reason': e.message,
                'has_signature_header': True,
                'payload_size': len(payload),
                'client_ip': request.client.host if request.client else None,
            }}
        )
        raise

    logger.info(
        f"Webhook event received: {event.get('type')}",
        extra={'extra_fields': {'event_id': event.get('id'), 'event_type': event.get('type')}}
    )
    await run_in_threadpool(PaymentConfirmationService(db, gateway).handle_event, event)
    return {"received": True}
