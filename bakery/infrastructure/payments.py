"""
Stripe client for hosted checkout, payment links and webhook verification.

Provider objects are converted into plain `PaymentSession` values at this
boundary so services never depend on SDK types.
"""

import json
from dataclasses import dataclass, field
from typing import Any, Optional

import stripe

from bakery.core import get_logger
from bakery.core_settings import Settings
from bakery.domain.errors import PaymentProviderError, WebhookSignatureError

logger = get_logger(__name__)


@dataclass
class PaymentLine:
    name: str
    unit_amount: int  # cents
    quantity: int = 1


@dataclass
class CheckoutSession:
    id: str
    url: str


@dataclass
class PaymentLink:
    id: str
    url: str


@dataclass
class PaymentSession:
    id: str
    payment_status: str
    status: Optional[str] = None
    metadata: dict = field(default_factory=dict)
    amount_subtotal: Optional[int] = None
    amount_total: Optional[int] = None
    amount_tax: Optional[int] = None
    customer_email: Optional[str] = None
    payment_link: Optional[str] = None

    @property
    def is_paid(self) -> bool:
        return self.payment_status == "paid"

    @property
    def is_storefront_order(self) -> bool:
        """Sessions opened by checkout carry the order draft; payment-link sessions do not."""
        return self.payment_link is None and bool(self.metadata.get("items"))

    @classmethod
    def from_payload(cls, data: dict) -> "PaymentSession":
        """Builds a session from the provider's JSON representation."""
        total_details = data.get("total_details") or {}
        customer_details = data.get("customer_details") or {}
        return cls(
            id=data.get("id", ""),
            payment_status=data.get("payment_status") or "unpaid",
            status=data.get("status"),
            metadata=dict(data.get("metadata") or {}),
            amount_subtotal=data.get("amount_subtotal"),
            amount_total=data.get("amount_total"),
            amount_tax=total_details.get("amount_tax"),
            customer_email=data.get("customer_email") or customer_details.get("email"),
            payment_link=data.get("payment_link"),
        )


def _to_payload(stripe_object: Any) -> dict:
    # StripeObject renders itself as JSON
    return json.loads(str(stripe_object))


class StripeGateway:
    """
    Thin wrapper around the Stripe SDK.

    Every SDK failure is re-raised as `PaymentProviderError` so callers can
    answer with a retryable error without leaking provider details.
    """

    def __init__(self, settings: Settings):
        self.settings = settings

    def create_checkout_session(
        self,
        lines: list[PaymentLine],
        metadata: dict[str, str],
        customer_email: Optional[str] = None,
    ) -> CheckoutSession:
        params = {
            "mode": "payment",
            "payment_method_types": ["card"],
            "line_items": [
                {
                    "price_data": {
                        "currency": self.settings.CURRENCY,
                        "product_data": {"name": line.name},
                        "unit_amount": line.unit_amount,
                    },
                    "quantity": line.quantity,
                }
                for line in lines
            ],
            "metadata": metadata,
            "success_url": f"{self.settings.APP_URL}/checkout/success?session_id={{CHECKOUT_SESSION_ID}}",
            "cancel_url": f"{self.settings.APP_URL}/checkout",
            "automatic_tax": {"enabled": self.settings.STRIPE_AUTOMATIC_TAX},
        }
        if customer_email:
            params["customer_email"] = customer_email
        try:
            session = stripe.checkout.Session.create(api_key=self.settings.STRIPE_SECRET_KEY, **params)
        except stripe.StripeError as e:
            logger.error(
                "Checkout session creation failed",
                extra={'extra_fields': {'error': str(e), 'error_type': type(e).__name__}}
            )
            raise PaymentProviderError("Failed to create checkout session") from e
        return CheckoutSession(id=session["id"], url=session["url"])

    def retrieve_session(self, session_id: str) -> PaymentSession:
        try:
            session = stripe.checkout.Session.retrieve(session_id, api_key=self.settings.STRIPE_SECRET_KEY)
        except stripe.StripeError as e:
            logger.error(
                "Checkout session lookup failed",
                extra={'extra_fields': {'session_id': session_id, 'error': str(e), 'error_type': type(e).__name__}}
            )
            raise PaymentProviderError("Failed to retrieve checkout session") from e
        return PaymentSession.from_payload(_to_payload(session))

    def create_payment_link(self, amount: int, description: str, metadata: dict[str, str]) -> PaymentLink:
        try:
            price = stripe.Price.create(
                api_key=self.settings.STRIPE_SECRET_KEY,
                currency=self.settings.CURRENCY,
                unit_amount=amount,
                product_data={"name": description},
            )
            link = stripe.PaymentLink.create(
                api_key=self.settings.STRIPE_SECRET_KEY,
                line_items=[{"price": price["id"], "quantity": 1}],
                metadata=metadata,
                payment_intent_data={"metadata": metadata},
            )
        except stripe.StripeError as e:
            logger.error(
                "Payment link creation failed",
                extra={'extra_fields': {'metadata': metadata, 'error': str(e), 'error_type': type(e).__name__}}
            )
            raise PaymentProviderError("Failed to create payment link") from e
        return PaymentLink(id=link["id"], url=link["url"])

    def parse_webhook_event(self, payload: bytes, signature: str) -> dict:
        """
        Verifies the `Stripe-Signature` header against the raw body and
        returns the decoded event. Raises `WebhookSignatureError` otherwise.
        """
        try:
            body = payload.decode("utf-8")
            stripe.WebhookSignature.verify_header(
                body,
                signature,
                self.settings.STRIPE_WEBHOOK_SECRET,
                self.settings.STRIPE_WEBHOOK_TOLERANCE,
            )
        except (UnicodeDecodeError, stripe.SignatureVerificationError) as e:
            raise WebhookSignatureError() from e
        try:
            event = json.loads(body)
        except ValueError as e:
            raise WebhookSignatureError("Malformed event payload") from e
        if not isinstance(event, dict) or "type" not in event:
            raise WebhookSignatureError("Malformed event payload")
        return event
