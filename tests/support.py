"""Helpers shared by the test modules: fake payment gateway, signing, request builders."""

import hashlib
import hmac
import json
import time
from datetime import date, timedelta

from bakery.api.auth import create_access_token
from bakery.application.inquiry_service import add_months
from bakery.core_settings import get_settings
from bakery.domain.errors import PaymentProviderError
from bakery.domain.models import Profile
from bakery.infrastructure.payments import CheckoutSession, PaymentLink, PaymentSession, StripeGateway

WEBHOOK_SECRET = "whsec_test_secret"
PICKUP_DATE = date.today() + timedelta(days=3)
ADDRESS = {"line1": "123 Market St", "city": "Philadelphia", "state": "PA", "postalCode": "19103"}


class FakeGateway(StripeGateway):
    """Keeps sessions in memory. Webhook verification is the real one."""

    def __init__(self):
        super().__init__(get_settings())
        self.sessions: dict[str, PaymentSession] = {}
        self.created = []
        self.payment_links = []

    def create_checkout_session(self, lines, metadata, customer_email=None):
        session_id = f"cs_test_{len(self.created) + 1:04d}"
        self.created.append({"lines": lines, "metadata": dict(metadata), "customer_email": customer_email})
        self.sessions[session_id] = PaymentSession(
            id=session_id,
            payment_status="unpaid",
            status="open",
            metadata=dict(metadata),
            amount_total=sum(line.unit_amount * line.quantity for line in lines),
            amount_tax=0,
            customer_email=customer_email,
        )
        return CheckoutSession(id=session_id, url=f"https://checkout.example.test/{session_id}")

    def retrieve_session(self, session_id):
        if session_id not in self.sessions:
            raise PaymentProviderError(f"No such checkout session: {session_id}")
        return self.sessions[session_id]

    def create_payment_link(self, amount, description, metadata):
        self.payment_links.append({"amount": amount, "description": description, "metadata": metadata})
        number = len(self.payment_links)
        return PaymentLink(id=f"plink_test_{number}", url=f"https://pay.example.test/link_{number}")

    def mark_paid(self, session_id: str) -> PaymentSession:
        session = self.sessions[session_id]
        session.payment_status = "paid"
        session.status = "complete"
        return session

    def session_payload(self, session_id: str) -> dict:
        session = self.sessions[session_id]
        return {
            "id": session.id,
            "object": "checkout.session",
            "payment_status": session.payment_status,
            "status": session.status,
            "metadata": session.metadata,
            "amount_total": session.amount_total,
            "total_details": {"amount_tax": session.amount_tax or 0},
            "customer_details": {"email": session.customer_email},
        }


def sign_payload(payload: str, secret: str = WEBHOOK_SECRET, timestamp: int = None) -> str:
    """Builds a `Stripe-Signature` header the way the provider does."""
    timestamp = timestamp or int(time.time())
    signature = hmac.new(secret.encode(), f"{timestamp}.{payload}".encode(), hashlib.sha256).hexdigest()
    return f"t={timestamp},v1={signature}"


def make_event(event_type: str, data: dict, event_id: str = "evt_test_1") -> str:
    return json.dumps({"id": event_id, "object": "event", "type": event_type, "data": {"object": data}})


def auth_headers(user: Profile) -> dict:
    return {"Authorization": f"Bearer {create_access_token(user.id)}"}


def checkout_body(catalog, items=None, **overrides) -> dict:
    body = {
        "items": items if items is not None else [
            {"menuItemId": catalog["brigadeiro"].id, "quantity": 2, "name": "Brigadeiro"}
        ],
        "deliveryDate": PICKUP_DATE.isoformat(),
        "deliveryWindowId": catalog["window"].id,
        "deliveryAddress": dict(ADDRESS),
    }
    body.update(overrides)
    return body


def inquiry_body(**overrides) -> dict:
    body = {
        "event_type": "birthday",
        "event_date": (add_months(date.today(), 1) + timedelta(days=1)).isoformat(),
        "servings": 30,
        "tiers": 2,
        "shape": "round",
        "style": "floral",
        "color_palette_text": "blush and gold",
        "image_urls": ["https://img.example.test/1.jpg"],
    }
    body.update(overrides)
    return body
