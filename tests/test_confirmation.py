import threading
from decimal import Decimal

import pytest

from bakery.application.confirmation_service import PaymentConfirmationService
from bakery.domain.errors import InsufficientInventory
from bakery.domain.models import Inventory, Order, OrderItem
from bakery.infrastructure.db import SessionLocal
from support import PICKUP_DATE, auth_headers, checkout_body


def start_checkout(client, customer, catalog, items=None) -> str:
    response = client.post("/checkout", json=checkout_body(catalog, items=items), headers=auth_headers(customer))
    assert response.status_code == 200
    return response.json()["session_id"]


def reserved(db, menu_item_id):
    db.expire_all()
    return db.query(Inventory).filter_by(menu_item_id=menu_item_id, pickup_date=PICKUP_DATE).one().reserved_quantity


def test_confirm_creates_order_from_paid_session(client, db, gateway, customer, catalog):
    session_id = start_checkout(client, customer, catalog)
    gateway.mark_paid(session_id)

    response = client.get("/orders/confirm", params={"session_id": session_id})

    assert response.status_code == 200
    body = response.json()
    assert body["order_number"] == f"ORD-{body['order_id']:06d}"
    assert body["pickup_date"] == PICKUP_DATE.isoformat()
    assert body["pickup_window"] == "Morning (9am - 12pm)"
    assert body["total"] == 17.45
    assert body["items"] == [{"name": "Brigadeiro", "quantity": 2, "price": 9.0}]

    order = db.query(Order).one()
    assert order.status == "paid"
    assert order.stripe_session_id == session_id
    assert (order.subtotal_amount, order.service_fee_amount, order.delivery_fee_amount) == (
        Decimal("9.00"), Decimal("0.45"), Decimal("8.00"),
    )
    assert order.delivery_address["postal_code"] == "19103"
    assert reserved(db, catalog["brigadeiro"].id) == 2


def test_confirm_is_idempotent(client, db, gateway, customer, catalog):
    session_id = start_checkout(client, customer, catalog)
    gateway.mark_paid(session_id)

    first = client.get("/orders/confirm", params={"session_id": session_id}).json()
    second = client.get("/orders/confirm", params={"session_id": session_id}).json()

    assert first == second
    assert db.query(Order).count() == 1
    assert db.query(OrderItem).count() == 1
    assert reserved(db, catalog["brigadeiro"].id) == 2


def test_order_keeps_price_captured_at_checkout(client, db, gateway, customer, catalog):
    session_id = start_checkout(client, customer, catalog)
    catalog["brigadeiro"].base_price = 6
    db.commit()
    gateway.mark_paid(session_id)

    client.get("/orders/confirm", params={"session_id": session_id})

    item = db.query(OrderItem).one()
    assert float(item.unit_price) == 4.5
    assert float(item.line_total) == 9.0


def test_confirm_requires_session_id(client):
    response = client.get("/orders/confirm")
    assert response.status_code == 400
    assert response.json()["error"] == "Session ID required"


def test_confirm_unpaid_session(client, db, customer, catalog):
    session_id = start_checkout(client, customer, catalog)

    response = client.get("/orders/confirm", params={"session_id": session_id})

    assert response.status_code == 400
    assert response.json()["error"] == "Payment not completed"
    assert db.query(Order).count() == 0
    assert reserved(db, catalog["brigadeiro"].id) == 0


def test_confirm_unknown_session_is_retryable(client):
    response = client.get("/orders/confirm", params={"session_id": "cs_missing"})
    assert response.status_code == 502
    assert response.json()["error"] == "Payment provider unavailable, please retry"


def test_sold_out_after_payment_rolls_back_everything(client, db, gateway, customer, catalog):
    items = [
        {"menuItemId": catalog["brigadeiro"].id, "quantity": 1},
        {"menuItemId": catalog["cake"].id, "quantity": 2},
    ]
    session_id = start_checkout(client, customer, catalog, items=items)
    # someone else takes the last cake between checkout and payment
    db.query(Inventory).filter_by(menu_item_id=catalog["cake"].id).update({"reserved_quantity": 1})
    db.commit()
    gateway.mark_paid(session_id)

    response = client.get("/orders/confirm", params={"session_id": session_id})

    assert response.status_code == 409
    assert db.query(Order).count() == 0
    assert db.query(OrderItem).count() == 0
    assert reserved(db, catalog["brigadeiro"].id) == 0
    assert reserved(db, catalog["cake"].id) == 1


def test_provider_tax_is_recorded(client, db, gateway, customer, catalog):
    session_id = start_checkout(client, customer, catalog)
    session = gateway.mark_paid(session_id)
    session.amount_tax = 54
    session.amount_total += 54

    body = client.get("/orders/confirm", params={"session_id": session_id}).json()

    assert body["total"] == 17.99
    assert float(db.query(Order).one().tax_amount) == 0.54


def test_concurrent_confirmations_create_one_order(client, db, gateway, customer, catalog):
    session_id = start_checkout(client, customer, catalog)
    session = gateway.mark_paid(session_id)
    barrier = threading.Barrier(2)
    results, errors = [], []

    def confirm():
        thread_db = SessionLocal()
        try:
            barrier.wait()
            results.append(PaymentConfirmationService(thread_db, gateway).finalize(session))
        except Exception as e:
            errors.append(e)
        finally:
            thread_db.close()

    threads = [threading.Thread(target=confirm) for _ in range(2)]
    for t in threads:
        t.start()
    for t in threads:
        t.join(timeout=60)

    assert errors == []
    assert sorted(r.created for r in results) == [False, True]
    assert len({r.order.id for r in results}) == 1
    assert db.query(Order).count() == 1
    assert reserved(db, catalog["brigadeiro"].id) == 2


def test_finalize_reports_exhausted_inventory(db, gateway, client, customer, catalog):
    items = [{"menuItemId": catalog["cake"].id, "quantity": 2}]
    first = start_checkout(client, customer, catalog, items=items)
    second = start_checkout(client, customer, catalog, items=items)
    service = PaymentConfirmationService(db, gateway)

    assert service.finalize(gateway.mark_paid(first)).created is True
    with pytest.raises(InsufficientInventory):
        service.finalize(gateway.mark_paid(second))
    assert db.query(Order).count() == 1
