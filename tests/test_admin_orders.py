from bakery.domain.models import Inventory, Order, Profile
from support import PICKUP_DATE, auth_headers, checkout_body


def place_order(client, gateway, customer, catalog, items=None) -> int:
    response = client.post("/checkout", json=checkout_body(catalog, items=items), headers=auth_headers(customer))
    session_id = response.json()["session_id"]
    gateway.mark_paid(session_id)
    return client.get("/orders/confirm", params={"session_id": session_id}).json()["order_id"]


def set_status(client, admin, order_id, status):
    return client.put(f"/admin/orders/{order_id}/status", json={"status": status}, headers=auth_headers(admin))


def reserved(db, menu_item_id):
    db.expire_all()
    return db.query(Inventory).filter_by(menu_item_id=menu_item_id, pickup_date=PICKUP_DATE).one().reserved_quantity


def test_admin_moves_order_through_lifecycle(client, gateway, admin, customer, catalog):
    order_id = place_order(client, gateway, customer, catalog)

    for status in ("prepping", "ready", "picked_up"):
        response = set_status(client, admin, order_id, status)
        assert response.status_code == 200
        assert response.json()["status"] == status


def test_illegal_order_transition(client, db, gateway, admin, customer, catalog):
    order_id = place_order(client, gateway, customer, catalog)

    response = set_status(client, admin, order_id, "picked_up")

    assert response.status_code == 400
    assert response.json()["error"] == "Cannot transition order from paid to picked_up"
    assert response.json()["current_state"] == "paid"
    db.expire_all()
    assert db.get(Order, order_id).status == "paid"


def test_terminal_order_cannot_change(client, gateway, admin, customer, catalog):
    order_id = place_order(client, gateway, customer, catalog)
    set_status(client, admin, order_id, "canceled")
    assert set_status(client, admin, order_id, "prepping").status_code == 400


def test_cancel_releases_inventory(client, db, gateway, admin, customer, catalog):
    order_id = place_order(client, gateway, customer, catalog)
    assert reserved(db, catalog["brigadeiro"].id) == 2

    assert set_status(client, admin, order_id, "canceled").status_code == 200
    assert reserved(db, catalog["brigadeiro"].id) == 0


def test_unknown_order_and_status(client, admin):
    assert set_status(client, admin, 9999, "prepping").status_code == 404
    response = client.put("/admin/orders/1/status", json={"status": "shipped"}, headers=auth_headers(admin))
    assert response.status_code == 400
    assert response.json()["error"] == "Validation failed"


def test_admin_routes_require_admin(client, gateway, customer, catalog):
    order_id = place_order(client, gateway, customer, catalog)
    response = set_status(client, customer, order_id, "prepping")
    assert response.status_code == 403
    assert client.get("/admin/orders").status_code == 401


def test_admin_lists_and_filters_orders(client, gateway, admin, customer, catalog):
    first = place_order(client, gateway, customer, catalog)
    place_order(client, gateway, customer, catalog)
    set_status(client, admin, first, "prepping")
    headers = auth_headers(admin)

    assert len(client.get("/admin/orders", headers=headers).json()) == 2
    prepping = client.get("/admin/orders", params={"status": "prepping"}, headers=headers).json()
    assert [o["id"] for o in prepping] == [first]
    assert client.get("/admin/orders", params={"pickup_date": "2000-01-01"}, headers=headers).json() == []
    assert client.get(f"/admin/orders/{first}", headers=headers).json()["items"][0]["name_snapshot"] == "Brigadeiro"


def test_order_statistics_exclude_canceled_revenue(client, gateway, admin, customer, catalog):
    first = place_order(client, gateway, customer, catalog)
    place_order(client, gateway, customer, catalog)
    set_status(client, admin, first, "canceled")

    stats = client.get(
        "/admin/orders/stats", params={"pickup_date": PICKUP_DATE.isoformat()}, headers=auth_headers(admin)
    ).json()

    assert stats["total"] == 2
    assert stats["by_status"]["canceled"] == 1
    assert stats["by_status"]["paid"] == 1
    assert stats["total_revenue"] == 17.45


def test_only_canceled_orders_can_be_deleted(client, db, gateway, admin, customer, catalog):
    order_id = place_order(client, gateway, customer, catalog)
    headers = auth_headers(admin)

    response = client.delete(f"/admin/orders/{order_id}", headers=headers)
    assert response.status_code == 409
    assert response.json()["error"] == "Only canceled orders can be deleted"

    set_status(client, admin, order_id, "canceled")
    assert client.delete(f"/admin/orders/{order_id}", headers=headers).status_code == 204
    assert db.query(Order).count() == 0


def test_customer_sees_only_own_orders(client, db, gateway, customer, catalog):
    order_id = place_order(client, gateway, customer, catalog)
    other = Profile(email="someone@example.com")
    db.add(other)
    db.commit()

    assert [o["id"] for o in client.get("/orders", headers=auth_headers(customer)).json()] == [order_id]
    assert client.get("/orders", headers=auth_headers(other)).json() == []
    assert client.get(f"/orders/{order_id}", headers=auth_headers(other)).status_code == 404
    assert client.get(f"/orders/{order_id}", headers=auth_headers(customer)).json()["order_number"].startswith("ORD-")


def test_customer_order_scopes(client, gateway, admin, customer, catalog):
    active = place_order(client, gateway, customer, catalog)
    done = place_order(client, gateway, customer, catalog)
    set_status(client, admin, done, "canceled")
    headers = auth_headers(customer)

    assert [o["id"] for o in client.get("/orders", params={"scope": "upcoming"}, headers=headers).json()] == [active]
    assert [o["id"] for o in client.get("/orders", params={"scope": "past"}, headers=headers).json()] == [done]
