from datetime import date, timedelta

from bakery.application.settings_service import ORDERING_ENABLED, SettingsService
from support import auth_headers, checkout_body


def line_amounts(gateway, index=0):
    return {line.name: (line.unit_amount, line.quantity) for line in gateway.created[index]["lines"]}


def test_checkout_builds_session_with_fee_lines(client, gateway, customer, catalog):
    response = client.post("/checkout", json=checkout_body(catalog), headers=auth_headers(customer))

    assert response.status_code == 200
    body = response.json()
    assert body["url"].endswith(body["session_id"])
    assert line_amounts(gateway) == {
        "Brigadeiro": (450, 2),
        "Service Fee": (45, 1),
        "Delivery Fee": (800, 1),
    }
    metadata = gateway.created[0]["metadata"]
    assert metadata["user_id"] == str(customer.id)
    assert (metadata["subtotal"], metadata["service_fee"], metadata["delivery_fee"], metadata["tax"]) == (
        "900", "45", "800", "0",
    )
    assert gateway.created[0]["customer_email"] == "ana@example.com"
    assert response.headers["X-RateLimit-Limit"] == "10"


def test_checkout_ignores_client_prices(client, gateway, customer, catalog):
    items = [{"menuItemId": catalog["brigadeiro"].id, "quantity": 1, "name": "Free cake", "price": 0.01}]
    response = client.post("/checkout", json=checkout_body(catalog, items=items), headers=auth_headers(customer))

    assert response.status_code == 200
    assert line_amounts(gateway)["Brigadeiro"] == (450, 1)
    assert "Free cake" not in line_amounts(gateway)


def test_checkout_free_delivery_at_threshold(client, gateway, customer, catalog):
    items = [{"menuItemId": catalog["cake"].id, "quantity": 2}]
    response = client.post("/checkout", json=checkout_body(catalog, items=items), headers=auth_headers(customer))

    assert response.status_code == 200
    lines = line_amounts(gateway)
    assert "Delivery Fee" not in lines
    assert lines["Service Fee"] == (320, 1)


def test_checkout_merges_repeated_lines(client, gateway, customer, catalog):
    item_id = catalog["brigadeiro"].id
    items = [{"menuItemId": item_id, "quantity": 1}, {"menuItemId": item_id, "quantity": 2}]
    response = client.post("/checkout", json=checkout_body(catalog, items=items), headers=auth_headers(customer))

    assert response.status_code == 200
    assert line_amounts(gateway)["Brigadeiro"] == (450, 3)


def test_checkout_requires_authentication(client, catalog):
    response = client.post("/checkout", json=checkout_body(catalog))
    assert response.status_code == 401
    assert response.json()["error"] == "Missing token"


def test_checkout_rejects_empty_cart(client, gateway, customer, catalog):
    response = client.post("/checkout", json=checkout_body(catalog, items=[]), headers=auth_headers(customer))
    assert response.status_code == 400
    assert response.json()["error"] == "No items in cart"
    assert gateway.created == []


def test_checkout_requires_date_and_window(client, customer, catalog):
    body = checkout_body(catalog)
    del body["deliveryDate"]
    response = client.post("/checkout", json=body, headers=auth_headers(customer))
    assert response.status_code == 400
    assert response.json()["error"] == "Pickup date and window required"
    assert response.json()["details"] == [{"field": "deliveryDate", "message": "required"}]


def test_checkout_requires_address(client, customer, catalog):
    body = checkout_body(catalog)
    del body["deliveryAddress"]
    response = client.post("/checkout", json=body, headers=auth_headers(customer))
    assert response.status_code == 400


def test_checkout_rejects_zip_outside_service_area(client, gateway, customer, catalog):
    body = checkout_body(catalog)
    body["deliveryAddress"]["postalCode"] = "10001"
    response = client.post("/checkout", json=body, headers=auth_headers(customer))

    assert response.status_code == 400
    assert response.json()["details"][0]["field"] == "deliveryAddress.postalCode"
    assert gateway.created == []


def test_checkout_normalizes_zip_plus_four(client, gateway, customer, catalog):
    body = checkout_body(catalog)
    body["deliveryAddress"]["postalCode"] = "19103-2211"
    response = client.post("/checkout", json=body, headers=auth_headers(customer))

    assert response.status_code == 200
    assert '"postal_code":"19103"' in gateway.created[0]["metadata"]["delivery_address"]


def test_checkout_rejects_past_date(client, customer, catalog):
    yesterday = (date.today() - timedelta(days=1)).isoformat()
    response = client.post(
        "/checkout", json=checkout_body(catalog, deliveryDate=yesterday), headers=auth_headers(customer)
    )
    assert response.status_code == 400


def test_checkout_rejects_inactive_window(client, db, customer, catalog):
    catalog["window"].active = False
    db.commit()
    response = client.post("/checkout", json=checkout_body(catalog), headers=auth_headers(customer))
    assert response.status_code == 400
    assert response.json()["error"] == "Invalid pickup window"


def test_checkout_unknown_item_does_not_leak_details(client, gateway, customer, catalog):
    items = [{"menuItemId": 9999, "quantity": 1}]
    response = client.post("/checkout", json=checkout_body(catalog, items=items), headers=auth_headers(customer))

    assert response.status_code == 500
    assert response.json()["error"] == "An unexpected error occurred"
    assert "9999" not in response.text
    assert gateway.created == []


def test_checkout_rejects_cart_beyond_availability(client, gateway, customer, catalog):
    items = [{"menuItemId": catalog["cake"].id, "quantity": 3}]
    response = client.post("/checkout", json=checkout_body(catalog, items=items), headers=auth_headers(customer))

    assert response.status_code == 409
    assert response.json()["code"] == "INSUFFICIENT_INVENTORY"
    assert gateway.created == []


def test_checkout_closed_when_ordering_disabled(client, db, customer, catalog):
    SettingsService(db).set(ORDERING_ENABLED, {"enabled": False})
    response = client.post("/checkout", json=checkout_body(catalog), headers=auth_headers(customer))
    assert response.status_code == 409
    assert response.json()["error"] == "Ordering is currently closed"


def test_checkout_uses_runtime_service_fee_rate(client, db, gateway, customer, catalog):
    SettingsService(db).set("service_fee_rate", {"rate": 0.1})
    response = client.post("/checkout", json=checkout_body(catalog), headers=auth_headers(customer))
    assert response.status_code == 200
    assert line_amounts(gateway)["Service Fee"] == (90, 1)


def test_checkout_is_rate_limited_per_user(client, customer, catalog):
    headers = auth_headers(customer)
    for _ in range(10):
        assert client.post("/checkout", json=checkout_body(catalog, items=[]), headers=headers).status_code == 400

    response = client.post("/checkout", json=checkout_body(catalog), headers=headers)
    assert response.status_code == 429
    assert int(response.headers["Retry-After"]) >= 1
