import pytest

from bakery.application.settings_service import SettingsService
from bakery.domain.errors import NotFoundError, ValidationError
from bakery.domain.models import AppSetting
from support import auth_headers


def test_defaults_come_from_configuration(db):
    service = SettingsService(db)
    assert service.service_fee_rate() == 0.05
    assert service.ordering_enabled() is True
    assert str(service.delivery().free_minimum) == "50.00"
    assert service.get("business_info") is None


def test_set_and_read_back(db):
    service = SettingsService(db)
    service.set("pickup_instructions", {"en": "Ring the bell", "pt": "Toque a campainha"})
    value = service.get("pickup_instructions")
    assert value.en == "Ring the bell"
    assert value.es == ""


def test_invalid_value_is_rejected(db):
    with pytest.raises(ValidationError) as exc_info:
        SettingsService(db).set("service_fee_rate", {"rate": 1.5})
    assert exc_info.value.details[0]["field"] == "rate"


def test_unknown_key(db):
    with pytest.raises(NotFoundError):
        SettingsService(db).get("colour_scheme")


def test_corrupt_stored_value_falls_back_to_default(db):
    db.add(AppSetting(key="service_fee_rate", value={"rate": "lots"}))
    db.commit()
    assert SettingsService(db).service_fee_rate() == 0.05


def test_admin_settings_endpoints(client, admin):
    headers = auth_headers(admin)

    response = client.put("/admin/settings/delivery", json={"free_minimum": "60.00", "fee": "10.00"}, headers=headers)
    assert response.status_code == 200
    assert response.json() == {"free_minimum": "60.00", "fee": "10.00"}

    settings = client.get("/admin/settings", headers=headers).json()
    assert settings["delivery"] == {"free_minimum": "60.00", "fee": "10.00"}
    assert settings["ordering_enabled"] == {"enabled": True}
    assert settings["business_info"] is None


def test_admin_settings_validation(client, admin):
    headers = auth_headers(admin)
    response = client.put(
        "/admin/settings/business_info",
        json={"name": "Bakery", "address": "1 Main St", "phone": "555", "email": "not-an-email"},
        headers=headers,
    )
    assert response.status_code == 400
    assert response.json()["details"][0]["field"] == "email"
    assert client.put("/admin/settings/nope", json={}, headers=headers).status_code == 404


def test_settings_require_admin(client, customer):
    assert client.get("/admin/settings", headers=auth_headers(customer)).status_code == 403
