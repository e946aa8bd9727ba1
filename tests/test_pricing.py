from decimal import Decimal

import pytest

from bakery.application.order_metadata import (
    DraftLine,
    OrderDraft,
    decode_order_metadata,
    encode_order_metadata,
)
from bakery.application.pricing import price_order, round_money, to_cents
from bakery.application.service_area import is_zip_in_service_area, normalize_zip, zip_validation_error
from bakery.domain.errors import ValidationError
from support import PICKUP_DATE

FREE_MIN = Decimal("50.00")
FEE = Decimal("8.00")


def test_small_cart_pays_service_and_delivery_fee():
    breakdown = price_order(Decimal("4.50") * 2, 0.05, FREE_MIN, FEE)
    assert breakdown.subtotal == Decimal("9.00")
    assert breakdown.service_fee == Decimal("0.45")
    assert breakdown.delivery_fee == Decimal("8.00")
    assert breakdown.tax == Decimal("0.00")
    assert breakdown.total == Decimal("17.45")


@pytest.mark.parametrize("subtotal,expected_fee", [
    ("50.00", "0.00"),
    ("49.99", "8.00"),
    ("75.00", "0.00"),
])
def test_free_delivery_threshold_is_inclusive(subtotal, expected_fee):
    assert price_order(Decimal(subtotal), 0.05, FREE_MIN, FEE).delivery_fee == Decimal(expected_fee)


def test_service_fee_rounds_half_up_to_cents():
    # 0.05 * 10.10 = 0.505
    assert price_order(Decimal("10.10"), 0.05, FREE_MIN, FEE).service_fee == Decimal("0.51")


def test_tax_rate_applies_to_subtotal():
    breakdown = price_order(Decimal("60.00"), 0.05, FREE_MIN, FEE, tax_rate=Decimal("0.06"))
    assert breakdown.tax == Decimal("3.60")
    assert breakdown.total == Decimal("66.60")


def test_cent_conversion():
    assert to_cents(Decimal("17.45")) == 1745
    assert to_cents(4.5) == 450
    assert round_money("0.005") == Decimal("0.01")


def test_order_metadata_keeps_breakdown_and_unit_prices():
    draft = OrderDraft(
        user_id=7,
        pickup_date=PICKUP_DATE,
        pickup_window_id=2,
        lines=[DraftLine(3, 2, 450), DraftLine(5, 1, 3200)],
        subtotal_cents=4100,
        service_fee_cents=205,
        delivery_fee_cents=800,
        delivery_address={"line1": "123 Market St", "postal_code": "19103"},
        notes="Leave at the door",
    )
    metadata = encode_order_metadata(draft)
    assert all(isinstance(v, str) and len(v) <= 500 for v in metadata.values())

    decoded = decode_order_metadata(metadata)
    assert decoded.lines[1].unit_price_cents == 3200
    assert decoded.total_cents == 4100 + 205 + 800
    assert decoded.delivery_address["postal_code"] == "19103"


def test_order_metadata_missing_keys():
    with pytest.raises(ValidationError) as exc_info:
        decode_order_metadata({"user_id": "1"})
    fields = {d["field"] for d in exc_info.value.details}
    assert fields == {"pickup_date", "pickup_window", "items"}


def test_order_metadata_malformed_items():
    with pytest.raises(ValidationError):
        decode_order_metadata({
            "user_id": "1", "pickup_date": PICKUP_DATE.isoformat(), "pickup_window": "1", "items": "not-json",
        })


@pytest.mark.parametrize("zip_code,expected", [
    ("19103", True),
    ("19103-1234", True),
    ("08002", True),
    ("10001", False),
])
def test_service_area(zip_code, expected):
    assert is_zip_in_service_area(zip_code) is expected


def test_zip_normalization_and_errors():
    assert normalize_zip(" 19103-1234 ") == "19103"
    assert zip_validation_error("19103") is None
    assert zip_validation_error("1910") is not None
    assert zip_validation_error("10001") is not None
