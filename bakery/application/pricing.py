"""Money arithmetic for checkout and order totals.

Amounts are `Decimal` rounded half-up to the cent; the payment provider
works in integer cents.
"""
from dataclasses import dataclass
from decimal import Decimal, ROUND_HALF_UP
from typing import Union

CENT = Decimal("0.01")
ZERO = Decimal("0.00")

Number = Union[Decimal, int, float, str]


def round_money(value: Number) -> Decimal:
    if isinstance(value, float):
        value = str(value)
    return Decimal(value).quantize(CENT, rounding=ROUND_HALF_UP)


def to_cents(amount: Number) -> int:
    return int(round_money(amount) * 100)


def from_cents(cents: int) -> Decimal:
    return round_money(Decimal(cents) / 100)


def calculate_service_fee(subtotal: Decimal, rate: Number) -> Decimal:
    return round_money(subtotal * Decimal(str(rate)))


def calculate_delivery_fee(subtotal: Decimal, free_minimum: Decimal, fee: Decimal) -> Decimal:
    return ZERO if subtotal >= free_minimum else round_money(fee)


@dataclass(frozen=True)
class PriceBreakdown:
    subtotal: Decimal
    service_fee: Decimal
    delivery_fee: Decimal
    tax: Decimal

    @property
    def total(self) -> Decimal:
        return round_money(self.subtotal + self.service_fee + self.delivery_fee + self.tax)


def price_order(
    subtotal: Decimal,
    service_fee_rate: Number,
    free_delivery_minimum: Decimal,
    delivery_fee: Decimal,
    tax_rate: Number = 0,
) -> PriceBreakdown:
    subtotal = round_money(subtotal)
    return PriceBreakdown(
        subtotal=subtotal,
        service_fee=calculate_service_fee(subtotal, service_fee_rate),
        delivery_fee=calculate_delivery_fee(subtotal, free_delivery_minimum, delivery_fee),
        tax=round_money(subtotal * Decimal(str(tax_rate))),
    )
