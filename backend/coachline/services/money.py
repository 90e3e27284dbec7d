"""
Currency arithmetic helpers. Every computed amount is rounded half-up to
cents, matching the provider's minor-unit representation at charge time.
"""

from decimal import ROUND_HALF_UP, Decimal
from typing import Union

ZERO = Decimal("0.00")
CENT = Decimal("0.01")

Amount = Union[Decimal, int, float, str]


def to_decimal(value: Amount) -> Decimal:
    if isinstance(value, Decimal):
        return value
    if isinstance(value, float):
        return Decimal(str(value))
    return Decimal(value)


def round_money(value: Amount) -> Decimal:
    return to_decimal(value).quantize(CENT, rounding=ROUND_HALF_UP)


def to_minor_units(value: Amount) -> int:
    return int((round_money(value) * 100).to_integral_value(rounding=ROUND_HALF_UP))


def from_minor_units(value: int) -> Decimal:
    return round_money(Decimal(value) / 100)
