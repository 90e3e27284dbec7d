"""
Pricing engine.

    subtotal         = route.base_price
    fees             = max(MIN_SERVICE_FEE, round(subtotal * SERVICE_FEE_RATE))
    discount         = promo discount, 0 when no code or the code is rejected
    student_discount = min(requested, route.student_discount), 0 when the
                       route offers none; the client amount is only a request
    total            = max(0, subtotal + fees - discount - student_discount)

Discounts larger than the payable amount are absorbed, never turned into credit.
"""

from dataclasses import dataclass
from decimal import Decimal
from typing import Optional

from sqlalchemy.ext.asyncio import AsyncSession

from coachline.core.config import get_settings
from coachline.models.route import Route
from coachline.services.money import ZERO, Amount, round_money, to_decimal
from coachline.services.promo_service import PromoValidation, validate_promo_code


@dataclass(frozen=True)
class PriceBreakdown:
    subtotal: Decimal
    fees: Decimal
    discount: Decimal
    student_discount: Decimal
    total: Decimal
    promo_code: Optional[str] = None


def compute_service_fee(subtotal: Decimal) -> Decimal:
    settings = get_settings()
    percentage_fee = round_money(subtotal * settings.SERVICE_FEE_RATE)
    return max(round_money(settings.MIN_SERVICE_FEE), percentage_fee)


def clamp_student_discount(requested: Optional[Amount], route_discount: Optional[Amount]) -> Decimal:
    if requested is None or route_discount is None:
        return ZERO
    requested = to_decimal(requested)
    ceiling = to_decimal(route_discount)
    if requested <= 0 or ceiling <= 0:
        return ZERO
    return round_money(min(requested, ceiling))


def compute_total(subtotal: Decimal, fees: Decimal, discount: Decimal, student_discount: Decimal) -> Decimal:
    return max(ZERO, round_money(subtotal + fees - discount - student_discount))


def build_price(
    route: Route,
    promo: Optional[PromoValidation] = None,
    student_discount_requested: Optional[Amount] = None,
) -> PriceBreakdown:
    subtotal = round_money(route.base_price)
    fees = compute_service_fee(subtotal)
    applied_promo = promo if promo is not None and promo.valid else None
    discount = applied_promo.discount if applied_promo else ZERO
    student_discount = clamp_student_discount(student_discount_requested, route.student_discount)

    return PriceBreakdown(
        subtotal=subtotal,
        fees=fees,
        discount=discount,
        student_discount=student_discount,
        total=compute_total(subtotal, fees, discount, student_discount),
        promo_code=applied_promo.code if applied_promo else None,
    )


async def price_booking(
    db: AsyncSession,
    route: Route,
    promo_code: Optional[str] = None,
    student_discount_requested: Optional[Amount] = None,
) -> PriceBreakdown:
    promo = None
    if promo_code and promo_code.strip():
        promo = await validate_promo_code(db, promo_code, round_money(route.base_price))
    return build_price(route, promo, student_discount_requested)
