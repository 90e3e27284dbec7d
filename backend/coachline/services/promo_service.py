"""
Promo code validation and usage accounting.

Validation is side-effect free: the live price preview may call it as often as
it likes without consuming the usage cap. Usage is counted only when a payment
is confirmed, with a single atomic UPDATE:

    UPDATE promo_codes SET usage_count = usage_count + 1
    WHERE code = :code AND (usage_limit = 0 OR usage_count < usage_limit)

so concurrent confirmations sharing a code never lose an increment and never
push the count past the limit.
"""

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from typing import Optional

from sqlalchemy import or_, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from coachline.core.logging import get_logger
from coachline.core.metrics import record_promo_validation
from coachline.models.promo_code import PromoCode
from coachline.services.dates import as_utc, utc_now
from coachline.services.money import ZERO, round_money

logger = get_logger(__name__)

VALID = "valid"
NOT_FOUND = "not_found"
INACTIVE = "inactive"
NOT_YET_VALID = "not_yet_valid"
EXPIRED = "expired"
USAGE_LIMIT_REACHED = "usage_limit_reached"


@dataclass
class PromoValidation:
    valid: bool
    reason: str
    code: Optional[str] = None
    discount: Decimal = ZERO
    discount_percent: Decimal = ZERO
    discount_fixed: Decimal = ZERO


def normalize_code(code: str) -> str:
    return code.strip().upper()


def compute_discount(promo: PromoCode, subtotal: Decimal) -> Decimal:
    """Percent mode wins over fixed mode; a code with neither contributes zero."""
    percent = Decimal(promo.discount_percent or 0)
    fixed = Decimal(promo.discount_fixed or 0)
    cap = Decimal(promo.max_discount or 0)

    if percent > 0:
        discount = round_money(subtotal * percent / Decimal(100))
        if cap > 0:
            discount = min(discount, round_money(cap))
        return discount
    if fixed > 0:
        return round_money(fixed)
    return ZERO


def check_promo(promo: Optional[PromoCode], now: datetime) -> str:
    if promo is None:
        return NOT_FOUND
    if not promo.active:
        return INACTIVE
    if now < as_utc(promo.valid_from):
        return NOT_YET_VALID
    if now > as_utc(promo.valid_until):
        return EXPIRED
    if promo.usage_limit > 0 and promo.usage_count >= promo.usage_limit:
        return USAGE_LIMIT_REACHED
    return VALID


async def get_promo_code(db: AsyncSession, code: str) -> Optional[PromoCode]:
    result = await db.execute(select(PromoCode).where(PromoCode.code == normalize_code(code)))
    return result.scalar_one_or_none()


async def validate_promo_code(
    db: AsyncSession,
    code: str,
    subtotal: Decimal,
    now: Optional[datetime] = None,
) -> PromoValidation:
    """Check window, active flag and usage cap, and compute the discount."""
    promo = await get_promo_code(db, code)
    outcome = check_promo(promo, now or utc_now())
    record_promo_validation(outcome)

    if outcome != VALID:
        logger.info("promo_code_rejected", code=normalize_code(code), reason=outcome)
        return PromoValidation(valid=False, reason=outcome, code=normalize_code(code))

    return PromoValidation(
        valid=True,
        reason=VALID,
        code=promo.code,
        discount=compute_discount(promo, subtotal),
        discount_percent=Decimal(promo.discount_percent or 0),
        discount_fixed=Decimal(promo.discount_fixed or 0),
    )


async def record_promo_usage(db: AsyncSession, code: str) -> bool:
    """Atomically count one use of `code`. Returns False if the cap was already hit."""
    result = await db.execute(
        update(PromoCode)
        .where(
            PromoCode.code == normalize_code(code),
            or_(PromoCode.usage_limit == 0, PromoCode.usage_count < PromoCode.usage_limit),
        )
        .values(usage_count=PromoCode.usage_count + 1)
        .execution_options(synchronize_session=False)
    )
    if result.rowcount == 0:
        logger.warning("promo_usage_not_recorded", code=normalize_code(code), reason="limit_reached_or_missing")
        return False

    logger.info("promo_usage_recorded", code=normalize_code(code))
    return True
