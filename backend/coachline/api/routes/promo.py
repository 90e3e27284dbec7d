"""
Promo code preview. Never consumes a use.
"""

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from coachline.core.exceptions import PromoCodeExhaustedError, PromoCodeRejectedError
from coachline.db.session import get_db
from coachline.schemas.promo import PromoValidateRequest, PromoValidateResponse
from coachline.services.money import round_money
from coachline.services.promo_service import USAGE_LIMIT_REACHED, validate_promo_code

router = APIRouter(prefix="/promo", tags=["Promo"])


@router.post("/validate", response_model=PromoValidateResponse)
async def validate_promo(request: PromoValidateRequest, db: AsyncSession = Depends(get_db)):
    result = await validate_promo_code(db, request.code, round_money(request.subtotal))

    if result.reason == USAGE_LIMIT_REACHED:
        raise PromoCodeExhaustedError(code=result.code)
    if not result.valid:
        raise PromoCodeRejectedError(code=result.code, reason_detail=result.reason)

    return {
        "valid": True,
        "code": result.code,
        "discount": result.discount,
        "discount_percent": result.discount_percent,
        "discount_fixed": result.discount_fixed,
    }
