"""
Pydantic schemas for promo code preview.
"""

from decimal import Decimal

from pydantic import BaseModel, Field


class PromoValidateRequest(BaseModel):
    code: str = Field(..., min_length=1, max_length=64)
    subtotal: Decimal = Field(..., ge=0)


class PromoValidateResponse(BaseModel):
    valid: bool
    code: str
    discount: float
    discount_percent: float
    discount_fixed: float
