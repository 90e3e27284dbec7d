"""
Pydantic schemas for the payment sheet and webhook acknowledgement.
"""

from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, Field


class PaymentSheetRequest(BaseModel):
    booking_id: str = Field(..., min_length=1)
    total_amount: Optional[Decimal] = Field(None, ge=0)


class PaymentSheetResponse(BaseModel):
    payment_intent: str
    ephemeral_key: str
    customer: str
    booking_id: str
    amount: float
    currency: str


class WebhookAck(BaseModel):
    received: bool = True
    error: Optional[str] = None
