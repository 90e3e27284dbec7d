"""
Pydantic schemas for booking-related request/response validation.
"""

from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, EmailStr, Field

from coachline.schemas.common import UtcDatetime


class Passenger(BaseModel):
    name: str = Field(..., min_length=1, max_length=120)
    surname: str = Field(..., min_length=1, max_length=120)
    email: EmailStr
    phone: str = Field(..., min_length=3, max_length=40)


class BookingCreate(BaseModel):
    from_city: str = Field(..., min_length=1)
    to_city: str = Field(..., min_length=1)
    date: str = Field(..., min_length=1)
    passenger: Passenger
    promo_code: Optional[str] = Field(None, max_length=64)
    student_discount: Optional[Decimal] = Field(None, ge=0)


class PassengerResponse(BaseModel):
    name: str
    surname: str
    email: str
    phone: str


class BookingResponse(BaseModel):
    booking_id: str
    from_city: str
    to_city: str
    travel_date: UtcDatetime
    departure_time: str
    arrival_time: str
    passenger: PassengerResponse
    subtotal: float
    fees: float
    discount: float
    student_discount: float
    total: float
    currency: str
    promo_code: Optional[str]
    status: str
    created_at: Optional[UtcDatetime] = None

    model_config = {"from_attributes": True}


class BookingCreatedResponse(BookingResponse):
    requested_date: str
    closed_dates: list[str]
