"""
Pydantic schemas for route catalogue, trip search and route administration.
"""

from datetime import datetime
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, Field, field_validator

from coachline.schemas.common import Currency, UtcDatetime

TIME_OF_DAY = r"^\d{2}:\d{2}$"


def _normalize_days(days: Optional[list[int]]) -> Optional[list[int]]:
    if not days:
        return None
    for day in days:
        if day < 0 or day > 6:
            raise ValueError("available_days must only contain integers between 0 and 6")
    return sorted(set(days))


class RouteCreate(BaseModel):
    from_city: str = Field(..., min_length=1, max_length=120)
    to_city: str = Field(..., min_length=1, max_length=120)
    base_price: Decimal = Field(..., ge=0)
    currency: Currency = "RON"
    departure_time: str = Field(..., pattern=TIME_OF_DAY)
    arrival_time: str = Field(..., pattern=TIME_OF_DAY)
    from_station: str = Field(..., min_length=1, max_length=255)
    to_station: str = Field(..., min_length=1, max_length=255)
    active: bool = True
    available_days: Optional[list[int]] = None
    student_discount: Optional[Decimal] = Field(None, ge=0)
    closed_dates: Optional[list[str]] = None

    @field_validator("from_city", "to_city", "from_station", "to_station")
    @classmethod
    def strip_text(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("must not be blank")
        return value

    @field_validator("available_days")
    @classmethod
    def check_days(cls, days: Optional[list[int]]) -> Optional[list[int]]:
        return _normalize_days(days)


class RouteUpdate(BaseModel):
    from_city: Optional[str] = Field(None, min_length=1, max_length=120)
    to_city: Optional[str] = Field(None, min_length=1, max_length=120)
    base_price: Optional[Decimal] = Field(None, ge=0)
    currency: Optional[Currency] = None
    departure_time: Optional[str] = Field(None, pattern=TIME_OF_DAY)
    arrival_time: Optional[str] = Field(None, pattern=TIME_OF_DAY)
    from_station: Optional[str] = Field(None, min_length=1, max_length=255)
    to_station: Optional[str] = Field(None, min_length=1, max_length=255)
    active: Optional[bool] = None
    available_days: Optional[list[int]] = None
    student_discount: Optional[Decimal] = Field(None, ge=0)
    closed_dates: Optional[list[str]] = None

    @field_validator("available_days")
    @classmethod
    def check_days(cls, days: Optional[list[int]]) -> Optional[list[int]]:
        return _normalize_days(days)


class RouteResponse(BaseModel):
    id: int
    from_city: str
    to_city: str
    base_price: float
    currency: str
    departure_time: str
    arrival_time: str
    from_station: str
    to_station: str
    active: bool
    available_days: Optional[list[int]]
    student_discount: Optional[float]
    closed_dates: list[str]
    created_at: Optional[UtcDatetime] = None
    updated_at: Optional[UtcDatetime] = None

    model_config = {"from_attributes": True}


class ClosedDateRequest(BaseModel):
    date: str = Field(..., min_length=1)


class ClosedDateResponse(BaseModel):
    message: str
    route: RouteResponse


class CityListResponse(BaseModel):
    cities: list[str]


class DestinationListResponse(BaseModel):
    destinations: list[str]


class StudentDiscountResponse(BaseModel):
    from_city: str
    to_city: str
    student_discount: Optional[float]
    has_student_discount: bool


class AvailableDaysResponse(BaseModel):
    from_city: str
    to_city: str
    available_daily: bool
    available_days: Optional[list[int]]
    available_day_names: list[str]
    closed_dates: list[str]


class TripSearchRequest(BaseModel):
    from_city: str = Field(..., min_length=1)
    to_city: str = Field(..., min_length=1)
    date: str = Field(..., min_length=1)


class TripSearchResponse(BaseModel):
    from_city: str
    to_city: str
    travel_date: datetime
    requested_date: str
    price: float
    currency: str
    departure_time: str
    arrival_time: str
    from_station: str
    to_station: str
    available_days: Optional[list[int]]
    student_discount: Optional[float]
    is_available_on_selected_date: bool = True
    is_closed: bool = False
    closed_dates: list[str]
