"""
Pydantic schemas for tickets and boarding validation.
"""

from typing import Optional

from pydantic import BaseModel, Field

from coachline.schemas.common import UtcDatetime


class TicketResponse(BaseModel):
    ticket_id: str
    booking_id: str
    qr_token: str
    from_city: str
    to_city: str
    travel_date: UtcDatetime
    departure_time: str
    arrival_time: str
    passenger_name: str
    price: float
    currency: str
    is_used: bool
    used_at: Optional[UtcDatetime] = None
    created_at: Optional[UtcDatetime] = None

    model_config = {"from_attributes": True}


class TicketSummary(BaseModel):
    """Ticket view without the redemption token."""

    ticket_id: str
    booking_id: str
    from_city: str
    to_city: str
    travel_date: UtcDatetime
    departure_time: str
    arrival_time: str
    passenger_name: str
    price: float
    currency: str
    is_used: bool
    used_at: Optional[UtcDatetime] = None

    model_config = {"from_attributes": True}


class TicketListResponse(BaseModel):
    tickets: list[TicketSummary]


class QRTokenRequest(BaseModel):
    qr_token: str = Field(..., min_length=1)


class TicketValidationResponse(BaseModel):
    valid: bool
    already_used: bool = False
    expired: bool = False
    used_at: Optional[UtcDatetime] = None
    ticket: TicketSummary


class TicketUseResponse(BaseModel):
    success: bool = True
    message: str = "Ticket marked as used"
    ticket: TicketSummary
