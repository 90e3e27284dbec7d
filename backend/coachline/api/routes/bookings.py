"""
Booking endpoints.
"""

from typing import Literal, Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from coachline.db.session import get_db
from coachline.schemas.booking import BookingCreate, BookingCreatedResponse, BookingResponse
from coachline.services import booking_service

router = APIRouter(prefix="/bookings", tags=["Bookings"])


@router.post("", response_model=BookingCreatedResponse, status_code=status.HTTP_201_CREATED)
async def create_booking(booking_data: BookingCreate, db: AsyncSession = Depends(get_db)):
    """
    Create a pending booking.

    Availability is re-validated against the live route and the price is
    computed server side; the client's student discount is only a request
    and is capped at the route's configured amount.
    """
    booking, extra = await booking_service.create_booking(db, booking_data)
    response = BookingResponse.model_validate(booking)
    return BookingCreatedResponse(**response.model_dump(), **extra)


@router.get("", response_model=list[BookingResponse])
async def list_bookings(
    status_filter: Optional[Literal["pending", "paid", "cancelled", "refunded"]] = Query(None, alias="status"),
    db: AsyncSession = Depends(get_db),
):
    return await booking_service.list_bookings(db, status_filter)


@router.get("/{booking_id}", response_model=BookingResponse)
async def get_booking(booking_id: str, db: AsyncSession = Depends(get_db)):
    return await booking_service.get_booking(db, booking_id)
