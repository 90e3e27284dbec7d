"""
Public route catalogue: cities, destinations, schedules and trip search.
"""

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from coachline.db.session import get_db
from coachline.schemas.route import (
    AvailableDaysResponse,
    CityListResponse,
    DestinationListResponse,
    StudentDiscountResponse,
    TripSearchRequest,
    TripSearchResponse,
)
from coachline.services import route_service

router = APIRouter(tags=["Catalogue"])


@router.get("/cities", response_model=CityListResponse)
async def list_cities(db: AsyncSession = Depends(get_db)):
    """All cities served by an active route. Cached in Redis."""
    return {"cities": await route_service.list_cities(db)}


@router.get("/destinations", response_model=DestinationListResponse)
async def list_destinations(
    from_city: str = Query(..., alias="from", min_length=1),
    db: AsyncSession = Depends(get_db),
):
    return {"destinations": await route_service.list_destinations(db, from_city)}


@router.get("/routes/student-discount", response_model=StudentDiscountResponse)
async def get_student_discount(
    from_city: str = Query(..., alias="from", min_length=1),
    to_city: str = Query(..., alias="to", min_length=1),
    db: AsyncSession = Depends(get_db),
):
    return await route_service.get_student_discount(db, from_city, to_city)


@router.get("/routes/available-days", response_model=AvailableDaysResponse)
async def get_available_days(
    from_city: str = Query(..., alias="from", min_length=1),
    to_city: str = Query(..., alias="to", min_length=1),
    db: AsyncSession = Depends(get_db),
):
    return await route_service.get_available_days(db, from_city, to_city)


@router.post("/trips/search", response_model=TripSearchResponse)
async def search_trip(request: TripSearchRequest, db: AsyncSession = Depends(get_db)):
    """
    Check that the route runs on the requested day and is not closed.

    Read-only: booking creation repeats the same check authoritatively.
    """
    return await route_service.search_trip(db, request.from_city, request.to_city, request.date)
