"""
Administrative route management.
"""

from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from coachline.db.session import get_db
from coachline.schemas.route import (
    ClosedDateRequest,
    ClosedDateResponse,
    RouteCreate,
    RouteResponse,
    RouteUpdate,
)
from coachline.services import route_service

router = APIRouter(prefix="/admin/routes", tags=["Admin"])


@router.get("", response_model=list[RouteResponse])
async def list_routes(
    active: Optional[bool] = Query(None),
    db: AsyncSession = Depends(get_db),
):
    return await route_service.list_routes(db, active)


@router.post("", response_model=RouteResponse, status_code=status.HTTP_201_CREATED)
async def create_route(route_data: RouteCreate, db: AsyncSession = Depends(get_db)):
    return await route_service.create_route(db, route_data)


@router.get("/{route_id}", response_model=RouteResponse)
async def get_route(route_id: int, db: AsyncSession = Depends(get_db)):
    return await route_service.get_route(db, route_id)


@router.put("/{route_id}", response_model=RouteResponse)
async def update_route(route_id: int, route_data: RouteUpdate, db: AsyncSession = Depends(get_db)):
    return await route_service.update_route(db, route_id, route_data)


@router.delete("/{route_id}")
async def delete_route(route_id: int, db: AsyncSession = Depends(get_db)):
    await route_service.delete_route(db, route_id)
    return {"message": "Route deleted successfully"}


@router.post("/{route_id}/closed-dates", response_model=ClosedDateResponse)
async def add_closed_date(route_id: int, request: ClosedDateRequest, db: AsyncSession = Depends(get_db)):
    """Close bookings for one travel day. Adding an already closed day is a no-op."""
    route = await route_service.add_closed_date(db, route_id, request.date)
    return {"message": "Date closed for bookings", "route": route}


@router.delete("/{route_id}/closed-dates/{date}", response_model=ClosedDateResponse)
async def remove_closed_date(route_id: int, date: str, db: AsyncSession = Depends(get_db)):
    route = await route_service.remove_closed_date(db, route_id, date)
    return {"message": "Date reopened for bookings", "route": route}
