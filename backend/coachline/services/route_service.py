"""
Route catalogue, trip search and route administration.
"""

from typing import Any, Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from coachline.core.exceptions import InvalidDateError, RouteNotFoundError
from coachline.core.logging import get_logger
from coachline.models.route import Route
from coachline.schemas.route import RouteCreate, RouteUpdate
from coachline.services import cache_service
from coachline.services.availability import ensure_available
from coachline.services.dates import day_names, format_date_key, normalize_travel_date
from coachline.services.money import round_money

logger = get_logger(__name__)

# null clears these; for every other field null means "leave unchanged"
NULLABLE_ROUTE_FIELDS = {"available_days", "student_discount", "closed_dates"}


def normalize_closed_dates(values: Optional[list[Any]]) -> list[str]:
    """Canonical, de-duplicated, sorted date-keys."""
    keys = set()
    for value in values or []:
        if value is None or (isinstance(value, str) and not value.strip()):
            raise InvalidDateError("closed_dates entries cannot be empty")
        keys.add(format_date_key(value))
    return sorted(keys)


# Catalogue

async def find_active_route(db: AsyncSession, from_city: str, to_city: str) -> Route:
    result = await db.execute(
        select(Route)
        .where(
            Route.from_city == from_city.strip(),
            Route.to_city == to_city.strip(),
            Route.active.is_(True),
        )
        .order_by(Route.id)
        .limit(1)
    )
    route = result.scalar_one_or_none()
    if not route:
        raise RouteNotFoundError(
            f"No route available from {from_city} to {to_city}",
            from_city=from_city,
            to_city=to_city,
        )
    return route


async def list_cities(db: AsyncSession) -> list[str]:
    cached = await cache_service.get_cached_cities()
    if cached is not None:
        return cached

    result = await db.execute(select(Route.from_city, Route.to_city).where(Route.active.is_(True)))
    cities = set()
    for from_city, to_city in result.all():
        cities.add(from_city)
        cities.add(to_city)

    cities = sorted(cities)
    await cache_service.set_cached_cities(cities)
    return cities


async def list_destinations(db: AsyncSession, from_city: str) -> list[str]:
    cached = await cache_service.get_cached_destinations(from_city)
    if cached is not None:
        return cached

    result = await db.execute(
        select(Route.to_city).where(Route.from_city == from_city.strip(), Route.active.is_(True))
    )
    destinations = sorted(set(result.scalars().all()))
    logger.debug("destinations_loaded", from_city=from_city, count=len(destinations))

    await cache_service.set_cached_destinations(from_city, destinations)
    return destinations


async def get_student_discount(db: AsyncSession, from_city: str, to_city: str) -> dict:
    route = await find_active_route(db, from_city, to_city)
    discount = route.student_discount if route.student_discount else None
    return {
        "from_city": from_city,
        "to_city": to_city,
        "student_discount": discount,
        "has_student_discount": discount is not None,
    }


async def get_available_days(db: AsyncSession, from_city: str, to_city: str) -> dict:
    route = await find_active_route(db, from_city, to_city)
    closed_dates = list(route.closed_dates or [])

    if not route.available_days:
        return {
            "from_city": from_city,
            "to_city": to_city,
            "available_daily": True,
            "available_days": None,
            "available_day_names": ["All days"],
            "closed_dates": closed_dates,
        }

    days = sorted(route.available_days)
    return {
        "from_city": from_city,
        "to_city": to_city,
        "available_daily": False,
        "available_days": days,
        "available_day_names": day_names(days),
        "closed_dates": closed_dates,
    }


async def search_trip(db: AsyncSession, from_city: str, to_city: str, date: str) -> dict:
    """Read-only availability check plus the route snapshot the client books against."""
    route = await find_active_route(db, from_city, to_city)
    travel_day = normalize_travel_date(date)
    ensure_available(route, travel_day)

    logger.info(
        "trip_search_available",
        from_city=route.from_city,
        to_city=route.to_city,
        travel_date=travel_day.date().isoformat(),
    )
    return {
        "from_city": route.from_city,
        "to_city": route.to_city,
        "travel_date": travel_day,
        "requested_date": date,
        "price": round_money(route.base_price),
        "currency": route.currency,
        "departure_time": route.departure_time,
        "arrival_time": route.arrival_time,
        "from_station": route.from_station,
        "to_station": route.to_station,
        "available_days": route.available_days or None,
        "student_discount": route.student_discount,
        "closed_dates": list(route.closed_dates or []),
    }


# Administration

async def list_routes(db: AsyncSession, active: Optional[bool] = None) -> list[Route]:
    query = select(Route)
    if active is not None:
        query = query.where(Route.active.is_(active))
    result = await db.execute(query.order_by(Route.created_at.desc(), Route.id.desc()))
    return list(result.scalars().all())


async def get_route(db: AsyncSession, route_id: int) -> Route:
    route = await db.get(Route, route_id)
    if not route:
        raise RouteNotFoundError(route_id=route_id)
    return route


async def create_route(db: AsyncSession, data: RouteCreate) -> Route:
    route = Route(
        from_city=data.from_city,
        to_city=data.to_city,
        base_price=round_money(data.base_price),
        currency=data.currency,
        departure_time=data.departure_time,
        arrival_time=data.arrival_time,
        from_station=data.from_station,
        to_station=data.to_station,
        active=data.active,
        available_days=data.available_days,
        student_discount=round_money(data.student_discount) if data.student_discount is not None else None,
        closed_dates=normalize_closed_dates(data.closed_dates),
    )
    db.add(route)
    await db.flush()
    await db.refresh(route)
    await cache_service.invalidate_route_cache()

    logger.info("route_created", route_id=route.id, from_city=route.from_city, to_city=route.to_city)
    return route


async def update_route(db: AsyncSession, route_id: int, data: RouteUpdate) -> Route:
    route = await get_route(db, route_id)
    changes = {
        field: value
        for field, value in data.model_dump(exclude_unset=True).items()
        if value is not None or field in NULLABLE_ROUTE_FIELDS
    }

    if "closed_dates" in changes:
        changes["closed_dates"] = normalize_closed_dates(changes["closed_dates"])
    if changes.get("base_price") is not None:
        changes["base_price"] = round_money(changes["base_price"])
    if changes.get("student_discount") is not None:
        changes["student_discount"] = round_money(changes["student_discount"])

    for field, value in changes.items():
        setattr(route, field, value)

    await db.flush()
    await db.refresh(route)
    await cache_service.invalidate_route_cache()

    logger.info("route_updated", route_id=route.id, fields=sorted(changes))
    return route


async def delete_route(db: AsyncSession, route_id: int) -> None:
    route = await get_route(db, route_id)
    await db.delete(route)
    await db.flush()
    await cache_service.invalidate_route_cache()
    logger.info("route_deleted", route_id=route_id)


async def add_closed_date(db: AsyncSession, route_id: int, date: str) -> Route:
    date_key = format_date_key(date)
    route = await get_route(db, route_id)

    closed_dates = list(route.closed_dates or [])
    if date_key not in closed_dates:
        route.closed_dates = sorted(closed_dates + [date_key])
        await db.flush()
        await db.refresh(route)

    logger.info("route_date_closed", route_id=route_id, date=date_key)
    return route


async def remove_closed_date(db: AsyncSession, route_id: int, date: str) -> Route:
    date_key = format_date_key(date)
    route = await get_route(db, route_id)

    closed_dates = list(route.closed_dates or [])
    if date_key in closed_dates:
        route.closed_dates = [key for key in closed_dates if key != date_key]
        await db.flush()
        await db.refresh(route)

    logger.info("route_date_reopened", route_id=route_id, date=date_key)
    return route
