"""
Seed the database with DEMO routes and promo codes.

Usage (from backend/):
    python scripts/seed_data.py

Existing routes and promo codes are deleted first. Bookings and tickets are
left untouched. All prices, routes and schedules are examples only.
"""

import asyncio
from datetime import datetime, timedelta, timezone
from decimal import Decimal

from sqlalchemy import delete, func, select

from coachline.db.session import AsyncSessionLocal, engine
from coachline.models import PromoCode, Route
from coachline.services.cache_service import close_redis, invalidate_route_cache


def _route(from_city, to_city, price, departure, arrival, from_station, to_station, **extra):
    return {
        "from_city": from_city,
        "to_city": to_city,
        "base_price": Decimal(price),
        "currency": extra.pop("currency", "RON"),
        "departure_time": departure,
        "arrival_time": arrival,
        "from_station": from_station,
        "to_station": to_station,
        "active": True,
        **extra,
    }


ROUTES = [
    _route("Chisinau", "Brasov", "125", "07:00", "15:30", "Central Bus Station", "Autogara 2",
           student_discount=Decimal("10")),
    _route("Brasov", "Chisinau", "125", "16:00", "00:30", "Autogara 2", "Central Bus Station",
           student_discount=Decimal("10")),
    _route("Chisinau", "Bucharest", "180", "08:00", "17:00", "Central Bus Station", "Autogara Militari"),
    _route("Bucharest", "Chisinau", "180", "09:00", "18:00", "Autogara Militari", "Central Bus Station"),
    _route("Chisinau", "Iasi", "90", "06:30", "10:00", "North Bus Station", "Autogara Codrescu",
           student_discount=Decimal("5")),
    _route("Iasi", "Chisinau", "90", "17:00", "20:30", "Autogara Codrescu", "North Bus Station",
           student_discount=Decimal("5")),
    _route("Brasov", "Bucharest", "70", "12:00", "15:00", "Autogara 2", "Autogara Militari"),
    # International, weekly
    _route("Chisinau", "Vienna", "150", "06:00", "22:00", "Central Bus Station", "Erdberg",
           currency="EUR", available_days=[4]),
    _route("Vienna", "Chisinau", "150", "08:00", "23:59", "Erdberg", "Central Bus Station",
           currency="EUR", available_days=[0]),
    _route("Chisinau", "Prague", "170", "05:00", "23:00", "Central Bus Station", "Florenc",
           currency="EUR", available_days=[2, 5]),
]


def _promo_codes(now: datetime) -> list[dict]:
    start = now - timedelta(days=30)
    end = now + timedelta(days=365)
    return [
        {"code": "WELCOME10", "discount_percent": Decimal("10"), "max_discount": Decimal("20"),
         "valid_from": start, "valid_until": end, "usage_limit": 0},
        {"code": "FIXED20", "discount_fixed": Decimal("20"),
         "valid_from": start, "valid_until": end, "usage_limit": 100},
        {"code": "SUMMER25", "discount_percent": Decimal("25"), "max_discount": Decimal("50"),
         "valid_from": start, "valid_until": now + timedelta(days=90), "usage_limit": 500},
    ]


async def seed() -> None:
    print("Seeding DEMO data...")
    async with AsyncSessionLocal() as session:
        deleted_routes = await session.execute(delete(Route))
        deleted_promos = await session.execute(delete(PromoCode))
        print(f"Deleted {deleted_routes.rowcount} routes and {deleted_promos.rowcount} promo codes")

        session.add_all(Route(closed_dates=[], **data) for data in ROUTES)
        session.add_all(PromoCode(**data) for data in _promo_codes(datetime.now(timezone.utc)))
        await session.commit()

        route_count = await session.scalar(select(func.count()).select_from(Route))
        promo_count = await session.scalar(select(func.count()).select_from(PromoCode))
        print(f"Verification: {route_count} routes and {promo_count} promo codes in database")

    await invalidate_route_cache()
    await close_redis()
    await engine.dispose()
    print("Database seeded successfully")


if __name__ == "__main__":
    asyncio.run(seed())
