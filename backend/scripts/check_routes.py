"""
Print route statistics and a sample of the catalogue.

Usage (from backend/):
    python scripts/check_routes.py [FROM TO]
"""

import asyncio
import sys

from sqlalchemy import func, select

from coachline.db.session import AsyncSessionLocal, engine
from coachline.models import Route
from coachline.services.dates import day_names


async def check_routes(from_city: str = "Chisinau", to_city: str = "Brasov") -> None:
    async with AsyncSessionLocal() as session:
        total = await session.scalar(select(func.count()).select_from(Route))
        active = await session.scalar(select(func.count()).select_from(Route).where(Route.active.is_(True)))
        sample = (await session.execute(select(Route).order_by(Route.id).limit(5))).scalars().all()

        print("\nRoute Statistics:")
        print(f"   Total routes: {total}")
        print(f"   Active routes: {active}")

        if sample:
            print("\nSample routes (first 5):")
            for index, route in enumerate(sample, start=1):
                print(f"   {index}. {route.from_city} -> {route.to_city} "
                      f"({route.base_price} {route.currency}, active: {route.active})")
        else:
            print("\nNo routes found in database!")

        result = await session.execute(
            select(Route).where(Route.from_city == from_city, Route.to_city == to_city).limit(1)
        )
        route = result.scalar_one_or_none()
        if route:
            days = ", ".join(day_names(route.available_days)) if route.available_days else "every day"
            print(f"\nFound {from_city} -> {to_city} route:")
            print(f"   Price: {route.base_price} {route.currency}")
            print(f"   Departure: {route.departure_time}")
            print(f"   Arrival: {route.arrival_time}")
            print(f"   From Station: {route.from_station}")
            print(f"   To Station: {route.to_station}")
            print(f"   Runs: {days}")
            print(f"   Closed dates: {', '.join(route.closed_dates or []) or 'none'}")
            print(f"   Active: {route.active}")
        else:
            print(f"\n{from_city} -> {to_city} route not found!")

    await engine.dispose()


if __name__ == "__main__":
    asyncio.run(check_routes(*sys.argv[1:3]))
