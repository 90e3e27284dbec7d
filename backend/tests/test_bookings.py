"""
Tests for booking creation, availability re-validation and booking queries.
"""

import pytest
from httpx import AsyncClient
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from conftest import future_date, next_weekday, passenger
from coachline.models.booking import Booking


def booking_payload(date: str, to_city: str = "Brasov", **extra) -> dict:
    return {
        "from_city": "Chisinau",
        "to_city": to_city,
        "date": date,
        "passenger": passenger(),
        **extra,
    }


@pytest.mark.asyncio
async def test_create_booking(client: AsyncClient, test_route):
    """A valid request creates a pending booking priced server side."""
    date = future_date()
    response = await client.post("/api/v1/bookings", json=booking_payload(date))
    assert response.status_code == 201
    data = response.json()
    assert data["booking_id"].startswith("BK-")
    assert data["status"] == "pending"
    assert data["subtotal"] == 125.0
    assert data["fees"] == 3.0
    assert data["discount"] == 0.0
    assert data["student_discount"] == 0.0
    assert data["total"] == 128.0
    assert data["currency"] == "RON"
    assert data["departure_time"] == "07:00"
    assert data["passenger"]["email"] == "ion.popescu@example.com"
    assert data["requested_date"] == date
    assert data["closed_dates"] == []


@pytest.mark.asyncio
async def test_booking_with_promo_scenario(client: AsyncClient, test_route, welcome_promo):
    response = await client.post(
        "/api/v1/bookings", json=booking_payload(future_date(), promo_code="welcome10")
    )
    assert response.status_code == 201
    data = response.json()
    assert data["fees"] == 3.0
    assert data["discount"] == 12.5
    assert data["total"] == 115.5
    assert data["promo_code"] == "WELCOME10"


@pytest.mark.asyncio
async def test_booking_does_not_consume_promo(client: AsyncClient, db_session: AsyncSession,
                                              test_route, welcome_promo):
    await client.post("/api/v1/bookings", json=booking_payload(future_date(), promo_code="WELCOME10"))
    await db_session.refresh(welcome_promo)
    assert welcome_promo.usage_count == 0


@pytest.mark.asyncio
async def test_invalid_promo_does_not_block_booking(client: AsyncClient, test_route):
    response = await client.post(
        "/api/v1/bookings", json=booking_payload(future_date(), promo_code="BOGUS")
    )
    assert response.status_code == 201
    assert response.json()["discount"] == 0.0
    assert response.json()["promo_code"] is None


@pytest.mark.asyncio
async def test_student_discount_is_capped(client: AsyncClient, test_route):
    response = await client.post(
        "/api/v1/bookings", json=booking_payload(future_date(), student_discount=50)
    )
    data = response.json()
    assert data["student_discount"] == 10.0
    assert data["total"] == 118.0


@pytest.mark.asyncio
async def test_student_discount_without_route_discount(client: AsyncClient, weekly_route):
    response = await client.post(
        "/api/v1/bookings",
        json=booking_payload(next_weekday(4), to_city="Vienna", student_discount=20),
    )
    assert response.status_code == 201
    data = response.json()
    assert data["student_discount"] == 0.0
    assert data["currency"] == "EUR"


@pytest.mark.asyncio
async def test_unknown_route(client: AsyncClient):
    response = await client.post("/api/v1/bookings", json=booking_payload(future_date(), to_city="Nowhere"))
    assert response.status_code == 404
    assert response.json()["error"] == "route_not_found"


@pytest.mark.asyncio
async def test_wrong_weekday_rejected(client: AsyncClient, weekly_route):
    response = await client.post(
        "/api/v1/bookings", json=booking_payload(next_weekday(1), to_city="Vienna")
    )
    assert response.status_code == 400
    assert response.json()["error"] == "day_not_available"


@pytest.mark.asyncio
async def test_closed_date_rejected_as_date_closed(client: AsyncClient, db_session: AsyncSession,
                                                   weekly_route):
    """A closed date on a valid weekday reports date_closed, not day_not_available."""
    date = next_weekday(4)
    weekly_route.closed_dates = [date]
    await db_session.commit()

    response = await client.post("/api/v1/bookings", json=booking_payload(date, to_city="Vienna"))
    assert response.status_code == 400
    data = response.json()
    assert data["error"] == "date_closed"
    assert data["closed_dates"] == [date]

    count = await db_session.scalar(select(func.count()).select_from(Booking))
    assert count == 0


@pytest.mark.asyncio
async def test_route_closed_after_search(client: AsyncClient, test_route):
    """Booking re-validates availability even after a successful search."""
    date = future_date(21)
    search = await client.post(
        "/api/v1/trips/search", json={"from_city": "Chisinau", "to_city": "Brasov", "date": date}
    )
    assert search.status_code == 200

    await client.post(f"/api/v1/admin/routes/{test_route.id}/closed-dates", json={"date": date})

    response = await client.post("/api/v1/bookings", json=booking_payload(date))
    assert response.status_code == 400
    assert response.json()["error"] == "date_closed"


@pytest.mark.asyncio
async def test_invalid_passenger_email(client: AsyncClient, test_route):
    payload = booking_payload(future_date())
    payload["passenger"]["email"] = "not-an-email"
    response = await client.post("/api/v1/bookings", json=payload)
    assert response.status_code == 400


@pytest.mark.asyncio
async def test_get_booking(client: AsyncClient, test_route):
    created = await client.post("/api/v1/bookings", json=booking_payload(future_date()))
    booking_id = created.json()["booking_id"]

    response = await client.get(f"/api/v1/bookings/{booking_id}")
    assert response.status_code == 200
    assert response.json()["booking_id"] == booking_id

    missing = await client.get("/api/v1/bookings/BK-MISSING")
    assert missing.status_code == 404
    assert missing.json()["error"] == "booking_not_found"


@pytest.mark.asyncio
async def test_list_bookings_by_status(client: AsyncClient, db_session: AsyncSession, test_route):
    first = await client.post("/api/v1/bookings", json=booking_payload(future_date()))
    second = await client.post("/api/v1/bookings", json=booking_payload(future_date(15)))

    booking = await db_session.scalar(
        select(Booking).where(Booking.booking_id == first.json()["booking_id"])
    )
    booking.status = "cancelled"
    await db_session.commit()

    all_bookings = await client.get("/api/v1/bookings")
    assert [b["booking_id"] for b in all_bookings.json()] == [
        second.json()["booking_id"], first.json()["booking_id"]
    ]

    pending = await client.get("/api/v1/bookings", params={"status": "pending"})
    assert [b["booking_id"] for b in pending.json()] == [second.json()["booking_id"]]
