"""
Tests for the payment sheet and webhook-driven, idempotent confirmation.
"""

import json

import pytest
from httpx import AsyncClient
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from conftest import VALID_SIGNATURE, failed_event, future_date, passenger, succeeded_event
from coachline.models.booking import Booking
from coachline.models.ticket import Ticket


async def create_booking(client: AsyncClient, **extra) -> dict:
    response = await client.post("/api/v1/bookings", json={
        "from_city": "Chisinau",
        "to_city": "Brasov",
        "date": future_date(),
        "passenger": passenger(),
        **extra,
    })
    assert response.status_code == 201
    return response.json()


async def send_webhook(client: AsyncClient, event: dict, signature: str = VALID_SIGNATURE):
    return await client.post(
        "/api/v1/payments/webhook",
        content=json.dumps(event),
        headers={"Stripe-Signature": signature, "Content-Type": "application/json"},
    )


async def count(db_session: AsyncSession, model) -> int:
    return await db_session.scalar(select(func.count()).select_from(model))


# Payment sheet

@pytest.mark.asyncio
async def test_payment_sheet(client: AsyncClient, gateway, test_route, welcome_promo):
    booking = await create_booking(client, promo_code="WELCOME10")

    response = await client.post("/api/v1/payments/payment-sheet", json={"booking_id": booking["booking_id"]})
    assert response.status_code == 200
    data = response.json()
    assert data == {
        "payment_intent": "pi_test_1_secret",
        "ephemeral_key": "ek_test_1",
        "customer": "cus_test_1",
        "booking_id": booking["booking_id"],
        "amount": 115.5,
        "currency": "RON",
    }
    assert gateway.intents[0]["amount"] == 11550
    assert gateway.intents[0]["currency"] == "ron"
    assert gateway.intents[0]["metadata"]["booking_id"] == booking["booking_id"]
    assert gateway.customers[0]["email"] == "ion.popescu@example.com"


@pytest.mark.asyncio
async def test_payment_sheet_reuses_customer(client: AsyncClient, gateway, test_route):
    booking = await create_booking(client)

    await client.post("/api/v1/payments/payment-sheet", json={"booking_id": booking["booking_id"]})
    await client.post("/api/v1/payments/payment-sheet", json={"booking_id": booking["booking_id"]})

    assert len(gateway.customers) == 1
    assert len(gateway.intents) == 2
    assert gateway.intents[1]["customer"] == "cus_test_1"


@pytest.mark.asyncio
async def test_customer_kept_when_intent_fails(client: AsyncClient, gateway, db_session, test_route):
    booking = await create_booking(client)
    gateway.failing_intents = 1

    failed = await client.post("/api/v1/payments/payment-sheet", json={"booking_id": booking["booking_id"]})
    assert failed.status_code == 502
    assert failed.json()["error"] == "payment_provider_error"

    retried = await client.post("/api/v1/payments/payment-sheet", json={"booking_id": booking["booking_id"]})
    assert retried.status_code == 200
    assert retried.json()["customer"] == "cus_test_1"

    assert len(gateway.customers) == 1
    stored = await db_session.scalar(select(Booking).where(Booking.booking_id == booking["booking_id"]))
    assert stored.payment_customer_id == "cus_test_1"


@pytest.mark.asyncio
async def test_payment_sheet_total_override(client: AsyncClient, gateway, db_session, test_route):
    booking = await create_booking(client)  # total 128.00

    await client.post(
        "/api/v1/payments/payment-sheet",
        json={"booking_id": booking["booking_id"], "total_amount": 128.005},
    )
    assert gateway.intents[-1]["amount"] == 12800  # within tolerance, unchanged

    response = await client.post(
        "/api/v1/payments/payment-sheet",
        json={"booking_id": booking["booking_id"], "total_amount": 120},
    )
    assert response.json()["amount"] == 120.0
    assert gateway.intents[-1]["amount"] == 12000

    stored = await db_session.scalar(select(Booking).where(Booking.booking_id == booking["booking_id"]))
    await db_session.refresh(stored)
    assert float(stored.total) == 120.0
    assert float(stored.discount) == 0.0  # discounts are not re-validated


@pytest.mark.asyncio
async def test_payment_sheet_unknown_booking(client: AsyncClient, gateway):
    response = await client.post("/api/v1/payments/payment-sheet", json={"booking_id": "BK-NOPE"})
    assert response.status_code == 404
    assert gateway.intents == []


@pytest.mark.asyncio
async def test_payment_sheet_for_paid_booking(client: AsyncClient, test_route):
    booking = await create_booking(client)
    await send_webhook(client, succeeded_event(booking["booking_id"], 12800))

    response = await client.post("/api/v1/payments/payment-sheet", json={"booking_id": booking["booking_id"]})
    assert response.status_code == 400
    assert response.json()["error"] == "booking_already_processed"


# Webhook

@pytest.mark.asyncio
async def test_webhook_rejects_bad_signature(client: AsyncClient, test_route):
    booking = await create_booking(client)
    response = await send_webhook(client, succeeded_event(booking["booking_id"], 12800), signature="forged")
    assert response.status_code == 400
    assert response.json()["error"] == "invalid_signature"


@pytest.mark.asyncio
async def test_payment_succeeded(client: AsyncClient, db_session, dispatcher, test_route):
    booking = await create_booking(client)

    response = await send_webhook(client, succeeded_event(booking["booking_id"], 12800, event_id="evt_ok"))
    assert response.status_code == 200
    assert response.json() == {"received": True, "error": None}

    stored = await client.get(f"/api/v1/bookings/{booking['booking_id']}")
    assert stored.json()["status"] == "paid"

    ticket = await db_session.scalar(select(Ticket).where(Ticket.booking_id == booking["booking_id"]))
    assert ticket is not None
    assert ticket.ticket_id.startswith("TK-")
    assert ticket.passenger_name == "Ion Popescu"
    assert ticket.is_used is False
    assert len(ticket.qr_token) >= 32

    assert len(dispatcher.delivered) == 1
    assert dispatcher.delivered[0].ticket_id == ticket.ticket_id
    assert dispatcher.delivered[0].passenger_email == "ion.popescu@example.com"


@pytest.mark.asyncio
async def test_duplicate_success_is_idempotent(client: AsyncClient, db_session, dispatcher,
                                               test_route, welcome_promo):
    """Redelivered success: one ticket, one promo increment, still paid."""
    booking = await create_booking(client, promo_code="WELCOME10")
    event = succeeded_event(booking["booking_id"], 11550)

    first = await send_webhook(client, event)
    second = await send_webhook(client, event)
    assert first.status_code == 200
    assert second.status_code == 200

    assert await count(db_session, Ticket) == 1
    await db_session.refresh(welcome_promo)
    assert welcome_promo.usage_count == 1
    assert len(dispatcher.delivered) == 1

    stored = await client.get(f"/api/v1/bookings/{booking['booking_id']}")
    assert stored.json()["status"] == "paid"


@pytest.mark.asyncio
async def test_provider_amount_wins(client: AsyncClient, test_route):
    booking = await create_booking(client)  # computed 128.00
    await send_webhook(client, succeeded_event(booking["booking_id"], 12750, currency="eur"))

    stored = (await client.get(f"/api/v1/bookings/{booking['booking_id']}")).json()
    assert stored["total"] == 127.5
    assert stored["currency"] == "EUR"


@pytest.mark.asyncio
async def test_payment_failed_cancels(client: AsyncClient, db_session, dispatcher, test_route):
    booking = await create_booking(client)

    response = await send_webhook(client, failed_event(booking["booking_id"]))
    assert response.status_code == 200

    stored = (await client.get(f"/api/v1/bookings/{booking['booking_id']}")).json()
    assert stored["status"] == "cancelled"
    assert await count(db_session, Ticket) == 0
    assert dispatcher.delivered == []


@pytest.mark.asyncio
async def test_failure_after_success_is_ignored(client: AsyncClient, test_route):
    booking = await create_booking(client)
    await send_webhook(client, succeeded_event(booking["booking_id"], 12800))
    await send_webhook(client, failed_event(booking["booking_id"]))

    stored = (await client.get(f"/api/v1/bookings/{booking['booking_id']}")).json()
    assert stored["status"] == "paid"


@pytest.mark.asyncio
async def test_success_after_failure_marks_paid(client: AsyncClient, db_session, test_route):
    booking = await create_booking(client)
    await send_webhook(client, failed_event(booking["booking_id"]))
    await send_webhook(client, succeeded_event(booking["booking_id"], 12800))

    stored = (await client.get(f"/api/v1/bookings/{booking['booking_id']}")).json()
    assert stored["status"] == "paid"
    assert await count(db_session, Ticket) == 1


@pytest.mark.asyncio
async def test_unknown_booking_still_acknowledged(client: AsyncClient, db_session):
    """Processing errors after verification are acknowledged with 200."""
    response = await send_webhook(client, succeeded_event("BK-GHOST", 1000))
    assert response.status_code == 200
    assert response.json()["received"] is True
    assert response.json()["error"]

    response = await send_webhook(client, failed_event("BK-GHOST"))
    assert response.status_code == 200
    assert response.json()["error"]


@pytest.mark.asyncio
async def test_other_events_ignored(client: AsyncClient, dispatcher):
    response = await send_webhook(client, {"id": "evt_x", "type": "charge.refunded", "data": {"object": {}}})
    assert response.status_code == 200
    assert response.json() == {"received": True, "error": None}
    assert dispatcher.delivered == []
