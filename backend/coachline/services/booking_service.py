"""
Booking lifecycle: creation, queries and the payment-driven state machine.

STATE MACHINE
=============

    pending --confirm--> paid
    pending --fail-----> cancelled
    cancelled --confirm--> paid   (provider collected the money anyway)

Payment notifications are delivered at-least-once and may arrive
concurrently, so every transition is a single conditional UPDATE keyed on
the current status instead of read-check-write in Python:

    UPDATE bookings SET status = 'paid', ...
    WHERE booking_id = :id AND status IN ('pending', 'cancelled')

Exactly one delivery sees rowcount == 1 and performs the side effects (promo
usage increment, ticket issuance). Every other delivery sees rowcount == 0
and is a no-op, so duplicates never double-count a promo code or issue a
second ticket.
"""

import uuid
from dataclasses import dataclass
from decimal import Decimal
from typing import Optional

from sqlalchemy import select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from coachline.core.exceptions import (
    BookingNotFoundError,
    CoachlineError,
)
from coachline.core.logging import get_logger
from coachline.core.metrics import bookings_created, record_booking_rejection
from coachline.models.booking import CANCELLED, PAID, PENDING, Booking
from coachline.models.route import CURRENCIES
from coachline.models.ticket import Ticket
from coachline.schemas.booking import BookingCreate
from coachline.services.availability import ensure_available
from coachline.services.dates import normalize_travel_date
from coachline.services.money import from_minor_units, round_money
from coachline.services.pricing import price_booking
from coachline.services.promo_service import record_promo_usage
from coachline.services.route_service import find_active_route
from coachline.services.ticket_service import issue_ticket

logger = get_logger(__name__)

MAX_ID_ATTEMPTS = 3


@dataclass
class ConfirmationResult:
    booking: Booking
    ticket: Optional[Ticket]
    transitioned: bool


def generate_booking_id() -> str:
    return f"BK-{uuid.uuid4().hex[:8].upper()}"


async def create_booking(db: AsyncSession, data: BookingCreate) -> tuple[Booking, dict]:
    """
    Validate availability, price the trip and persist a pending booking.
    Returns the booking and the route's closed dates for the response.
    """
    try:
        route = await find_active_route(db, data.from_city, data.to_city)
        travel_day = normalize_travel_date(data.date)
        # Re-checked here: the route may have been closed since the search
        ensure_available(route, travel_day)
    except CoachlineError as e:
        record_booking_rejection(e.reason)
        logger.info(
            "booking_rejected",
            reason=e.reason,
            from_city=data.from_city,
            to_city=data.to_city,
            date=data.date,
        )
        raise

    price = await price_booking(db, route, data.promo_code, data.student_discount)

    for attempt in range(1, MAX_ID_ATTEMPTS + 1):
        booking = Booking(
            booking_id=generate_booking_id(),
            from_city=route.from_city,
            to_city=route.to_city,
            travel_date=travel_day,
            departure_time=route.departure_time,
            arrival_time=route.arrival_time,
            passenger_name=data.passenger.name.strip(),
            passenger_surname=data.passenger.surname.strip(),
            passenger_email=str(data.passenger.email).lower(),
            passenger_phone=data.passenger.phone.strip(),
            subtotal=price.subtotal,
            fees=price.fees,
            discount=price.discount,
            student_discount=price.student_discount,
            total=price.total,
            currency=route.currency,
            promo_code=price.promo_code,
            status=PENDING,
        )
        try:
            async with db.begin_nested():
                db.add(booking)
        except IntegrityError:
            # booking_id collision; regenerate
            logger.warning("booking_id_collision", attempt=attempt)
            if attempt == MAX_ID_ATTEMPTS:
                raise
            continue
        break

    await db.refresh(booking)
    bookings_created.labels(currency=booking.currency).inc()
    logger.info(
        "booking_created",
        booking_id=booking.booking_id,
        from_city=booking.from_city,
        to_city=booking.to_city,
        travel_date=booking.travel_date.date().isoformat(),
        total=str(booking.total),
        currency=booking.currency,
        promo_code=booking.promo_code,
    )
    return booking, {"requested_date": data.date, "closed_dates": list(route.closed_dates or [])}


async def find_booking(db: AsyncSession, booking_id: str) -> Optional[Booking]:
    result = await db.execute(
        select(Booking)
        .where(Booking.booking_id == booking_id)
        .execution_options(populate_existing=True)
    )
    return result.scalar_one_or_none()


async def get_booking(db: AsyncSession, booking_id: str) -> Booking:
    booking = await find_booking(db, booking_id)
    if not booking:
        raise BookingNotFoundError(booking_id=booking_id)
    return booking


async def list_bookings(db: AsyncSession, status: Optional[str] = None) -> list[Booking]:
    query = select(Booking)
    if status:
        query = query.where(Booking.status == status)
    result = await db.execute(query.order_by(Booking.created_at.desc(), Booking.id.desc()))
    return list(result.scalars().all())


async def confirm_payment(
    db: AsyncSession,
    booking_id: Optional[str],
    payment_intent_id: Optional[str] = None,
    amount_received: int = 0,
    currency: Optional[str] = None,
) -> ConfirmationResult:
    """
    Authoritative transition to paid. Safe to call any number of times for
    the same booking: only the call that performs the transition counts the
    promo code and creates the ticket.
    """
    if not booking_id:
        raise BookingNotFoundError("Payment notification carries no booking id")

    values = {"status": PAID}
    if payment_intent_id:
        values["payment_intent_id"] = payment_intent_id
    # The provider's settled amount wins over our computed total
    if amount_received and amount_received > 0:
        values["total"] = from_minor_units(amount_received)
    if currency and currency.upper() in CURRENCIES:
        values["currency"] = currency.upper()

    result = await db.execute(
        update(Booking)
        .where(Booking.booking_id == booking_id, Booking.status.in_([PENDING, CANCELLED]))
        .values(**values)
        .execution_options(synchronize_session=False)
    )
    booking = await find_booking(db, booking_id)
    if booking is None:
        raise BookingNotFoundError(booking_id=booking_id)

    if result.rowcount == 0:
        logger.info("payment_confirmation_duplicate", booking_id=booking_id, status=booking.status)
        ticket = await _existing_ticket(db, booking)
        return ConfirmationResult(booking=booking, ticket=ticket, transitioned=False)

    if booking.promo_code:
        await record_promo_usage(db, booking.promo_code)

    ticket, _ = await issue_ticket(db, booking)

    logger.info(
        "payment_confirmed",
        booking_id=booking.booking_id,
        payment_intent_id=payment_intent_id,
        total=str(booking.total),
        currency=booking.currency,
        ticket_id=ticket.ticket_id,
    )
    return ConfirmationResult(booking=booking, ticket=ticket, transitioned=True)


async def _existing_ticket(db: AsyncSession, booking: Booking) -> Optional[Ticket]:
    if booking.status != PAID:
        return None
    result = await db.execute(select(Ticket).where(Ticket.booking_id == booking.booking_id))
    return result.scalar_one_or_none()


async def fail_payment(db: AsyncSession, booking_id: Optional[str]) -> bool:
    """pending -> cancelled. Returns False when the booking had already left pending."""
    if not booking_id:
        raise BookingNotFoundError("Payment notification carries no booking id")

    result = await db.execute(
        update(Booking)
        .where(Booking.booking_id == booking_id, Booking.status == PENDING)
        .values(status=CANCELLED)
        .execution_options(synchronize_session=False)
    )
    if result.rowcount == 0:
        booking = await find_booking(db, booking_id)
        if booking is None:
            raise BookingNotFoundError(booking_id=booking_id)
        logger.info("payment_failure_ignored", booking_id=booking_id, status=booking.status)
        return False

    logger.info("payment_failed", booking_id=booking_id)
    return True


def apply_total_override(booking: Booking, requested_total: Decimal, tolerance: Decimal) -> bool:
    """Correct a stale stored total when the client's figure differs by more than `tolerance`."""
    if abs(requested_total - Decimal(booking.total)) <= tolerance:
        return False
    logger.warning(
        "booking_total_overridden",
        booking_id=booking.booking_id,
        stored_total=str(booking.total),
        requested_total=str(requested_total),
    )
    booking.total = round_money(requested_total)
    return True
