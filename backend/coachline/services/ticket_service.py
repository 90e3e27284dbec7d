"""
Ticket issuance and redemption.

ISSUANCE
  One ticket per paid booking, enforced by the unique `tickets.booking_id`
  constraint. The insert runs inside a SAVEPOINT: if a concurrent confirmation
  won the race, the IntegrityError rolls back only the savepoint and the
  existing ticket is returned unchanged.

REDEMPTION
  `qr_token` is a bearer secret. `use_ticket` flips the one-way latch with

      UPDATE tickets SET is_used = true, used_at = :now
      WHERE qr_token = :token AND is_used = false

  so two scanners presenting the same code cannot both succeed.
"""

import secrets
import uuid
from typing import Optional

from sqlalchemy import select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from coachline.core.exceptions import (
    BookingNotConfirmedError,
    TicketAlreadyUsedError,
    TicketNotFoundError,
)
from coachline.core.logging import get_logger
from coachline.core.metrics import record_ticket_redemption, tickets_issued
from coachline.models.booking import PAID, Booking
from coachline.models.ticket import Ticket
from coachline.services.dates import as_utc, utc_now, utc_today

logger = get_logger(__name__)


def generate_ticket_id() -> str:
    return f"TK-{uuid.uuid4().hex[:8].upper()}"


def generate_qr_token() -> str:
    return secrets.token_urlsafe(32)


async def get_ticket_for_booking(db: AsyncSession, booking_id: str) -> Optional[Ticket]:
    result = await db.execute(select(Ticket).where(Ticket.booking_id == booking_id))
    return result.scalar_one_or_none()


async def issue_ticket(db: AsyncSession, booking: Booking) -> tuple[Ticket, bool]:
    """
    Return the booking's ticket, creating it on first call.
    The flag is True only when this call created it.
    """
    if booking.status != PAID:
        raise BookingNotConfirmedError(booking_id=booking.booking_id, status=booking.status)

    existing = await get_ticket_for_booking(db, booking.booking_id)
    if existing:
        logger.info("ticket_already_issued", booking_id=booking.booking_id, ticket_id=existing.ticket_id)
        return existing, False

    ticket = Ticket(
        ticket_id=generate_ticket_id(),
        booking_id=booking.booking_id,
        qr_token=generate_qr_token(),
        from_city=booking.from_city,
        to_city=booking.to_city,
        travel_date=booking.travel_date,
        departure_time=booking.departure_time,
        arrival_time=booking.arrival_time,
        passenger_name=booking.passenger_full_name,
        price=booking.total,
        currency=booking.currency,
        is_used=False,
    )

    try:
        async with db.begin_nested():
            db.add(ticket)
    except IntegrityError:
        # Lost the race to a concurrent confirmation
        existing = await get_ticket_for_booking(db, booking.booking_id)
        if existing is None:
            raise
        logger.info("ticket_issue_race_lost", booking_id=booking.booking_id, ticket_id=existing.ticket_id)
        return existing, False

    await db.refresh(ticket)
    tickets_issued.inc()
    logger.info("ticket_issued", booking_id=booking.booking_id, ticket_id=ticket.ticket_id)
    return ticket, True


async def get_ticket(db: AsyncSession, ticket_id: str) -> Ticket:
    result = await db.execute(select(Ticket).where(Ticket.ticket_id == ticket_id))
    ticket = result.scalar_one_or_none()
    if not ticket:
        raise TicketNotFoundError(ticket_id=ticket_id)
    return ticket


async def list_tickets_by_email(db: AsyncSession, email: str) -> list[Ticket]:
    """Tickets of the passenger's paid bookings, newest first."""
    result = await db.execute(
        select(Ticket)
        .join(Booking, Booking.booking_id == Ticket.booking_id)
        .where(Booking.passenger_email == email.strip().lower(), Booking.status == PAID)
        .order_by(Ticket.created_at.desc(), Ticket.id.desc())
    )
    return list(result.scalars().all())


async def _get_by_token(db: AsyncSession, qr_token: str) -> Optional[Ticket]:
    result = await db.execute(
        select(Ticket)
        .where(Ticket.qr_token == qr_token)
        .execution_options(populate_existing=True)
    )
    return result.scalar_one_or_none()


async def validate_ticket(db: AsyncSession, qr_token: str) -> dict:
    """Read-only boarding check."""
    ticket = await _get_by_token(db, qr_token)
    if not ticket:
        record_ticket_redemption("validate", "not_found")
        raise TicketNotFoundError("Invalid ticket")

    result = await db.execute(select(Booking.status).where(Booking.booking_id == ticket.booking_id))
    booking_status = result.scalar_one_or_none()
    if booking_status != PAID:
        record_ticket_redemption("validate", "not_confirmed")
        raise BookingNotConfirmedError(ticket_id=ticket.ticket_id, status=booking_status)

    if ticket.is_used:
        record_ticket_redemption("validate", "already_used")
        return {
            "valid": False,
            "already_used": True,
            "used_at": as_utc(ticket.used_at) if ticket.used_at else None,
            "ticket": ticket,
        }

    if as_utc(ticket.travel_date).date() < utc_today():
        record_ticket_redemption("validate", "expired")
        return {"valid": False, "expired": True, "ticket": ticket}

    record_ticket_redemption("validate", "valid")
    return {"valid": True, "ticket": ticket}


async def use_ticket(db: AsyncSession, qr_token: str) -> Ticket:
    """Mark the ticket used. Succeeds once per ticket."""
    now = utc_now()
    result = await db.execute(
        update(Ticket)
        .where(Ticket.qr_token == qr_token, Ticket.is_used.is_(False))
        .values(is_used=True, used_at=now)
        .execution_options(synchronize_session=False)
    )

    ticket = await _get_by_token(db, qr_token)
    if ticket is None:
        record_ticket_redemption("use", "not_found")
        raise TicketNotFoundError("Invalid ticket")

    if result.rowcount == 0:
        record_ticket_redemption("use", "already_used")
        raise TicketAlreadyUsedError(
            ticket_id=ticket.ticket_id,
            used_at=as_utc(ticket.used_at).isoformat() if ticket.used_at else None,
        )

    record_ticket_redemption("use", "used")
    logger.info("ticket_used", ticket_id=ticket.ticket_id, booking_id=ticket.booking_id)
    return ticket
