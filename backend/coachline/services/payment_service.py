"""
Payment orchestration on top of the `PaymentGateway` interface.

The gateway is injected, never imported as a global, so tests run against an
in-memory fake and production against `StripePaymentGateway`.
"""

from decimal import Decimal
from typing import Optional

from sqlalchemy.ext.asyncio import AsyncSession

from coachline.core.config import get_settings
from coachline.core.exceptions import BookingAlreadyProcessedError
from coachline.core.logging import get_logger
from coachline.core.metrics import payment_intents_created, record_payment_notification
from coachline.models.booking import PENDING
from coachline.services import booking_service
from coachline.services.delivery_service import TicketDelivery
from coachline.services.interfaces import (
    PAYMENT_FAILED,
    PAYMENT_SUCCEEDED,
    PaymentGateway,
    PaymentNotification,
)
from coachline.services.money import round_money, to_minor_units

logger = get_logger(__name__)


async def attach_payment_intent(
    db: AsyncSession,
    gateway: PaymentGateway,
    booking_id: str,
    total_override: Optional[Decimal] = None,
) -> dict:
    """Create the provider-side intent for a pending booking and return the payment sheet."""
    settings = get_settings()
    booking = await booking_service.get_booking(db, booking_id)
    if booking.status != PENDING:
        raise BookingAlreadyProcessedError(booking_id=booking_id, status=booking.status)

    if total_override is not None:
        booking_service.apply_total_override(
            booking, round_money(total_override), settings.TOTAL_OVERRIDE_TOLERANCE
        )

    if not booking.payment_customer_id:
        booking.payment_customer_id = await gateway.create_customer(
            email=booking.passenger_email,
            name=booking.passenger_full_name,
            phone=booking.passenger_phone,
            metadata={"booking_id": booking.booking_id},
        )
        logger.info("payment_customer_created", booking_id=booking_id, customer_id=booking.payment_customer_id)
        # Persist before the intent call: a provider failure below must not
        # lose the customer, or every retry would create another one
        await db.commit()

    amount = round_money(booking.total)
    intent = await gateway.create_payment_intent(
        amount_minor=to_minor_units(amount),
        currency=booking.currency.lower(),
        customer_id=booking.payment_customer_id,
        metadata={
            "booking_id": booking.booking_id,
            "from_city": booking.from_city,
            "to_city": booking.to_city,
            "travel_date": booking.travel_date.date().isoformat(),
        },
    )
    ephemeral_key = await gateway.create_ephemeral_key(booking.payment_customer_id)

    booking.payment_intent_id = intent.id
    await db.flush()

    payment_intents_created.inc()
    logger.info(
        "payment_intent_created",
        booking_id=booking_id,
        payment_intent_id=intent.id,
        amount=str(amount),
        currency=booking.currency,
    )
    return {
        "payment_intent": intent.client_secret,
        "ephemeral_key": ephemeral_key,
        "customer": booking.payment_customer_id,
        "booking_id": booking.booking_id,
        "amount": amount,
        "currency": booking.currency,
    }


async def handle_notification(db: AsyncSession, notification: PaymentNotification) -> Optional[TicketDelivery]:
    """
    Apply a verified provider notification.
    Returns a delivery snapshot when a ticket was freshly issued.
    """
    log = logger.bind(event_id=notification.event_id, event_type=notification.event_type,
                      booking_id=notification.booking_id)

    if notification.event_type == PAYMENT_SUCCEEDED:
        result = await booking_service.confirm_payment(
            db,
            notification.booking_id,
            payment_intent_id=notification.payment_intent_id,
            amount_received=notification.amount_received,
            currency=notification.currency,
        )
        if not result.transitioned:
            record_payment_notification("duplicate")
            return None
        record_payment_notification("confirmed")
        return TicketDelivery.from_records(result.ticket, result.booking)

    if notification.event_type == PAYMENT_FAILED:
        changed = await booking_service.fail_payment(db, notification.booking_id)
        record_payment_notification("cancelled" if changed else "duplicate")
        return None

    log.info("webhook_event_ignored")
    record_payment_notification("ignored")
    return None
