"""
Ticket delivery: render the PDF and e-mail it to the passenger.

Delivery runs after the confirmation transaction has committed, from a
FastAPI background task. It works on a plain `TicketDelivery` snapshot so no
ORM instance outlives its session. Every failure is logged and counted here;
nothing is raised back to the payment flow.
"""

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from functools import lru_cache
from typing import Callable, Optional

from coachline.core.config import get_settings
from coachline.core.logging import get_logger
from coachline.core.metrics import record_ticket_delivery
from coachline.infrastructure.mailer import SmtpMailer
from coachline.infrastructure.ticket_renderer import render_ticket_pdf
from coachline.models.booking import Booking
from coachline.models.ticket import Ticket

logger = get_logger(__name__)


@dataclass(frozen=True)
class TicketDelivery:
    ticket_id: str
    booking_id: str
    qr_token: str
    from_city: str
    to_city: str
    travel_date: datetime
    departure_time: str
    arrival_time: str
    passenger_name: str
    passenger_email: str
    price: Decimal
    currency: str

    @classmethod
    def from_records(cls, ticket: Ticket, booking: Booking) -> "TicketDelivery":
        return cls(
            ticket_id=ticket.ticket_id,
            booking_id=ticket.booking_id,
            qr_token=ticket.qr_token,
            from_city=ticket.from_city,
            to_city=ticket.to_city,
            travel_date=ticket.travel_date,
            departure_time=ticket.departure_time,
            arrival_time=ticket.arrival_time,
            passenger_name=ticket.passenger_name,
            passenger_email=booking.passenger_email,
            price=Decimal(ticket.price),
            currency=ticket.currency,
        )


def compose_ticket_email(delivery: TicketDelivery) -> tuple[str, str]:
    subject = f"Your ticket {delivery.from_city} - {delivery.to_city} ({delivery.ticket_id})"
    body = (
        f"Hello {delivery.passenger_name},\n\n"
        f"Thank you for your booking {delivery.booking_id}.\n\n"
        f"Route: {delivery.from_city} -> {delivery.to_city}\n"
        f"Date: {delivery.travel_date.strftime('%Y-%m-%d')}\n"
        f"Departure: {delivery.departure_time}\n"
        f"Arrival: {delivery.arrival_time}\n"
        f"Price: {delivery.price:.2f} {delivery.currency}\n\n"
        "Your ticket is attached as a PDF. Show the QR code to the driver when boarding.\n"
    )
    return subject, body


class TicketDispatcher:
    """Renders and sends tickets. `deliver` never raises."""

    def __init__(self, mailer: SmtpMailer, renderer: Callable[[TicketDelivery], bytes] = render_ticket_pdf):
        self.mailer = mailer
        self.renderer = renderer

    def deliver(self, delivery: TicketDelivery) -> bool:
        log = logger.bind(ticket_id=delivery.ticket_id, booking_id=delivery.booking_id)

        if not self.mailer.configured:
            log.warning("ticket_delivery_skipped", reason="email_not_configured")
            record_ticket_delivery("skipped")
            return False

        try:
            pdf = self.renderer(delivery)
        except Exception as e:
            log.error("ticket_render_failed", error=str(e))
            record_ticket_delivery("failed")
            return False

        subject, body = compose_ticket_email(delivery)
        sent, error = self.mailer.send(
            delivery.passenger_email,
            subject,
            body,
            attachments=[(f"ticket-{delivery.ticket_id}.pdf", pdf, "application/pdf")],
        )
        if not sent:
            log.error("ticket_delivery_failed", error=error)
            record_ticket_delivery("failed")
            return False

        log.info("ticket_delivered", to=delivery.passenger_email)
        record_ticket_delivery("sent")
        return True


@lru_cache()
def get_ticket_dispatcher() -> TicketDispatcher:
    settings = get_settings()
    mailer = SmtpMailer(
        host=settings.SMTP_HOST,
        port=settings.SMTP_PORT,
        username=settings.SMTP_USERNAME,
        password=settings.SMTP_PASSWORD,
        from_email=settings.EMAIL_FROM,
        use_tls=settings.SMTP_USE_TLS,
    )
    return TicketDispatcher(mailer)


def schedule_delivery(background_tasks, dispatcher: TicketDispatcher, delivery: Optional[TicketDelivery]) -> None:
    if delivery is None:
        return
    background_tasks.add_task(dispatcher.deliver, delivery)
