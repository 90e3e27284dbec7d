"""
Domain error hierarchy.

Services raise these for business-rule rejections; a single exception handler
in main.py turns them into `{"error": reason, "message": ..., **context}`
responses so clients always get a machine-readable reason.
"""

from typing import Any, Optional


class CoachlineError(Exception):
    """Base class for every expected, client-facing failure."""

    status_code: int = 400
    reason: str = "bad_request"
    default_message: str = "Request could not be processed"

    def __init__(self, message: Optional[str] = None, **context: Any) -> None:
        self.message = message or self.default_message
        self.context = context
        super().__init__(self.message)

    def to_dict(self) -> dict[str, Any]:
        return {"error": self.reason, "message": self.message, **self.context}


class InvalidDateError(CoachlineError):
    reason = "invalid_date"
    default_message = "Invalid date value"


# Routes

class RouteNotFoundError(CoachlineError):
    status_code = 404
    reason = "route_not_found"
    default_message = "Route not found"


class RouteUnavailableError(CoachlineError):
    reason = "route_unavailable"
    default_message = "Route not available on selected date"


class DayNotAvailableError(RouteUnavailableError):
    reason = "day_not_available"


class DateClosedError(RouteUnavailableError):
    reason = "date_closed"
    default_message = "Bookings are temporarily closed for the selected date"


# Bookings & payments

class BookingNotFoundError(CoachlineError):
    status_code = 404
    reason = "booking_not_found"
    default_message = "Booking not found"


class BookingAlreadyProcessedError(CoachlineError):
    reason = "booking_already_processed"
    default_message = "Booking already processed"


class PromoCodeRejectedError(CoachlineError):
    status_code = 404
    reason = "promo_code_invalid"
    default_message = "Promo code not found or expired"


class PromoCodeExhaustedError(PromoCodeRejectedError):
    status_code = 400
    reason = "promo_code_exhausted"
    default_message = "Promo code usage limit reached"


class PaymentProviderError(CoachlineError):
    status_code = 502
    reason = "payment_provider_error"
    default_message = "Payment provider request failed"


class PaymentConfigurationError(CoachlineError):
    status_code = 500
    reason = "payment_not_configured"
    default_message = "Payment provider is not configured"


class WebhookSignatureError(CoachlineError):
    reason = "invalid_signature"
    default_message = "Webhook signature verification failed"


# Tickets

class TicketNotFoundError(CoachlineError):
    status_code = 404
    reason = "ticket_not_found"
    default_message = "Ticket not found"


class BookingNotConfirmedError(CoachlineError):
    reason = "booking_not_confirmed"
    default_message = "Booking not confirmed"


class TicketAlreadyUsedError(CoachlineError):
    reason = "ticket_already_used"
    default_message = "Ticket already used"
