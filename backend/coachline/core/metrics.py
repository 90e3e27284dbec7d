"""
Metrics instrumentation for observability.
Exposes Prometheus-compatible metrics at /metrics endpoint.
"""

from fastapi import Response
from prometheus_client import CONTENT_TYPE_LATEST, Counter, generate_latest

# Booking metrics
bookings_created = Counter(
    'bookings_created_total',
    'Bookings created in pending state',
    ['currency']
)

booking_rejections = Counter(
    'booking_rejections_total',
    'Booking requests rejected by a business rule',
    ['reason']  # route_not_found, day_not_available, date_closed, ...
)

# Payment metrics
payment_notifications = Counter(
    'payment_notifications_total',
    'Payment provider notifications processed',
    ['outcome']  # confirmed, duplicate, cancelled, ignored, error
)

payment_intents_created = Counter(
    'payment_intents_created_total',
    'Payment intents created for pending bookings'
)

# Promo metrics
promo_validations = Counter(
    'promo_validations_total',
    'Promo code validations',
    ['result']  # valid, not_found, inactive, not_yet_valid, expired, usage_limit_reached
)

# Ticket metrics
tickets_issued = Counter(
    'tickets_issued_total',
    'Tickets issued after payment confirmation'
)

ticket_redemptions = Counter(
    'ticket_redemptions_total',
    'Ticket validate/use attempts',
    ['operation', 'result']
)

ticket_deliveries = Counter(
    'ticket_deliveries_total',
    'Ticket PDF/e-mail deliveries',
    ['result']  # sent, skipped, failed
)

# Rate limiting
rate_limit_rejections = Counter(
    'rate_limit_rejections_total',
    'API requests rejected by the per-IP rate limiter'
)

# Cache metrics
cache_operations = Counter(
    'cache_operations_total',
    'Cache operations',
    ['operation', 'result']  # get/set, hit/miss
)


def metrics_endpoint() -> Response:
    """Prometheus metrics endpoint."""
    return Response(
        content=generate_latest(),
        media_type=CONTENT_TYPE_LATEST
    )


def record_booking_rejection(reason: str):
    booking_rejections.labels(reason=reason).inc()


def record_payment_notification(outcome: str):
    """Outcome: confirmed, duplicate, cancelled, ignored, error"""
    payment_notifications.labels(outcome=outcome).inc()


def record_promo_validation(result: str):
    promo_validations.labels(result=result).inc()


def record_ticket_redemption(operation: str, result: str):
    ticket_redemptions.labels(operation=operation, result=result).inc()


def record_ticket_delivery(result: str):
    ticket_deliveries.labels(result=result).inc()


def record_cache_operation(operation: str, hit: bool):
    """Record cache operation."""
    result = "hit" if hit else "miss"
    cache_operations.labels(operation=operation, result=result).inc()
