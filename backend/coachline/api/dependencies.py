"""
Shared FastAPI dependencies for external collaborators.
"""

from functools import lru_cache

from coachline.core.config import get_settings
from coachline.infrastructure.stripe_gateway import StripePaymentGateway
from coachline.services.delivery_service import TicketDispatcher, get_ticket_dispatcher
from coachline.services.interfaces import PaymentGateway


@lru_cache()
def get_payment_gateway() -> PaymentGateway:
    """Constructed once; raises PaymentConfigurationError if the secret key is missing."""
    settings = get_settings()
    return StripePaymentGateway(
        api_key=settings.STRIPE_SECRET_KEY,
        webhook_secret=settings.STRIPE_WEBHOOK_SECRET,
        api_version=settings.STRIPE_API_VERSION,
    )


def get_dispatcher() -> TicketDispatcher:
    return get_ticket_dispatcher()
