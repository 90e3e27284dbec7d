"""
Payment gateway interface.
Booking code talks to this, never to a provider SDK, so the provider client is
constructed once and passed in explicitly.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Optional

PAYMENT_SUCCEEDED = "payment_intent.succeeded"
PAYMENT_FAILED = "payment_intent.payment_failed"


@dataclass(frozen=True)
class PaymentIntentHandle:
    id: str
    client_secret: str


@dataclass(frozen=True)
class PaymentNotification:
    """A verified provider notification, reduced to what the booking core needs."""

    event_id: str
    event_type: str
    payment_intent_id: Optional[str]
    booking_id: Optional[str]
    amount_received: int  # minor units
    currency: Optional[str]


class PaymentGateway(ABC):
    """
    Implementations:
    - StripePaymentGateway: Stripe PaymentIntents + mobile PaymentSheet
    """

    @abstractmethod
    async def create_customer(self, *, email: str, name: str, phone: str, metadata: dict) -> str:
        """Create a provider customer record and return its id."""

    @abstractmethod
    async def create_payment_intent(
        self,
        *,
        amount_minor: int,
        currency: str,
        customer_id: str,
        metadata: dict,
    ) -> PaymentIntentHandle:
        """Create an authorization-to-charge for `amount_minor` in `currency`."""

    @abstractmethod
    async def create_ephemeral_key(self, customer_id: str) -> str:
        """Short-lived credential the payer's client uses to act for the customer."""

    @abstractmethod
    def parse_notification(self, payload: bytes, signature: Optional[str]) -> PaymentNotification:
        """
        Authenticate a raw notification and decode it.

        Raises:
            WebhookSignatureError: missing or invalid signature
            PaymentConfigurationError: no signing secret configured
        """
