"""
Stripe implementation of the payment gateway.

The API key is passed on every call instead of being assigned to the global
`stripe.api_key`, so the client is a plain constructed dependency. The stripe
SDK is synchronous; calls run in the threadpool to keep the event loop free.
"""

import json
from typing import Optional

import stripe
from fastapi.concurrency import run_in_threadpool

from coachline.core.exceptions import (
    PaymentConfigurationError,
    PaymentProviderError,
    WebhookSignatureError,
)
from coachline.core.logging import get_logger
from coachline.services.interfaces import PaymentGateway, PaymentIntentHandle, PaymentNotification

logger = get_logger(__name__)


class StripePaymentGateway(PaymentGateway):
    def __init__(self, api_key: str, webhook_secret: str = "", api_version: str = "2023-10-16"):
        if not api_key:
            raise PaymentConfigurationError("STRIPE_SECRET_KEY environment variable is required")
        self._api_key = api_key
        self._webhook_secret = webhook_secret
        self._api_version = api_version

    async def _call(self, operation: str, fn, **params):
        try:
            return await run_in_threadpool(fn, api_key=self._api_key, **params)
        except stripe.StripeError as e:
            logger.error("stripe_request_failed", operation=operation, error=str(e))
            raise PaymentProviderError(f"Stripe {operation} failed", provider_message=e.user_message) from e

    async def create_customer(self, *, email: str, name: str, phone: str, metadata: dict) -> str:
        customer = await self._call(
            "create_customer",
            stripe.Customer.create,
            email=email,
            name=name,
            phone=phone,
            metadata=metadata,
        )
        return customer["id"]

    async def create_payment_intent(
        self,
        *,
        amount_minor: int,
        currency: str,
        customer_id: str,
        metadata: dict,
    ) -> PaymentIntentHandle:
        intent = await self._call(
            "create_payment_intent",
            stripe.PaymentIntent.create,
            amount=amount_minor,
            currency=currency.lower(),
            customer=customer_id,
            metadata=metadata,
            automatic_payment_methods={"enabled": True},
        )
        return PaymentIntentHandle(id=intent["id"], client_secret=intent["client_secret"])

    async def create_ephemeral_key(self, customer_id: str) -> str:
        key = await self._call(
            "create_ephemeral_key",
            stripe.EphemeralKey.create,
            customer=customer_id,
            stripe_version=self._api_version,
        )
        return key["secret"]

    def parse_notification(self, payload: bytes, signature: Optional[str]) -> PaymentNotification:
        if not self._webhook_secret:
            raise PaymentConfigurationError("Webhook secret not configured")
        if not signature:
            raise WebhookSignatureError("Missing stripe-signature header")

        try:
            stripe.Webhook.construct_event(payload, signature, self._webhook_secret)
        except (ValueError, stripe.SignatureVerificationError) as e:
            logger.warning("webhook_signature_invalid", error=str(e))
            raise WebhookSignatureError(detail=str(e)) from e

        # Signature verified; read the payload as plain JSON
        return notification_from_event(json.loads(payload))


def notification_from_event(event: dict) -> PaymentNotification:
    """Extract the fields the booking flow needs from a payment_intent.* event."""
    intent = (event.get("data") or {}).get("object") or {}
    metadata = intent.get("metadata") or {}
    amount = intent.get("amount_received") or intent.get("amount") or 0

    return PaymentNotification(
        event_id=event.get("id", ""),
        event_type=event.get("type", ""),
        payment_intent_id=intent.get("id"),
        booking_id=metadata.get("booking_id"),
        amount_received=int(amount),
        currency=(intent.get("currency") or "").upper() or None,
    )
