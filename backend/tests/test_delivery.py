"""
Tests for the Stripe webhook verification and ticket delivery, without network.
"""

import hashlib
import hmac
import json
import time
from datetime import datetime, timezone
from decimal import Decimal

import pytest

from coachline.core.exceptions import PaymentConfigurationError, WebhookSignatureError
from coachline.infrastructure.stripe_gateway import StripePaymentGateway
from coachline.infrastructure.ticket_renderer import render_qr_png, render_ticket_pdf
from coachline.services.delivery_service import TicketDelivery, TicketDispatcher, compose_ticket_email
from coachline.services.interfaces import PAYMENT_SUCCEEDED

WEBHOOK_SECRET = "whsec_test_secret"


def sign(payload: bytes, secret: str = WEBHOOK_SECRET) -> str:
    timestamp = int(time.time())
    signed = f"{timestamp}.".encode() + payload
    digest = hmac.new(secret.encode(), signed, hashlib.sha256).hexdigest()
    return f"t={timestamp},v1={digest}"


def make_delivery() -> TicketDelivery:
    return TicketDelivery(
        ticket_id="TK-1A2B3C4D",
        booking_id="BK-9F8E7D6C",
        qr_token="token-for-boarding",
        from_city="Chisinau",
        to_city="Brasov",
        travel_date=datetime(2026, 11, 20, tzinfo=timezone.utc),
        departure_time="07:00",
        arrival_time="15:30",
        passenger_name="Ion Popescu",
        passenger_email="ion.popescu@example.com",
        price=Decimal("115.50"),
        currency="RON",
    )


class FakeMailer:
    def __init__(self, configured: bool = True, fail_with: str = ""):
        self.configured = configured
        self.fail_with = fail_with
        self.sent = []

    def send(self, to_email, subject, body, attachments=()):
        self.sent.append({"to": to_email, "subject": subject, "body": body, "attachments": list(attachments)})
        if self.fail_with:
            return False, self.fail_with
        return True, None


# Stripe gateway

def test_gateway_requires_api_key():
    with pytest.raises(PaymentConfigurationError):
        StripePaymentGateway(api_key="")


def test_webhook_requires_secret():
    gateway = StripePaymentGateway(api_key="sk_test_123")
    with pytest.raises(PaymentConfigurationError):
        gateway.parse_notification(b"{}", "t=1,v1=abc")


def test_webhook_requires_signature():
    gateway = StripePaymentGateway(api_key="sk_test_123", webhook_secret=WEBHOOK_SECRET)
    with pytest.raises(WebhookSignatureError):
        gateway.parse_notification(b"{}", None)


def test_webhook_rejects_wrong_secret():
    gateway = StripePaymentGateway(api_key="sk_test_123", webhook_secret=WEBHOOK_SECRET)
    payload = json.dumps({"id": "evt_1", "type": PAYMENT_SUCCEEDED}).encode()
    with pytest.raises(WebhookSignatureError):
        gateway.parse_notification(payload, sign(payload, secret="whsec_other"))


def test_webhook_parses_signed_event():
    gateway = StripePaymentGateway(api_key="sk_test_123", webhook_secret=WEBHOOK_SECRET)
    payload = json.dumps({
        "id": "evt_1",
        "object": "event",
        "type": PAYMENT_SUCCEEDED,
        "data": {"object": {
            "id": "pi_123",
            "object": "payment_intent",
            "amount": 11550,
            "amount_received": 11550,
            "currency": "ron",
            "metadata": {"booking_id": "BK-9F8E7D6C"},
        }},
    }).encode()

    notification = gateway.parse_notification(payload, sign(payload))

    assert notification.event_type == PAYMENT_SUCCEEDED
    assert notification.booking_id == "BK-9F8E7D6C"
    assert notification.payment_intent_id == "pi_123"
    assert notification.amount_received == 11550
    assert notification.currency == "RON"


# Rendering

def test_render_qr_png():
    assert render_qr_png("token-for-boarding").startswith(b"\x89PNG")


def test_render_ticket_pdf():
    assert render_ticket_pdf(make_delivery()).startswith(b"%PDF")


def test_compose_ticket_email():
    subject, body = compose_ticket_email(make_delivery())
    assert "TK-1A2B3C4D" in subject
    assert "Chisinau -> Brasov" in body
    assert "115.50 RON" in body
    assert "2026-11-20" in body


# Dispatcher

def test_deliver_sends_pdf():
    mailer = FakeMailer()
    dispatcher = TicketDispatcher(mailer, renderer=lambda delivery: b"%PDF-fake")

    assert dispatcher.deliver(make_delivery()) is True
    assert mailer.sent[0]["to"] == "ion.popescu@example.com"
    assert mailer.sent[0]["attachments"] == [("ticket-TK-1A2B3C4D.pdf", b"%PDF-fake", "application/pdf")]


def test_deliver_skipped_without_mail_config():
    mailer = FakeMailer(configured=False)
    dispatcher = TicketDispatcher(mailer, renderer=lambda delivery: b"%PDF-fake")

    assert dispatcher.deliver(make_delivery()) is False
    assert mailer.sent == []


def test_deliver_survives_render_failure():
    def broken_renderer(delivery):
        raise RuntimeError("font missing")

    mailer = FakeMailer()
    dispatcher = TicketDispatcher(mailer, renderer=broken_renderer)

    assert dispatcher.deliver(make_delivery()) is False
    assert mailer.sent == []


def test_deliver_survives_smtp_failure():
    mailer = FakeMailer(fail_with="Connection refused")
    dispatcher = TicketDispatcher(mailer, renderer=lambda delivery: b"%PDF-fake")

    assert dispatcher.deliver(make_delivery()) is False
    assert len(mailer.sent) == 1
