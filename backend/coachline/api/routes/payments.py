"""
Payment sheet creation and the payment provider webhook.
"""

from typing import Optional

from fastapi import APIRouter, BackgroundTasks, Depends, Header, Request
from sqlalchemy.ext.asyncio import AsyncSession

from coachline.api.dependencies import get_dispatcher, get_payment_gateway
from coachline.core.logging import get_logger
from coachline.core.metrics import record_payment_notification
from coachline.db.session import get_db
from coachline.schemas.payment import PaymentSheetRequest, PaymentSheetResponse, WebhookAck
from coachline.services import payment_service
from coachline.services.delivery_service import TicketDispatcher, schedule_delivery
from coachline.services.interfaces import PaymentGateway

logger = get_logger(__name__)
router = APIRouter(prefix="/payments", tags=["Payments"])


@router.post("/payment-sheet", response_model=PaymentSheetResponse)
async def create_payment_sheet(
    request: PaymentSheetRequest,
    db: AsyncSession = Depends(get_db),
    gateway: PaymentGateway = Depends(get_payment_gateway),
):
    """Create a payment intent for a pending booking and return the client secrets."""
    return await payment_service.attach_payment_intent(
        db, gateway, request.booking_id, request.total_amount
    )


@router.post("/webhook", response_model=WebhookAck)
async def payment_webhook(
    request: Request,
    background_tasks: BackgroundTasks,
    stripe_signature: Optional[str] = Header(None, alias="Stripe-Signature"),
    db: AsyncSession = Depends(get_db),
    gateway: PaymentGateway = Depends(get_payment_gateway),
    dispatcher: TicketDispatcher = Depends(get_dispatcher),
):
    """
    Stripe webhook receiver.

    Signature failures are rejected with 400 so misconfiguration is visible.
    Once the payload is verified the provider always gets a 200: a processing
    error is logged and acknowledged, since a redelivery would fail the same way.
    """
    payload = await request.body()
    notification = gateway.parse_notification(payload, stripe_signature)

    try:
        delivery = await payment_service.handle_notification(db, notification)
    except Exception as e:
        await db.rollback()
        logger.error(
            "webhook_processing_failed",
            event_id=notification.event_id,
            event_type=notification.event_type,
            booking_id=notification.booking_id,
            error=str(e),
        )
        record_payment_notification("error")
        return WebhookAck(received=True, error=str(e))

    # Background tasks run after the response, i.e. after get_db has committed
    schedule_delivery(background_tasks, dispatcher, delivery)
    return WebhookAck(received=True)
