"""
Service interfaces for dependency inversion.
Allows swapping implementations without changing business logic.
"""

from .payment_gateway import (
    PAYMENT_FAILED,
    PAYMENT_SUCCEEDED,
    PaymentGateway,
    PaymentIntentHandle,
    PaymentNotification,
)

__all__ = [
    'PAYMENT_FAILED',
    'PAYMENT_SUCCEEDED',
    'PaymentGateway',
    'PaymentIntentHandle',
    'PaymentNotification',
]
