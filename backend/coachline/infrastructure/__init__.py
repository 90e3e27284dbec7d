"""
Infrastructure layer - external system integrations.
Keeps business logic clean from implementation details.
"""

from .mailer import SmtpMailer
from .stripe_gateway import StripePaymentGateway
from .ticket_renderer import render_ticket_pdf

__all__ = ['SmtpMailer', 'StripePaymentGateway', 'render_ticket_pdf']
