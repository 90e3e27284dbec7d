from coachline.schemas.booking import BookingCreate, BookingCreatedResponse, BookingResponse, Passenger
from coachline.schemas.payment import PaymentSheetRequest, PaymentSheetResponse, WebhookAck
from coachline.schemas.promo import PromoValidateRequest, PromoValidateResponse
from coachline.schemas.route import (
    RouteCreate, RouteResponse, RouteUpdate, TripSearchRequest, TripSearchResponse,
)
from coachline.schemas.ticket import (
    QRTokenRequest, TicketListResponse, TicketResponse, TicketUseResponse, TicketValidationResponse,
)

__all__ = [
    "BookingCreate", "BookingCreatedResponse", "BookingResponse", "Passenger",
    "PaymentSheetRequest", "PaymentSheetResponse", "WebhookAck",
    "PromoValidateRequest", "PromoValidateResponse",
    "RouteCreate", "RouteResponse", "RouteUpdate", "TripSearchRequest", "TripSearchResponse",
    "QRTokenRequest", "TicketListResponse", "TicketResponse", "TicketUseResponse",
    "TicketValidationResponse",
]
