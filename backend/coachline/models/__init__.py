from coachline.models.booking import Booking
from coachline.models.promo_code import PromoCode
from coachline.models.route import Route
from coachline.models.ticket import Ticket

__all__ = ["Booking", "PromoCode", "Route", "Ticket"]
