"""
Ticket model: the boarding credential derived from a paid booking.

Key design decisions:
- Unique `booking_id` makes issuance idempotent at the database level
- `qr_token` is the bearer secret presented at boarding; it is unique but is
  never used as a lookup key anywhere except redemption
- `is_used` is a one-way latch flipped by a conditional UPDATE
"""

from sqlalchemy import Boolean, Column, DateTime, Integer, Numeric, String

from coachline.db.base import Base, TimestampMixin


class Ticket(Base, TimestampMixin):
    __tablename__ = "tickets"

    id = Column(Integer, primary_key=True, index=True)
    ticket_id = Column(String(32), unique=True, nullable=False, index=True)
    booking_id = Column(String(32), unique=True, nullable=False, index=True)
    qr_token = Column(String(128), unique=True, nullable=False, index=True)
    from_city = Column(String(120), nullable=False)
    to_city = Column(String(120), nullable=False)
    travel_date = Column(DateTime(timezone=True), nullable=False)
    departure_time = Column(String(5), nullable=False)
    arrival_time = Column(String(5), nullable=False)
    passenger_name = Column(String(255), nullable=False)
    price = Column(Numeric(10, 2), nullable=False)
    currency = Column(String(3), nullable=False, default="RON")
    is_used = Column(Boolean, nullable=False, default=False)
    used_at = Column(DateTime(timezone=True), nullable=True)

    def __repr__(self) -> str:
        return f"<Ticket(ticket_id={self.ticket_id}, booking={self.booking_id}, used={self.is_used})>"
