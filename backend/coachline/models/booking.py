"""
Booking model: a passenger's reservation on a route for one travel day.

Key design decisions:
- Route/time fields and every price component are copied at creation time;
  later route edits never change an existing booking
- Status only moves forward: pending -> paid | cancelled. Transitions are
  conditional UPDATEs keyed on the current status (see booking_service)
- `booking_id` is the public, human-shareable identifier; `id` stays internal
"""

from sqlalchemy import CheckConstraint, Column, DateTime, Index, Integer, Numeric, String

from coachline.db.base import Base, TimestampMixin

PENDING = "pending"
PAID = "paid"
CANCELLED = "cancelled"
REFUNDED = "refunded"

BOOKING_STATUSES = (PENDING, PAID, CANCELLED, REFUNDED)


class Booking(Base, TimestampMixin):
    __tablename__ = "bookings"

    id = Column(Integer, primary_key=True, index=True)
    booking_id = Column(String(32), unique=True, nullable=False, index=True)
    from_city = Column(String(120), nullable=False)
    to_city = Column(String(120), nullable=False)
    travel_date = Column(DateTime(timezone=True), nullable=False)
    departure_time = Column(String(5), nullable=False)
    arrival_time = Column(String(5), nullable=False)

    passenger_name = Column(String(120), nullable=False)
    passenger_surname = Column(String(120), nullable=False)
    passenger_email = Column(String(255), nullable=False)
    passenger_phone = Column(String(40), nullable=False)

    subtotal = Column(Numeric(10, 2), nullable=False)
    fees = Column(Numeric(10, 2), nullable=False)
    discount = Column(Numeric(10, 2), nullable=False, default=0)
    student_discount = Column(Numeric(10, 2), nullable=False, default=0)
    total = Column(Numeric(10, 2), nullable=False)
    currency = Column(String(3), nullable=False, default="RON")
    promo_code = Column(String(64), nullable=True)

    status = Column(String(20), nullable=False, default=PENDING)
    payment_intent_id = Column(String(255), nullable=True)
    payment_customer_id = Column(String(255), nullable=True)

    __table_args__ = (
        CheckConstraint(
            "status IN ('pending', 'paid', 'cancelled', 'refunded')",
            name="check_booking_status",
        ),
        CheckConstraint("currency IN ('RON', 'EUR')", name="check_booking_currency"),
        CheckConstraint("total >= 0", name="check_booking_total_non_negative"),
        CheckConstraint("student_discount >= 0", name="check_booking_student_discount_non_negative"),
        Index("ix_bookings_passenger_email", "passenger_email"),
        Index("ix_bookings_status", "status"),
    )

    @property
    def passenger(self) -> dict:
        return {
            "name": self.passenger_name,
            "surname": self.passenger_surname,
            "email": self.passenger_email,
            "phone": self.passenger_phone,
        }

    @property
    def passenger_full_name(self) -> str:
        return f"{self.passenger_name} {self.passenger_surname}"

    def __repr__(self) -> str:
        return f"<Booking(booking_id={self.booking_id}, status={self.status}, total={self.total})>"
