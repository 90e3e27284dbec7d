"""
Route model: a scheduled coach connection between two cities.

Key design decisions:
- `available_days` holds weekday numbers (0=Sunday .. 6=Saturday); NULL means
  the route runs every day
- `closed_dates` holds canonical YYYY-MM-DD date-keys, always written through
  the date normalizer so they compare equal to search/booking keys
- JSON columns are reassigned, never mutated in place, so the ORM sees changes
"""

from sqlalchemy import Boolean, CheckConstraint, Column, Index, Integer, JSON, Numeric, String

from coachline.db.base import Base, TimestampMixin

CURRENCIES = ("RON", "EUR")


class Route(Base, TimestampMixin):
    __tablename__ = "routes"

    id = Column(Integer, primary_key=True, index=True)
    from_city = Column(String(120), nullable=False)
    to_city = Column(String(120), nullable=False)
    base_price = Column(Numeric(10, 2), nullable=False)
    currency = Column(String(3), nullable=False, default="RON")
    departure_time = Column(String(5), nullable=False)
    arrival_time = Column(String(5), nullable=False)
    from_station = Column(String(255), nullable=False)
    to_station = Column(String(255), nullable=False)
    active = Column(Boolean, nullable=False, default=True)
    available_days = Column(JSON, nullable=True)
    student_discount = Column(Numeric(10, 2), nullable=True)
    closed_dates = Column(JSON, nullable=False, default=list)

    __table_args__ = (
        CheckConstraint("base_price >= 0", name="check_route_base_price_non_negative"),
        CheckConstraint("currency IN ('RON', 'EUR')", name="check_route_currency"),
        CheckConstraint(
            "student_discount IS NULL OR student_discount >= 0",
            name="check_route_student_discount_non_negative",
        ),
        Index("ix_routes_from_to", "from_city", "to_city"),
    )

    def __repr__(self) -> str:
        return f"<Route(id={self.id}, {self.from_city}->{self.to_city}, active={self.active})>"
