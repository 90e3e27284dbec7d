"""
Promo code model.

`usage_count` is only ever changed by an atomic `usage_count + 1` UPDATE on
confirmed payment; validation reads it and never writes.
"""

from sqlalchemy import Boolean, CheckConstraint, Column, DateTime, Integer, Numeric, String

from coachline.db.base import Base, TimestampMixin


class PromoCode(Base, TimestampMixin):
    __tablename__ = "promo_codes"

    id = Column(Integer, primary_key=True, index=True)
    code = Column(String(64), unique=True, nullable=False, index=True)  # stored uppercase
    discount_percent = Column(Numeric(5, 2), nullable=False, default=0)
    discount_fixed = Column(Numeric(10, 2), nullable=False, default=0)
    max_discount = Column(Numeric(10, 2), nullable=False, default=0)  # 0 = uncapped
    valid_from = Column(DateTime(timezone=True), nullable=False)
    valid_until = Column(DateTime(timezone=True), nullable=False)
    usage_limit = Column(Integer, nullable=False, default=0)  # 0 = unlimited
    usage_count = Column(Integer, nullable=False, default=0)
    active = Column(Boolean, nullable=False, default=True)

    __table_args__ = (
        CheckConstraint(
            "discount_percent >= 0 AND discount_percent <= 100",
            name="check_promo_discount_percent_range",
        ),
        CheckConstraint("discount_fixed >= 0", name="check_promo_discount_fixed_non_negative"),
        CheckConstraint("usage_count >= 0", name="check_promo_usage_count_non_negative"),
        CheckConstraint(
            "usage_limit = 0 OR usage_count <= usage_limit",
            name="check_promo_usage_within_limit",
        ),
    )

    def __repr__(self) -> str:
        return f"<PromoCode(code={self.code}, used={self.usage_count}/{self.usage_limit})>"
