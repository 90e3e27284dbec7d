"""Initial schema: routes, promo codes, bookings, tickets with indexes and constraints.

Revision ID: 001
Revises: None
Create Date: 2026-10-19
"""
from typing import Sequence, Union
from alembic import op
import sqlalchemy as sa

revision: str = "001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _timestamps() -> list:
    return [
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
    ]


def upgrade() -> None:
    # Routes table
    op.create_table(
        "routes",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("from_city", sa.String(120), nullable=False),
        sa.Column("to_city", sa.String(120), nullable=False),
        sa.Column("base_price", sa.Numeric(10, 2), nullable=False),
        sa.Column("currency", sa.String(3), nullable=False, server_default=sa.text("'RON'")),
        sa.Column("departure_time", sa.String(5), nullable=False),
        sa.Column("arrival_time", sa.String(5), nullable=False),
        sa.Column("from_station", sa.String(255), nullable=False),
        sa.Column("to_station", sa.String(255), nullable=False),
        sa.Column("active", sa.Boolean(), nullable=False, server_default=sa.text("true")),
        sa.Column("available_days", sa.JSON(), nullable=True),
        sa.Column("student_discount", sa.Numeric(10, 2), nullable=True),
        sa.Column("closed_dates", sa.JSON(), nullable=False, server_default=sa.text("'[]'")),
        *_timestamps(),
        sa.CheckConstraint("base_price >= 0", name="check_route_base_price_non_negative"),
        sa.CheckConstraint("currency IN ('RON', 'EUR')", name="check_route_currency"),
        sa.CheckConstraint(
            "student_discount IS NULL OR student_discount >= 0",
            name="check_route_student_discount_non_negative",
        ),
    )
    op.create_index("ix_routes_id", "routes", ["id"])
    # Every catalogue and booking lookup is "active route from X to Y"
    op.create_index("ix_routes_from_to", "routes", ["from_city", "to_city"])

    # Promo codes table
    op.create_table(
        "promo_codes",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("code", sa.String(64), nullable=False),
        sa.Column("discount_percent", sa.Numeric(5, 2), nullable=False, server_default=sa.text("0")),
        sa.Column("discount_fixed", sa.Numeric(10, 2), nullable=False, server_default=sa.text("0")),
        sa.Column("max_discount", sa.Numeric(10, 2), nullable=False, server_default=sa.text("0")),
        sa.Column("valid_from", sa.DateTime(timezone=True), nullable=False),
        sa.Column("valid_until", sa.DateTime(timezone=True), nullable=False),
        sa.Column("usage_limit", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("usage_count", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("active", sa.Boolean(), nullable=False, server_default=sa.text("true")),
        *_timestamps(),
        sa.CheckConstraint(
            "discount_percent >= 0 AND discount_percent <= 100",
            name="check_promo_discount_percent_range",
        ),
        sa.CheckConstraint("discount_fixed >= 0", name="check_promo_discount_fixed_non_negative"),
        sa.CheckConstraint("usage_count >= 0", name="check_promo_usage_count_non_negative"),
        # Final safety net under the conditional increment
        sa.CheckConstraint(
            "usage_limit = 0 OR usage_count <= usage_limit",
            name="check_promo_usage_within_limit",
        ),
    )
    op.create_index("ix_promo_codes_id", "promo_codes", ["id"])
    op.create_index("ix_promo_codes_code", "promo_codes", ["code"], unique=True)

    # Bookings table
    op.create_table(
        "bookings",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("booking_id", sa.String(32), nullable=False),
        sa.Column("from_city", sa.String(120), nullable=False),
        sa.Column("to_city", sa.String(120), nullable=False),
        sa.Column("travel_date", sa.DateTime(timezone=True), nullable=False),
        sa.Column("departure_time", sa.String(5), nullable=False),
        sa.Column("arrival_time", sa.String(5), nullable=False),
        sa.Column("passenger_name", sa.String(120), nullable=False),
        sa.Column("passenger_surname", sa.String(120), nullable=False),
        sa.Column("passenger_email", sa.String(255), nullable=False),
        sa.Column("passenger_phone", sa.String(40), nullable=False),
        sa.Column("subtotal", sa.Numeric(10, 2), nullable=False),
        sa.Column("fees", sa.Numeric(10, 2), nullable=False),
        sa.Column("discount", sa.Numeric(10, 2), nullable=False, server_default=sa.text("0")),
        sa.Column("student_discount", sa.Numeric(10, 2), nullable=False, server_default=sa.text("0")),
        sa.Column("total", sa.Numeric(10, 2), nullable=False),
        sa.Column("currency", sa.String(3), nullable=False, server_default=sa.text("'RON'")),
        sa.Column("promo_code", sa.String(64), nullable=True),
        sa.Column("status", sa.String(20), nullable=False, server_default=sa.text("'pending'")),
        sa.Column("payment_intent_id", sa.String(255), nullable=True),
        sa.Column("payment_customer_id", sa.String(255), nullable=True),
        *_timestamps(),
        sa.CheckConstraint(
            "status IN ('pending', 'paid', 'cancelled', 'refunded')",
            name="check_booking_status",
        ),
        sa.CheckConstraint("currency IN ('RON', 'EUR')", name="check_booking_currency"),
        sa.CheckConstraint("total >= 0", name="check_booking_total_non_negative"),
        sa.CheckConstraint("student_discount >= 0", name="check_booking_student_discount_non_negative"),
    )
    op.create_index("ix_bookings_id", "bookings", ["id"])
    op.create_index("ix_bookings_booking_id", "bookings", ["booking_id"], unique=True)
    op.create_index("ix_bookings_passenger_email", "bookings", ["passenger_email"])
    op.create_index("ix_bookings_status", "bookings", ["status"])

    # Tickets table
    op.create_table(
        "tickets",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("ticket_id", sa.String(32), nullable=False),
        sa.Column("booking_id", sa.String(32), nullable=False),
        sa.Column("qr_token", sa.String(128), nullable=False),
        sa.Column("from_city", sa.String(120), nullable=False),
        sa.Column("to_city", sa.String(120), nullable=False),
        sa.Column("travel_date", sa.DateTime(timezone=True), nullable=False),
        sa.Column("departure_time", sa.String(5), nullable=False),
        sa.Column("arrival_time", sa.String(5), nullable=False),
        sa.Column("passenger_name", sa.String(255), nullable=False),
        sa.Column("price", sa.Numeric(10, 2), nullable=False),
        sa.Column("currency", sa.String(3), nullable=False, server_default=sa.text("'RON'")),
        sa.Column("is_used", sa.Boolean(), nullable=False, server_default=sa.text("false")),
        sa.Column("used_at", sa.DateTime(timezone=True), nullable=True),
        *_timestamps(),
    )
    op.create_index("ix_tickets_id", "tickets", ["id"])
    op.create_index("ix_tickets_ticket_id", "tickets", ["ticket_id"], unique=True)
    # UNIQUE booking_id: at most one ticket per booking, even under concurrent confirmations
    op.create_index("ix_tickets_booking_id", "tickets", ["booking_id"], unique=True)
    op.create_index("ix_tickets_qr_token", "tickets", ["qr_token"], unique=True)


def downgrade() -> None:
    op.drop_table("tickets")
    op.drop_table("bookings")
    op.drop_table("promo_codes")
    op.drop_table("routes")
