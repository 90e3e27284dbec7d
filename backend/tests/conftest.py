"""
Pytest fixtures for test database, client, fake payment gateway and seed data.

Uses an in-memory SQLite database (aiosqlite) created and dropped per test
for isolation and speed. The payment gateway and ticket dispatcher are
replaced with in-memory fakes through FastAPI dependency overrides.
"""

import json
import os
from datetime import datetime, timedelta, timezone
from decimal import Decimal
from typing import AsyncGenerator, Optional

os.environ.setdefault("ENVIRONMENT", "test")
os.environ.setdefault("REDIS_ENABLED", "false")
os.environ.setdefault("CORS_ORIGINS", "")

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy import event
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from coachline.api.dependencies import get_dispatcher, get_payment_gateway
from coachline.core.exceptions import PaymentProviderError, WebhookSignatureError
from coachline.db.base import Base
from coachline.db.session import get_db
from coachline.infrastructure.stripe_gateway import notification_from_event
from coachline.main import app
from coachline.models import PromoCode, Route
from coachline.services.interfaces import PaymentGateway, PaymentIntentHandle, PaymentNotification

TEST_DATABASE_URL = "sqlite+aiosqlite://"
VALID_SIGNATURE = "test-signature"

test_engine = create_async_engine(
    TEST_DATABASE_URL,
    echo=False,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
TestSessionLocal = async_sessionmaker(test_engine, class_=AsyncSession, expire_on_commit=False)


# pysqlite defers BEGIN, which breaks SAVEPOINT; emit BEGIN ourselves
@event.listens_for(test_engine.sync_engine, "connect")
def _sqlite_connect(dbapi_connection, connection_record):
    dbapi_connection.isolation_level = None


@event.listens_for(test_engine.sync_engine, "begin")
def _sqlite_begin(conn):
    conn.exec_driver_sql("BEGIN")


class FakePaymentGateway(PaymentGateway):
    """Records every call; webhook payloads are trusted when signed with VALID_SIGNATURE."""

    def __init__(self):
        self.customers: list[dict] = []
        self.intents: list[dict] = []
        self.ephemeral_keys: list[str] = []
        self.failing_intents = 0  # next N intent calls fail like a provider outage

    async def create_customer(self, *, email: str, name: str, phone: str, metadata: dict) -> str:
        self.customers.append({"email": email, "name": name, "phone": phone, "metadata": metadata})
        return f"cus_test_{len(self.customers)}"

    async def create_payment_intent(
        self,
        *,
        amount_minor: int,
        currency: str,
        customer_id: str,
        metadata: dict,
    ) -> PaymentIntentHandle:
        if self.failing_intents:
            self.failing_intents -= 1
            raise PaymentProviderError("Stripe create_payment_intent failed")
        self.intents.append({
            "amount": amount_minor,
            "currency": currency,
            "customer": customer_id,
            "metadata": metadata,
        })
        number = len(self.intents)
        return PaymentIntentHandle(id=f"pi_test_{number}", client_secret=f"pi_test_{number}_secret")

    async def create_ephemeral_key(self, customer_id: str) -> str:
        self.ephemeral_keys.append(customer_id)
        return f"ek_test_{len(self.ephemeral_keys)}"

    def parse_notification(self, payload: bytes, signature: Optional[str]) -> PaymentNotification:
        if signature != VALID_SIGNATURE:
            raise WebhookSignatureError()
        return notification_from_event(json.loads(payload))


class FakeDispatcher:
    def __init__(self):
        self.delivered = []

    def deliver(self, delivery) -> bool:
        self.delivered.append(delivery)
        return True


def next_weekday(weekday: int, weeks_ahead: int = 1) -> str:
    """YYYY-MM-DD of a future day with the given weekday (0=Sunday)."""
    today = datetime.now(timezone.utc).date()
    target = (weekday - 1) % 7  # python: 0=Monday
    days = (target - today.weekday()) % 7 + 7 * weeks_ahead
    return (today + timedelta(days=days)).isoformat()


def future_date(days: int = 14) -> str:
    return (datetime.now(timezone.utc).date() + timedelta(days=days)).isoformat()


def passenger(email: str = "ion.popescu@example.com") -> dict:
    return {"name": "Ion", "surname": "Popescu", "email": email, "phone": "+37360123456"}


def succeeded_event(booking_id: str, amount: int, currency: str = "ron", event_id: str = "evt_1") -> dict:
    return {
        "id": event_id,
        "type": "payment_intent.succeeded",
        "data": {"object": {
            "id": "pi_test_1",
            "amount": amount,
            "amount_received": amount,
            "currency": currency,
            "metadata": {"booking_id": booking_id},
        }},
    }


def failed_event(booking_id: str, event_id: str = "evt_fail") -> dict:
    return {
        "id": event_id,
        "type": "payment_intent.payment_failed",
        "data": {"object": {"id": "pi_test_1", "amount": 0, "currency": "ron",
                            "metadata": {"booking_id": booking_id}}},
    }


@pytest_asyncio.fixture(scope="function")
async def db_session() -> AsyncGenerator[AsyncSession, None]:
    """Create tables, yield session, then drop tables for isolation."""
    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    async with TestSessionLocal() as session:
        yield session

    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)


@pytest.fixture
def gateway() -> FakePaymentGateway:
    return FakePaymentGateway()


@pytest.fixture
def dispatcher() -> FakeDispatcher:
    return FakeDispatcher()


@pytest_asyncio.fixture(scope="function")
async def client(
    db_session: AsyncSession,
    gateway: FakePaymentGateway,
    dispatcher: FakeDispatcher,
) -> AsyncGenerator[AsyncClient, None]:
    """HTTP client that overrides the DB session and external collaborators."""

    async def override_get_db():
        try:
            yield db_session
            await db_session.commit()
        except Exception:
            await db_session.rollback()
            raise

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_payment_gateway] = lambda: gateway
    app.dependency_overrides[get_dispatcher] = lambda: dispatcher

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()


@pytest_asyncio.fixture
async def test_route(db_session: AsyncSession) -> Route:
    """Daily route with a 10 RON student discount."""
    route = Route(
        from_city="Chisinau",
        to_city="Brasov",
        base_price=Decimal("125.00"),
        currency="RON",
        departure_time="07:00",
        arrival_time="15:30",
        from_station="Central Bus Station",
        to_station="Autogara 2",
        active=True,
        available_days=None,
        student_discount=Decimal("10.00"),
        closed_dates=[],
    )
    db_session.add(route)
    await db_session.commit()
    await db_session.refresh(route)
    return route


@pytest_asyncio.fixture
async def weekly_route(db_session: AsyncSession) -> Route:
    """EUR route running on Thursdays only."""
    route = Route(
        from_city="Chisinau",
        to_city="Vienna",
        base_price=Decimal("150.00"),
        currency="EUR",
        departure_time="06:00",
        arrival_time="22:00",
        from_station="Central Bus Station",
        to_station="Erdberg",
        active=True,
        available_days=[4],
        student_discount=None,
        closed_dates=[],
    )
    db_session.add(route)
    await db_session.commit()
    await db_session.refresh(route)
    return route


async def make_promo(db_session: AsyncSession, code: str, **fields) -> PromoCode:
    now = datetime.now(timezone.utc)
    values = {
        "discount_percent": Decimal("0"),
        "discount_fixed": Decimal("0"),
        "max_discount": Decimal("0"),
        "valid_from": now - timedelta(days=1),
        "valid_until": now + timedelta(days=30),
        "usage_limit": 0,
        "usage_count": 0,
        "active": True,
    }
    values.update(fields)
    promo = PromoCode(code=code, **values)
    db_session.add(promo)
    await db_session.commit()
    await db_session.refresh(promo)
    return promo


@pytest_asyncio.fixture
async def welcome_promo(db_session: AsyncSession) -> PromoCode:
    """10% capped at 20."""
    return await make_promo(
        db_session, "WELCOME10", discount_percent=Decimal("10"), max_discount=Decimal("20")
    )

