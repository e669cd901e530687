"""Shared fixtures: in-memory database, fake Stripe client and API client."""

import os

os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("STRIPE_SECRET_KEY", "sk_test_dummy")
os.environ.setdefault("BCRYPT_ROUNDS", "4")
os.environ.setdefault("LOG_JSON", "false")

import itertools
from datetime import datetime, timezone
from typing import Optional

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from app.core.database import Base, get_session
from app.modules.billing import models as _billing_models  # noqa: F401
from app.modules.billing.exceptions import ProcessorError
from app.modules.billing.models import SubscriptionStatus
from app.modules.billing.stripe_client import (
    StripeCustomerData,
    StripeSubscriptionData,
    get_stripe_client,
)
from app.modules.customer import models as _customer_models  # noqa: F401

PERIOD_START = datetime(2026, 1, 1, tzinfo=timezone.utc)
PERIOD_END = datetime(2026, 2, 1, tzinfo=timezone.utc)


class FakeStripeClient:
    """In-memory stand-in for StripeClient that records every call."""

    def __init__(self):
        self.calls: list[tuple[str, dict]] = []
        self.subscription_status = SubscriptionStatus.ACTIVE.value
        self.fail_with: Optional[ProcessorError] = None
        self.fixed_subscription_id: Optional[str] = None
        self._ids = itertools.count(1)

    def _record(self, operation: str, **kwargs) -> None:
        self.calls.append((operation, kwargs))
        if self.fail_with is not None:
            raise self.fail_with

    def operations(self) -> list[str]:
        return [operation for operation, _ in self.calls]

    async def create_customer(self, email, name=None, phone=None, payment_method_id=None, metadata=None):
        self._record(
            "create_customer",
            email=email,
            name=name,
            phone=phone,
            payment_method_id=payment_method_id,
        )
        return StripeCustomerData(
            id=f"cus_test_{next(self._ids)}",
            email=email,
            name=name,
            default_payment_method=payment_method_id,
        )

    async def set_default_payment_method(self, customer_id, payment_method_id):
        self._record(
            "set_default_payment_method",
            customer_id=customer_id,
            payment_method_id=payment_method_id,
        )
        return StripeCustomerData(id=customer_id, default_payment_method=payment_method_id)

    async def create_subscription(self, customer_id, price_id, metadata=None):
        self._record("create_subscription", customer_id=customer_id, price_id=price_id)
        return StripeSubscriptionData(
            id=self.fixed_subscription_id or f"sub_test_{next(self._ids)}",
            customer_id=customer_id,
            status=self.subscription_status,
            price_id=price_id,
            current_period_start=PERIOD_START,
            current_period_end=PERIOD_END,
        )


@pytest_asyncio.fixture
async def engine():
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_maker(engine):
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False, autoflush=False)


@pytest_asyncio.fixture
async def session(session_maker):
    async with session_maker() as session:
        yield session


@pytest.fixture
def fake_stripe():
    return FakeStripeClient()


@pytest_asyncio.fixture
async def client(session_maker, fake_stripe):
    from app.main import app

    async def override_get_session():
        async with session_maker() as session:
            yield session

    app.dependency_overrides[get_session] = override_get_session
    app.dependency_overrides[get_stripe_client] = lambda: fake_stripe
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        yield client
    app.dependency_overrides.clear()
