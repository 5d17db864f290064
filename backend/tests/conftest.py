"""
Shared fixtures: an in-memory SQLite database and an ASGI client with the
database and current-user dependencies overridden.
"""

import os

# Must be set before moonwave.config is imported
os.environ["DATABASE_URL"] = "sqlite+aiosqlite:///:memory:"
os.environ["JWT_SECRET_KEY"] = "test-secret"
os.environ["DISCORD_WEBHOOK_URL"] = ""

from datetime import date
from decimal import Decimal

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

import moonwave.models  # noqa: F401
from moonwave.db import get_db, init_db
from moonwave.main import app
from moonwave.schemas.subscription import SubscriptionSnapshot
from moonwave.services.auth import get_current_user_id

USER_ID = "user-1"


@pytest.fixture
def make_subscription():
    counter = {"n": 0}

    def _make(**kwargs) -> SubscriptionSnapshot:
        counter["n"] += 1
        defaults = {
            "id": f"sub-{counter['n']}",
            "service_name": f"Service {counter['n']}",
            "amount": Decimal("10000"),
            "currency": "KRW",
            "payment_cycle": "monthly",
            "payment_day": 15,
            "start_date": date(2024, 1, 15),
            "status": "active",
        }
        defaults.update(kwargs)
        return SubscriptionSnapshot(**defaults)

    return _make


@pytest.fixture
async def engine():
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    await init_db(engine)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine):
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


@pytest.fixture
async def db(session_factory):
    async with session_factory() as session:
        yield session


@pytest.fixture
async def client(session_factory):
    async def override_db():
        async with session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    async def override_user() -> str:
        return USER_ID

    app.dependency_overrides[get_db] = override_db
    app.dependency_overrides[get_current_user_id] = override_user
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac
    app.dependency_overrides.clear()
