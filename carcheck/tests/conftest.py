"""
Pytest configuration and shared fixtures for the carcheck test suite.

This module provides:
- Database fixtures (in-memory SQLite for fast tests)
- A controllable clock for expiry tests
- User / car factories
- FastAPI async client with dependency overrides
- Mock LLMs for the AI gateway
"""

import os

# Must be set before carcheck modules read them at import time
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("JWT_SECRET", "testsecret")
os.environ.setdefault("JWT_ALGORITHM", "HS256")
os.environ.setdefault("JWT_EXP_DELTA_SECONDS", "3600")
os.environ.setdefault("BCRYPT_ROUNDS", "4")
os.environ.setdefault("PUBLIC_BASE_URL", "https://carcheck.test")

from datetime import datetime, timezone
from typing import AsyncGenerator

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

import carcheck.models  # noqa: F401  registers every table on Base.metadata
from carcheck.auth.passwords_handler import hash_password_async
from carcheck.core.clock import get_clock
from carcheck.core.db import Base, get_db
from carcheck.main import app
from carcheck.middleware.rate_limit import limiter
from carcheck.models.user import User
from carcheck.routers.ai import get_llm_factory
from carcheck.services.car_service import CarService
from carcheck.tests.helpers import FakeClock, FakeLLMFactory

TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"


@pytest.fixture
async def async_engine():
    """Create async engine for testing with in-memory SQLite."""
    engine = create_async_engine(
        TEST_DATABASE_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
        echo=False
    )

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)

    await engine.dispose()


@pytest.fixture
async def async_db_session(async_engine) -> AsyncGenerator[AsyncSession, None]:
    """Create async database session for testing."""
    async_session = async_sessionmaker(async_engine, class_=AsyncSession, expire_on_commit=False)

    async with async_session() as session:
        yield session


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock(datetime(2025, 3, 1, 12, 0, tzinfo=timezone.utc))


@pytest.fixture
def fake_llms():
    return FakeLLMFactory()


@pytest.fixture
async def async_client(async_db_session, clock, fake_llms) -> AsyncGenerator[AsyncClient, None]:
    """Async HTTP client over the real app with DB, clock and LLM overridden."""

    async def override_get_db():
        yield async_db_session

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_clock] = lambda: clock
    app.dependency_overrides[get_llm_factory] = lambda: fake_llms
    limiter.reset()

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        yield client

    app.dependency_overrides.clear()


# Test Data Factories
@pytest.fixture
def make_user(async_db_session):
    async def _make_user(email: str, fullname: str = "Test User", password: str = "testpass123") -> User:
        user = User(
            fullname=fullname,
            email=email,
            password=await hash_password_async(password),
        )
        async_db_session.add(user)
        await async_db_session.commit()
        await async_db_session.refresh(user)
        return user

    return _make_user


@pytest.fixture
async def owner(make_user) -> User:
    return await make_user("owner@example.com", fullname="Olivia Owner")


@pytest.fixture
async def other_user(make_user) -> User:
    return await make_user("someone@example.com", fullname="Sam Someone")


@pytest.fixture
async def car(async_db_session, owner):
    return await CarService(async_db_session).create_car(
        owner, registration_number="ABC-123", make="Volvo", model="V70", year=2012
    )
