"""
ContactBook Backend - Test Configuration (conftest.py)
=======================================================

What:  Shared pytest fixtures for the entire test suite.
Why:   Provides reusable test infrastructure (real in-memory DB, mocked
       session, API client, auth helpers).
How:   pytest auto-discovers conftest.py and makes fixtures available to all tests.

Fixture Hierarchy (all function-scoped, created fresh for each test):
    ├── db_engine: in-memory SQLite (aiosqlite + StaticPool), schema created
    ├── session_factory / db_session: sessions bound to db_engine
    ├── mock_db_session: AsyncMock session for failure injection
    ├── rate_limit_store: generous in-memory store (tests don't trip it)
    ├── app: FastAPI app whose get_db_session uses db_engine
    ├── test_client: HTTPX AsyncClient over ASGITransport
    └── register_user: registers an account, returns (token, user, headers)
"""

import os
from typing import AsyncGenerator, Awaitable, Callable, Dict, Tuple
from unittest.mock import AsyncMock, MagicMock

# Override settings for testing BEFORE any app imports
os.environ["DATABASE_URL"] = "sqlite+aiosqlite:///:memory:"
os.environ["ENVIRONMENT"] = "test"
os.environ["JWT_SECRET"] = "test-signing-value-at-least-32-bytes-long"
os.environ["BCRYPT_ROUNDS"] = "4"  # Fastest cost factor bcrypt accepts
os.environ["LOG_LEVEL"] = "WARNING"

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy import event
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

import contactbook.models  # noqa: F401
from contactbook.database import Base, get_db_session
from contactbook.main import create_app
from contactbook.middleware.rate_limit import InMemoryFixedWindowStore


def _enable_sqlite_foreign_keys(dbapi_connection, connection_record):
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


# ══════════════════════════════════════════════════════════════════════════
# Database Fixtures
# ══════════════════════════════════════════════════════════════════════════

@pytest_asyncio.fixture
async def db_engine():
    """
    A private in-memory database per test.

    StaticPool keeps the single connection alive; without it every checkout
    would open a new, empty :memory: database.
    """
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    event.listen(engine.sync_engine, "connect", _enable_sqlite_foreign_keys)

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    await engine.dispose()


@pytest.fixture
def session_factory(db_engine):
    return async_sessionmaker(db_engine, class_=AsyncSession, expire_on_commit=False)


@pytest_asyncio.fixture
async def db_session(session_factory) -> AsyncGenerator[AsyncSession, None]:
    async with session_factory() as session:
        yield session


@pytest.fixture
def mock_db_session():
    """
    Provides a mock async database session.

    Usage:
        mock_db_session.execute.side_effect = OperationalError("SELECT", {}, Exception())
        with pytest.raises(DatabaseError):
            await auth_service.get_user_by_id(mock_db_session, "some-id")
    """
    session = AsyncMock()
    session.execute = AsyncMock()
    session.flush = AsyncMock()
    session.commit = AsyncMock()
    session.rollback = AsyncMock()
    session.close = AsyncMock()
    session.delete = AsyncMock()
    session.add = MagicMock()
    return session


# ══════════════════════════════════════════════════════════════════════════
# Application Fixtures
# ══════════════════════════════════════════════════════════════════════════

@pytest.fixture
def rate_limit_store():
    return InMemoryFixedWindowStore(limit=10_000, window=60)


@pytest.fixture
def app(session_factory, rate_limit_store):
    """FastAPI app wired to the per-test database."""
    application = create_app(rate_limit_store=rate_limit_store)

    async def override_get_db_session() -> AsyncGenerator[AsyncSession, None]:
        async with session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    application.dependency_overrides[get_db_session] = override_get_db_session
    return application


@pytest_asyncio.fixture
async def test_client(app):
    """
    Provides an async HTTP test client for endpoint testing.

    raise_app_exceptions=False lets tests observe the 500 response produced
    by the catch-all handler instead of the re-raised exception.

    Usage:
        async def test_health(test_client):
            response = await test_client.get("/health")
            assert response.status_code == 200
    """
    transport = ASGITransport(app=app, raise_app_exceptions=False)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client


API = "/api/v1"

RegisterFn = Callable[..., Awaitable[Tuple[str, Dict, Dict[str, str]]]]


@pytest.fixture
def register_user(test_client) -> RegisterFn:
    """
    Registers an account through the API.

    Usage:
        token, user, headers = await register_user("alice@example.com")
        await test_client.get(f"{API}/contacts", headers=headers)
    """

    async def _register(
        email: str = "alice@example.com",
        name: str = "Alice",
        password: str = "correct-horse-1",
    ):
        response = await test_client.post(
            f"{API}/auth/register",
            json={"name": name, "email": email, "password": password},
        )
        assert response.status_code == 201, response.text
        body = response.json()
        return body["token"], body["user"], {"Authorization": f"Bearer {body['token']}"}

    return _register


@pytest.fixture
def contact_payload():
    def _payload(n: int = 0, **overrides):
        data = {
            "name": f"Contact {n:02d}",
            "email": f"contact{n:02d}@example.com",
            "phone": f"+1 (555) 010-{n:04d}",
        }
        data.update(overrides)
        return data

    return _payload
