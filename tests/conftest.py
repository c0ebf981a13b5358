"""
Pytest Configuration and Fixtures

Provides fixtures for:
- Database sessions (async, in-memory SQLite with the real DDL)
- HTTP test client with the database dependency overridden
- Mock Strava client and activity payload factory
"""
# Settings are read at import time, so the environment goes first
import os
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("STRAVA_ACCESS_TOKEN", "test-access-token")
os.environ.setdefault("STRAVA_VERIFY_TOKEN", "test-verify-token")
os.environ.setdefault("ADMIN_API_KEY", "test-admin-key")
os.environ.setdefault("WEBHOOK_RATE_LIMIT_MAX_REQUESTS", "10000")

import pytest
from typing import AsyncGenerator
from unittest.mock import AsyncMock

from sqlalchemy.ext.asyncio import create_async_engine, AsyncSession, async_sessionmaker
from sqlalchemy.pool import StaticPool

from activity_webhook.core.circuit_breaker import CircuitBreaker
from activity_webhook.db.database import get_db
from activity_webhook.db.migrations import ensure_schema
from activity_webhook.domain.services.strava_client import Activity, StravaClient
from activity_webhook.main import app


# Test database URL (SQLite in memory for fast tests)
TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"

ADMIN_HEADERS = {"X-Admin-API-Key": "test-admin-key"}


@pytest.fixture(scope="function")
async def async_engine():
    """Create async test database engine with the ledger table"""
    engine = create_async_engine(
        TEST_DATABASE_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
        echo=False
    )

    async with engine.begin() as conn:
        await ensure_schema(conn)

    yield engine

    await engine.dispose()


@pytest.fixture(scope="function")
async def db_session(async_engine) -> AsyncGenerator[AsyncSession, None]:
    """Create async database session for tests"""
    async_session_maker = async_sessionmaker(
        async_engine,
        class_=AsyncSession,
        expire_on_commit=False
    )

    async with async_session_maker() as session:
        yield session
        await session.rollback()


@pytest.fixture(scope="function")
async def test_client(db_session: AsyncSession):
    """Create test client with database override"""
    from httpx import AsyncClient, ASGITransport

    async def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client

    app.dependency_overrides.clear()


@pytest.fixture
def admin_headers() -> dict[str, str]:
    return dict(ADMIN_HEADERS)


@pytest.fixture(autouse=True)
def reset_circuit_breakers():
    """Breakers are process-wide singletons"""
    CircuitBreaker.reset_all()
    yield
    CircuitBreaker.reset_all()


# ============================================================================
# Strava fixtures
# ============================================================================

def make_activity_payload(
    activity_id: int = 12345,
    activity_type: str = "Walk",
    start_date_local: str = "2024-01-10T08:30:00Z",  # Wednesday
    start_latlng: list[float] | None = None,
    name: str = "Morning Walk",
) -> dict:
    """Activity JSON in the shape returned by GET /activities/{id}"""
    return {
        "id": activity_id,
        "name": name,
        "type": activity_type,
        "start_date_local": start_date_local,
        "start_latlng": [40.7, -73.9] if start_latlng is None else start_latlng,
    }


@pytest.fixture
def activity_payload_factory():
    return make_activity_payload


@pytest.fixture
def activity_factory():
    """Factory for Activity models"""
    def _create(**kwargs) -> Activity:
        return Activity.model_validate(make_activity_payload(**kwargs))
    return _create


@pytest.fixture
def mock_strava_client(activity_factory) -> AsyncMock:
    """StravaClient double returning a qualifying walk"""
    client = AsyncMock(spec=StravaClient)
    client.get_activity.side_effect = lambda activity_id: activity_factory(activity_id=activity_id)
    client.update_activity.return_value = None
    return client
