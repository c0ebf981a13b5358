"""
Tests for the liveness and readiness endpoints
"""
import pytest
from unittest.mock import AsyncMock, MagicMock, patch

import httpx

from activity_webhook.core.circuit_breaker import get_strava_circuit_breaker
from activity_webhook.domain.services import health_service


class TestLivenessProbe:

    @pytest.mark.unit
    async def test_liveness_returns_healthy(self, test_client: httpx.AsyncClient) -> None:
        response = await test_client.get("/health")
        assert response.status_code == 200
        assert response.json() == {"status": "healthy"}


class TestReadinessProbe:

    @pytest.mark.unit
    async def test_readiness_all_healthy(self, test_client: httpx.AsyncClient) -> None:
        with patch(
            "activity_webhook.domain.services.health_service._check_db",
            new_callable=AsyncMock,
            return_value="ok",
        ):
            response = await test_client.get("/health/ready")

        assert response.status_code == 200
        assert response.json() == {"status": "healthy", "db": "ok", "strava": "ok"}

    @pytest.mark.unit
    async def test_readiness_db_down(self, test_client: httpx.AsyncClient) -> None:
        with patch(
            "activity_webhook.domain.services.health_service._check_db",
            new_callable=AsyncMock,
            return_value="error: db_unavailable",
        ):
            response = await test_client.get("/health/ready")

        assert response.status_code == 503
        data = response.json()
        assert data["status"] == "degraded"
        assert data["db"] == "error: db_unavailable"
        assert data["strava"] == "ok"

    @pytest.mark.unit
    async def test_readiness_strava_circuit_open(self, test_client: httpx.AsyncClient) -> None:
        breaker = get_strava_circuit_breaker()
        for _ in range(breaker.config.failure_threshold):
            await breaker.record_failure()

        with patch(
            "activity_webhook.domain.services.health_service._check_db",
            new_callable=AsyncMock,
            return_value="ok",
        ):
            response = await test_client.get("/health/ready")

        assert response.status_code == 503
        assert response.json()["strava"] == "error: strava_circuit_open"


class TestCheckDb:

    @pytest.mark.unit
    async def test_ok(self, async_engine) -> None:
        from sqlalchemy.ext.asyncio import async_sessionmaker

        with patch.object(health_service, "AsyncSessionLocal", async_sessionmaker(async_engine)):
            assert await health_service._check_db() == "ok"

    @pytest.mark.unit
    async def test_failure_is_generic(self) -> None:
        session = MagicMock()
        session.__aenter__ = AsyncMock(side_effect=RuntimeError("disk I/O error at /var/lib/x"))
        session.__aexit__ = AsyncMock(return_value=None)

        with patch.object(health_service, "AsyncSessionLocal", MagicMock(return_value=session)):
            result = await health_service._check_db()

        assert result == "error: db_unavailable"
