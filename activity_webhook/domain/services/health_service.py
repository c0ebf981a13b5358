"""
Health Service - dependency checks for the readiness probe.

Two levels:
- liveness: the process is up (no dependency checks, lives in main.py)
- readiness: database reachable and the Strava circuit breaker not open
"""
from typing import Any

from sqlalchemy import text

from activity_webhook.core.circuit_breaker import get_strava_circuit_breaker
from activity_webhook.core.logging import get_logger
from activity_webhook.db.database import AsyncSessionLocal

logger = get_logger(__name__)

_STATUS_HEALTHY = "healthy"
_STATUS_DEGRADED = "degraded"

_CHECK_OK = "ok"

# Generic messages - no infrastructure details in responses
_ERROR_DB = "error: db_unavailable"
_ERROR_STRAVA_CIRCUIT_OPEN = "error: strava_circuit_open"


async def _check_db() -> str:
    """Run a trivial query against the database."""
    try:
        async with AsyncSessionLocal() as session:
            await session.execute(text("SELECT 1"))
        return _CHECK_OK
    except Exception as e:
        logger.warning("DB health check failed", extra_data={"error": str(e)})
        return _ERROR_DB


async def _check_strava() -> str:
    """Report the Strava circuit breaker; an open breaker means recent upstream failures."""
    breaker = get_strava_circuit_breaker()
    if breaker.is_open:
        logger.warning(
            "Strava circuit breaker is open",
            extra_data=breaker.snapshot(),
        )
        return _ERROR_STRAVA_CIRCUIT_OPEN
    return _CHECK_OK


async def check_readiness() -> dict[str, Any]:
    """
    Readiness check across all dependencies.

    Returns:
    - status: "healthy" when every check passes, otherwise "degraded"
    - db / strava: "ok" or "error: ..."
    """
    checks = {
        "db": await _check_db(),
        "strava": await _check_strava(),
    }

    all_ok = all(v == _CHECK_OK for v in checks.values())
    overall_status = _STATUS_HEALTHY if all_ok else _STATUS_DEGRADED

    if not all_ok:
        logger.warning("Readiness check degraded", extra_data=checks)

    return {"status": overall_status, **checks}
