"""
Activity Webhook - Main FastAPI Application
"""
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from activity_webhook import __version__
from activity_webhook.core.config import settings
from activity_webhook.core.logging import setup_logging, get_logger
from activity_webhook.core.middleware import setup_middleware, setup_exception_handlers
from activity_webhook.api.routes import router as api_router
from activity_webhook.api.webhooks.strava import router as strava_router
from activity_webhook.db.database import engine
from activity_webhook.db.migrations import ensure_schema

# Setup logging before anything else
setup_logging(
    level="DEBUG" if settings.DEBUG else "INFO",
    json_format=not settings.DEBUG,
    app_name=settings.APP_NAME
)

logger = get_logger(__name__)


def _parse_allowed_origins(raw: str) -> list[str]:
    """Parse comma-separated CORS origins string into a clean list."""
    return [origin.strip() for origin in raw.split(",") if origin.strip()]


_OPENAPI_TAGS = [
    {"name": "Webhooks", "description": "Strava subscription handshake and push events."},
    {"name": "Activities", "description": "Processed-activity ledger (admin API key required)."},
    {"name": "Health", "description": "Liveness and readiness probes."},
]


app = FastAPI(
    title=settings.APP_NAME,
    version=__version__,
    description=(
        "Receives Strava activity webhooks, renames and hides qualifying walks, "
        "and keeps a ledger of processed activities so redeliveries are skipped."
    ),
    openapi_tags=_OPENAPI_TAGS,
)

# Setup middleware (correlation ID, request logging)
setup_middleware(app)
setup_exception_handlers(app)

allowed_origins = _parse_allowed_origins(settings.ALLOWED_ORIGINS)
if allowed_origins:
    app.add_middleware(
        CORSMiddleware,
        allow_origins=allowed_origins,
        allow_credentials=True,
        allow_methods=["GET", "POST", "OPTIONS"],
        allow_headers=["Content-Type", "X-Admin-API-Key", "X-Correlation-ID"],
    )

# Strava is registered against /webhook at the root
app.include_router(strava_router, tags=["Webhooks"])
app.include_router(api_router, prefix="/api")


@app.on_event("startup")
async def startup() -> None:
    """Create the ledger table on startup"""
    logger.info("Starting application", extra_data={"app_name": settings.APP_NAME})
    async with engine.begin() as conn:
        await ensure_schema(conn)
    logger.info("Database schema initialized")


@app.on_event("shutdown")
async def shutdown() -> None:
    """Cleanup on shutdown"""
    logger.info("Shutting down application")
    await engine.dispose()
    logger.info("Database connections disposed")


@app.get(
    "/health",
    summary="Liveness probe",
    description="The process is up and answering. Does not check dependencies.",
    tags=["Health"],
)
async def health_check() -> dict[str, str]:
    return {"status": "healthy"}


@app.get(
    "/health/ready",
    summary="Readiness probe",
    description="Checks the database and the Strava circuit breaker.",
    responses={
        200: {
            "description": "All dependencies are available",
            "content": {"application/json": {"example": {"status": "healthy", "db": "ok", "strava": "ok"}}},
        },
        503: {
            "description": "At least one dependency is unavailable",
            "content": {
                "application/json": {
                    "example": {"status": "degraded", "db": "ok", "strava": "error: strava_circuit_open"}
                }
            },
        },
    },
    tags=["Health"],
)
async def readiness_check() -> JSONResponse:
    from activity_webhook.domain.services.health_service import check_readiness

    result = await check_readiness()
    status_code = 200 if result["status"] == "healthy" else 503
    return JSONResponse(content=result, status_code=status_code)


def run() -> None:
    """Console entry point - serve the app with uvicorn"""
    import uvicorn

    uvicorn.run(
        "activity_webhook.main:app",
        host=settings.HOST,
        port=settings.PORT,
        log_config=None,
    )


if __name__ == "__main__":
    run()
