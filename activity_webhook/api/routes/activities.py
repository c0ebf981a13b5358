"""
Admin endpoints for the processed-activity ledger.

- browse the ledger
- look up one activity
- run the processor for an activity on demand
- inspect the Strava circuit breaker
"""
from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel, Field
from sqlalchemy.ext.asyncio import AsyncSession

from activity_webhook.api.dependencies.admin_auth import require_admin_api_key
from activity_webhook.core.circuit_breaker import get_strava_circuit_breaker
from activity_webhook.core.exceptions import ErrorCode, NotFoundException
from activity_webhook.core.logging import get_logger
from activity_webhook.db.database import get_db
from activity_webhook.domain.services.activity_processor import ActivityProcessor
from activity_webhook.domain.services.ledger_service import LedgerService
from activity_webhook.domain.services.strava_client import get_strava_client

logger = get_logger(__name__)

router = APIRouter(dependencies=[Depends(require_admin_api_key)])


class ProcessedActivityResponse(BaseModel):
    """Single ledger row"""
    id: int
    activity_id: int
    processed_at: Optional[datetime]

    class Config:
        from_attributes = True


class ProcessedActivityListResponse(BaseModel):
    total: int
    items: list[ProcessedActivityResponse]


class ProcessingResultResponse(BaseModel):
    activity_id: int
    outcome: str = Field(description="already_processed | skipped | updated")
    reason: Optional[str] = Field(
        default=None,
        description="not_target_type | weekend | no_location | outside_geofence",
    )


class CircuitBreakerStatusResponse(BaseModel):
    service: str
    state: str = Field(description="closed | open | half_open")
    failure_count: int
    success_count: int
    half_open_calls: int
    retry_after_seconds: float


@router.get(
    "/processed",
    response_model=ProcessedActivityListResponse,
    summary="List processed activities",
)
async def list_processed(
    limit: int = Query(50, ge=1, le=500),
    offset: int = Query(0, ge=0),
    db: AsyncSession = Depends(get_db),
) -> ProcessedActivityListResponse:
    ledger = LedgerService(db)
    rows = await ledger.list_recent(limit=limit, offset=offset)
    return ProcessedActivityListResponse(
        total=await ledger.count(),
        items=[ProcessedActivityResponse.model_validate(row) for row in rows],
    )


@router.get(
    "/processed/{activity_id}",
    response_model=ProcessedActivityResponse,
    summary="Get a processed activity",
)
async def get_processed(
    activity_id: int,
    db: AsyncSession = Depends(get_db),
) -> ProcessedActivityResponse:
    row = await LedgerService(db).get(activity_id)
    if row is None:
        raise NotFoundException("Processed activity", activity_id, ErrorCode.ACTIVITY_NOT_FOUND)
    return ProcessedActivityResponse.model_validate(row)


@router.post(
    "/{activity_id}/process",
    response_model=ProcessingResultResponse,
    summary="Process an activity now",
)
async def process_now(
    activity_id: int,
    db: AsyncSession = Depends(get_db),
) -> ProcessingResultResponse:
    """Runs inline; Strava errors surface as the usual error response."""
    logger.info("Manual processing requested", extra_data={"activity_id": activity_id})
    result = await ActivityProcessor(db, get_strava_client()).process(activity_id)
    return ProcessingResultResponse(**result.to_dict())


@router.get(
    "/circuit-breaker",
    response_model=CircuitBreakerStatusResponse,
    summary="Strava circuit breaker state",
)
async def circuit_breaker_status() -> CircuitBreakerStatusResponse:
    return CircuitBreakerStatusResponse(**get_strava_circuit_breaker().snapshot())
