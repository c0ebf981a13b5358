"""
Strava Webhook Handler.

GET  - subscription validation handshake (echo hub.challenge)
POST - activity events; processing runs in a background task so Strava gets
       its 200 within the two-second window it allows.
"""
from __future__ import annotations

import hmac
import json
from typing import Any, Optional

from fastapi import APIRouter, BackgroundTasks, HTTPException, Query, Request
from pydantic import BaseModel, ValidationError

from activity_webhook.core.config import settings
from activity_webhook.core.logging import get_correlation_id, get_logger
from activity_webhook.domain.services.activity_processor import process_activity_in_background

logger = get_logger(__name__)

router = APIRouter()

_IGNORED_ASPECTS = {"delete"}


class WebhookEvent(BaseModel):
    """Strava push event"""

    aspect_type: str
    event_time: int
    object_id: int
    object_type: str
    owner_id: int
    subscription_id: int
    updates: Optional[dict[str, Any]] = None


@router.get(
    "/webhook",
    summary="Strava Webhook Validation",
    description="Subscription handshake - echoes hub.challenge for hub.mode=subscribe when the verify token matches.",
    tags=["Webhooks"],
)
async def verify_subscription(
    hub_mode: Optional[str] = Query(None, alias="hub.mode"),
    hub_challenge: Optional[str] = Query(None, alias="hub.challenge"),
    hub_verify_token: Optional[str] = Query(None, alias="hub.verify_token"),
) -> dict[str, str]:
    if not hub_challenge:
        raise HTTPException(status_code=400, detail="Missing hub.challenge")

    if hub_mode != "subscribe":
        logger.warning("Unexpected hub.mode in handshake", extra_data={"hub_mode": hub_mode})
        raise HTTPException(status_code=400, detail="hub.mode must be subscribe")

    expected = settings.STRAVA_VERIFY_TOKEN
    if expected and not hmac.compare_digest(hub_verify_token or "", expected):
        logger.warning(
            "Strava webhook validation failed",
            extra_data={"hub_mode": hub_mode},
        )
        raise HTTPException(status_code=403, detail="Verification failed")

    logger.info("Strava webhook validated", extra_data={"hub_mode": hub_mode})
    return {"hub.challenge": hub_challenge}


def _parse_event(body: bytes) -> WebhookEvent | None:
    """Parse the raw body; None when it is not a valid event."""
    try:
        payload = json.loads(body)
    except (ValueError, UnicodeDecodeError):
        logger.warning("Webhook body is not valid JSON")
        return None

    try:
        return WebhookEvent.model_validate(payload)
    except ValidationError as e:
        logger.warning(
            "Webhook body is not a Strava event",
            extra_data={"errors": e.errors(include_url=False)},
        )
        return None


@router.post(
    "/webhook",
    summary="Strava Webhook",
    description="Receives Strava push events and schedules activity processing.",
    responses={200: {"description": "Event acknowledged"}},
    tags=["Webhooks"],
)
async def receive_event(
    request: Request,
    background_tasks: BackgroundTasks,
) -> dict[str, Any]:
    """
    Always acknowledged with 200 - Strava retries anything else, and a bad
    event will not become valid on retry.
    """
    event = _parse_event(await request.body())
    if event is None:
        return {"status": "ok", "scheduled": False}

    logger.info(
        "Strava event received",
        extra_data={
            "object_type": event.object_type,
            "aspect_type": event.aspect_type,
            "object_id": event.object_id,
            "owner_id": event.owner_id,
        },
    )

    if event.object_type != "activity" or event.aspect_type in _IGNORED_ASPECTS:
        return {"status": "ok", "scheduled": False}

    background_tasks.add_task(
        process_activity_in_background,
        event.object_id,
        get_correlation_id(),
    )
    return {"status": "ok", "scheduled": True, "activity_id": event.object_id}
