"""
Activity Processor - handles one activity notified by the webhook.

Flow:
1. skip if the activity is already in the ledger
2. fetch the activity from Strava
3. evaluate the rules (type, weekday, location, geofence)
4. rename + hide the activity on Strava
5. record it in the ledger

Only successfully updated activities are recorded. A skipped activity can be
evaluated again on a later event; a failed update is retried the same way.
"""
from dataclasses import dataclass, asdict
from enum import Enum
from typing import Any, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from activity_webhook.core.config import settings
from activity_webhook.core.exceptions import DuplicateActivityError
from activity_webhook.core.logging import get_logger, log_async_operation, set_correlation_id
from activity_webhook.db.database import AsyncSessionLocal
from activity_webhook.domain.services.activity_rules import ActivityRules, SkipReason
from activity_webhook.domain.services.ledger_service import LedgerService
from activity_webhook.domain.services.strava_client import StravaClient, get_strava_client

logger = get_logger(__name__)


class ProcessingOutcome(str, Enum):
    ALREADY_PROCESSED = "already_processed"
    SKIPPED = "skipped"
    UPDATED = "updated"


@dataclass
class ProcessingResult:
    """What happened to an activity"""
    activity_id: int
    outcome: ProcessingOutcome
    reason: Optional[SkipReason] = None

    def to_dict(self) -> dict[str, Any]:
        data = asdict(self)
        data["outcome"] = self.outcome.value
        data["reason"] = self.reason.value if self.reason else None
        return data


class ActivityProcessor:
    """Runs the ledger check, rules and update for a single activity"""

    def __init__(
        self,
        db: AsyncSession,
        client: StravaClient,
        rules: ActivityRules | None = None,
        new_name: str | None = None,
    ):
        self.ledger = LedgerService(db)
        self.client = client
        self.rules = rules or ActivityRules.from_settings()
        self.new_name = new_name or settings.RENAMED_ACTIVITY_NAME

    @log_async_operation("process_activity")
    async def process(self, activity_id: int) -> ProcessingResult:
        if await self.ledger.is_processed(activity_id):
            logger.info(
                "Activity already processed, skipping",
                extra_data={"activity_id": activity_id},
            )
            return ProcessingResult(activity_id, ProcessingOutcome.ALREADY_PROCESSED)

        activity = await self.client.get_activity(activity_id)

        decision = self.rules.evaluate(activity)
        if not decision.qualifies:
            logger.info(
                "Activity does not qualify, skipping",
                extra_data={
                    "activity_id": activity_id,
                    "reason": decision.reason.value if decision.reason else None,
                    "activity_type": activity.activity_type,
                },
            )
            return ProcessingResult(activity_id, ProcessingOutcome.SKIPPED, decision.reason)

        # StravaError propagates - nothing is recorded so the next event retries
        await self.client.update_activity(activity_id, name=self.new_name, private=True)

        try:
            await self.ledger.record(activity_id)
        except DuplicateActivityError:
            # a concurrent delivery of the same event finished first
            return ProcessingResult(activity_id, ProcessingOutcome.ALREADY_PROCESSED)

        return ProcessingResult(activity_id, ProcessingOutcome.UPDATED)


async def process_activity_in_background(
    activity_id: int,
    correlation_id: str | None = None,
) -> None:
    """
    Background-task entry point for the webhook.

    Opens its own session (the request session is closed by now) and logs
    failures instead of raising, since there is no caller left to handle them.
    """
    set_correlation_id(correlation_id)

    try:
        async with AsyncSessionLocal() as session:
            processor = ActivityProcessor(session, get_strava_client())
            result = await processor.process(activity_id)
        logger.info(
            "Background processing finished",
            extra_data=result.to_dict(),
        )
    except Exception as e:
        logger.error(
            f"Error processing activity {activity_id}",
            extra_data={"activity_id": activity_id, "error": str(e)},
            exc_info=True,
        )
