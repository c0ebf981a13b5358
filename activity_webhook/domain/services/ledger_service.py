"""
Ledger Service - read and append processed activity IDs
"""
from datetime import datetime
from typing import Optional

from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from activity_webhook.core.exceptions import DuplicateActivityError
from activity_webhook.core.logging import get_logger
from activity_webhook.db.models.processed_activity import ProcessedActivity

logger = get_logger(__name__)


class LedgerService:
    """Service for the processed_activities ledger"""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def get(self, activity_id: int) -> Optional[ProcessedActivity]:
        result = await self.db.execute(
            select(ProcessedActivity).where(ProcessedActivity.activity_id == activity_id)
        )
        return result.scalar_one_or_none()

    async def is_processed(self, activity_id: int) -> bool:
        result = await self.db.execute(
            select(ProcessedActivity.id).where(ProcessedActivity.activity_id == activity_id)
        )
        return result.scalar_one_or_none() is not None

    async def record(
        self,
        activity_id: int,
        processed_at: Optional[datetime] = None
    ) -> ProcessedActivity:
        """
        Append an activity to the ledger.

        id and processed_at are filled by the database unless processed_at is
        given. Raises DuplicateActivityError when the activity_id is already
        present (including when a concurrent insert won the race).
        """
        entry = ProcessedActivity(activity_id=activity_id)
        if processed_at is not None:
            entry.processed_at = processed_at

        self.db.add(entry)
        try:
            await self.db.commit()
        except IntegrityError:
            await self.db.rollback()
            logger.info(
                "Duplicate activity rejected by ledger",
                extra_data={"activity_id": activity_id},
            )
            raise DuplicateActivityError(activity_id)

        # load server-side defaults (id, processed_at)
        await self.db.refresh(entry)

        logger.info(
            "Activity recorded in ledger",
            extra_data={"activity_id": activity_id, "ledger_id": entry.id},
        )
        return entry

    async def list_recent(self, limit: int = 50, offset: int = 0) -> list[ProcessedActivity]:
        """Newest first"""
        result = await self.db.execute(
            select(ProcessedActivity)
            .order_by(ProcessedActivity.id.desc())
            .limit(limit)
            .offset(offset)
        )
        return list(result.scalars().all())

    async def count(self) -> int:
        result = await self.db.execute(select(func.count(ProcessedActivity.id)))
        return result.scalar_one()
