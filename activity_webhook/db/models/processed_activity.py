"""
Processed Activity Model - ledger of activity IDs that were already handled.

Strava redelivers webhook events and also fires an "update" event for every
change we make to an activity. A row here means the activity was processed
successfully and any further event for it is skipped.
"""
from sqlalchemy import BigInteger, Column, DateTime, Integer, func

from activity_webhook.db.database import Base


class ProcessedActivity(Base):
    """Append-only ledger row - one per processed activity_id"""

    __tablename__ = "processed_activities"

    id = Column(Integer, primary_key=True, autoincrement=True)
    activity_id = Column(BigInteger, unique=True, nullable=False)
    processed_at = Column(DateTime, server_default=func.current_timestamp())

    __table_args__ = (
        {"sqlite_autoincrement": True},
    )

    def __repr__(self) -> str:
        return f"<ProcessedActivity id={self.id} activity_id={self.activity_id}>"
