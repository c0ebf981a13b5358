"""
Schema migrations - single source of truth for the database schema.

Used by application startup (main.py) and by scripts/init_db.py.
Every statement is idempotent (safe to run any number of times).
"""
from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncConnection

from activity_webhook.core.logging import get_logger

logger = get_logger(__name__)

PROCESSED_ACTIVITIES_DDL = """
CREATE TABLE IF NOT EXISTS processed_activities (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    activity_id INTEGER UNIQUE NOT NULL,
    processed_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
);
"""


async def ensure_schema(conn: AsyncConnection) -> None:
    """Create the processed_activities ledger if it does not exist yet."""
    await conn.execute(text(PROCESSED_ACTIVITIES_DDL))
    logger.info(
        "Schema ensured",
        extra_data={"table": "processed_activities"},
    )
