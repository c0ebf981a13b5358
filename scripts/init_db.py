#!/usr/bin/env python3
"""
Database Schema Initializer

Creates the processed_activities ledger in the database pointed to by
DATABASE_URL (or --database-url). Safe to run repeatedly.

    python scripts/init_db.py
    python scripts/init_db.py --database-url sqlite:///./processed_activities.db
"""
import argparse
import asyncio
import sys

from sqlalchemy.ext.asyncio import create_async_engine

from activity_webhook.core.config import normalize_database_url, settings
from activity_webhook.core.logging import get_logger, setup_logging
from activity_webhook.db.migrations import ensure_schema

logger = get_logger("init-db")


async def init_db(database_url: str) -> None:
    engine = create_async_engine(database_url)
    try:
        async with engine.begin() as conn:
            await ensure_schema(conn)
    finally:
        await engine.dispose()


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Create the processed_activities table")
    parser.add_argument("--database-url", default=None, help="overrides DATABASE_URL")
    parser.add_argument("--log-level", default="INFO")
    args = parser.parse_args(argv)

    setup_logging(level=args.log_level, json_format=False)

    database_url = settings.DATABASE_URL
    if args.database_url:
        database_url = normalize_database_url(args.database_url)

    try:
        asyncio.run(init_db(database_url))
    except Exception:
        logger.exception("Schema initialization failed")
        return 1

    logger.info("Schema initialization completed", extra_data={"database_url": database_url})
    return 0


if __name__ == "__main__":
    sys.exit(main())
