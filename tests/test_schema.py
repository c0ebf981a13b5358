"""
Tests for the processed_activities table definition
"""
import pytest
from sqlalchemy import text
from sqlalchemy.exc import IntegrityError

from activity_webhook.db.migrations import PROCESSED_ACTIVITIES_DDL, ensure_schema
from activity_webhook.db.models import ProcessedActivity


async def _insert(engine, activity_id: int) -> int:
    async with engine.begin() as conn:
        result = await conn.execute(
            text("INSERT INTO processed_activities (activity_id) VALUES (:activity_id)"),
            {"activity_id": activity_id},
        )
        return result.lastrowid


class TestEnsureSchema:

    @pytest.mark.unit
    async def test_create_is_idempotent(self, async_engine):
        """Running the DDL again on an existing table is a no-op"""
        await _insert(async_engine, 12345)

        async with async_engine.begin() as conn:
            await ensure_schema(conn)
            await ensure_schema(conn)

        async with async_engine.connect() as conn:
            count = (await conn.execute(text("SELECT COUNT(*) FROM processed_activities"))).scalar_one()
        assert count == 1

    @pytest.mark.unit
    async def test_columns(self, async_engine):
        async with async_engine.connect() as conn:
            rows = (await conn.execute(text("PRAGMA table_info(processed_activities)"))).all()

        # cid, name, type, notnull, dflt_value, pk
        columns = {row[1]: row for row in rows}
        assert list(columns) == ["id", "activity_id", "processed_at"]

        assert columns["id"][2] == "INTEGER"
        assert columns["id"][5] == 1

        assert columns["activity_id"][2] == "INTEGER"
        assert columns["activity_id"][3] == 1

        assert columns["processed_at"][2] == "TIMESTAMP"
        assert columns["processed_at"][4] == "CURRENT_TIMESTAMP"

    @pytest.mark.unit
    async def test_activity_id_is_unique(self, async_engine):
        async with async_engine.connect() as conn:
            indexes = (await conn.execute(text("PRAGMA index_list(processed_activities)"))).all()
            unique_columns = []
            for index in indexes:
                # seq, name, unique, origin, partial
                if index[2]:
                    info = (await conn.execute(text(f"PRAGMA index_info('{index[1]}')"))).all()
                    unique_columns.extend(row[2] for row in info)

        assert unique_columns == ["activity_id"]

    @pytest.mark.unit
    def test_ddl_uses_autoincrement(self):
        assert "AUTOINCREMENT" in PROCESSED_ACTIVITIES_DDL
        assert "IF NOT EXISTS" in PROCESSED_ACTIVITIES_DDL


class TestInsertSemantics:

    @pytest.mark.unit
    async def test_ids_and_duplicate_rejection(self, async_engine):
        """12345 -> id 1, second 12345 rejected, 67890 -> id 2"""
        assert await _insert(async_engine, 12345) == 1

        with pytest.raises(IntegrityError):
            await _insert(async_engine, 12345)

        assert await _insert(async_engine, 67890) == 2

        async with async_engine.connect() as conn:
            rows = (await conn.execute(
                text("SELECT id, activity_id, processed_at FROM processed_activities ORDER BY id")
            )).all()

        assert [(r[0], r[1]) for r in rows] == [(1, 12345), (2, 67890)]
        assert all(r[2] is not None for r in rows)

    @pytest.mark.unit
    async def test_activity_id_not_null(self, async_engine):
        with pytest.raises(IntegrityError):
            async with async_engine.begin() as conn:
                await conn.execute(
                    text("INSERT INTO processed_activities (processed_at) VALUES (CURRENT_TIMESTAMP)")
                )

    @pytest.mark.unit
    async def test_explicit_processed_at_is_kept(self, async_engine):
        async with async_engine.begin() as conn:
            await conn.execute(
                text(
                    "INSERT INTO processed_activities (activity_id, processed_at) "
                    "VALUES (1, '2024-01-10 08:30:00')"
                )
            )
            value = (await conn.execute(
                text("SELECT processed_at FROM processed_activities WHERE activity_id = 1")
            )).scalar_one()

        assert value == "2024-01-10 08:30:00"


class TestModelMapping:

    @pytest.mark.unit
    def test_model_matches_table(self):
        table = ProcessedActivity.__table__
        assert table.name == "processed_activities"
        assert table.c.id.primary_key
        assert table.c.activity_id.unique
        assert not table.c.activity_id.nullable
        assert table.c.processed_at.server_default is not None
