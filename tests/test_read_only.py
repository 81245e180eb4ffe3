"""
The read-only gate: statement constructs, raw driver SQL through the reader's
engine, and the keyword classifier behind it. Every blocked attempt must
leave storage untouched.
"""

import pytest
from sqlalchemy import delete, insert, text, update

from umami_models import ReadOnlyViolation
from umami_models.core.database import classify_statement, target_table


async def assert_storage_untouched(reader) -> None:
    assert await reader.websites.count() == 3
    website = await reader.websites.get("7")
    assert website.name == "Blog"


@pytest.mark.asyncio
class TestStatementConstructs:
    async def test_insert_is_rejected(self, reader):
        stmt = insert(reader.websites.table).values(website_id="10", name="Injected")
        with pytest.raises(ReadOnlyViolation) as exc_info:
            await reader.database.execute(stmt)
        assert exc_info.value.operation == "create"
        assert exc_info.value.entity == "Website"
        await assert_storage_untouched(reader)

    async def test_update_is_rejected(self, reader):
        table = reader.websites.table
        stmt = update(table).where(table.c.website_id == "7").values(name="Renamed")
        with pytest.raises(ReadOnlyViolation) as exc_info:
            await reader.database.execute(stmt)
        assert exc_info.value.operation == "update"
        await assert_storage_untouched(reader)

    async def test_delete_is_rejected(self, reader):
        with pytest.raises(ReadOnlyViolation) as exc_info:
            await reader.database.execute(delete(reader.websites.table))
        assert exc_info.value.operation == "delete"
        assert "read-only" in str(exc_info.value)
        await assert_storage_untouched(reader)


@pytest.mark.asyncio
class TestEngineGate:
    @pytest.mark.parametrize(
        "sql, operation",
        [
            ("DELETE FROM website", "delete"),
            ("UPDATE website SET name = 'Renamed' WHERE website_id = '7'", "update"),
            ("INSERT INTO website (website_id, name) VALUES ('10', 'Injected')", "create"),
            ("DROP TABLE website", "drop"),
            ("WITH doomed AS (SELECT website_id FROM website) DELETE FROM website", "delete"),
            ("WITH d AS (DELETE FROM website RETURNING *) SELECT * FROM d", "delete"),
            ("EXPLAIN ANALYZE DELETE FROM website", "delete"),
        ],
    )
    async def test_raw_driver_sql_is_rejected(self, reader, sql, operation):
        async with reader.database.engine.connect() as conn:
            with pytest.raises(ReadOnlyViolation) as exc_info:
                await conn.exec_driver_sql(sql)
        assert exc_info.value.operation == operation
        assert exc_info.value.statement == sql
        await assert_storage_untouched(reader)

    async def test_text_construct_is_rejected(self, reader):
        async with reader.database.engine.connect() as conn:
            with pytest.raises(ReadOnlyViolation) as exc_info:
                await conn.execute(text("UPDATE session SET country = :c"), {"c": "FR"})
        assert exc_info.value.entity == "Session"
        q = reader.sessions.query().by_country("FR")
        assert await reader.sessions.count(q) == 0

    async def test_raw_reads_pass_through(self, reader):
        async with reader.database.engine.connect() as conn:
            result = await conn.exec_driver_sql("SELECT count(*) FROM website")
            assert result.scalar() == 3

    async def test_ping(self, reader):
        assert await reader.ping() is True


class TestClassifier:
    @pytest.mark.parametrize(
        "sql, expected",
        [
            ("SELECT 1", None),
            ("  select * from website", None),
            ("(SELECT 1) UNION (SELECT 2)", None),
            ("WITH a AS (SELECT 1) SELECT * FROM a", None),
            ("PRAGMA table_info(website)", None),
            ("", None),
            ("insert into website values (1)", "create"),
            ("REPLACE INTO website VALUES (1)", "create"),
            ("-- harmless\nDELETE FROM website", "delete"),
            ("/* select */ UPDATE website SET name = 'x'", "update"),
            ("TRUNCATE website", "truncate"),
            ("ALTER TABLE website ADD COLUMN x int", "alter"),
            ("CREATE INDEX ix ON website (name)", "create"),
            ("WITH a AS (SELECT 1) INSERT INTO website SELECT * FROM a", "create"),
            ("WITH d AS (DELETE FROM website RETURNING *) SELECT * FROM d", "delete"),
            ("WITH u AS (UPDATE website SET name = 'x' RETURNING *) SELECT count(*) FROM u", "update"),
            ("WITH a AS (SELECT updated_at, deleted_at FROM website) SELECT * FROM a", None),
            ("WITH a AS (SELECT 'delete me' AS note) SELECT * FROM a", None),
            ("EXPLAIN ANALYZE DELETE FROM website", "delete"),
            ("EXPLAIN (ANALYZE, BUFFERS) UPDATE website SET name = 'x'", "update"),
            ("EXPLAIN SELECT * FROM website", None),
            ("EXPLAIN QUERY PLAN SELECT * FROM website", None),
        ],
    )
    def test_classify_statement(self, sql, expected):
        assert classify_statement(sql) == expected

    @pytest.mark.parametrize(
        "sql, expected",
        [
            ('INSERT INTO "umami_website" (name) VALUES (?)', "umami_website"),
            ("UPDATE public.website SET name = ?", "website"),
            ("DELETE FROM session WHERE session_id = ?", "session"),
            ("DROP TABLE IF EXISTS report", "report"),
            ("VACUUM", None),
        ],
    )
    def test_target_table(self, sql, expected):
        assert target_table(sql) == expected
