"""
Async SQLAlchemy engine with a structural read-only gate.

The engine always connects to the *reading* side of the configured target.
Two checks keep writes away from storage:

  1. Database.execute() refuses Insert/Update/Delete constructs outright.
  2. A before_cursor_execute listener inspects every statement the engine is
     about to hand to the DBAPI cursor, including raw driver SQL issued by
     code that bypasses the repositories, and raises ReadOnlyViolation for
     anything that writes data or changes the schema.

Both run strictly before a statement reaches the driver.
"""

import re
import time
from collections.abc import Iterator, Mapping, Sequence
from contextlib import contextmanager
from contextvars import ContextVar
from dataclasses import dataclass
from typing import Any

from sqlalchemy import Delete, Insert, Update, event, text
from sqlalchemy.engine import Row
from sqlalchemy.exc import ArgumentError, InvalidRequestError, NoSuchModuleError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncEngine, create_async_engine
from sqlalchemy.sql import Executable

from umami_models.core.config import ReaderConfig
from umami_models.core.exceptions import (
    ConfigurationError,
    QueryExecutionError,
    ReadOnlyViolation,
)
from umami_models.core.logging import get_logger

logger = get_logger(__name__)


@dataclass
class QueryStats:
    """Totals for the statements run while a `track_queries()` block is active."""

    queries: int = 0
    failures: int = 0
    rows: int = 0
    duration_ms: float = 0.0


_query_stats: ContextVar[QueryStats | None] = ContextVar("umami_query_stats", default=None)


@contextmanager
def track_queries() -> Iterator[QueryStats]:
    stats = QueryStats()
    token = _query_stats.set(stats)
    try:
        yield stats
    finally:
        _query_stats.reset(token)


# Leading keyword → operation reported by ReadOnlyViolation
WRITE_KEYWORDS = {
    "INSERT": "create",
    "REPLACE": "create",
    "UPSERT": "create",
    "MERGE": "create",
    "UPDATE": "update",
    "DELETE": "delete",
    "TRUNCATE": "truncate",
    "CREATE": "create",
    "ALTER": "alter",
    "DROP": "drop",
    "GRANT": "grant",
    "REVOKE": "revoke",
}

_COMMENTS = re.compile(r"(--[^\n]*\n?)|(/\*.*?\*/)", re.DOTALL)
# Quoted text can spell any keyword, so it is blanked before classification
_LITERALS = re.compile(r"('(?:[^']|'')*')|(\$(\w*)\$.*?\$\3\$)", re.DOTALL)
_LEADING_WORD = re.compile(r"^[\s(;]*([A-Za-z]+)")
# Postgres allows DML anywhere in a CTE: WITH d AS (DELETE ... RETURNING *) SELECT ...
_CTE_WRITE = re.compile(r"\b(INSERT|UPDATE|DELETE|MERGE)\b", re.IGNORECASE)
# EXPLAIN ANALYZE runs the statement it explains
_EXPLAIN = re.compile(
    r"^[\s(;]*EXPLAIN\b\s*(?:\([^)]*\)\s*)?(?:(?:ANALYZE|ANALYSE|VERBOSE|QUERY\s+PLAN)\s+)*",
    re.IGNORECASE,
)
_TARGET_TABLE = re.compile(
    r"\b(?:INTO|UPDATE|FROM|TABLE(?:\s+IF\s+(?:NOT\s+)?EXISTS)?)\s+[\"`\[]?([\w.]+)",
    re.IGNORECASE,
)


def _strip(sql: str) -> str:
    return _LITERALS.sub("''", _COMMENTS.sub(" ", sql))


def classify_statement(sql: str) -> str | None:
    """Return the write operation a raw SQL statement performs, or None for reads."""
    stripped = _strip(sql)
    match = _LEADING_WORD.match(stripped)
    if not match:
        return None
    keyword = match.group(1).upper()
    if keyword == "EXPLAIN":
        return classify_statement(_EXPLAIN.sub("", stripped, count=1))
    if keyword == "WITH":
        cte = _CTE_WRITE.search(stripped)
        return WRITE_KEYWORDS[cte.group(1).upper()] if cte else None
    return WRITE_KEYWORDS.get(keyword)


def target_table(sql: str) -> str | None:
    match = _TARGET_TABLE.search(_strip(sql))
    if not match:
        return None
    return match.group(1).rsplit(".", 1)[-1].strip("\"`]")


class Database:
    """
    Owns the async engine for one ReaderConfig.

    `entity_names` maps physical table names (prefix included) to entity
    class names so violations can name what the caller tried to touch.
    """

    def __init__(
        self,
        config: ReaderConfig,
        *,
        entity_names: Mapping[str, str] | None = None,
    ) -> None:
        self.config = config
        self.entity_names = dict(entity_names or {})
        try:
            self.engine: AsyncEngine = create_async_engine(
                config.database.reading,
                echo=config.echo,
                pool_pre_ping=True,   # validate connections before use
                pool_recycle=config.pool_recycle,
            )
        except (ArgumentError, InvalidRequestError, NoSuchModuleError, ImportError) as exc:
            raise ConfigurationError(
                "Could not create database engine",
                cause=exc,
                context={"operation": "create_engine", "target": config.database.describe()},
            ) from exc

        event.listen(self.engine.sync_engine, "before_cursor_execute", self._guard)
        logger.info(
            "database.engine_created",
            target=config.database.describe(),
            table_prefix=config.table_prefix,
        )

    # ── Read-only gate ─────────────────────────────────────────────────────────
    def entity_for_table(self, table: str | None) -> str:
        if table is None:
            return "unknown"
        return self.entity_names.get(table, table)

    def _guard(self, conn, cursor, statement, parameters, context, executemany) -> None:
        operation = classify_statement(statement)
        if operation is None:
            return
        entity = self.entity_for_table(target_table(statement))
        logger.warning("readonly.violation", operation=operation, entity=entity, layer="engine")
        raise ReadOnlyViolation(operation, entity, statement=statement)

    def _check_construct(self, statement: Executable) -> None:
        operations: Sequence[tuple[type, str]] = (
            (Insert, "create"),
            (Update, "update"),
            (Delete, "delete"),
        )
        for construct, operation in operations:
            if isinstance(statement, construct):
                entity = self.entity_for_table(getattr(statement.table, "name", None))
                logger.warning(
                    "readonly.violation", operation=operation, entity=entity, layer="statement"
                )
                raise ReadOnlyViolation(operation, entity)

    # ── Execution ──────────────────────────────────────────────────────────────
    async def execute(
        self,
        statement: Executable,
        *,
        entity: str = "unknown",
        operation: str = "select",
    ) -> list[Row[Any]]:
        """Run one statement on the reading connection and buffer its rows."""
        self._check_construct(statement)

        start_time = time.perf_counter()
        try:
            async with self.engine.connect() as conn:
                result = await conn.execute(statement)
                rows = list(result.all())
        except TimeoutError:
            raise
        # Drivers may surface connect-time socket errors (e.g. DNS) unwrapped
        except (SQLAlchemyError, OSError) as exc:
            self._record(start_time, failed=True)
            logger.error(
                "query.failed",
                entity=entity,
                operation=operation,
                error=str(exc),
            )
            raise QueryExecutionError(
                f"{operation} on {entity} failed",
                cause=exc,
                context={"entity": entity, "operation": operation},
            ) from exc

        duration_ms = self._record(start_time, rows=len(rows))
        logger.debug(
            "query.executed",
            entity=entity,
            operation=operation,
            rows=len(rows),
            duration_ms=duration_ms,
        )
        return rows

    @staticmethod
    def _record(start_time: float, *, rows: int = 0, failed: bool = False) -> float:
        duration_ms = round((time.perf_counter() - start_time) * 1000, 2)
        stats = _query_stats.get()
        if stats is not None:
            stats.queries += 1
            stats.failures += int(failed)
            stats.rows += rows
            stats.duration_ms += duration_ms
        return duration_ms

    async def scalar(self, statement: Executable, **kwargs: Any) -> Any:
        rows = await self.execute(statement, **kwargs)
        return rows[0][0] if rows else None

    async def ping(self) -> bool:
        """Round-trip a trivial query; raises QueryExecutionError when unreachable."""
        return await self.scalar(text("SELECT 1"), entity="database", operation="ping") == 1

    async def dispose(self) -> None:
        await self.engine.dispose()
        logger.info("database.engine_disposed", target=self.config.database.describe())

