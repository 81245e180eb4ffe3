"""
Read-only repositories - the execution side of the query builder.

A ReadOnlyRepository compiles a Query for its entity into exactly one
parameterized statement, runs it through the Database, and hydrates rows into
entities. It has no write methods.
"""

from typing import Any, Generic, TypeVar

from sqlalchemy import Select, Table
from sqlalchemy.engine import Row

from umami_models.core.database import Database
from umami_models.models.base import Entity
from umami_models.query.builder import Query
from umami_models.query.compiler import compile_count, compile_group_count, compile_select
from umami_models.query.scopes import query_for

E = TypeVar("E", bound=Entity)


class ReadOnlyRepository(Generic[E]):
    def __init__(self, entity: type[E], database: Database, table: Table) -> None:
        self.entity = entity
        self.database = database
        self.table = table

    def __repr__(self) -> str:
        return f"<ReadOnlyRepository {self.entity.__name__} table={self.table.name}>"

    # ── Query construction ─────────────────────────────────────────────────────
    def query(self) -> Any:
        """An empty query exposing this entity's scopes."""
        return query_for(self.entity)

    def _resolve(self, query: Query | None) -> Query:
        if query is None:
            return self.query()
        if query.entity is not self.entity:
            raise TypeError(
                f"{type(query).__name__} targets {query.entity.__name__}, "
                f"not {self.entity.__name__}"
            )
        return query

    def compile(self, query: Query | None = None) -> Select:
        return compile_select(self._resolve(query), self.table)

    def _hydrate(self, row: Row[Any]) -> E:
        mapping = row._mapping
        return self.entity.from_values(  # type: ignore[return-value]
            {key: mapping[col] for key, col in self.table.c.items()}
        )

    # ── Execution ──────────────────────────────────────────────────────────────
    async def all(self, query: Query | None = None) -> list[E]:
        stmt = self.compile(query)
        rows = await self.database.execute(stmt, entity=self.entity.__name__, operation="select")
        return [self._hydrate(row) for row in rows]

    async def first(self, query: Query | None = None) -> E | None:
        query = self._resolve(query)
        if query.ordering is None:
            query = query._order(self.entity.__primary_key__)
        rows = await self.all(query.limit(1))
        return rows[0] if rows else None

    async def get(self, key: Any) -> E | None:
        return await self.first(self.query()._eq(self.entity.__primary_key__, key))

    async def count(self, query: Query | None = None) -> int:
        stmt = compile_count(self._resolve(query), self.table)
        value = await self.database.scalar(stmt, entity=self.entity.__name__, operation="count")
        return int(value or 0)

    async def exists(self, query: Query | None = None) -> bool:
        return await self.first(self._resolve(query)) is not None

    async def group_count(self, attribute: str, query: Query | None = None) -> dict[Any, int]:
        """
        Count rows per distinct value of `attribute`, biggest groups first.

        The query's limit caps the number of groups, e.g. top 5 url paths:
            await events.group_count("url_path", q.page_views().limit(5))
        """
        query = self._resolve(query)
        query._check_attribute(attribute)
        stmt = compile_group_count(query, self.table, attribute)
        rows = await self.database.execute(
            stmt, entity=self.entity.__name__, operation="group_count"
        )
        return {row[0]: int(row[1]) for row in rows}
