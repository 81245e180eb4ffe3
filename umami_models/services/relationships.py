"""
Relationship resolver - lazy, keyed traversal between read models.

    owner = await reader.relationships.one(website, "owner")
    sessions = reader.relationships.many(website, "sessions")
    async for session in sessions.scoped(lambda q: q.recent()):
        ...

Belongs-to links issue one keyed query. Has-many links return a
RelatedSequence that does nothing until consumed and re-queries on every
consumption. Has-many-through (User.teams, Team.users) reads the join rows
first, then the targets by key.
"""

from collections.abc import AsyncIterator, Callable
from dataclasses import dataclass
from typing import Any, Generic, TypeVar

from umami_models.core.logging import get_logger
from umami_models.models.base import Entity
from umami_models.models.relationships import (
    BelongsTo,
    HasMany,
    HasManyThrough,
    relationship_for,
)
from umami_models.query.builder import Query
from umami_models.services.repository import ReadOnlyRepository

logger = get_logger(__name__)

E = TypeVar("E", bound=Entity)

RepositoryLookup = Callable[[type[Entity]], ReadOnlyRepository]


@dataclass(frozen=True)
class ThroughJoin:
    """The join-table read that yields target keys for a has-many-through link."""

    repository: ReadOnlyRepository
    query: Query
    target_key: str

    async def target_keys(self) -> list[Any]:
        rows = await self.repository.all(self.query)
        # dict preserves first-seen order while dropping duplicates
        return list(dict.fromkeys(getattr(row, self.target_key) for row in rows))


class RelatedSequence(Generic[E]):
    """A finite, restartable async sequence of related entities."""

    def __init__(
        self,
        repository: ReadOnlyRepository[E],
        query: Query,
        *,
        through: ThroughJoin | None = None,
    ) -> None:
        self.repository = repository
        self.query = query
        self.through = through

    @property
    def is_through(self) -> bool:
        return self.through is not None

    def scoped(self, apply: Callable[[Any], Query]) -> "RelatedSequence[E]":
        """A new sequence with extra scopes applied to the target query."""
        return RelatedSequence(self.repository, apply(self.query), through=self.through)

    async def all(self) -> list[E]:
        if self.through is None:
            return await self.repository.all(self.query)

        keys = await self.through.target_keys()
        logger.debug(
            "relationship.join_resolved",
            through=self.through.repository.entity.__name__,
            target=self.repository.entity.__name__,
            keys=len(keys),
        )
        if not keys:
            return []
        pk = self.repository.entity.__primary_key__
        targets = await self.repository.all(self.query._in(pk, keys))
        if self.query.ordering is not None:
            return targets
        position = {key: i for i, key in enumerate(keys)}
        return sorted(targets, key=lambda entity: position[entity.pk])

    async def first(self) -> E | None:
        if not self.is_through:
            return await self.repository.first(self.query)
        rows = await self.all()
        return rows[0] if rows else None

    async def count(self) -> int:
        if not self.is_through:
            return await self.repository.count(self.query)
        return len(await self.all())

    async def __aiter__(self) -> AsyncIterator[E]:
        for entity in await self.all():
            yield entity


class RelationshipResolver:
    def __init__(self, repository_for: RepositoryLookup) -> None:
        self._repository_for = repository_for

    async def one(self, source: Entity, name: str) -> Entity | None:
        rel = relationship_for(type(source), name)
        if not isinstance(rel, BelongsTo):
            raise TypeError(f"{type(source).__name__}.{name} is a collection; use many()")

        key = getattr(source, rel.foreign_key)
        if key is None:
            # Optional link left unset: nothing to look up
            return None
        return await self._repository_for(rel.target).get(key)

    def many(self, source: Entity, name: str) -> RelatedSequence:
        rel = relationship_for(type(source), name)
        if isinstance(rel, HasMany):
            repository = self._repository_for(rel.target)
            return RelatedSequence(repository, repository.query()._eq(rel.foreign_key, source.pk))
        if isinstance(rel, HasManyThrough):
            join_repository = self._repository_for(rel.through)
            repository = self._repository_for(rel.target)
            through = ThroughJoin(
                join_repository,
                join_repository.query()._eq(rel.source_key, source.pk),
                rel.target_key,
            )
            return RelatedSequence(repository, repository.query(), through=through)
        raise TypeError(f"{type(source).__name__}.{name} is a single link; use one()")

    async def resolve(self, source: Entity, name: str) -> Entity | RelatedSequence | None:
        """Belongs-to → the entity (or None); collections → a RelatedSequence."""
        rel = relationship_for(type(source), name)
        if isinstance(rel, BelongsTo):
            return await self.one(source, name)
        return self.many(source, name)
