"""
Physical schema - SQLAlchemy Table objects for one table-name prefix.

The schema is owned by Umami; nothing here ever emits DDL against a live
database. The MetaData is only used to compile SELECT statements (and by the
test suite, acting as the schema owner, to create fixture tables).
"""

from dataclasses import dataclass
from functools import lru_cache

from sqlalchemy import Column, ForeignKey, MetaData, Table

from umami_models.models.analytics import EventData, Session, SessionData, WebsiteEvent
from umami_models.models.base import Entity
from umami_models.models.user import Team, TeamUser, User
from umami_models.models.website import Report, Website

ENTITIES: tuple[type[Entity], ...] = (
    User,
    Team,
    TeamUser,
    Website,
    Session,
    WebsiteEvent,
    EventData,
    SessionData,
    Report,
)


@dataclass(frozen=True)
class Schema:
    prefix: str
    metadata: MetaData
    tables: dict[type[Entity], Table]

    def table(self, entity: type[Entity]) -> Table:
        return self.tables[entity]

    def entity_names(self) -> dict[str, str]:
        """Physical table name → entity class name."""
        return {table.name: entity.__name__ for entity, table in self.tables.items()}


def _build_table(entity: type[Entity], prefix: str, metadata: MetaData) -> Table:
    columns = []
    for attribute, spec in entity.columns().items():
        args = []
        if spec.foreign_key:
            args.append(ForeignKey(f"{prefix}{spec.foreign_key}"))
        columns.append(
            Column(
                spec.name or attribute,
                spec.type_,
                *args,
                key=attribute,
                primary_key=spec.primary_key,
                nullable=spec.nullable,
            )
        )
    return Table(f"{prefix}{entity.__tablename__}", metadata, *columns)


@lru_cache
def build_schema(prefix: str = "") -> Schema:
    metadata = MetaData()
    tables = {entity: _build_table(entity, prefix, metadata) for entity in ENTITIES}
    return Schema(prefix=prefix, metadata=metadata, tables=tables)
