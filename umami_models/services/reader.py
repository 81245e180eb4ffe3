"""
AnalyticsReader - the entry point host applications hold on to.

    reader = AnalyticsReader(ReaderConfig.build("postgresql://…/umami", table_prefix="umami_"))
    websites = await reader.websites.all(reader.websites.query().active().recent())

A reader owns one engine, one prefixed schema and one repository per entity.
All of that is fixed at construction; share a reader freely between tasks.

For hosts that want ambient access there is one process-wide default:

    configure("postgresql://…/umami")
    reader = get_reader()

`configure()` may only be called once. `reconfigure()` replaces the default
and disposes the previous engine; it must not race with in-flight queries.
"""

from typing import Any

from umami_models.core.config import ReaderConfig, get_settings
from umami_models.core.database import Database
from umami_models.core.exceptions import ConfigurationError
from umami_models.core.logging import get_logger
from umami_models.models.analytics import EventData, Session, SessionData, WebsiteEvent
from umami_models.models.base import Entity
from umami_models.models.relationships import RELATIONSHIPS
from umami_models.models.tables import ENTITIES, build_schema
from umami_models.models.user import Team, TeamUser, User
from umami_models.models.website import Report, Website
from umami_models.services.relationships import RelatedSequence, RelationshipResolver
from umami_models.services.repository import ReadOnlyRepository

logger = get_logger(__name__)


class AnalyticsReader:
    def __init__(self, config: ReaderConfig) -> None:
        self.config = config
        self.schema = build_schema(config.table_prefix)
        self.database = Database(config, entity_names=self.schema.entity_names())
        self._repositories: dict[type[Entity], ReadOnlyRepository] = {
            entity: ReadOnlyRepository(entity, self.database, self.schema.table(entity))
            for entity in ENTITIES
        }
        self.relationships = RelationshipResolver(self.repository)

    def repository(self, entity: type[Entity]) -> ReadOnlyRepository:
        try:
            return self._repositories[entity]
        except KeyError:
            raise TypeError(f"{entity!r} is not an Umami read model") from None

    # ── Repositories ───────────────────────────────────────────────────────────
    @property
    def users(self) -> ReadOnlyRepository[User]:
        return self._repositories[User]

    @property
    def teams(self) -> ReadOnlyRepository[Team]:
        return self._repositories[Team]

    @property
    def team_users(self) -> ReadOnlyRepository[TeamUser]:
        return self._repositories[TeamUser]

    @property
    def websites(self) -> ReadOnlyRepository[Website]:
        return self._repositories[Website]

    @property
    def sessions(self) -> ReadOnlyRepository[Session]:
        return self._repositories[Session]

    @property
    def website_events(self) -> ReadOnlyRepository[WebsiteEvent]:
        return self._repositories[WebsiteEvent]

    @property
    def event_data(self) -> ReadOnlyRepository[EventData]:
        return self._repositories[EventData]

    @property
    def session_data(self) -> ReadOnlyRepository[SessionData]:
        return self._repositories[SessionData]

    @property
    def reports(self) -> ReadOnlyRepository[Report]:
        return self._repositories[Report]

    # ── Relationships ──────────────────────────────────────────────────────────
    async def related(self, source: Entity, name: str) -> Entity | RelatedSequence | None:
        return await self.relationships.resolve(source, name)

    @staticmethod
    def relationship_names(entity: type[Entity]) -> list[str]:
        return sorted(RELATIONSHIPS.get(entity, {}))

    # ── Lifecycle ──────────────────────────────────────────────────────────────
    async def ping(self) -> bool:
        return await self.database.ping()

    async def close(self) -> None:
        await self.database.dispose()


# ── Process-wide default ───────────────────────────────────────────────────────
_default_reader: AnalyticsReader | None = None


def _build_config(database: Any, options: dict[str, Any]) -> ReaderConfig:
    if database is None:
        if options:
            raise ConfigurationError(
                "Reader options require an explicit database target",
                context={"operation": "configure", "options": sorted(options)},
            )
        return get_settings().reader_config()
    if isinstance(database, ReaderConfig):
        return database
    return ReaderConfig.build(database, **options)


def configure(database: Any = None, **options: Any) -> AnalyticsReader:
    """
    Install the process-wide default reader.

    `database` may be a URL, a {"writing": ..., "reading": ...} mapping, a
    DatabaseTarget, a ReaderConfig, or None to read DATABASE_URL from the
    environment. Options: table_prefix, echo, pool_recycle.
    """
    global _default_reader
    if _default_reader is not None:
        raise ConfigurationError(
            "Default reader is already configured; use reconfigure()",
            context={"operation": "configure", "target": _default_reader.config.database.describe()},
        )
    config = _build_config(database, options)
    _default_reader = AnalyticsReader(config)
    logger.info(
        "reader.configured",
        target=config.database.describe(),
        table_prefix=config.table_prefix,
    )
    return _default_reader


async def reconfigure(database: Any = None, **options: Any) -> AnalyticsReader:
    """Replace the default reader. Callers must ensure no queries are in flight."""
    global _default_reader
    config = _build_config(database, options)
    reader = AnalyticsReader(config)
    previous, _default_reader = _default_reader, reader
    if previous is not None:
        await previous.close()
        logger.info("reader.disposed", target=previous.config.database.describe())
    logger.info(
        "reader.configured",
        target=config.database.describe(),
        table_prefix=config.table_prefix,
    )
    return reader


def get_reader() -> AnalyticsReader:
    if _default_reader is None:
        raise ConfigurationError(
            "Default reader is not configured; call configure() first",
            context={"operation": "get_reader", "target": None},
        )
    return _default_reader


async def reset() -> None:
    """Dispose and forget the default reader (test helper for hosts)."""
    global _default_reader
    previous, _default_reader = _default_reader, None
    if previous is not None:
        await previous.close()
