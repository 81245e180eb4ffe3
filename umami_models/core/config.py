"""
Reader configuration - database target, table prefix, and environment settings.

Two layers:
  - Settings      - environment / .env values (pydantic-settings), read once
  - ReaderConfig  - the immutable configuration handed to an AnalyticsReader

The schema is owned by another service, so the only things configured here
are *where* to read from and *what prefix* the tables were deployed under.
"""

import re
from collections.abc import Mapping
from functools import lru_cache
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict
from sqlalchemy.engine import URL, make_url
from sqlalchemy.exc import ArgumentError

from umami_models.core.exceptions import ConfigurationError

# Sync URLs as handed out by hosting providers → async drivers used by the reader
ASYNC_DRIVERS = {
    "postgres": "postgresql+asyncpg",
    "postgresql": "postgresql+asyncpg",
    "sqlite": "sqlite+aiosqlite",
}

TABLE_PREFIX_PATTERN = re.compile(r"^[A-Za-z0-9_]*$")


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # ── Database ───────────────────────────────────────────────────────────────
    DATABASE_URL: str | None = None
    # Optional read replica; when set, all queries go here
    DATABASE_READ_URL: str | None = None
    TABLE_PREFIX: str = ""
    DATABASE_ECHO: bool = False
    POOL_RECYCLE_SECONDS: int = 3600

    # ── Logging ────────────────────────────────────────────────────────────────
    LOG_LEVEL: str = "INFO"
    LOG_FORMAT: Literal["json", "console"] = "json"

    # ── Diagnostic API ─────────────────────────────────────────────────────────
    API_VERSION: str = "1.0.0"
    ENVIRONMENT: Literal["development", "staging", "production"] = "development"

    def reader_config(self) -> "ReaderConfig":
        if not self.DATABASE_URL:
            raise ConfigurationError(
                "DATABASE_URL is not set",
                context={"operation": "configure", "target": None},
            )
        target: Any = self.DATABASE_URL
        if self.DATABASE_READ_URL:
            target = {"writing": self.DATABASE_URL, "reading": self.DATABASE_READ_URL}
        return ReaderConfig.build(
            database=target,
            table_prefix=self.TABLE_PREFIX,
            echo=self.DATABASE_ECHO,
            pool_recycle=self.POOL_RECYCLE_SECONDS,
        )


@lru_cache
def get_settings() -> Settings:
    return Settings()


def normalize_url(raw: str | URL) -> str:
    """Parse a database URL and swap sync driver names for their async driver."""
    url = make_url(raw)
    if url.drivername in ASYNC_DRIVERS:
        url = url.set(drivername=ASYNC_DRIVERS[url.drivername])
    return url.render_as_string(hide_password=False)


def mask_url(raw: str | None) -> str | None:
    if raw is None:
        return None
    try:
        return make_url(raw).render_as_string(hide_password=True)
    except ArgumentError:
        return "<unparseable>"


class DatabaseTarget(BaseModel):
    """A primary/replica pair. A single URL is used for both roles."""

    model_config = ConfigDict(frozen=True)

    writing: str
    reading: str

    @field_validator("writing", "reading", mode="before")
    @classmethod
    def _normalize(cls, v: Any) -> str:
        if isinstance(v, URL):
            v = v.render_as_string(hide_password=False)
        if not isinstance(v, str) or not v.strip():
            raise ValueError("database URL must be a non-empty string")
        try:
            return normalize_url(v.strip())
        except ArgumentError as exc:
            raise ValueError(f"could not parse database URL: {exc}") from exc

    @classmethod
    def parse(cls, value: "str | URL | Mapping[str, Any] | DatabaseTarget") -> "DatabaseTarget":
        if isinstance(value, DatabaseTarget):
            return value
        if isinstance(value, Mapping):
            data = dict(value)
        else:
            data = {"writing": value, "reading": value}
        try:
            return cls.model_validate(data)
        except ValidationError as exc:
            raise ConfigurationError(
                "Invalid database target",
                cause=exc,
                context={
                    "operation": "configure",
                    "target": _describe_target(value),
                    "errors": [e["msg"] for e in exc.errors()],
                },
            ) from exc

    def describe(self) -> dict[str, str | None]:
        return {"writing": mask_url(self.writing), "reading": mask_url(self.reading)}


class ReaderConfig(BaseModel):
    """Immutable configuration for one AnalyticsReader."""

    model_config = ConfigDict(frozen=True)

    database: DatabaseTarget
    table_prefix: str = ""
    echo: bool = False
    pool_recycle: int = Field(default=3600, ge=-1)

    @field_validator("table_prefix")
    @classmethod
    def _check_prefix(cls, v: str) -> str:
        # Table identifiers are not bindable, so the prefix must be a plain identifier fragment
        if not TABLE_PREFIX_PATTERN.match(v):
            raise ValueError("table prefix may only contain letters, digits and underscores")
        return v

    @classmethod
    def build(cls, database: Any, **options: Any) -> "ReaderConfig":
        target = DatabaseTarget.parse(database)
        try:
            return cls(database=target, **options)
        except ValidationError as exc:
            raise ConfigurationError(
                "Invalid reader configuration",
                cause=exc,
                context={
                    "operation": "configure",
                    "target": target.describe(),
                    "errors": [e["msg"] for e in exc.errors()],
                },
            ) from exc


def _describe_target(value: Any) -> Any:
    if isinstance(value, Mapping):
        return {k: mask_url(v) if isinstance(v, str) else repr(v) for k, v in value.items()}
    if isinstance(value, str):
        return mask_url(value)
    return repr(value)
