"""
Structured logging via structlog.

Every log entry includes: timestamp, level, event, the emitting module
(`logger_name`), and any bound context (entity, website_id, request_id).
Package errors passed as `error=` are expanded into their structured fields.

Usage:
    logger = get_logger(__name__)
    logger.debug("query.executed", entity="WebsiteEvent", rows=12, duration_ms=3.1)
    logger.warning("health.database_unreachable", error=exc)
"""

import logging
import sys
from typing import Any

import structlog
from structlog.types import EventDict, WrappedLogger

from umami_models.core.config import get_settings
from umami_models.core.exceptions import UmamiModelsError

SEVERITY = {
    "debug": "DEBUG",
    "info": "INFO",
    "warning": "WARNING",
    "error": "ERROR",
    "critical": "CRITICAL",
}

DRIVER_LOGGERS = ("aiosqlite", "asyncpg")


def add_severity_field(
    logger: WrappedLogger, method: str, event_dict: EventDict
) -> EventDict:
    """Map structlog levels to GCP/Datadog severity strings."""
    event_dict["severity"] = SEVERITY.get(method, "INFO")
    return event_dict


def expand_package_errors(
    logger: WrappedLogger, method: str, event_dict: EventDict
) -> EventDict:
    """Replace `error=<UmamiModelsError>` with its message, type, cause and context."""
    error = event_dict.get("error")
    if isinstance(error, UmamiModelsError):
        details = error.to_dict()
        event_dict["error"] = details.pop("message")
        for key, value in details.items():
            event_dict.setdefault(key, value)
    return event_dict


def setup_logging(level: str | None = None, fmt: str | None = None) -> None:
    """Configure structlog for JSON (production) or console (dev) output."""
    settings = get_settings()
    level = level or settings.LOG_LEVEL
    fmt = fmt or settings.LOG_FORMAT

    processors: list[Any] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        add_severity_field,
        expand_package_errors,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.ExceptionRenderer(),
    ]
    if fmt == "json":
        processors.append(structlog.processors.JSONRenderer())
    else:
        processors.append(structlog.dev.ConsoleRenderer(colors=True))

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(
            logging.getLevelName(level.upper())
        ),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(file=sys.stdout),
        cache_logger_on_first_use=True,
    )

    # query.executed already reports each statement; SQL echo stays opt-in
    engine_level = logging.INFO if settings.DATABASE_ECHO else logging.WARNING
    logging.getLogger("sqlalchemy.engine").setLevel(engine_level)
    for name in DRIVER_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


def get_logger(name: str) -> structlog.BoundLogger:
    """Return a lazily configured structlog logger tagged with its module name."""
    return structlog.get_logger(logger_name=name)
