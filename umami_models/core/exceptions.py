"""
Exception hierarchy for the read models.

Every error carries a human-readable message, an optional underlying cause,
and a context dict that is safe to hand to the structured logger:

    try:
        await reader.websites.all()
    except QueryExecutionError as e:
        logger.error("query.failed", **e.to_dict())
"""

from typing import Any


class UmamiModelsError(Exception):
    """Base class for all errors raised by this package."""

    def __init__(
        self,
        message: str,
        *,
        cause: BaseException | None = None,
        context: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.cause = cause
        self.context = context or {}

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "error_type": type(self).__name__,
            "message": self.message,
            **self.context,
        }
        if self.cause is not None:
            data["cause"] = f"{type(self.cause).__name__}: {self.cause}"
        return data


class ReadOnlyViolation(UmamiModelsError):
    """An insert, update, delete or DDL statement was attempted."""

    def __init__(self, operation: str, entity: str, *, statement: str | None = None) -> None:
        super().__init__(
            f"Umami models are read-only: {operation} on {entity} is not permitted",
            context={"operation": operation, "entity": entity},
        )
        self.operation = operation
        self.entity = entity
        self.statement = statement


class ParseFailure(UmamiModelsError):
    """A structured field (e.g. Report.parameters) did not contain valid JSON."""


class QueryExecutionError(UmamiModelsError):
    """The database rejected or failed to run a query."""


class ConfigurationError(UmamiModelsError):
    """Missing or invalid database target, prefix, or reader lifecycle misuse."""


class UnknownRelationshipError(UmamiModelsError, LookupError):
    def __init__(self, entity: str, name: str) -> None:
        super().__init__(
            f"{entity} has no relationship named {name!r}",
            context={"entity": entity, "relationship": name},
        )
