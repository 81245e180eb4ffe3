"""
Immutable query descriptor.

A Query accumulates predicates, one ordering, and pagination for a single
entity type. Every builder step returns a *new* Query via dataclasses.replace,
so partially-built queries can be shared and reused freely:

    base = reader.website_events.query().by_website(website_id)
    views = base.page_views()
    custom = base.custom_events()   # base is unchanged

Nothing touches the database until a repository compiles and executes it.
Predicates are AND-ed in the order they were added; repeating a filter with
a different value keeps both and therefore matches nothing.
"""

from dataclasses import dataclass, replace
from datetime import date, datetime, time
from typing import Any, ClassVar, Generic, TypeVar

from umami_models.models.base import Entity

E = TypeVar("E", bound=Entity)

# Predicate operators understood by the compiler
EQ = "eq"
IS_NULL = "is_null"
NOT_NULL = "not_null"
BETWEEN = "between"
IN = "in"


@dataclass(frozen=True)
class Predicate:
    attribute: str
    operator: str
    values: tuple[Any, ...] = ()


@dataclass(frozen=True)
class Ordering:
    attribute: str
    descending: bool = False


def _lower_bound(value: Any) -> Any:
    if isinstance(value, date) and not isinstance(value, datetime):
        return datetime.combine(value, time.min)
    return value


def _upper_bound(value: Any) -> Any:
    # A plain date as the end bound includes that whole day
    if isinstance(value, date) and not isinstance(value, datetime):
        return datetime.combine(value, time.max)
    return value


@dataclass(frozen=True)
class Query(Generic[E]):
    entity: ClassVar[type[Entity]]

    predicates: tuple[Predicate, ...] = ()
    ordering: Ordering | None = None
    row_limit: int | None = None
    row_offset: int | None = None

    # ── Generic steps used by the scope catalogs ───────────────────────────────
    def _check_attribute(self, attribute: str) -> None:
        if attribute not in self.entity.columns():
            raise AttributeError(f"{self.entity.__name__} has no column attribute {attribute!r}")

    def _with(self, predicate: Predicate) -> "Query[E]":
        self._check_attribute(predicate.attribute)
        return replace(self, predicates=self.predicates + (predicate,))

    def _eq(self, attribute: str, value: Any) -> "Query[E]":
        if value is None:
            return self._with(Predicate(attribute, IS_NULL))
        return self._with(Predicate(attribute, EQ, (value,)))

    def _is_null(self, attribute: str) -> "Query[E]":
        return self._with(Predicate(attribute, IS_NULL))

    def _not_null(self, attribute: str) -> "Query[E]":
        return self._with(Predicate(attribute, NOT_NULL))

    def _between(self, attribute: str, start: Any, end: Any) -> "Query[E]":
        return self._with(Predicate(attribute, BETWEEN, (_lower_bound(start), _upper_bound(end))))

    def _in(self, attribute: str, values: Any) -> "Query[E]":
        return self._with(Predicate(attribute, IN, tuple(values)))

    def _order(self, attribute: str, descending: bool = False) -> "Query[E]":
        self._check_attribute(attribute)
        return replace(self, ordering=Ordering(attribute, descending))

    # ── Pagination ─────────────────────────────────────────────────────────────
    def limit(self, n: int) -> "Query[E]":
        if not isinstance(n, int) or isinstance(n, bool) or n < 0:
            raise ValueError(f"limit must be a non-negative integer, got {n!r}")
        return replace(self, row_limit=n)

    def offset(self, n: int) -> "Query[E]":
        if not isinstance(n, int) or isinstance(n, bool) or n < 0:
            raise ValueError(f"offset must be a non-negative integer, got {n!r}")
        return replace(self, row_offset=n)

    @property
    def is_paginated(self) -> bool:
        return self.row_limit is not None or self.row_offset is not None

    def describe(self) -> dict[str, Any]:
        """Plain-data view of the descriptor, for logs and debugging."""
        return {
            "entity": self.entity.__name__,
            "predicates": [
                {"attribute": p.attribute, "operator": p.operator, "values": list(p.values)}
                for p in self.predicates
            ],
            "ordering": (
                None
                if self.ordering is None
                else {"attribute": self.ordering.attribute, "descending": self.ordering.descending}
            ),
            "limit": self.row_limit,
            "offset": self.row_offset,
        }
