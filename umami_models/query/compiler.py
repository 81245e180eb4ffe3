"""
Query → SQLAlchemy Select.

Every filter value becomes a bound parameter; the only identifiers that reach
the SQL text are the (prefixed) table and column names from the schema.
"""

from sqlalchemy import ColumnElement, Select, Table, desc, func, select

from umami_models.query.builder import BETWEEN, EQ, IN, IS_NULL, NOT_NULL, Predicate, Query

COUNT_LABEL = "count_all"


def _condition(table: Table, predicate: Predicate) -> ColumnElement[bool]:
    col = table.c[predicate.attribute]
    if predicate.operator == EQ:
        return col == predicate.values[0]
    if predicate.operator == IS_NULL:
        return col.is_(None)
    if predicate.operator == NOT_NULL:
        return col.is_not(None)
    if predicate.operator == BETWEEN:
        start, end = predicate.values
        return col.between(start, end)
    if predicate.operator == IN:
        return col.in_(predicate.values)
    raise ValueError(f"Unsupported predicate operator: {predicate.operator!r}")


def _filtered(stmt: Select, table: Table, query: Query) -> Select:
    conditions = [_condition(table, p) for p in query.predicates]
    return stmt.where(*conditions) if conditions else stmt


def compile_select(query: Query, table: Table) -> Select:
    stmt = _filtered(select(table), table, query)
    if query.ordering is not None:
        col = table.c[query.ordering.attribute]
        stmt = stmt.order_by(col.desc() if query.ordering.descending else col.asc())
    if query.row_limit is not None:
        stmt = stmt.limit(query.row_limit)
    if query.row_offset is not None:
        stmt = stmt.offset(query.row_offset)
    return stmt


def compile_count(query: Query, table: Table) -> Select:
    if query.is_paginated:
        # Count what the page would return, not the whole table
        page = compile_select(query, table).subquery()
        return select(func.count()).select_from(page)
    return _filtered(select(func.count()).select_from(table), table, query)


def compile_group_count(query: Query, table: Table, attribute: str) -> Select:
    """One row per distinct value: (value, count_all), biggest groups first."""
    col = table.c[attribute]
    stmt = _filtered(select(col, func.count().label(COUNT_LABEL)), table, query)
    stmt = stmt.group_by(col).order_by(desc(COUNT_LABEL), col.asc())
    if query.row_limit is not None:
        stmt = stmt.limit(query.row_limit)
    if query.row_offset is not None:
        stmt = stmt.offset(query.row_offset)
    return stmt
