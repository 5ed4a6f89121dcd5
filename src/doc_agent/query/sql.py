"""Serialization of a `ScopedQuery` into an executable SQLAlchemy `Select`.

Values always travel as bound parameters; LIKE wildcards inside a contains
value are escaped so the match stays literal.
"""

from __future__ import annotations

from typing import Any

from sqlalchemy import ColumnElement, Select, and_, func, or_, true

from doc_agent.query.predicates import (
    AnyOf,
    Contains,
    Equals,
    Identity,
    IsNull,
    NotEquals,
    Predicate,
    Range,
    ScopedQuery,
)

LIKE_ESCAPE = "\\"


def escape_like(value: str) -> str:
    return (
        value.replace(LIKE_ESCAPE, LIKE_ESCAPE * 2)
        .replace("%", LIKE_ESCAPE + "%")
        .replace("_", LIKE_ESCAPE + "_")
    )


def predicate_clause(model: Any, predicate: Predicate) -> ColumnElement[bool]:
    if isinstance(predicate, AnyOf):
        return or_(*(predicate_clause(model, p) for p in predicate.predicates))

    column = getattr(model, predicate.field)
    if isinstance(predicate, Identity):
        return column == predicate.value
    if isinstance(predicate, Equals):
        if predicate.case_insensitive and isinstance(predicate.value, str):
            return func.lower(column) == predicate.value.lower()
        return column == predicate.value
    if isinstance(predicate, NotEquals):
        return or_(column != predicate.value, column.is_(None))
    if isinstance(predicate, Contains):
        return column.ilike(f"%{escape_like(predicate.value)}%", escape=LIKE_ESCAPE)
    if isinstance(predicate, IsNull):
        return column.is_(None)
    if isinstance(predicate, Range):
        bounds: list[ColumnElement[bool]] = []
        if predicate.lower is not None:
            bounds.append(column >= predicate.lower)
        if predicate.upper is not None:
            bounds.append(
                column < predicate.upper if predicate.upper_exclusive else column <= predicate.upper
            )
        return and_(true(), *bounds)
    raise TypeError(f"Unsupported predicate: {predicate!r}")


def apply_query(stmt: Select[Any], model: Any, query: ScopedQuery) -> Select[Any]:
    """Apply scope, filters, sort and page of `query` to `stmt`."""

    for predicate in query.predicates:
        stmt = stmt.where(predicate_clause(model, predicate))
    for key in query.sort:
        column = getattr(model, key.field)
        stmt = stmt.order_by(column.desc() if key.descending else column.asc())
    if query.offset:
        stmt = stmt.offset(query.offset)
    if query.limit is not None:
        stmt = stmt.limit(query.limit)
    return stmt
