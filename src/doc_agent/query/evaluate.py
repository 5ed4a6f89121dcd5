"""In-memory evaluation of a `ScopedQuery` over plain objects."""

from __future__ import annotations

from collections.abc import Iterable
from datetime import datetime, timezone
from typing import Any, TypeVar

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
    SortField,
)

T = TypeVar("T")


def matches(item: Any, predicate: Predicate) -> bool:
    if isinstance(predicate, AnyOf):
        return any(matches(item, inner) for inner in predicate.predicates)

    value = getattr(item, predicate.field, None)
    if isinstance(predicate, Identity):
        return value == predicate.value
    if isinstance(predicate, Equals):
        if predicate.case_insensitive and isinstance(value, str):
            return value.lower() == str(predicate.value).lower()
        return value == predicate.value
    if isinstance(predicate, NotEquals):
        return value is None or value != predicate.value
    if isinstance(predicate, Contains):
        return value is not None and predicate.value.lower() in str(value).lower()
    if isinstance(predicate, IsNull):
        return value is None
    if isinstance(predicate, Range):
        if value is None:
            return False
        value = _comparable(value)
        if predicate.lower is not None and value < _comparable(predicate.lower):
            return False
        if predicate.upper is not None:
            upper = _comparable(predicate.upper)
            if value > upper or (predicate.upper_exclusive and value == upper):
                return False
        return True
    raise TypeError(f"Unsupported predicate: {predicate!r}")


def sort_items(items: list[T], sort: tuple[SortField, ...]) -> list[T]:
    """Stable multi-key sort; missing values always sort last."""

    ordered = list(items)
    for key in reversed(sort):
        present = [item for item in ordered if getattr(item, key.field, None) is not None]
        missing = [item for item in ordered if getattr(item, key.field, None) is None]
        present.sort(
            key=lambda item: _sort_value(getattr(item, key.field)),
            reverse=key.descending,
        )
        ordered = present + missing
    return ordered


def run_query(items: Iterable[T], query: ScopedQuery) -> list[T]:
    selected = [
        item for item in items if all(matches(item, p) for p in query.predicates)
    ]
    ordered = sort_items(selected, query.sort)
    end = None if query.limit is None else query.offset + query.limit
    return ordered[query.offset : end]


def _comparable(value: Any) -> Any:
    if isinstance(value, datetime) and value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def _sort_value(value: Any) -> Any:
    if isinstance(value, str):
        return value.lower()
    return _comparable(value)
