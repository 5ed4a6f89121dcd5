"""Composes optional, loosely-typed filter inputs into a `ScopedQuery`."""

from __future__ import annotations

from collections.abc import Mapping
from datetime import date, datetime, time, timedelta, timezone
from typing import Any

from doc_agent.config import PageBounds
from doc_agent.query.predicates import (
    AnyOf,
    Contains,
    Equals,
    Identity,
    NotEquals,
    Predicate,
    Range,
    ScopedQuery,
    SortField,
)

SortTable = Mapping[str, tuple[SortField, ...]]


def clamp(value: Any, minimum: float, maximum: float, default: float) -> Any:
    """Clamp a numeric value into [minimum, maximum].

    Non-numeric input (including None and bools) becomes `default` first.
    Never raises: agent-supplied values are corrected, not rejected.
    """

    if isinstance(value, bool) or not isinstance(value, (int, float)):
        value = default
    return max(minimum, min(maximum, value))


def resolve_sort(value: Any, table: SortTable, default: str) -> tuple[SortField, ...]:
    """Look up a named sort case-insensitively, falling back to `default`."""

    lowered = {key.lower(): fields for key, fields in table.items()}
    if isinstance(value, str):
        fields = lowered.get(value.strip().lower())
        if fields is not None:
            return fields
    return lowered[default.lower()]


def _clean(value: Any) -> Any:
    if isinstance(value, str):
        value = value.strip()
        return value or None
    return value


def day_bounds(day: date | datetime) -> tuple[datetime, datetime]:
    """Return the UTC [start, next-day) window covering `day`."""

    if isinstance(day, datetime):
        if day.tzinfo is not None:
            day = day.astimezone(timezone.utc)
        day = day.date()
    start = datetime.combine(day, time.min, tzinfo=timezone.utc)
    return start, start + timedelta(days=1)


class QueryBuilder:
    """Fluent builder for `ScopedQuery`.

    Unset filters are omitted. When an identity value is supplied, `build()`
    discards every optional filter; scope predicates always remain.
    """

    def __init__(self) -> None:
        self._scope: list[Predicate] = []
        self._filters: list[Predicate] = []
        self._identity: Identity | None = None
        self._sort: tuple[SortField, ...] = ()
        self._limit: int | None = None
        self._offset = 0

    def scope(self, *predicates: Predicate) -> "QueryBuilder":
        self._scope.extend(predicates)
        return self

    def identity(self, field: str, value: Any) -> "QueryBuilder":
        value = _clean(value)
        if value is not None:
            self._identity = Identity(field, value)
        return self

    def equals(self, field: str, value: Any, *, case_insensitive: bool = False) -> "QueryBuilder":
        value = _clean(value)
        if value is not None:
            self._filters.append(Equals(field, value, case_insensitive))
        return self

    def not_equals(self, field: str, value: Any) -> "QueryBuilder":
        if value is not None:
            self._filters.append(NotEquals(field, value))
        return self

    def contains(self, field: str, value: Any) -> "QueryBuilder":
        value = _clean(value)
        if value is not None:
            self._filters.append(Contains(field, str(value)))
        return self

    def any_of(self, *predicates: Predicate) -> "QueryBuilder":
        if predicates:
            self._filters.append(AnyOf(tuple(predicates)))
        return self

    def contains_any(self, fields: tuple[str, ...], value: Any) -> "QueryBuilder":
        value = _clean(value)
        if value is None:
            return self
        return self.any_of(*(Contains(f, str(value)) for f in fields))

    def date_range(
        self,
        field: str,
        after: datetime | None = None,
        before: datetime | None = None,
    ) -> "QueryBuilder":
        if after is not None or before is not None:
            self._filters.append(Range(field, lower=after, upper=before))
        return self

    def on_day(self, field: str, day: date | datetime | None) -> "QueryBuilder":
        if day is not None:
            start, end = day_bounds(day)
            self._filters.append(Range(field, lower=start, upper=end, upper_exclusive=True))
        return self

    def sort_by(self, value: Any, table: SortTable, default: str) -> "QueryBuilder":
        self._sort = resolve_sort(value, table, default)
        return self

    def paginate(
        self,
        take: Any,
        skip: Any = 0,
        *,
        bounds: PageBounds,
        max_offset: int | None = None,
    ) -> "QueryBuilder":
        self._limit = int(clamp(take, bounds.minimum, bounds.maximum, bounds.default))
        upper = max_offset if max_offset is not None else float("inf")
        self._offset = int(clamp(skip, 0, upper, 0))
        return self

    def build(self) -> ScopedQuery:
        filters = (self._identity,) if self._identity is not None else tuple(self._filters)
        return ScopedQuery(
            scope=tuple(self._scope),
            filters=filters,
            sort=self._sort,
            limit=self._limit,
            offset=self._offset,
        )
