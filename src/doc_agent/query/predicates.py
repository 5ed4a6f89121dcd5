"""Structured predicates and the composed query they form.

Filters are built as plain data first and only serialized to a store's
native syntax at the boundary (see `sql`, `soql` and `evaluate`).
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Union


@dataclass(slots=True, frozen=True)
class Identity:
    """Exact primary-key match. Supersedes every optional filter."""

    field: str
    value: Any


@dataclass(slots=True, frozen=True)
class Equals:
    field: str
    value: Any
    case_insensitive: bool = False


@dataclass(slots=True, frozen=True)
class NotEquals:
    """Null-safe inequality: a missing value counts as not equal."""

    field: str
    value: Any


@dataclass(slots=True, frozen=True)
class Contains:
    """Case-insensitive substring match; the value is always literal."""

    field: str
    value: str


@dataclass(slots=True, frozen=True)
class Range:
    """Closed lower bound; upper bound closed unless `upper_exclusive`."""

    field: str
    lower: Any = None
    upper: Any = None
    upper_exclusive: bool = False


@dataclass(slots=True, frozen=True)
class IsNull:
    field: str


@dataclass(slots=True, frozen=True)
class AnyOf:
    """Disjunction of other predicates."""

    predicates: tuple["Predicate", ...]


Predicate = Union[Identity, Equals, NotEquals, Contains, Range, IsNull, AnyOf]


@dataclass(slots=True, frozen=True)
class SortField:
    field: str
    descending: bool = False


@dataclass(slots=True, frozen=True)
class ScopedQuery:
    """A fully composed query: mandatory scope, optional filters, sort, page."""

    scope: tuple[Predicate, ...]
    filters: tuple[Predicate, ...]
    sort: tuple[SortField, ...]
    limit: int | None
    offset: int = 0

    @property
    def predicates(self) -> tuple[Predicate, ...]:
        return self.scope + self.filters

    @property
    def identity(self) -> Identity | None:
        for predicate in self.filters:
            if isinstance(predicate, Identity):
                return predicate
        return None
