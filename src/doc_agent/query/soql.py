"""Serialization of a `ScopedQuery` into a remote SOQL statement.

Every literal passes through `render_literal`, which relies on the single
`escape_soql_literal` function. No caller interpolates filter text directly.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from datetime import date, datetime, timezone
from decimal import Decimal
from typing import Any
from uuid import UUID

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

_ESCAPES = {
    "\\": "\\\\",
    "'": "\\'",
    '"': '\\"',
    "\n": "\\n",
    "\r": "\\r",
    "\t": "\\t",
    "\b": "\\b",
    "\f": "\\f",
}
_LIKE_ESCAPES = {**_ESCAPES, "%": "\\%", "_": "\\_"}


def escape_soql_literal(value: str, *, like: bool = False) -> str:
    """Escape text for use inside a single-quoted SOQL string.

    With `like=True` the LIKE wildcards are escaped too, so the value always
    matches literally. Other control characters are dropped.
    """

    table = _LIKE_ESCAPES if like else _ESCAPES
    out: list[str] = []
    for char in value:
        replacement = table.get(char)
        if replacement is not None:
            out.append(replacement)
        elif ord(char) < 0x20 or ord(char) == 0x7F:
            continue
        else:
            out.append(char)
    return "".join(out)


def format_datetime(value: datetime | date) -> str:
    if not isinstance(value, datetime):
        value = datetime(value.year, value.month, value.day, tzinfo=timezone.utc)
    elif value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ")


def render_literal(value: Any, *, like: bool = False) -> str:
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (int, float, Decimal)):
        return str(value)
    if isinstance(value, (datetime, date)):
        return format_datetime(value)
    if isinstance(value, UUID):
        value = str(value)
    text = escape_soql_literal(str(value), like=like)
    if like:
        return f"'%{text}%'"
    return f"'{text}'"


def render_predicate(predicate: Predicate, field_map: Mapping[str, str]) -> str:
    if isinstance(predicate, AnyOf):
        inner = " OR ".join(render_predicate(p, field_map) for p in predicate.predicates)
        return f"({inner})"

    column = field_map[predicate.field]
    if isinstance(predicate, (Identity, Equals)):
        return f"{column} = {render_literal(predicate.value)}"
    if isinstance(predicate, NotEquals):
        return f"({column} != {render_literal(predicate.value)} OR {column} = null)"
    if isinstance(predicate, Contains):
        return f"{column} LIKE {render_literal(predicate.value, like=True)}"
    if isinstance(predicate, IsNull):
        return f"{column} = null"
    if isinstance(predicate, Range):
        parts: list[str] = []
        if predicate.lower is not None:
            parts.append(f"{column} >= {render_literal(predicate.lower)}")
        if predicate.upper is not None:
            operator = "<" if predicate.upper_exclusive else "<="
            parts.append(f"{column} {operator} {render_literal(predicate.upper)}")
        return " AND ".join(parts)
    raise TypeError(f"Unsupported predicate: {predicate!r}")


def render_where(query: ScopedQuery, field_map: Mapping[str, str]) -> str:
    clauses = [render_predicate(p, field_map) for p in query.predicates]
    clauses = [clause for clause in clauses if clause]
    return " AND ".join(clauses)


def render_soql(
    query: ScopedQuery,
    *,
    sobject: str,
    fields: Sequence[str],
    field_map: Mapping[str, str],
) -> str:
    """Render exactly one SELECT statement for `query`."""

    parts = [f"SELECT {', '.join(fields)} FROM {sobject}"]
    where = render_where(query, field_map)
    if where:
        parts.append(f"WHERE {where}")
    if query.sort:
        order = ", ".join(
            f"{field_map[key.field]} {'DESC' if key.descending else 'ASC'}"
            for key in query.sort
        )
        parts.append(f"ORDER BY {order}")
    if query.limit is not None:
        parts.append(f"LIMIT {int(query.limit)}")
    if query.offset > 0:
        parts.append(f"OFFSET {int(query.offset)}")
    return " ".join(parts)
