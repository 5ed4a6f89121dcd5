"""Query factories for documents and CRM records."""

from __future__ import annotations

from datetime import date, datetime
from typing import Any
from uuid import UUID

from doc_agent.config import ListingConfig, RecordConfig
from doc_agent.query.builder import QueryBuilder
from doc_agent.query.predicates import Equals, IsNull, ScopedQuery, SortField

DOCUMENT_SORTS: dict[str, tuple[SortField, ...]] = {
    "name": (SortField("name"),),
    "date": (SortField("date_created", descending=True),),
    "date-desc": (SortField("date_created", descending=True),),
    "newest": (SortField("date_created", descending=True),),
    "dateOld": (SortField("date_created"),),
    "date-asc": (SortField("date_created"),),
    "oldest": (SortField("date_created"),),
    "extension": (SortField("extension"), SortField("name")),
}

RECORD_SORTS: dict[str, tuple[SortField, ...]] = {
    "newest": (SortField("created_date", descending=True),),
    "oldest": (SortField("created_date"),),
}

CONTACT_SEARCH_FIELDS = ("first_name", "last_name", "email")


def active_session_scope(session_id: UUID) -> tuple[Equals, IsNull]:
    """Mandatory scope for every document read."""
    return (Equals("session_id", session_id), IsNull("date_deactivated"))


def session_documents_query(
    session_id: UUID,
    *,
    name_filter: str | None = None,
    extension_filter: str | None = None,
    sort_by: Any = None,
    max_results: Any = None,
    config: ListingConfig | None = None,
) -> ScopedQuery:
    config = config or ListingConfig()
    extension = extension_filter.strip().lstrip(".") if extension_filter else None
    return (
        QueryBuilder()
        .scope(*active_session_scope(session_id))
        .contains("name", name_filter)
        .equals("extension", extension, case_insensitive=True)
        .sort_by(sort_by, DOCUMENT_SORTS, config.default_sort)
        .paginate(max_results, bounds=config.page)
        .build()
    )


def document_search_scope(session_id: UUID, document_name: str | None = None) -> ScopedQuery:
    """Scope handed to the similarity store: active session documents, by name."""
    return (
        QueryBuilder()
        .scope(*active_session_scope(session_id))
        .contains("name", document_name)
        .build()
    )


def contacts_query(
    *,
    contact_id: str | None = None,
    search_term: str | None = None,
    email: str | None = None,
    first_name: str | None = None,
    last_name: str | None = None,
    active_only: bool = True,
    created_after: datetime | None = None,
    created_before: datetime | None = None,
    created_on: date | datetime | None = None,
    sort_order: Any = None,
    take: Any = None,
    skip: Any = 0,
    config: RecordConfig | None = None,
) -> ScopedQuery:
    config = config or RecordConfig()
    builder = QueryBuilder().identity("id", contact_id)
    if active_only:
        builder.not_equals("inactive_flag", 1)
    builder.contains_any(CONTACT_SEARCH_FIELDS, search_term)
    builder.contains("email", email)
    builder.contains("first_name", first_name)
    builder.contains("last_name", last_name)
    if created_on is not None:
        builder.on_day("created_date", created_on)
    else:
        builder.date_range("created_date", created_after, created_before)
    return (
        builder.sort_by(sort_order, RECORD_SORTS, config.default_sort)
        .paginate(take, skip, bounds=config.page, max_offset=config.max_offset)
        .build()
    )


def opportunities_query(
    *,
    opportunity_id: str | None = None,
    policy_number: str | None = None,
    unique_id: str | None = None,
    stage_name: str | None = None,
    created_after: datetime | None = None,
    created_before: datetime | None = None,
    sort_order: Any = None,
    take: Any = None,
    skip: Any = 0,
    config: RecordConfig | None = None,
) -> ScopedQuery:
    config = config or RecordConfig()
    return (
        QueryBuilder()
        .identity("id", opportunity_id)
        .contains("policy_number", policy_number)
        .contains("unique_id", unique_id)
        .equals("stage_name", stage_name)
        .date_range("created_date", created_after, created_before)
        .sort_by(sort_order, RECORD_SORTS, config.default_sort)
        .paginate(take, skip, bounds=config.page, max_offset=config.max_offset)
        .build()
    )
