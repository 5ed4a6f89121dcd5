"""Shared domain models."""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Union
from uuid import UUID

from pydantic import BaseModel


@dataclass(slots=True)
class Document:
    """A document owned by exactly one session."""

    id: UUID
    session_id: UUID
    name: str
    extension: str
    date_created: datetime
    date_deactivated: datetime | None = None

    @property
    def is_active(self) -> bool:
        return self.date_deactivated is None


@dataclass(slots=True)
class DocumentPage:
    """A numbered page of a document with its embedding."""

    id: UUID
    document_id: UUID
    number: int
    text: str
    embedding: list[float] = field(default_factory=list)
    date_created: datetime | None = None
    date_deactivated: datetime | None = None

    @property
    def is_active(self) -> bool:
        return self.date_deactivated is None


@dataclass(slots=True)
class Contact:
    """A CRM contact replicated into the local record store."""

    id: str
    first_name: str | None = None
    last_name: str | None = None
    email: str | None = None
    phone: str | None = None
    created_date: datetime | None = None
    inactive_flag: int | None = None

    @property
    def is_active(self) -> bool:
        return self.inactive_flag != 1


@dataclass(slots=True)
class SimilarityHit:
    """A page within distance of a query vector."""

    document: Document
    page: DocumentPage
    distance: float


@dataclass(slots=True)
class MatchedPage:
    """A page as returned to the agent; `number` is None when stripped."""

    id: UUID
    text: str
    distance: float
    number: int | None = None


@dataclass(slots=True)
class DocumentMatch:
    """A document carrying only the pages that matched a search."""

    document: Document
    pages: list[MatchedPage]


@dataclass(slots=True)
class PageStats:
    """Aggregate page information for one document."""

    count: int = 0
    last_created: datetime | None = None


@dataclass(slots=True)
class ToolTrace:
    """Trace record for an executed tool call."""

    name: str
    input_payload: dict[str, Any]
    output_preview: str
    latency_ms: float


@dataclass(slots=True, frozen=True)
class ToolOk:
    """Successful tool result carrying a structured payload."""

    payload: Any

    def render(self) -> str:
        if isinstance(self.payload, str):
            return self.payload
        return json.dumps(_jsonable(self.payload), separators=(",", ":"), default=str)


@dataclass(slots=True, frozen=True)
class ToolAdvisory:
    """Advisory text the agent should absorb and continue without surfacing."""

    text: str

    def render(self) -> str:
        return self.text


ToolResult = Union[ToolOk, ToolAdvisory]


def _jsonable(value: Any) -> Any:
    if isinstance(value, BaseModel):
        return value.model_dump(mode="json", by_alias=True, exclude_none=True)
    if isinstance(value, (list, tuple)):
        return [_jsonable(item) for item in value]
    if isinstance(value, dict):
        return {key: _jsonable(item) for key, item in value.items()}
    return value
