"""Read-only store contracts consumed by the retrieval and CRM services."""

from __future__ import annotations

from collections.abc import Sequence
from typing import Protocol
from uuid import UUID

from doc_agent.query.predicates import ScopedQuery
from doc_agent.types import Contact, Document, DocumentPage, PageStats, SimilarityHit


class DocumentStore(Protocol):
    """Session-scoped document metadata and page access."""

    async def list_documents(self, query: ScopedQuery) -> list[Document]:
        """Return documents matching `query`, sorted and paginated."""

    async def get_document(self, session_id: UUID, document_id: UUID) -> Document | None:
        """Return the active document, or None if absent or deactivated."""

    async def list_pages(
        self,
        session_id: UUID,
        document_id: UUID,
        limit: int | None = None,
    ) -> list[DocumentPage]:
        """Return active pages ordered by number; `limit` keeps a prefix."""

    async def page_stats(self, document_ids: Sequence[UUID]) -> dict[UUID, PageStats]:
        """Return active page count and newest page timestamp per document."""


class SimilarityStore(Protocol):
    """Vector-distance search over document pages.

    Hits are ordered by ascending cosine distance (page number breaks ties),
    hold at most `top_k` entries, and all have `distance <= threshold`.
    The adapter applies `scope` to owning documents and skips deactivated
    pages.
    """

    async def search(
        self,
        scope: ScopedQuery,
        query_vector: list[float],
        threshold: float,
        top_k: int,
    ) -> list[SimilarityHit]:
        """Search page embeddings within scope."""


class ContactStore(Protocol):
    """Read access to CRM contacts."""

    async def fetch_contacts(self, query: ScopedQuery) -> list[Contact]:
        """Return contacts matching `query`."""
