"""In-memory stores used for tests and local prototyping."""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from math import sqrt
from uuid import UUID

from doc_agent.query.evaluate import matches, run_query
from doc_agent.query.predicates import ScopedQuery
from doc_agent.types import Contact, Document, DocumentPage, PageStats, SimilarityHit


class InMemoryDocumentStore:
    """Deterministic document store that also serves similarity search."""

    def __init__(self) -> None:
        self._documents: dict[UUID, Document] = {}
        self._pages: dict[UUID, DocumentPage] = {}

    def add_document(self, document: Document, pages: Iterable[DocumentPage] = ()) -> None:
        self._documents[document.id] = document
        for page in pages:
            if page.document_id != document.id:
                raise ValueError("page does not belong to document")
            self._pages[page.id] = page

    async def list_documents(self, query: ScopedQuery) -> list[Document]:
        return run_query(self._documents.values(), query)

    async def get_document(self, session_id: UUID, document_id: UUID) -> Document | None:
        document = self._documents.get(document_id)
        if document is None or document.session_id != session_id or not document.is_active:
            return None
        return document

    async def list_pages(
        self,
        session_id: UUID,
        document_id: UUID,
        limit: int | None = None,
    ) -> list[DocumentPage]:
        if await self.get_document(session_id, document_id) is None:
            return []
        pages = sorted(
            (p for p in self._pages.values() if p.document_id == document_id and p.is_active),
            key=lambda p: p.number,
        )
        return pages if limit is None else pages[:limit]

    async def page_stats(self, document_ids: Sequence[UUID]) -> dict[UUID, PageStats]:
        stats = {document_id: PageStats() for document_id in document_ids}
        for page in self._pages.values():
            entry = stats.get(page.document_id)
            if entry is None or not page.is_active:
                continue
            entry.count += 1
            if page.date_created is not None and (
                entry.last_created is None or page.date_created > entry.last_created
            ):
                entry.last_created = page.date_created
        return stats

    async def search(
        self,
        scope: ScopedQuery,
        query_vector: list[float],
        threshold: float,
        top_k: int,
    ) -> list[SimilarityHit]:
        hits: list[SimilarityHit] = []
        for page in self._pages.values():
            if not page.is_active:
                continue
            document = self._documents.get(page.document_id)
            if document is None or not all(matches(document, p) for p in scope.predicates):
                continue
            distance = cosine_distance(query_vector, page.embedding)
            if distance <= threshold:
                hits.append(SimilarityHit(document=document, page=page, distance=distance))
        hits.sort(key=lambda hit: (hit.distance, hit.page.number, str(hit.page.id)))
        return hits[:top_k]


class InMemoryContactStore:
    def __init__(self, contacts: Iterable[Contact] = ()) -> None:
        self._contacts = list(contacts)

    async def fetch_contacts(self, query: ScopedQuery) -> list[Contact]:
        return run_query(self._contacts, query)


def cosine_distance(a: list[float], b: list[float]) -> float:
    """1 - cosine similarity, in [0, 2]. Degenerate vectors are orthogonal."""
    if not a or not b or len(a) != len(b):
        return 1.0
    numerator = sum(x * y for x, y in zip(a, b, strict=True))
    norm_a = sqrt(sum(x * x for x in a))
    norm_b = sqrt(sum(y * y for y in b))
    if norm_a == 0 or norm_b == 0:
        return 1.0
    similarity = max(-1.0, min(1.0, numerator / (norm_a * norm_b)))
    return 1.0 - similarity
