"""Session-scoped semantic search over document pages."""

from __future__ import annotations

import asyncio
import logging
from typing import Any
from uuid import UUID

from doc_agent.config import SearchConfig
from doc_agent.guards import parse_uuid, raise_if_cancelled
from doc_agent.providers.embedder import Embedder
from doc_agent.query.builder import clamp
from doc_agent.query.domains import document_search_scope
from doc_agent.storage.base import SimilarityStore
from doc_agent.types import DocumentMatch, MatchedPage, SimilarityHit

logger = logging.getLogger(__name__)


class SemanticSearcher:
    """Embeds a prompt once and returns matching pages grouped by document."""

    def __init__(
        self,
        store: SimilarityStore,
        embedder: Embedder,
        config: SearchConfig | None = None,
    ) -> None:
        self.store = store
        self.embedder = embedder
        self.config = config or SearchConfig()

    async def search(
        self,
        session_id: Any,
        prompt: str | None,
        *,
        max_results: Any = None,
        similarity_threshold: Any = None,
        document_name: str | None = None,
        include_page_numbers: bool = True,
        cancel: asyncio.Event | None = None,
    ) -> list[DocumentMatch]:
        """Search one session's active documents.

        Never raises for bad input or collaborator failure: an invalid session
        id, an embedding error or a store error all yield an empty list.
        """

        session_uuid = parse_uuid(session_id)
        if session_uuid is None:
            logger.warning("Semantic search skipped: invalid session id %r", session_id)
            return []

        page = self.config.page
        top_k = int(clamp(max_results, page.minimum, page.maximum, page.default))
        threshold = float(
            clamp(
                similarity_threshold,
                self.config.min_threshold,
                self.config.max_threshold,
                self.config.default_threshold,
            )
        )
        logger.info(
            "Searching session %s: top_k=%d threshold=%.2f document_name=%r",
            session_uuid,
            top_k,
            threshold,
            document_name,
        )

        raise_if_cancelled(cancel)
        try:
            vector = await self.embedder.aembed_query(prompt or "")
        except Exception:
            logger.exception("Embedding generation failed for session %s", session_uuid)
            return []

        raise_if_cancelled(cancel)
        hits = await self._search_store(session_uuid, vector, threshold, top_k, document_name)
        return group_hits_by_document(hits, include_page_numbers=include_page_numbers)

    async def _search_store(
        self,
        session_id: UUID,
        vector: list[float],
        threshold: float,
        top_k: int,
        document_name: str | None,
    ) -> list[SimilarityHit]:
        scope = document_search_scope(session_id, document_name)
        try:
            hits = await self.store.search(scope, vector, threshold, top_k)
        except Exception:
            logger.exception("Similarity search failed for session %s", session_id)
            return []
        return [hit for hit in hits if hit.distance <= threshold][:top_k]


def group_hits_by_document(
    hits: list[SimilarityHit],
    *,
    include_page_numbers: bool = True,
) -> list[DocumentMatch]:
    """Group a flat ranked hit list by owning document.

    Documents appear in order of their best hit; pages inside a group keep
    their relative order from the flat list.
    """

    groups: dict[UUID, DocumentMatch] = {}
    for hit in hits:
        group = groups.get(hit.document.id)
        if group is None:
            group = DocumentMatch(document=hit.document, pages=[])
            groups[hit.document.id] = group
        group.pages.append(
            MatchedPage(
                id=hit.page.id,
                text=hit.page.text,
                distance=hit.distance,
                number=hit.page.number if include_page_numbers else None,
            )
        )
    return list(groups.values())
