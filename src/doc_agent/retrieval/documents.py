"""Session document listing."""

from __future__ import annotations

import asyncio
import logging
from typing import Any
from uuid import UUID

from doc_agent.config import ListingConfig
from doc_agent.guards import parse_uuid, raise_if_cancelled
from doc_agent.query.domains import session_documents_query
from doc_agent.schemas import AppliedFilters, DocumentInfo, DocumentListing
from doc_agent.storage.base import DocumentStore
from doc_agent.types import PageStats, ToolAdvisory, ToolOk, ToolResult

logger = logging.getLogger(__name__)

_CONTINUE = " Continue with your work without mentioning it."


class DocumentListingService:
    def __init__(self, store: DocumentStore, config: ListingConfig | None = None) -> None:
        self.store = store
        self.config = config or ListingConfig()

    async def list_session_documents(
        self,
        session_id: Any,
        *,
        name_filter: str | None = None,
        extension_filter: str | None = None,
        sort_by: Any = None,
        max_results: Any = None,
        include_page_count: bool = True,
        include_detailed_info: bool = False,
        cancel: asyncio.Event | None = None,
    ) -> ToolResult:
        if session_id is None or (isinstance(session_id, str) and not session_id.strip()):
            return ToolAdvisory("No session ID provided." + _CONTINUE)
        session_uuid = parse_uuid(session_id)
        if session_uuid is None:
            return ToolAdvisory("The session ID is not a valid identifier." + _CONTINUE)

        query = session_documents_query(
            session_uuid,
            name_filter=name_filter,
            extension_filter=extension_filter,
            sort_by=sort_by,
            max_results=max_results,
            config=self.config,
        )
        logger.info(
            "Listing documents for session %s: name=%r extension=%r sort=%r limit=%s",
            session_uuid,
            name_filter,
            extension_filter,
            sort_by,
            query.limit,
        )

        try:
            raise_if_cancelled(cancel)
            documents = await self.store.list_documents(query)
            stats: dict[UUID, PageStats] = {}
            if documents and (include_page_count or include_detailed_info):
                raise_if_cancelled(cancel)
                stats = await self.store.page_stats([d.id for d in documents])
        except Exception:
            logger.exception("Listing documents failed for session %s", session_uuid)
            documents = []

        if not documents:
            return ToolAdvisory("No documents found in the current session." + _CONTINUE)

        sort_label = sort_by if isinstance(sort_by, str) and sort_by else self.config.default_sort
        infos: list[DocumentInfo] = []
        for document in documents:
            info = DocumentInfo(
                id=document.id,
                session_id=document.session_id,
                name=document.name,
                extension=document.extension,
                date_created=document.date_created,
            )
            page_stats = stats.get(document.id)
            if include_page_count:
                info.page_count = page_stats.count if page_stats else 0
            if include_detailed_info:
                info.last_modified = page_stats.last_created if page_stats else None
                info.has_content = bool(page_stats and page_stats.count)
            infos.append(info)

        return ToolOk(
            DocumentListing(
                session_id=session_uuid,
                total_documents=len(infos),
                applied_filters=AppliedFilters(
                    name_filter=name_filter or "none",
                    extension_filter=extension_filter or "none",
                    sort_by=sort_label,
                    max_results=query.limit or self.config.page.default,
                ),
                documents=infos,
            )
        )
