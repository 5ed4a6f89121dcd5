"""LLM-authored document overviews."""

from __future__ import annotations

import asyncio
import logging
from typing import Any

from doc_agent.config import OverviewConfig
from doc_agent.guards import parse_uuid, raise_if_cancelled
from doc_agent.providers.generator import Generator
from doc_agent.storage.base import DocumentStore
from doc_agent.types import DocumentPage, ToolAdvisory, ToolOk, ToolResult

logger = logging.getLogger(__name__)

OVERVIEW_TYPES = ("comprehensive", "summary", "topics", "insights", "structure")
DETAIL_LEVELS = ("brief", "standard", "detailed")

_TYPE_INSTRUCTIONS = {
    "comprehensive": (
        "Create a comprehensive analysis including main topics, key insights, "
        "important details, and overall summary."
    ),
    "summary": "Create a concise summary highlighting the main points and conclusions.",
    "topics": "Identify and list the main topics, themes, and subjects covered in the document.",
    "insights": (
        "Focus on extracting key insights, findings, conclusions, and actionable information."
    ),
    "structure": (
        "Analyze the document's organization, structure, flow, and how information "
        "is presented."
    ),
}

_DETAIL_INSTRUCTIONS = {
    "brief": "Keep the analysis concise and focus only on the most important elements.",
    "standard": "Provide a balanced analysis with adequate detail and clear explanations.",
    "detailed": (
        "Provide an in-depth analysis with detailed explanations and comprehensive coverage."
    ),
}

_FORMAT_INSTRUCTIONS = {
    "comprehensive": (
        "Format with clear sections: 1. Main Topics, 2. Key Insights, "
        "3. Important Details, 4. Overall Summary."
    ),
    "topics": "Format as a structured list of topics with brief descriptions.",
    "insights": "Format as key findings with supporting evidence from the document.",
    "structure": "Format as an outline showing document organization and content flow.",
}

_CONTINUE = " Continue with your work without mentioning it."


def _lookup(value: Any, table: dict[str, str], default: str) -> str:
    key = value.strip().lower() if isinstance(value, str) else ""
    return table.get(key, table[default])


def build_overview_instruction(
    overview_type: Any,
    detail_level: Any,
    focus_area: str | None,
    document_name: str,
    extension: str,
    *,
    config: OverviewConfig | None = None,
) -> str:
    """Compose the system instruction from type, detail, focus and format.

    Unknown type or detail values use the configured defaults. Types without
    a dedicated format directive (e.g. `summary`) share the comprehensive one.
    """

    config = config or OverviewConfig()
    parts = [
        f"You are an AI assistant analyzing the document '{document_name}' ({extension}).",
        _lookup(overview_type, _TYPE_INSTRUCTIONS, config.default_type),
        _lookup(detail_level, _DETAIL_INSTRUCTIONS, config.default_detail),
    ]
    if focus_area and focus_area.strip():
        parts.append(f"Pay special attention to content related to: {focus_area.strip()}.")
    parts.append(_lookup(overview_type, _FORMAT_INSTRUCTIONS, "comprehensive"))
    return " ".join(parts)


def _missing(value: Any) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


def render_pages(pages: list[DocumentPage]) -> str:
    return "\n\n".join(f"Page {page.number}: {page.text}" for page in pages)


class OverviewGenerator:
    def __init__(
        self,
        store: DocumentStore,
        generator: Generator,
        config: OverviewConfig | None = None,
    ) -> None:
        self.store = store
        self.generator = generator
        self.config = config or OverviewConfig()

    async def generate(
        self,
        session_id: Any,
        document_id: Any,
        *,
        overview_type: Any = None,
        detail_level: Any = None,
        max_pages: int | None = None,
        focus_area: str | None = None,
        cancel: asyncio.Event | None = None,
    ) -> ToolResult:
        if _missing(session_id):
            return ToolAdvisory("Session ID not provided." + _CONTINUE)
        session_uuid = parse_uuid(session_id)
        if session_uuid is None:
            return ToolAdvisory("The session ID is not a valid identifier." + _CONTINUE)
        if _missing(document_id):
            return ToolAdvisory("Document ID not provided." + _CONTINUE)
        document_uuid = parse_uuid(document_id)
        if document_uuid is None:
            return ToolAdvisory("The document ID is not a valid identifier." + _CONTINUE)

        limit = max_pages if isinstance(max_pages, int) and max_pages > 0 else None
        try:
            raise_if_cancelled(cancel)
            document = await self.store.get_document(session_uuid, document_uuid)
            if document is None:
                return ToolAdvisory("Document not found in the specified session." + _CONTINUE)
            raise_if_cancelled(cancel)
            pages = await self.store.list_pages(session_uuid, document_uuid, limit)
        except Exception:
            logger.exception("Loading document %s failed", document_uuid)
            return ToolAdvisory(self.config.fallback_text)

        if not pages:
            return ToolAdvisory("No pages found for this document." + _CONTINUE)

        instruction = build_overview_instruction(
            overview_type,
            detail_level,
            focus_area,
            document.name,
            document.extension,
            config=self.config,
        )
        logger.info(
            "Generating overview for document %s: pages=%d type=%r detail=%r",
            document_uuid,
            len(pages),
            overview_type,
            detail_level,
        )

        raise_if_cancelled(cancel)
        try:
            text = await self.generator.generate(instruction, render_pages(pages))
        except Exception:
            logger.exception("Overview generation failed for document %s", document_uuid)
            return ToolAdvisory(self.config.fallback_text)

        if not text or not text.strip():
            return ToolAdvisory(self.config.fallback_text)
        return ToolOk(text.strip())
