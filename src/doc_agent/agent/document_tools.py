"""Document listing, overview and semantic search tools."""

from __future__ import annotations

import asyncio
from typing import Any

from doc_agent.agent.registry import ParameterType, ToolParameter, ToolRegistry, ToolSpec
from doc_agent.query.domains import DOCUMENT_SORTS
from doc_agent.retrieval.documents import DocumentListingService
from doc_agent.retrieval.overview import DETAIL_LEVELS, OVERVIEW_TYPES, OverviewGenerator
from doc_agent.retrieval.search import SemanticSearcher
from doc_agent.schemas import DocumentSearchResult
from doc_agent.types import ToolOk, ToolResult

_SESSION_ID = ToolParameter(
    name="session_id",
    type=ParameterType.STRING,
    description="The session ID containing the documents (GUID format)",
    required=True,
)


def document_listing_tool(listing: DocumentListingService) -> ToolSpec:
    page = listing.config.page

    async def _handler(args: Any, cancel: asyncio.Event | None) -> ToolResult:
        return await listing.list_session_documents(
            args.session_id,
            name_filter=args.name_filter,
            extension_filter=args.extension_filter,
            sort_by=args.sort_by,
            max_results=args.max_results,
            include_page_count=args.include_page_count,
            include_detailed_info=args.include_detailed_info,
            cancel=cancel,
        )

    return ToolSpec(
        name="get_session_documents",
        description=(
            "Retrieves all documents in the current session with filtering and sorting "
            "options. Returns document metadata including names, types, creation dates, "
            "and page counts. Useful for document discovery and selection."
        ),
        parameters=(
            _SESSION_ID,
            ToolParameter(
                name="name_filter",
                type=ParameterType.STRING,
                description="Filter by document name (partial match). Leave empty for all documents.",
            ),
            ToolParameter(
                name="extension_filter",
                type=ParameterType.STRING,
                description="Filter by file extension, e.g. 'pdf', 'docx', 'txt'. Leave empty for all types.",
            ),
            ToolParameter(
                name="sort_by",
                type=ParameterType.STRING,
                description=(
                    "Sort order: 'name' (alphabetical), 'date' (newest first), "
                    "'dateOld' (oldest first), 'extension' (by file type). "
                    "Unrecognized values use 'date'"
                ),
                default=listing.config.default_sort,
                choices=tuple(DOCUMENT_SORTS),
            ),
            ToolParameter(
                name="max_results",
                type=ParameterType.INTEGER,
                description="Maximum number of documents to return",
                default=page.default,
                minimum=page.minimum,
                maximum=page.maximum,
            ),
            ToolParameter(
                name="include_page_count",
                type=ParameterType.BOOLEAN,
                description="Include the page count for each document. Set to false for a faster response.",
                default=True,
            ),
            ToolParameter(
                name="include_detailed_info",
                type=ParameterType.BOOLEAN,
                description="Include the last page modification date and whether the document has content",
                default=False,
            ),
        ),
        handler=_handler,
        tags=("documents",),
    )


def document_overview_tool(overview: OverviewGenerator) -> ToolSpec:
    async def _handler(args: Any, cancel: asyncio.Event | None) -> ToolResult:
        return await overview.generate(
            args.session_id,
            args.document_id,
            overview_type=args.overview_type,
            detail_level=args.detail_level,
            max_pages=args.max_pages,
            focus_area=args.focus_area,
            cancel=cancel,
        )

    return ToolSpec(
        name="get_document_overview",
        description=(
            "Creates an overview or analysis of a specific document: main topics, key "
            "points, important details and summaries. Can be customized for different "
            "overview types and detail levels."
        ),
        parameters=(
            _SESSION_ID,
            ToolParameter(
                name="document_id",
                type=ParameterType.STRING,
                description="The document ID to analyze (GUID format)",
                required=True,
            ),
            ToolParameter(
                name="overview_type",
                type=ParameterType.STRING,
                description=(
                    "Type of overview: 'comprehensive' (full analysis), 'summary' (brief "
                    "overview), 'topics' (main topics only), 'insights' (key findings), "
                    "'structure' (document organization)"
                ),
                default=overview.config.default_type,
                choices=OVERVIEW_TYPES,
            ),
            ToolParameter(
                name="detail_level",
                type=ParameterType.STRING,
                description="Depth of the analysis",
                default=overview.config.default_detail,
                choices=DETAIL_LEVELS,
            ),
            ToolParameter(
                name="max_pages",
                type=ParameterType.INTEGER,
                description=(
                    "Analyze only the first N pages in page order. Omit or use 0 to "
                    "analyze all pages; useful for large documents"
                ),
            ),
            ToolParameter(
                name="focus_area",
                type=ParameterType.STRING,
                description=(
                    "Optional focus area, e.g. 'financial data', 'technical "
                    "specifications', 'conclusions', 'methodology'"
                ),
            ),
        ),
        handler=_handler,
        tags=("documents", "llm"),
    )


def document_search_tool(searcher: SemanticSearcher) -> ToolSpec:
    config = searcher.config

    async def _handler(args: Any, cancel: asyncio.Event | None) -> ToolResult:
        matches = await searcher.search(
            args.session_id,
            args.prompt,
            max_results=args.max_results,
            similarity_threshold=args.similarity_threshold,
            document_name=args.document_name,
            include_page_numbers=args.include_page_numbers,
            cancel=cancel,
        )
        return ToolOk([DocumentSearchResult.from_match(match) for match in matches])

    return ToolSpec(
        name="search_documents",
        description=(
            "Performs semantic search across documents in the current session to find "
            "content relevant to the user's query. Uses vector similarity to find the "
            "most relevant pages and returns document names, page numbers and matching "
            "content, grouped by document. Returns an empty list when nothing matches."
        ),
        parameters=(
            _SESSION_ID,
            ToolParameter(
                name="prompt",
                type=ParameterType.STRING,
                description="The search query; describe the information you are looking for in natural language",
                required=True,
            ),
            ToolParameter(
                name="max_results",
                type=ParameterType.INTEGER,
                description="Maximum number of relevant pages to return across all documents",
                default=config.page.default,
                minimum=config.page.minimum,
                maximum=config.page.maximum,
            ),
            ToolParameter(
                name="similarity_threshold",
                type=ParameterType.NUMBER,
                description=(
                    "Maximum cosine distance of a matching page. Lower values are stricter "
                    "(only very similar content), higher values return more results"
                ),
                default=config.default_threshold,
                minimum=config.min_threshold,
                maximum=config.max_threshold,
            ),
            ToolParameter(
                name="document_name",
                type=ParameterType.STRING,
                description="Only search documents whose name contains this text. Leave empty to search all documents.",
            ),
            ToolParameter(
                name="include_page_numbers",
                type=ParameterType.BOOLEAN,
                description="Include page numbers in results for better context",
                default=True,
            ),
        ),
        handler=_handler,
        tags=("documents", "retrieval"),
    )


def register_document_tools(
    registry: ToolRegistry,
    listing: DocumentListingService,
    overview: OverviewGenerator,
) -> None:
    registry.register(document_listing_tool(listing))
    registry.register(document_overview_tool(overview))


def register_search_tools(registry: ToolRegistry, searcher: SemanticSearcher) -> None:
    registry.register(document_search_tool(searcher))
