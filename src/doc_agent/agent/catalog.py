"""Static tool catalog assembled once at process start."""

from __future__ import annotations

from doc_agent.agent.crm_tools import register_crm_tools
from doc_agent.agent.document_tools import register_document_tools, register_search_tools
from doc_agent.agent.registry import ToolRegistry
from doc_agent.crm.contacts import ContactLookupService
from doc_agent.crm.opportunities import OpportunityLookupService
from doc_agent.retrieval.documents import DocumentListingService
from doc_agent.retrieval.overview import OverviewGenerator
from doc_agent.retrieval.search import SemanticSearcher


def build_catalog(
    *,
    listing: DocumentListingService,
    overview: OverviewGenerator,
    searcher: SemanticSearcher,
    contacts: ContactLookupService | None = None,
    opportunities: OpportunityLookupService | None = None,
) -> ToolRegistry:
    """Register the fixed, ordered tool list and seal the registry.

    Order: document tools, semantic search, then CRM tools whose backends
    are configured.
    """

    registry = ToolRegistry()
    register_document_tools(registry, listing, overview)
    register_search_tools(registry, searcher)
    register_crm_tools(registry, contacts=contacts, opportunities=opportunities)
    registry.seal()
    return registry
