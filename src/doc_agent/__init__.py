"""Session document and CRM tools for LLM agents."""

from .agent.catalog import build_catalog
from .config import ListingConfig, OverviewConfig, RecordConfig, SearchConfig

__all__ = ["ListingConfig", "OverviewConfig", "RecordConfig", "SearchConfig", "build_catalog"]
