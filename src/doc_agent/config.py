"""Configuration models for the document/CRM tool layer."""

from __future__ import annotations

import os

from pydantic import BaseModel, Field, model_validator


class PageBounds(BaseModel):
    """Default and closed range applied to an agent-supplied page size."""

    default: int = Field(ge=1)
    minimum: int = Field(default=1, ge=1)
    maximum: int = Field(ge=1)

    @model_validator(mode="after")
    def _check_order(self) -> "PageBounds":
        if not self.minimum <= self.default <= self.maximum:
            raise ValueError("default must lie within [minimum, maximum]")
        return self


class ListingConfig(BaseModel):
    """Configures session document listing."""

    page: PageBounds = Field(default_factory=lambda: PageBounds(default=50, maximum=200))
    default_sort: str = "date"


class SearchConfig(BaseModel):
    """Configures semantic search bounds.

    The similarity threshold is a cosine distance: lower is stricter.
    """

    page: PageBounds = Field(default_factory=lambda: PageBounds(default=10, maximum=50))
    default_threshold: float = Field(default=0.5, ge=0.0, le=2.0)
    min_threshold: float = Field(default=0.1, ge=0.0, le=2.0)
    max_threshold: float = Field(default=0.9, ge=0.0, le=2.0)

    @model_validator(mode="after")
    def _check_threshold(self) -> "SearchConfig":
        if not self.min_threshold <= self.default_threshold <= self.max_threshold:
            raise ValueError("default_threshold must lie within the threshold bounds")
        return self


class OverviewConfig(BaseModel):
    """Configures document overview generation."""

    default_type: str = "comprehensive"
    default_detail: str = "standard"
    fallback_text: str = "No overview could be generated for this document."


class RecordConfig(BaseModel):
    """Configures CRM record lookups."""

    page: PageBounds = Field(default_factory=lambda: PageBounds(default=10, maximum=100))
    max_offset: int = Field(default=2000, ge=0)
    default_sort: str = "newest"


class SalesforceSettings(BaseModel):
    """Credentials for the remote record API (OAuth2 username-password flow)."""

    client_id: str
    client_secret: str
    username: str
    password: str
    security_token: str = ""
    endpoint: str = "https://login.salesforce.com"
    api_version: str = "v60.0"
    timeout_seconds: float = Field(default=30.0, gt=0.0)

    @classmethod
    def from_env(cls) -> "SalesforceSettings":
        return cls(
            client_id=os.getenv("SALESFORCE_CLIENT_ID", ""),
            client_secret=os.getenv("SALESFORCE_CLIENT_SECRET", ""),
            username=os.getenv("SALESFORCE_USERNAME", ""),
            password=os.getenv("SALESFORCE_PASSWORD", ""),
            security_token=os.getenv("SALESFORCE_SECURITY_TOKEN", ""),
            endpoint=os.getenv("SALESFORCE_ENDPOINT", "https://login.salesforce.com"),
            api_version=os.getenv("SALESFORCE_API_VERSION", "v60.0"),
        )


class DatabaseSettings(BaseModel):
    """Connection settings for the relational document/record store."""

    url: str = "postgresql+asyncpg://localhost/doc_agent"
    echo: bool = False

    @classmethod
    def from_env(cls) -> "DatabaseSettings":
        return cls(
            url=os.getenv("DATABASE_URL", "postgresql+asyncpg://localhost/doc_agent"),
            echo=os.getenv("DATABASE_ECHO", "").lower() in {"1", "true", "yes"},
        )
