"""Agent-facing output models, serialized as compact camelCase JSON."""

from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal
from typing import Any
from uuid import UUID

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

from doc_agent.types import Contact, DocumentMatch


class AgentModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class DocumentInfo(AgentModel):
    id: UUID
    session_id: UUID
    name: str
    extension: str
    date_created: datetime
    page_count: int | None = None
    last_modified: datetime | None = None
    has_content: bool | None = None


class AppliedFilters(AgentModel):
    name_filter: str
    extension_filter: str
    sort_by: str
    max_results: int


class DocumentListing(AgentModel):
    session_id: UUID
    total_documents: int
    applied_filters: AppliedFilters
    documents: list[DocumentInfo]


class PageResult(AgentModel):
    id: UUID
    number: int | None = None
    text: str


class DocumentSearchResult(AgentModel):
    id: UUID
    session_id: UUID
    name: str
    extension: str
    date_created: datetime
    pages: list[PageResult]

    @classmethod
    def from_match(cls, match: DocumentMatch) -> "DocumentSearchResult":
        document = match.document
        return cls(
            id=document.id,
            session_id=document.session_id,
            name=document.name,
            extension=document.extension,
            date_created=document.date_created,
            pages=[PageResult(id=p.id, number=p.number, text=p.text) for p in match.pages],
        )


class ContactInfo(AgentModel):
    id: str
    first_name: str | None = None
    last_name: str | None = None
    email: str | None = None
    phone: str | None = None
    created_date: datetime | None = None
    is_active: bool

    @classmethod
    def from_contact(cls, contact: Contact) -> "ContactInfo":
        return cls(
            id=contact.id,
            first_name=contact.first_name,
            last_name=contact.last_name,
            email=contact.email,
            phone=contact.phone,
            created_date=contact.created_date,
            is_active=contact.is_active,
        )


class OpportunityInfo(AgentModel):
    id: str
    name: str | None = None
    stage_name: str | None = None
    amount: Decimal | None = None
    created_date: datetime | None = None
    last_modified_date: datetime | None = None
    account_id: str | None = None
    account_name: str | None = None
    type: str | None = None
    policy_number: str | None = None
    unique_id: str | None = None
    ice_status: str | None = None
    producer_id: str | None = None
    producer_email: str | None = None
    policy_effective_date: date | None = None
    policy_expiration_date: date | None = None
    line_of_business: str | None = None
    business_unit: str | None = None
    issuing_office: str | None = None

    @classmethod
    def from_record(cls, record: dict[str, Any]) -> "OpportunityInfo":
        fields = {key.upper(): value for key, value in record.items()}
        account = fields.get("ACCOUNT")
        return cls(
            id=str(fields.get("ID")),
            name=fields.get("NAME"),
            stage_name=fields.get("STAGENAME"),
            amount=fields.get("AMOUNT"),
            created_date=fields.get("CREATEDDATE"),
            last_modified_date=fields.get("LASTMODIFIEDDATE"),
            account_id=fields.get("ACCOUNTID"),
            account_name=account.get("Name") if isinstance(account, dict) else None,
            type=fields.get("TYPE"),
            policy_number=fields.get("POLICY_NUMBER_CURRENT__C"),
            unique_id=fields.get("STARR_UNIQUE_ID__C"),
            ice_status=fields.get("ICE_STATUS__C"),
            producer_id=fields.get("NEW_PRODUCER__C"),
            producer_email=fields.get("PRODUCER_CONTACT_EMAIL__C"),
            policy_effective_date=fields.get("EFFECTIVE_DATE__C"),
            policy_expiration_date=fields.get("EXPIRATION_DATE__C"),
            line_of_business=fields.get("LINE_OF_BUSINESS__C"),
            business_unit=fields.get("BUSINESS_UNIT__C"),
            issuing_office=fields.get("ISSUING_OFFICE__C"),
        )
