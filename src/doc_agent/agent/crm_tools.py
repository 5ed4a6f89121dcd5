"""CRM record lookup tools."""

from __future__ import annotations

import asyncio
from typing import Any

from doc_agent.agent.registry import ParameterType, ToolParameter, ToolRegistry, ToolSpec
from doc_agent.config import RecordConfig
from doc_agent.crm.contacts import ContactLookupService
from doc_agent.crm.opportunities import OpportunityLookupService
from doc_agent.query.domains import RECORD_SORTS
from doc_agent.types import ToolResult

_DATE_FORMAT = "ISO format: yyyy-MM-dd or yyyy-MM-ddTHH:mm:ss"


def _paging_parameters(config: RecordConfig, noun: str) -> tuple[ToolParameter, ...]:
    return (
        ToolParameter(
            name="take",
            type=ParameterType.INTEGER,
            description=f"Maximum number of {noun} to return",
            default=config.page.default,
            minimum=config.page.minimum,
            maximum=config.page.maximum,
        ),
        ToolParameter(
            name="skip",
            type=ParameterType.INTEGER,
            description=f"Number of {noun} to skip for pagination; use to retrieve additional pages",
            default=0,
            minimum=0,
            maximum=config.max_offset,
        ),
        ToolParameter(
            name="sort_order",
            type=ParameterType.STRING,
            description="Sort by creation date: 'newest' (newest first) or 'oldest' (oldest first)",
            default=config.default_sort,
            choices=tuple(RECORD_SORTS),
        ),
    )


def contact_tool(service: ContactLookupService) -> ToolSpec:
    async def _handler(args: Any, cancel: asyncio.Event | None) -> ToolResult:
        return await service.get_contacts(
            take=args.take,
            skip=args.skip,
            search_term=args.search_term,
            email=args.email,
            first_name=args.first_name,
            last_name=args.last_name,
            active_only=args.active_only,
            contact_id=args.contact_id,
            sort_order=args.sort_order,
            created_after=args.created_after,
            created_before=args.created_before,
            created_on_date=args.created_on_date,
            cancel=cancel,
        )

    return ToolSpec(
        name="get_contact_information",
        description=(
            "Searches and retrieves CRM contacts with filtering, date range queries and "
            "sorting. Can search by name, email, ID or creation date, or return all "
            "contacts; supports finding the oldest or newest contacts ever created."
        ),
        parameters=(
            *_paging_parameters(service.config, "contacts"),
            ToolParameter(
                name="search_term",
                type=ParameterType.STRING,
                description="Match against first name, last name or email (partial match). Leave empty for all contacts.",
            ),
            ToolParameter(
                name="email",
                type=ParameterType.STRING,
                description="Filter by email address (partial match)",
            ),
            ToolParameter(
                name="first_name",
                type=ParameterType.STRING,
                description="Filter by first name (partial match)",
            ),
            ToolParameter(
                name="last_name",
                type=ParameterType.STRING,
                description="Filter by last name (partial match)",
            ),
            ToolParameter(
                name="active_only",
                type=ParameterType.BOOLEAN,
                description="Include only active contacts. Set to false to include inactive contacts.",
                default=True,
            ),
            ToolParameter(
                name="contact_id",
                type=ParameterType.STRING,
                description="Specific contact ID. When provided, all other filters are ignored.",
            ),
            ToolParameter(
                name="created_after",
                type=ParameterType.DATETIME,
                description=f"Only contacts created at or after this time ({_DATE_FORMAT})",
            ),
            ToolParameter(
                name="created_before",
                type=ParameterType.DATETIME,
                description=f"Only contacts created at or before this time ({_DATE_FORMAT})",
            ),
            ToolParameter(
                name="created_on_date",
                type=ParameterType.DATETIME,
                description=(
                    "Only contacts created on this UTC calendar day (ISO format: yyyy-MM-dd). "
                    "Takes precedence over created_after/created_before."
                ),
            ),
        ),
        handler=_handler,
        tags=("crm", "contacts"),
    )


def opportunity_tool(service: OpportunityLookupService) -> ToolSpec:
    async def _handler(args: Any, cancel: asyncio.Event | None) -> ToolResult:
        return await service.get_opportunities(
            opportunity_id=args.opportunity_id,
            policy_number=args.policy_number,
            unique_id=args.unique_id,
            stage_name=args.stage_name,
            created_after=args.created_after,
            created_before=args.created_before,
            sort_order=args.sort_order,
            take=args.take,
            skip=args.skip,
            cancel=cancel,
        )

    return ToolSpec(
        name="get_opportunity_information",
        description=(
            "Searches and retrieves CRM opportunity information with filtering by ID, "
            "policy number, unique ID, creation dates and stage, with sorting. Returns "
            "opportunity details including account, policy and producer fields."
        ),
        parameters=(
            ToolParameter(
                name="opportunity_id",
                type=ParameterType.STRING,
                description="Specific opportunity ID (18-character ID). When provided, all other filters are ignored.",
            ),
            ToolParameter(
                name="policy_number",
                type=ParameterType.STRING,
                description="Filter by policy number (partial match)",
            ),
            ToolParameter(
                name="unique_id",
                type=ParameterType.STRING,
                description="Filter by the policy unique ID field (partial match)",
            ),
            ToolParameter(
                name="stage_name",
                type=ParameterType.STRING,
                description="Filter by stage name, e.g. 'Prospecting', 'Qualification', 'Closed Won', 'Closed Lost'",
            ),
            ToolParameter(
                name="created_after",
                type=ParameterType.DATETIME,
                description=f"Only opportunities created at or after this time ({_DATE_FORMAT})",
            ),
            ToolParameter(
                name="created_before",
                type=ParameterType.DATETIME,
                description=f"Only opportunities created at or before this time ({_DATE_FORMAT})",
            ),
            *_paging_parameters(service.config, "opportunities"),
        ),
        handler=_handler,
        tags=("crm", "opportunities"),
    )


def register_crm_tools(
    registry: ToolRegistry,
    *,
    contacts: ContactLookupService | None = None,
    opportunities: OpportunityLookupService | None = None,
) -> None:
    if contacts is not None:
        registry.register(contact_tool(contacts))
    if opportunities is not None:
        registry.register(opportunity_tool(opportunities))
