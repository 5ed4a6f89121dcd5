"""Contact lookup against the replicated CRM record store."""

from __future__ import annotations

import asyncio
import logging
from datetime import date, datetime
from typing import Any

from doc_agent.config import RecordConfig
from doc_agent.guards import raise_if_cancelled
from doc_agent.query.domains import contacts_query
from doc_agent.schemas import ContactInfo
from doc_agent.storage.base import ContactStore
from doc_agent.types import ToolOk, ToolResult

logger = logging.getLogger(__name__)


class ContactLookupService:
    def __init__(self, store: ContactStore, config: RecordConfig | None = None) -> None:
        self.store = store
        self.config = config or RecordConfig()

    async def get_contacts(
        self,
        *,
        take: Any = None,
        skip: Any = 0,
        search_term: str | None = None,
        email: str | None = None,
        first_name: str | None = None,
        last_name: str | None = None,
        active_only: bool = True,
        contact_id: str | None = None,
        sort_order: Any = None,
        created_after: datetime | None = None,
        created_before: datetime | None = None,
        created_on_date: date | datetime | None = None,
        cancel: asyncio.Event | None = None,
    ) -> ToolResult:
        query = contacts_query(
            contact_id=contact_id,
            search_term=search_term,
            email=email,
            first_name=first_name,
            last_name=last_name,
            active_only=active_only,
            created_after=created_after,
            created_before=created_before,
            created_on=created_on_date,
            sort_order=sort_order,
            take=take,
            skip=skip,
            config=self.config,
        )
        logger.info(
            "Retrieving contacts: id=%r search=%r email=%r first=%r last=%r active_only=%s "
            "sort=%r after=%s before=%s on=%s limit=%s offset=%s",
            contact_id,
            search_term,
            email,
            first_name,
            last_name,
            active_only,
            sort_order,
            created_after,
            created_before,
            created_on_date,
            query.limit,
            query.offset,
        )

        raise_if_cancelled(cancel)
        try:
            contacts = await self.store.fetch_contacts(query)
        except Exception:
            logger.exception("Contact lookup failed")
            contacts = []
        return ToolOk([ContactInfo.from_contact(contact) for contact in contacts])
