"""Async client for the remote CRM query API.

Authentication (OAuth2 username-password flow) happens lazily on the first
query, not at construction, and is retried once when a token expires.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any

import httpx
from pydantic import BaseModel, Field, ValidationError

from doc_agent.config import SalesforceSettings
from doc_agent.guards import raise_if_cancelled

logger = logging.getLogger(__name__)


class RecordApiError(RuntimeError):
    """Raised when the remote record API cannot be reached or rejects a call."""


class TokenResponse(BaseModel):
    access_token: str = Field(min_length=1)
    instance_url: str = Field(min_length=1)


class QueryResponse(BaseModel):
    records: list[dict[str, Any]] | None = None


class SalesforceClient:
    def __init__(
        self,
        settings: SalesforceSettings,
        *,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.settings = settings
        self._transport = transport
        self._http: httpx.AsyncClient | None = None
        self._access_token: str | None = None
        self._instance_url: str | None = None

    @property
    def is_connected(self) -> bool:
        return self._access_token is not None and self._instance_url is not None

    def _client(self) -> httpx.AsyncClient:
        if self._http is None:
            self._http = httpx.AsyncClient(
                transport=self._transport,
                timeout=self.settings.timeout_seconds,
            )
        return self._http

    async def connect(self) -> None:
        """(Re)authenticate and store a fresh access token."""

        self._access_token = None
        token_url = f"{self.settings.endpoint.rstrip('/')}/services/oauth2/token"
        form = {
            "grant_type": "password",
            "client_id": self.settings.client_id,
            "client_secret": self.settings.client_secret,
            "username": self.settings.username,
            "password": f"{self.settings.password}{self.settings.security_token}",
        }
        try:
            response = await self._client().post(token_url, data=form)
            response.raise_for_status()
            payload = response.json()
        except httpx.HTTPStatusError as exc:
            raise RecordApiError(
                f"Authentication rejected ({exc.response.status_code}): {exc.response.text}"
            ) from exc
        except (httpx.HTTPError, ValueError) as exc:
            raise RecordApiError(f"Authentication failed: {exc}") from exc

        try:
            grant = TokenResponse.model_validate(payload)
        except ValidationError as exc:
            raise RecordApiError("Authentication response did not include a token") from exc
        self._access_token = grant.access_token
        self._instance_url = grant.instance_url.rstrip("/")
        logger.info("Connected to CRM instance %s", self._instance_url)

    async def query(
        self,
        soql: str,
        *,
        cancel: asyncio.Event | None = None,
    ) -> list[dict[str, Any]]:
        """Run one SOQL statement and return its records.

        `cancel` is checked before every request, including the token
        request and the retry after an expired session.
        """

        if not self.is_connected:
            raise_if_cancelled(cancel)
            await self.connect()
        raise_if_cancelled(cancel)
        response = await self._send_query(soql)
        if response.status_code == httpx.codes.UNAUTHORIZED:
            logger.info("CRM session expired; re-authenticating")
            raise_if_cancelled(cancel)
            await self.connect()
            raise_if_cancelled(cancel)
            response = await self._send_query(soql)

        try:
            response.raise_for_status()
            payload = response.json()
        except httpx.HTTPStatusError as exc:
            raise RecordApiError(
                f"Query rejected ({exc.response.status_code}): {exc.response.text}"
            ) from exc
        except ValueError as exc:
            raise RecordApiError(f"Malformed query response: {exc}") from exc

        try:
            records = QueryResponse.model_validate(payload).records or []
        except ValidationError as exc:
            raise RecordApiError("Query response did not contain a record list") from exc
        return [
            {key: value for key, value in record.items() if key != "attributes"}
            for record in records
        ]

    async def _send_query(self, soql: str) -> httpx.Response:
        url = f"{self._instance_url}/services/data/{self.settings.api_version}/query"
        try:
            return await self._client().get(
                url,
                params={"q": soql},
                headers={"Authorization": f"Bearer {self._access_token}"},
            )
        except httpx.HTTPError as exc:
            raise RecordApiError(f"Query failed: {exc}") from exc

    async def aclose(self) -> None:
        if self._http is not None:
            await self._http.aclose()
            self._http = None
