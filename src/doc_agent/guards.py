"""Input and cancellation guards shared by the tool services."""

from __future__ import annotations

import asyncio
from typing import Any
from uuid import UUID


def parse_uuid(value: Any) -> UUID | None:
    """Parse an agent-supplied identifier; None when missing or malformed."""
    if isinstance(value, UUID):
        return value
    if not isinstance(value, str) or not value.strip():
        return None
    try:
        return UUID(value.strip())
    except ValueError:
        return None


def raise_if_cancelled(cancel: asyncio.Event | None) -> None:
    """Checkpoint placed before each store, embedding or generation call."""
    if cancel is not None and cancel.is_set():
        raise asyncio.CancelledError("cancelled by caller")
