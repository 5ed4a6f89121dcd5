"""Query embedding used by semantic search."""

from __future__ import annotations

import asyncio
from abc import ABC, abstractmethod

from langchain_core.embeddings import Embeddings


class Embedder(ABC):
    """Turns one search prompt into one vector.

    Implementations only need `embed_query`; the async variant runs it in a
    worker thread unless overridden.
    """

    @abstractmethod
    def embed_query(self, text: str) -> list[float]:
        """Embed one query."""

    async def aembed_query(self, text: str) -> list[float]:
        return await asyncio.to_thread(self.embed_query, text)


class LangChainEmbedder(Embedder):
    """Adapts any LangChain `Embeddings` (OpenAI, Azure OpenAI, ...)."""

    def __init__(self, embeddings: Embeddings) -> None:
        self._embeddings = embeddings

    def embed_query(self, text: str) -> list[float]:
        return self._embeddings.embed_query(text)

    async def aembed_query(self, text: str) -> list[float]:
        return await self._embeddings.aembed_query(text)
