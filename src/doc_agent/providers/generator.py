"""Text generation provider used for document overviews."""

from __future__ import annotations

from typing import Any, Protocol

from langchain_core.language_models import BaseChatModel
from langchain_core.messages import HumanMessage, SystemMessage


class Generator(Protocol):
    async def generate(self, system_instruction: str, user_content: str) -> str:
        """Return generated text for one system/user exchange."""


class ChatModelGenerator:
    """Single-call generator on top of a LangChain chat model."""

    def __init__(self, llm: BaseChatModel) -> None:
        self.llm = llm

    async def generate(self, system_instruction: str, user_content: str) -> str:
        response = await self.llm.ainvoke(
            [SystemMessage(content=system_instruction), HumanMessage(content=user_content)]
        )
        return _message_text(response)


def _message_text(message: Any) -> str:
    content = getattr(message, "content", message)
    if isinstance(content, list):
        parts: list[str] = []
        for item in content:
            if isinstance(item, dict) and "text" in item:
                parts.append(str(item["text"]))
            elif isinstance(item, str):
                parts.append(item)
        return "".join(parts).strip()
    return str(content or "").strip()
