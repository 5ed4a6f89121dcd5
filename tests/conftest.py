from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone

import pytest

from doc_agent.providers.embedder import Embedder
from doc_agent.storage.memory import InMemoryDocumentStore
from doc_agent.types import Document, DocumentPage

BASE_TIME = datetime(2025, 1, 10, 9, 0, tzinfo=timezone.utc)


class StaticEmbedder(Embedder):
    """Returns fixed vectors per prompt; unknown prompts map to `fallback`."""

    def __init__(self, vectors: dict[str, list[float]], fallback: list[float] | None = None) -> None:
        self.vectors = vectors
        self.fallback = fallback or [0.0, 0.0, 1.0]
        self.calls: list[str] = []

    def embed_query(self, text: str) -> list[float]:
        self.calls.append(text)
        return self.vectors.get(text, self.fallback)


@dataclass
class StubGenerator:
    reply: str = "Overview text."
    error: Exception | None = None
    calls: list[tuple[str, str]] = field(default_factory=list)

    async def generate(self, system_instruction: str, user_content: str) -> str:
        self.calls.append((system_instruction, user_content))
        if self.error is not None:
            raise self.error
        return self.reply


def make_document(
    session_id: uuid.UUID,
    name: str,
    *,
    extension: str = "pdf",
    age_days: int = 0,
    deactivated: bool = False,
) -> Document:
    created = BASE_TIME - timedelta(days=age_days)
    return Document(
        id=uuid.uuid4(),
        session_id=session_id,
        name=name,
        extension=extension,
        date_created=created,
        date_deactivated=created + timedelta(hours=1) if deactivated else None,
    )


def make_page(
    document: Document,
    number: int,
    text: str,
    embedding: list[float],
    *,
    deactivated: bool = False,
) -> DocumentPage:
    return DocumentPage(
        id=uuid.uuid4(),
        document_id=document.id,
        number=number,
        text=text,
        embedding=embedding,
        date_created=document.date_created + timedelta(minutes=number),
        date_deactivated=BASE_TIME if deactivated else None,
    )


@dataclass
class Corpus:
    store: InMemoryDocumentStore
    session_id: uuid.UUID
    other_session_id: uuid.UUID
    documents: dict[str, Document]


@pytest.fixture
def corpus() -> Corpus:
    """Session with three active documents, one deactivated, plus a foreign session."""

    store = InMemoryDocumentStore()
    session_id = uuid.uuid4()
    other_session_id = uuid.uuid4()

    report = make_document(session_id, "Annual Report", age_days=1)
    contract = make_document(session_id, "Supplier Contract", extension="docx", age_days=5)
    notes = make_document(session_id, "meeting notes", extension="txt", age_days=3)
    removed = make_document(session_id, "Old Draft", age_days=0, deactivated=True)
    foreign = make_document(other_session_id, "Annual Report", age_days=0)

    store.add_document(
        report,
        [
            make_page(report, 1, "Revenue grew in the third quarter.", [1.0, 0.0, 0.0]),
            make_page(report, 2, "Headcount remained flat.", [0.0, 1.0, 0.0]),
            make_page(report, 3, "Revenue outlook for next year.", [0.9, 0.1, 0.0]),
            make_page(report, 4, "Withdrawn page about revenue.", [1.0, 0.0, 0.0], deactivated=True),
        ],
    )
    store.add_document(
        contract,
        [
            make_page(contract, 1, "Payment terms and revenue share.", [0.95, 0.05, 0.0]),
            make_page(contract, 2, "Termination clause.", [0.0, 0.0, 1.0]),
        ],
    )
    store.add_document(notes, [make_page(notes, 1, "Team lunch on Friday.", [0.0, 0.7, 0.7])])
    store.add_document(removed, [make_page(removed, 1, "Revenue draft.", [1.0, 0.0, 0.0])])
    store.add_document(foreign, [make_page(foreign, 1, "Foreign revenue.", [1.0, 0.0, 0.0])])

    return Corpus(
        store=store,
        session_id=session_id,
        other_session_id=other_session_id,
        documents={
            "report": report,
            "contract": contract,
            "notes": notes,
            "removed": removed,
            "foreign": foreign,
        },
    )
