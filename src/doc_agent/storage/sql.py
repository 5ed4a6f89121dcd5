"""SQLAlchemy async implementations of the store contracts."""

from __future__ import annotations

from collections.abc import Sequence
from typing import Any
from uuid import UUID

from sqlalchemy import Select, func, select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from doc_agent.config import DatabaseSettings
from doc_agent.query.predicates import ScopedQuery
from doc_agent.query.sql import apply_query
from doc_agent.storage.models import ContactModel, DocumentModel, DocumentPageModel
from doc_agent.types import Contact, Document, DocumentPage, PageStats, SimilarityHit


def create_session_factory(settings: DatabaseSettings | None = None) -> async_sessionmaker[AsyncSession]:
    settings = settings or DatabaseSettings.from_env()
    engine = create_async_engine(settings.url, echo=settings.echo, pool_pre_ping=True)
    return async_sessionmaker(engine, expire_on_commit=False)


class SqlDocumentStore:
    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        self._session_factory = session_factory

    async def list_documents(self, query: ScopedQuery) -> list[Document]:
        stmt = apply_query(select(DocumentModel), DocumentModel, query)
        async with self._session_factory() as session:
            result = await session.execute(stmt)
            return [row.to_domain() for row in result.scalars().all()]

    async def get_document(self, session_id: UUID, document_id: UUID) -> Document | None:
        stmt = select(DocumentModel).where(
            DocumentModel.id == document_id,
            DocumentModel.session_id == session_id,
            DocumentModel.date_deactivated.is_(None),
        )
        async with self._session_factory() as session:
            row = (await session.execute(stmt)).scalars().first()
        return row.to_domain() if row is not None else None

    async def list_pages(
        self,
        session_id: UUID,
        document_id: UUID,
        limit: int | None = None,
    ) -> list[DocumentPage]:
        stmt = pages_statement(session_id, document_id, limit)
        async with self._session_factory() as session:
            result = await session.execute(stmt)
            return [row.to_domain() for row in result.scalars().all()]

    async def page_stats(self, document_ids: Sequence[UUID]) -> dict[UUID, PageStats]:
        stats = {document_id: PageStats() for document_id in document_ids}
        if not document_ids:
            return stats
        stmt = (
            select(
                DocumentPageModel.document_id,
                func.count(DocumentPageModel.id),
                func.max(DocumentPageModel.date_created),
            )
            .where(
                DocumentPageModel.document_id.in_(list(document_ids)),
                DocumentPageModel.date_deactivated.is_(None),
            )
            .group_by(DocumentPageModel.document_id)
        )
        async with self._session_factory() as session:
            for document_id, count, last_created in (await session.execute(stmt)).all():
                stats[document_id] = PageStats(count=count, last_created=last_created)
        return stats


class SqlSimilarityStore:
    """pgvector-backed similarity search using the cosine distance operator."""

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        self._session_factory = session_factory

    async def search(
        self,
        scope: ScopedQuery,
        query_vector: list[float],
        threshold: float,
        top_k: int,
    ) -> list[SimilarityHit]:
        stmt = similarity_statement(scope, query_vector, threshold, top_k)
        async with self._session_factory() as session:
            rows = (await session.execute(stmt)).all()
        return [
            SimilarityHit(
                document=document.to_domain(),
                page=page.to_domain(),
                distance=float(distance),
            )
            for page, document, distance in rows
        ]


class SqlContactStore:
    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        self._session_factory = session_factory

    async def fetch_contacts(self, query: ScopedQuery) -> list[Contact]:
        stmt = apply_query(select(ContactModel), ContactModel, query)
        async with self._session_factory() as session:
            result = await session.execute(stmt)
            return [row.to_domain() for row in result.scalars().all()]


def pages_statement(session_id: UUID, document_id: UUID, limit: int | None) -> Select[Any]:
    stmt = (
        select(DocumentPageModel)
        .join(DocumentModel, DocumentPageModel.document_id == DocumentModel.id)
        .where(
            DocumentPageModel.document_id == document_id,
            DocumentModel.session_id == session_id,
            DocumentModel.date_deactivated.is_(None),
            DocumentPageModel.date_deactivated.is_(None),
        )
        .order_by(DocumentPageModel.number)
    )
    if limit is not None:
        stmt = stmt.limit(limit)
    return stmt


def similarity_statement(
    scope: ScopedQuery,
    query_vector: list[float],
    threshold: float,
    top_k: int,
) -> Select[Any]:
    distance = DocumentPageModel.embedding.cosine_distance(query_vector)
    stmt = (
        select(DocumentPageModel, DocumentModel, distance.label("distance"))
        .join(DocumentModel, DocumentPageModel.document_id == DocumentModel.id)
        .where(DocumentPageModel.date_deactivated.is_(None))
        .where(distance <= threshold)
    )
    stmt = apply_query(stmt, DocumentModel, scope)
    return stmt.order_by(distance, DocumentPageModel.number).limit(top_k)
