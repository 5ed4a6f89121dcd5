"""SQLAlchemy ORM models for the relational document and record store.

The core only reads these tables. Writes belong to the ingestion side.
"""

from __future__ import annotations

import uuid
from datetime import datetime

from pgvector.sqlalchemy import Vector
from sqlalchemy import DateTime, ForeignKey, Integer, String, Text, Uuid
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship

from doc_agent.types import Contact, Document, DocumentPage

EMBEDDING_DIMENSION = 1536


class Base(DeclarativeBase):
    pass


class SessionModel(Base):
    __tablename__ = "sessions"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    date_created: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    date_deactivated: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))

    documents: Mapped[list["DocumentModel"]] = relationship(back_populates="session")


class DocumentModel(Base):
    __tablename__ = "documents"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    session_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("sessions.id"), nullable=False, index=True
    )
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    extension: Mapped[str] = mapped_column(String(32), nullable=False)
    date_created: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    date_deactivated: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))

    session: Mapped[SessionModel] = relationship(back_populates="documents")
    pages: Mapped[list["DocumentPageModel"]] = relationship(back_populates="document")

    def to_domain(self) -> Document:
        return Document(
            id=self.id,
            session_id=self.session_id,
            name=self.name,
            extension=self.extension,
            date_created=self.date_created,
            date_deactivated=self.date_deactivated,
        )


class DocumentPageModel(Base):
    __tablename__ = "document_pages"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    document_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("documents.id"), nullable=False, index=True
    )
    number: Mapped[int] = mapped_column(Integer, nullable=False)
    text: Mapped[str] = mapped_column(Text, nullable=False)
    embedding: Mapped[list[float]] = mapped_column(Vector(EMBEDDING_DIMENSION), nullable=False)
    date_created: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    date_deactivated: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))

    document: Mapped[DocumentModel] = relationship(back_populates="pages")

    def to_domain(self, *, with_embedding: bool = False) -> DocumentPage:
        return DocumentPage(
            id=self.id,
            document_id=self.document_id,
            number=self.number,
            text=self.text,
            embedding=list(self.embedding) if with_embedding else [],
            date_created=self.date_created,
            date_deactivated=self.date_deactivated,
        )


class ContactModel(Base):
    """Replicated CRM contact table."""

    __tablename__ = "sf_contact"

    id: Mapped[str] = mapped_column("ID", String(18), primary_key=True)
    last_name: Mapped[str | None] = mapped_column("LASTNAME", String(80))
    first_name: Mapped[str | None] = mapped_column("FIRSTNAME", String(40))
    phone: Mapped[str | None] = mapped_column("PHONE", String(40))
    email: Mapped[str | None] = mapped_column("EMAIL", String(80))
    created_date: Mapped[datetime | None] = mapped_column("CREATEDDATE", DateTime(timezone=True))
    inactive_flag: Mapped[int | None] = mapped_column("CONTACT_INACTIVE__C", Integer)

    def to_domain(self) -> Contact:
        return Contact(
            id=self.id,
            first_name=self.first_name,
            last_name=self.last_name,
            email=self.email,
            phone=self.phone,
            created_date=self.created_date,
            inactive_flag=self.inactive_flag,
        )
