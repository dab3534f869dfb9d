"""
Document ORM models.
A document is a container of pages; each page maps to one room on the
hosted sync service (``doc_key``). DocumentSession rows track who is
currently present in a document.
"""
from __future__ import annotations

import secrets
import uuid
from datetime import datetime

from sqlalchemy import Boolean, DateTime, Enum, ForeignKey, Index, Integer, String, Uuid, func
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.db.base import Base, JSONType, TimestampMixin

DOCUMENT_TYPES = (
    "project_brief",
    "meeting_notes",
    "wiki_article",
    "resource_doc",
    "retrospective",
    "blank",
)
DOCUMENT_STATUSES = ("draft", "published", "archived")
PRESENCE_STATUSES = ("active", "typing", "idle")


def new_share_id() -> str:
    return secrets.token_urlsafe(9)


def new_doc_key() -> str:
    return secrets.token_hex(12)


class Document(TimestampMixin, Base):
    __tablename__ = "documents"

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        primary_key=True,
        default=uuid.uuid4,
    )
    title: Mapped[str] = mapped_column(String(500), nullable=False)
    document_type: Mapped[str] = mapped_column(
        Enum(*DOCUMENT_TYPES, name="document_type_enum"),
        nullable=False,
        default="blank",
        server_default="blank",
    )
    status: Mapped[str] = mapped_column(
        Enum(*DOCUMENT_STATUSES, name="document_status_enum"),
        nullable=False,
        default="draft",
        server_default="draft",
    )
    project_id: Mapped[uuid.UUID | None] = mapped_column(
        Uuid,
        ForeignKey("projects.id", ondelete="CASCADE"),
        nullable=True,
        unique=True,
    )
    client_id: Mapped[uuid.UUID | None] = mapped_column(
        Uuid,
        ForeignKey("clients.id", ondelete="SET NULL"),
        nullable=True,
    )
    department_id: Mapped[uuid.UUID | None] = mapped_column(
        Uuid,
        ForeignKey("departments.id", ondelete="SET NULL"),
        nullable=True,
    )
    owner_id: Mapped[uuid.UUID | None] = mapped_column(
        Uuid,
        ForeignKey("users.id", ondelete="SET NULL"),
        nullable=True,
    )
    share_id: Mapped[str] = mapped_column(
        String(32), nullable=False, unique=True, default=new_share_id
    )
    client_visible: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=False, server_default="false"
    )

    # ── Relationships ─────────────────────────────────────────────────────────
    project: Mapped["Project | None"] = relationship(  # type: ignore[name-defined]  # noqa: F821
        "Project",
        back_populates="document",
    )
    pages: Mapped[list["DocumentPage"]] = relationship(
        "DocumentPage",
        back_populates="document",
        cascade="all, delete-orphan",
        order_by="DocumentPage.order",
    )

    __table_args__ = (
        Index("ix_documents_client_id", "client_id"),
        Index("ix_documents_status", "status"),
    )

    def __repr__(self) -> str:
        return f"<Document id={self.id} title={self.title!r} status={self.status}>"


class DocumentPage(TimestampMixin, Base):
    __tablename__ = "document_pages"

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        primary_key=True,
        default=uuid.uuid4,
    )
    document_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("documents.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    parent_page_id: Mapped[uuid.UUID | None] = mapped_column(
        Uuid,
        ForeignKey("document_pages.id", ondelete="CASCADE"),
        nullable=True,
    )
    title: Mapped[str] = mapped_column(String(500), nullable=False)
    order: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    doc_key: Mapped[str] = mapped_column(
        String(64), nullable=False, unique=True, default=new_doc_key
    )

    # ── Relationships ─────────────────────────────────────────────────────────
    document: Mapped["Document"] = relationship("Document", back_populates="pages")

    def __repr__(self) -> str:
        return f"<DocumentPage id={self.id} document_id={self.document_id} order={self.order}>"


class DocumentSession(Base):
    __tablename__ = "document_sessions"

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        primary_key=True,
        default=uuid.uuid4,
    )
    document_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("documents.id", ondelete="CASCADE"),
        nullable=False,
    )
    user_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
    )
    status: Mapped[str] = mapped_column(
        Enum(*PRESENCE_STATUSES, name="presence_status_enum"),
        nullable=False,
        default="active",
    )
    cursor_position: Mapped[dict | None] = mapped_column(JSONType, nullable=True)
    user_agent: Mapped[str | None] = mapped_column(String(500), nullable=True)
    last_seen: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    joined_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
    )

    # ── Relationships ─────────────────────────────────────────────────────────
    user: Mapped["User"] = relationship("User")  # type: ignore[name-defined]  # noqa: F821

    __table_args__ = (
        Index("ix_document_sessions_document_id", "document_id"),
        Index("ix_document_sessions_user_document", "user_id", "document_id", unique=True),
    )

    def __repr__(self) -> str:
        return f"<DocumentSession document_id={self.document_id} user_id={self.user_id}>"
