"""
Comment thread ORM models.
A thread is anchored to one entity (a document block, task, project or
sprint). Comments inside a thread may reply to each other and are soft-deleted.
"""
from __future__ import annotations

import uuid
from datetime import datetime

from sqlalchemy import Boolean, DateTime, Enum, ForeignKey, Index, String, Text, Uuid, func
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.db.base import Base, JSONType, TimestampMixin

COMMENT_ENTITY_TYPES = ("document_block", "task", "project", "sprint")


class CommentThread(Base):
    __tablename__ = "comment_threads"

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        primary_key=True,
        default=uuid.uuid4,
    )
    entity_type: Mapped[str] = mapped_column(
        Enum(*COMMENT_ENTITY_TYPES, name="comment_entity_type_enum"),
        nullable=False,
    )
    # Document id for document_block threads, otherwise the task/project/sprint id
    entity_id: Mapped[uuid.UUID] = mapped_column(Uuid, nullable=False)
    block_id: Mapped[str | None] = mapped_column(String(100), nullable=True)
    resolved: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=False, server_default="false"
    )
    resolved_by: Mapped[uuid.UUID | None] = mapped_column(
        Uuid,
        ForeignKey("users.id", ondelete="SET NULL"),
        nullable=True,
    )
    resolved_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    creator_id: Mapped[uuid.UUID | None] = mapped_column(
        Uuid,
        ForeignKey("users.id", ondelete="SET NULL"),
        nullable=True,
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
    )

    # ── Relationships ─────────────────────────────────────────────────────────
    comments: Mapped[list["Comment"]] = relationship(
        "Comment",
        back_populates="thread",
        cascade="all, delete-orphan",
        order_by="Comment.created_at",
    )

    __table_args__ = (
        Index("ix_comment_threads_entity", "entity_type", "entity_id"),
    )

    def __repr__(self) -> str:
        return f"<CommentThread id={self.id} entity={self.entity_type}:{self.entity_id}>"


class Comment(TimestampMixin, Base):
    __tablename__ = "comments"

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        primary_key=True,
        default=uuid.uuid4,
    )
    thread_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("comment_threads.id", ondelete="CASCADE"),
        nullable=False,
    )
    parent_comment_id: Mapped[uuid.UUID | None] = mapped_column(
        Uuid,
        ForeignKey("comments.id", ondelete="SET NULL"),
        nullable=True,
    )
    content: Mapped[str] = mapped_column(Text, nullable=False)
    author_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
    )
    # [{"user_id": "...", "position": 0, "length": 12}]
    mentions: Mapped[list[dict]] = mapped_column(JSONType, nullable=False, default=list)
    is_deleted: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=False, server_default="false"
    )

    # ── Relationships ─────────────────────────────────────────────────────────
    thread: Mapped["CommentThread"] = relationship(
        "CommentThread",
        back_populates="comments",
    )
    author: Mapped["User"] = relationship("User")  # type: ignore[name-defined]  # noqa: F821

    __table_args__ = (
        Index("ix_comments_thread_id", "thread_id"),
        Index("ix_comments_author_id", "author_id"),
    )

    def __repr__(self) -> str:
        return f"<Comment id={self.id} thread_id={self.thread_id}>"
