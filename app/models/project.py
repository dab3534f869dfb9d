"""
Project ORM model.
Every project belongs to a client department and owns exactly one document.
"""
from __future__ import annotations

import uuid
from datetime import date

from sqlalchemy import Date, Enum, ForeignKey, Index, String, Text, Uuid
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.db.base import Base, JSONType, TimestampMixin

PROJECT_STATUSES = (
    "new",
    "planning",
    "ready_for_work",
    "in_progress",
    "client_review",
    "client_approved",
    "complete",
)
VISIBILITY_LEVELS = ("private", "department", "client", "organization")


class Project(TimestampMixin, Base):
    __tablename__ = "projects"

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        primary_key=True,
        default=uuid.uuid4,
    )
    title: Mapped[str] = mapped_column(String(500), nullable=False)
    slug: Mapped[str | None] = mapped_column(String(40), nullable=True, unique=True)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    client_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("clients.id", ondelete="CASCADE"),
        nullable=False,
    )
    department_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("departments.id", ondelete="CASCADE"),
        nullable=False,
    )
    status: Mapped[str] = mapped_column(
        Enum(*PROJECT_STATUSES, name="project_status_enum"),
        nullable=False,
        default="new",
        server_default="new",
    )
    visibility: Mapped[str] = mapped_column(
        Enum(*VISIBILITY_LEVELS, name="visibility_enum"),
        nullable=False,
        default="department",
        server_default="department",
    )
    start_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    target_due_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    project_manager_id: Mapped[uuid.UUID | None] = mapped_column(
        Uuid,
        ForeignKey("users.id", ondelete="SET NULL"),
        nullable=True,
    )
    team_member_ids: Mapped[list[str]] = mapped_column(
        JSONType, nullable=False, default=list
    )
    created_by: Mapped[uuid.UUID | None] = mapped_column(
        Uuid,
        ForeignKey("users.id", ondelete="SET NULL"),
        nullable=True,
    )

    # ── Relationships ─────────────────────────────────────────────────────────
    client: Mapped["Client"] = relationship("Client")  # type: ignore[name-defined]  # noqa: F821
    department: Mapped["Department"] = relationship("Department")  # type: ignore[name-defined]  # noqa: F821
    project_manager: Mapped["User | None"] = relationship(  # type: ignore[name-defined]  # noqa: F821
        "User",
        foreign_keys=[project_manager_id],
    )
    document: Mapped["Document | None"] = relationship(  # type: ignore[name-defined]  # noqa: F821
        "Document",
        back_populates="project",
        uselist=False,
        cascade="all, delete-orphan",
    )

    __table_args__ = (
        Index("ix_projects_client_id", "client_id"),
        Index("ix_projects_department_id", "department_id"),
        Index("ix_projects_status", "status"),
    )

    def __repr__(self) -> str:
        return f"<Project id={self.id} slug={self.slug} status={self.status}>"
