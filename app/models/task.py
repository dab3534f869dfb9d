"""
Task ORM model.
Tasks live in a client department, optionally inside a project and a sprint.
Hours used for sprint planning come from size_hours, estimated_hours or the
t-shirt size, in that order.
"""
from __future__ import annotations

import uuid
from datetime import date, datetime

from sqlalchemy import (
    Date,
    DateTime,
    Enum,
    Float,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    Uuid,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.db.base import Base, JSONType, TimestampMixin
from app.models.project import VISIBILITY_LEVELS

TASK_STATUSES = ("todo", "in_progress", "review", "done", "archived")
TASK_PRIORITIES = ("low", "medium", "high", "urgent")


class Task(TimestampMixin, Base):
    __tablename__ = "tasks"

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        primary_key=True,
        default=uuid.uuid4,
    )
    title: Mapped[str] = mapped_column(String(500), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    slug: Mapped[str | None] = mapped_column(String(40), nullable=True, unique=True)
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
    project_id: Mapped[uuid.UUID | None] = mapped_column(
        Uuid,
        ForeignKey("projects.id", ondelete="SET NULL"),
        nullable=True,
    )
    sprint_id: Mapped[uuid.UUID | None] = mapped_column(
        Uuid,
        ForeignKey("sprints.id", ondelete="SET NULL"),
        nullable=True,
    )
    parent_task_id: Mapped[uuid.UUID | None] = mapped_column(
        Uuid,
        ForeignKey("tasks.id", ondelete="SET NULL"),
        nullable=True,
    )
    status: Mapped[str] = mapped_column(
        Enum(*TASK_STATUSES, name="task_status_enum"),
        nullable=False,
        default="todo",
        server_default="todo",
    )
    priority: Mapped[str] = mapped_column(
        Enum(*TASK_PRIORITIES, name="task_priority_enum"),
        nullable=False,
        default="medium",
        server_default="medium",
    )
    # XS/S/M/L/XL or free form such as "3d", "1w", "6h"
    size: Mapped[str | None] = mapped_column(String(20), nullable=True)
    size_hours: Mapped[float | None] = mapped_column(Float, nullable=True)
    estimated_hours: Mapped[float | None] = mapped_column(Float, nullable=True)
    actual_hours: Mapped[float | None] = mapped_column(Float, nullable=True)
    due_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    completed_date: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    assignee_id: Mapped[uuid.UUID | None] = mapped_column(
        Uuid,
        ForeignKey("users.id", ondelete="SET NULL"),
        nullable=True,
    )
    reporter_id: Mapped[uuid.UUID | None] = mapped_column(
        Uuid,
        ForeignKey("users.id", ondelete="SET NULL"),
        nullable=True,
    )
    backlog_order: Mapped[int] = mapped_column(
        Integer, nullable=False, default=0, server_default="0"
    )
    labels: Mapped[list[str]] = mapped_column(JSONType, nullable=False, default=list)
    visibility: Mapped[str] = mapped_column(
        Enum(*VISIBILITY_LEVELS, name="visibility_enum"),
        nullable=False,
        default="department",
        server_default="department",
    )

    # ── Relationships ─────────────────────────────────────────────────────────
    assignee: Mapped["User | None"] = relationship(  # type: ignore[name-defined]  # noqa: F821
        "User",
        foreign_keys=[assignee_id],
    )
    reporter: Mapped["User | None"] = relationship(  # type: ignore[name-defined]  # noqa: F821
        "User",
        foreign_keys=[reporter_id],
    )
    project: Mapped["Project | None"] = relationship("Project")  # type: ignore[name-defined]  # noqa: F821
    sprint: Mapped["Sprint | None"] = relationship(  # type: ignore[name-defined]  # noqa: F821
        "Sprint",
        back_populates="tasks",
    )

    __table_args__ = (
        Index("ix_tasks_client_id", "client_id"),
        Index("ix_tasks_department_id", "department_id"),
        Index("ix_tasks_project_id", "project_id"),
        Index("ix_tasks_sprint_id", "sprint_id"),
        Index("ix_tasks_assignee_id", "assignee_id"),
        Index("ix_tasks_status", "status"),
        Index("ix_tasks_due_date", "due_date"),
        Index("ix_tasks_department_backlog", "department_id", "backlog_order"),
    )

    def __repr__(self) -> str:
        return f"<Task id={self.id} slug={self.slug} status={self.status}>"
