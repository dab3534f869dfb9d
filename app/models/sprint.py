"""
Sprint ORM model.
Capacity is stored in hours and locked when the sprint is created.
"""
from __future__ import annotations

import uuid
from datetime import date

from sqlalchemy import Date, Enum, Float, ForeignKey, Index, Integer, String, Text, Uuid
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.db.base import Base, JSONType, TimestampMixin

SPRINT_STATUSES = ("planning", "active", "review", "complete", "cancelled")


class Sprint(TimestampMixin, Base):
    __tablename__ = "sprints"

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        primary_key=True,
        default=uuid.uuid4,
    )
    name: Mapped[str] = mapped_column(String(255), nullable=False)
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
    start_date: Mapped[date] = mapped_column(Date, nullable=False)
    end_date: Mapped[date] = mapped_column(Date, nullable=False)
    # Weeks
    duration: Mapped[int] = mapped_column(Integer, nullable=False, default=2)
    status: Mapped[str] = mapped_column(
        Enum(*SPRINT_STATUSES, name="sprint_status_enum"),
        nullable=False,
        default="planning",
        server_default="planning",
    )
    total_capacity: Mapped[float] = mapped_column(Float, nullable=False, default=0)
    completed_hours: Mapped[float] = mapped_column(Float, nullable=False, default=0)
    actual_velocity: Mapped[float] = mapped_column(Float, nullable=False, default=0)
    velocity_target: Mapped[float | None] = mapped_column(Float, nullable=True)
    goals: Mapped[list[str]] = mapped_column(JSONType, nullable=False, default=list)
    sprint_master_id: Mapped[uuid.UUID | None] = mapped_column(
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
    tasks: Mapped[list["Task"]] = relationship(  # type: ignore[name-defined]  # noqa: F821
        "Task",
        back_populates="sprint",
        order_by="Task.backlog_order",
        passive_deletes=True,
    )

    __table_args__ = (
        Index("ix_sprints_client_id", "client_id"),
        Index("ix_sprints_department_status", "department_id", "status"),
        Index("ix_sprints_start_date", "start_date"),
    )

    def __repr__(self) -> str:
        return f"<Sprint id={self.id} slug={self.slug} status={self.status}>"
