"""
Client and ProjectKey ORM models.
Clients own departments and projects. Each client's project key prefixes
the human-readable slugs of its projects, tasks and sprints; ProjectKey
holds the running counters for those slugs.
"""
from __future__ import annotations

import uuid

from sqlalchemy import Boolean, Enum, ForeignKey, Index, Integer, String, Uuid
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.db.base import Base, TimestampMixin

CLIENT_STATUSES = ("active", "inactive", "archived")


class Client(TimestampMixin, Base):
    __tablename__ = "clients"

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        primary_key=True,
        default=uuid.uuid4,
    )
    name: Mapped[str] = mapped_column(String(255), nullable=False, unique=True)
    website: Mapped[str | None] = mapped_column(String(500), nullable=True)
    is_internal: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=False, server_default="false"
    )
    project_key: Mapped[str | None] = mapped_column(
        String(8), nullable=True, unique=True
    )
    status: Mapped[str] = mapped_column(
        Enum(*CLIENT_STATUSES, name="client_status_enum"),
        nullable=False,
        default="active",
        server_default="active",
    )
    # Plain column: users already reference clients
    created_by: Mapped[uuid.UUID | None] = mapped_column(Uuid, nullable=True)

    # ── Relationships ─────────────────────────────────────────────────────────
    departments: Mapped[list["Department"]] = relationship(  # type: ignore[name-defined]  # noqa: F821
        "Department",
        back_populates="client",
        order_by="Department.name",
    )

    __table_args__ = (Index("ix_clients_status", "status"),)

    def __repr__(self) -> str:
        return f"<Client id={self.id} name={self.name!r} key={self.project_key}>"


class ProjectKey(TimestampMixin, Base):
    __tablename__ = "project_keys"

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        primary_key=True,
        default=uuid.uuid4,
    )
    key: Mapped[str] = mapped_column(String(8), nullable=False, unique=True)
    client_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("clients.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    last_project_number: Mapped[int] = mapped_column(
        Integer, nullable=False, default=0, server_default="0"
    )
    last_task_number: Mapped[int] = mapped_column(
        Integer, nullable=False, default=0, server_default="0"
    )
    last_sprint_number: Mapped[int] = mapped_column(
        Integer, nullable=False, default=0, server_default="0"
    )

    def __repr__(self) -> str:
        return f"<ProjectKey key={self.key} tasks={self.last_task_number}>"
