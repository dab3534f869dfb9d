"""
Department ORM model.
A department belongs to one client and defines the workstream setup that
sprint capacity is derived from.
"""
from __future__ import annotations

import uuid
from typing import Any

from sqlalchemy import ForeignKey, Index, Integer, String, UniqueConstraint, Uuid
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.db.base import Base, JSONType, TimestampMixin


class Department(TimestampMixin, Base):
    __tablename__ = "departments"

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        primary_key=True,
        default=uuid.uuid4,
    )
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    client_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("clients.id", ondelete="CASCADE"),
        nullable=False,
    )
    workstream_count: Mapped[int] = mapped_column(
        Integer, nullable=False, default=1, server_default="1"
    )
    # Hours per workstream per sprint
    workstream_capacity: Mapped[int] = mapped_column(
        Integer, nullable=False, default=32, server_default="32"
    )
    # Weeks
    sprint_duration: Mapped[int] = mapped_column(
        Integer, nullable=False, default=2, server_default="2"
    )
    workstream_labels: Mapped[list[str]] = mapped_column(
        JSONType, nullable=False, default=list
    )
    # {"start": "09:00", "end": "17:00", "days": [1, 2, 3, 4, 5]}
    working_hours: Mapped[dict[str, Any] | None] = mapped_column(JSONType, nullable=True)
    lead_id: Mapped[uuid.UUID | None] = mapped_column(
        Uuid,
        ForeignKey("users.id", ondelete="SET NULL"),
        nullable=True,
    )
    primary_contact_id: Mapped[uuid.UUID | None] = mapped_column(
        Uuid,
        ForeignKey("users.id", ondelete="SET NULL"),
        nullable=True,
    )
    team_member_ids: Mapped[list[str]] = mapped_column(
        JSONType, nullable=False, default=list
    )

    # ── Relationships ─────────────────────────────────────────────────────────
    client: Mapped["Client"] = relationship(  # type: ignore[name-defined]  # noqa: F821
        "Client",
        back_populates="departments",
    )

    __table_args__ = (
        UniqueConstraint("client_id", "name", name="uq_departments_client_id_name"),
        Index("ix_departments_client_id", "client_id"),
    )

    def __repr__(self) -> str:
        return f"<Department id={self.id} name={self.name!r} client_id={self.client_id}>"
