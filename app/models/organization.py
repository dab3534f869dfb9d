"""
Organization ORM model.
A single row holding organisation-wide planning defaults.
"""
from __future__ import annotations

import uuid

from sqlalchemy import Integer, String, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from app.db.base import Base, TimestampMixin


class Organization(TimestampMixin, Base):
    __tablename__ = "organizations"

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        primary_key=True,
        default=uuid.uuid4,
    )
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    # Hours one workstream delivers in one sprint
    default_workstream_capacity: Mapped[int] = mapped_column(
        Integer, nullable=False, default=32, server_default="32"
    )
    # Weeks
    default_sprint_duration: Mapped[int] = mapped_column(
        Integer, nullable=False, default=2, server_default="2"
    )
    email_from_name: Mapped[str | None] = mapped_column(String(255), nullable=True)
    primary_color: Mapped[str | None] = mapped_column(String(20), nullable=True)

    def __repr__(self) -> str:
        return f"<Organization id={self.id} name={self.name!r}>"
