"""
User ORM model.
Stores credentials, profile data, role and the client/department scope
that drives what a user can see.
"""
from __future__ import annotations

import uuid

from sqlalchemy import Enum, ForeignKey, Index, String, Uuid
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.db.base import Base, JSONType, TimestampMixin


class UserRole:
    ADMIN = "admin"
    PM = "pm"
    TASK_OWNER = "task_owner"
    CLIENT = "client"

    ALL = (ADMIN, PM, TASK_OWNER, CLIENT)
    MANAGERS = (ADMIN, PM)


class UserStatus:
    ACTIVE = "active"
    INACTIVE = "inactive"
    INVITED = "invited"

    ALL = (ACTIVE, INACTIVE, INVITED)


class User(TimestampMixin, Base):
    __tablename__ = "users"

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        primary_key=True,
        default=uuid.uuid4,
    )
    email: Mapped[str] = mapped_column(
        String(255),
        unique=True,
        nullable=False,
        index=True,
    )
    name: Mapped[str | None] = mapped_column(String(255), nullable=True)
    hashed_password: Mapped[str | None] = mapped_column(String(255), nullable=True)
    role: Mapped[str] = mapped_column(
        Enum(*UserRole.ALL, name="user_role_enum"),
        nullable=False,
        default=UserRole.TASK_OWNER,
        server_default=UserRole.TASK_OWNER,
    )
    status: Mapped[str] = mapped_column(
        Enum(*UserStatus.ALL, name="user_status_enum"),
        nullable=False,
        default=UserStatus.ACTIVE,
        server_default=UserStatus.ACTIVE,
    )
    client_id: Mapped[uuid.UUID | None] = mapped_column(
        Uuid,
        ForeignKey("clients.id", ondelete="SET NULL"),
        nullable=True,
    )
    department_ids: Mapped[list[str]] = mapped_column(
        JSONType, nullable=False, default=list
    )
    job_title: Mapped[str | None] = mapped_column(String(255), nullable=True)
    avatar_url: Mapped[str | None] = mapped_column(String(500), nullable=True)
    refresh_token_hash: Mapped[str | None] = mapped_column(String(64), nullable=True)
    invite_token_hash: Mapped[str | None] = mapped_column(String(64), nullable=True)

    # ── Relationships ─────────────────────────────────────────────────────────
    client: Mapped["Client | None"] = relationship(  # type: ignore[name-defined]  # noqa: F821
        "Client",
        foreign_keys=[client_id],
    )
    notifications: Mapped[list["Notification"]] = relationship(  # type: ignore[name-defined]  # noqa: F821
        "Notification",
        back_populates="user",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )

    __table_args__ = (
        Index("ix_users_role", "role"),
        Index("ix_users_status", "status"),
        Index("ix_users_client_id", "client_id"),
    )

    @property
    def is_active(self) -> bool:
        return self.status == UserStatus.ACTIVE

    @property
    def display_name(self) -> str:
        return self.name or self.email

    @property
    def department_uuids(self) -> list[uuid.UUID]:
        return [uuid.UUID(str(value)) for value in self.department_ids or []]

    def __repr__(self) -> str:
        return f"<User id={self.id} email={self.email} role={self.role}>"
