"""
User Pydantic schemas.
Covers registration, login, invitations, profile reads/updates, admin
management and token responses.
"""
from __future__ import annotations

import uuid
from datetime import datetime
from typing import Any, Literal

from pydantic import BaseModel, EmailStr, Field, field_validator

from app.core.security import validate_password_strength
from app.schemas.common import require_value

# ── Enums (string literals for Pydantic v2) ───────────────────────────────────

Role = Literal["admin", "pm", "task_owner", "client"]
Status = Literal["active", "inactive", "invited"]


# ── Create ────────────────────────────────────────────────────────────────────

class UserCreate(BaseModel):
    email: EmailStr
    name: str = Field(min_length=1, max_length=255)
    password: str = Field(max_length=128)

    @field_validator("password")
    @classmethod
    def validate_password(cls, v: str) -> str:
        return validate_password_strength(v)


class UserInvite(BaseModel):
    """Admin-created account; the user sets a password through the invitation."""

    email: EmailStr
    name: str = Field(min_length=1, max_length=255)
    role: Role = "task_owner"
    client_id: uuid.UUID | None = None
    department_ids: list[uuid.UUID] = Field(default_factory=list)
    job_title: str | None = Field(default=None, max_length=255)


class InviteAccept(BaseModel):
    token: str
    password: str = Field(max_length=128)
    name: str | None = Field(default=None, min_length=1, max_length=255)

    @field_validator("password")
    @classmethod
    def validate_password(cls, v: str) -> str:
        return validate_password_strength(v)


# ── Update ────────────────────────────────────────────────────────────────────

class UserUpdate(BaseModel):
    name: str | None = Field(default=None, min_length=1, max_length=255)
    job_title: str | None = Field(default=None, max_length=255)
    avatar_url: str | None = Field(default=None, max_length=500)


class PasswordChange(BaseModel):
    current_password: str
    new_password: str = Field(max_length=128)

    @field_validator("new_password")
    @classmethod
    def validate_new_password(cls, v: str) -> str:
        return validate_password_strength(v)


class UserAdminUpdate(BaseModel):
    name: str | None = Field(default=None, min_length=1, max_length=255)
    role: Role | None = None
    status: Status | None = None
    client_id: uuid.UUID | None = None
    department_ids: list[uuid.UUID] | None = None
    job_title: str | None = Field(default=None, max_length=255)

    @field_validator("role", "status", "department_ids", mode="before")
    @classmethod
    def reject_null(cls, v: Any) -> Any:
        return require_value(v)


# ── Read ──────────────────────────────────────────────────────────────────────

class UserRead(BaseModel):
    id: uuid.UUID
    email: EmailStr
    name: str | None
    role: str
    status: str
    client_id: uuid.UUID | None
    department_ids: list[str]
    job_title: str | None
    avatar_url: str | None
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class UserReadPublic(BaseModel):
    """Minimal public profile, safe to embed in comment and presence responses."""

    id: uuid.UUID
    name: str | None
    email: EmailStr
    avatar_url: str | None

    model_config = {"from_attributes": True}


class UserInvitation(BaseModel):
    """Returned when an invitation is created or resent."""

    user: UserRead
    invite_token: str
    expires_in_hours: int


class UserStats(BaseModel):
    total: int
    by_role: dict[str, int]
    by_status: dict[str, int]


# ── Token schemas ─────────────────────────────────────────────────────────────

class Token(BaseModel):
    access_token: str
    refresh_token: str
    token_type: str = "bearer"
    # Access token lifetime in seconds
    expires_in: int


class RefreshTokenRequest(BaseModel):
    refresh_token: str


class LoginRequest(BaseModel):
    email: EmailStr
    password: str
