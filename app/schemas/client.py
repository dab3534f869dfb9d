"""
Client Pydantic schemas.
"""
from __future__ import annotations

import uuid
from datetime import datetime
from typing import Any, Literal

from pydantic import BaseModel, Field, field_validator

from app.schemas.common import require_value
from app.schemas.department import DepartmentRead

ClientStatus = Literal["active", "inactive", "archived"]


def _validate_project_key(v: str | None) -> str | None:
    if v is None:
        return None
    v = v.strip().upper() or None
    if v is not None and not (2 <= len(v) <= 8 and v.isalnum() and v.isascii()):
        raise ValueError("Project key must be 2-8 letters or digits")
    return v


# ── Create ────────────────────────────────────────────────────────────────────

class ClientCreate(BaseModel):
    name: str = Field(min_length=1, max_length=255)
    website: str | None = Field(default=None, max_length=500)
    is_internal: bool = False
    project_key: str | None = Field(default=None, max_length=8)

    @field_validator("name")
    @classmethod
    def strip_name(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("Client name is required")
        return v

    @field_validator("project_key")
    @classmethod
    def validate_project_key(cls, v: str | None) -> str | None:
        return _validate_project_key(v)


# ── Update ────────────────────────────────────────────────────────────────────

class ClientUpdate(BaseModel):
    name: str | None = Field(default=None, min_length=1, max_length=255)
    website: str | None = Field(default=None, max_length=500)
    is_internal: bool | None = None
    project_key: str | None = Field(default=None, max_length=8)
    status: ClientStatus | None = None

    @field_validator("project_key")
    @classmethod
    def validate_project_key(cls, v: str | None) -> str | None:
        return _validate_project_key(v)

    @field_validator("name", "is_internal", "status", mode="before")
    @classmethod
    def reject_null(cls, v: Any) -> Any:
        return require_value(v)


# ── Read ──────────────────────────────────────────────────────────────────────

class ClientRead(BaseModel):
    id: uuid.UUID
    name: str
    website: str | None
    is_internal: bool
    project_key: str | None
    status: str
    created_by: uuid.UUID | None
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class ClientSummary(ClientRead):
    """Client row in the list view with its per-client counts."""

    department_count: int = 0
    project_count: int = 0
    active_project_count: int = 0


class ClientReadWithDepartments(ClientRead):
    departments: list[DepartmentRead] = []
