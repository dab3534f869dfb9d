"""
Organization settings schemas.
"""
from __future__ import annotations

import uuid
from datetime import datetime

from pydantic import BaseModel, Field


class OrganizationUpdate(BaseModel):
    name: str | None = Field(default=None, min_length=1, max_length=255)
    default_workstream_capacity: int | None = Field(default=None, gt=0)
    default_sprint_duration: int | None = Field(default=None, ge=1, le=4)
    email_from_name: str | None = Field(default=None, max_length=255)
    primary_color: str | None = Field(
        default=None, pattern=r"^#[0-9a-fA-F]{6}$", max_length=20
    )


class OrganizationRead(BaseModel):
    id: uuid.UUID
    name: str
    default_workstream_capacity: int
    default_sprint_duration: int
    email_from_name: str | None
    primary_color: str | None
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}
