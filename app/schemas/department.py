"""
Department Pydantic schemas.
Workstream settings are validated here so the service only deals with
well-formed values.
"""
from __future__ import annotations

import re
import uuid
from datetime import datetime
from typing import Any

from pydantic import BaseModel, Field, field_validator, model_validator

from app.schemas.common import require_value

_HH_MM = re.compile(r"^([01]\d|2[0-3]):[0-5]\d$")


class WorkingHours(BaseModel):
    start: str = "09:00"
    end: str = "17:00"
    # 0 = Sunday ... 6 = Saturday
    days: list[int] = Field(default_factory=lambda: [1, 2, 3, 4, 5])

    @field_validator("start", "end")
    @classmethod
    def validate_time(cls, v: str) -> str:
        if not _HH_MM.match(v):
            raise ValueError("Working hours must use HH:MM")
        return v

    @field_validator("days")
    @classmethod
    def validate_days(cls, v: list[int]) -> list[int]:
        if any(day < 0 or day > 6 for day in v):
            raise ValueError("Working days must be between 0 and 6")
        return sorted(set(v))

    @model_validator(mode="after")
    def validate_range(self) -> "WorkingHours":
        if self.end <= self.start:
            raise ValueError("Working hours end must be after start")
        return self


class _WorkstreamFields(BaseModel):
    @model_validator(mode="after")
    def validate_labels(self) -> "_WorkstreamFields":
        count = getattr(self, "workstream_count", None)
        labels = getattr(self, "workstream_labels", None)
        if count is not None and labels and len(labels) != count:
            raise ValueError("Workstream labels must match the workstream count")
        return self


# ── Create ────────────────────────────────────────────────────────────────────

class DepartmentCreate(_WorkstreamFields):
    name: str = Field(min_length=1, max_length=255)
    client_id: uuid.UUID
    workstream_count: int = Field(default=1, gt=0)
    workstream_capacity: int | None = Field(default=None, gt=0)
    sprint_duration: int | None = Field(default=None, ge=1, le=4)
    workstream_labels: list[str] = Field(default_factory=list)
    working_hours: WorkingHours | None = None
    lead_id: uuid.UUID | None = None
    primary_contact_id: uuid.UUID | None = None
    team_member_ids: list[uuid.UUID] = Field(default_factory=list)


# ── Update ────────────────────────────────────────────────────────────────────

class DepartmentUpdate(_WorkstreamFields):
    name: str | None = Field(default=None, min_length=1, max_length=255)
    workstream_count: int | None = Field(default=None, gt=0)
    workstream_capacity: int | None = Field(default=None, gt=0)
    sprint_duration: int | None = Field(default=None, ge=1, le=4)
    workstream_labels: list[str] | None = None
    working_hours: WorkingHours | None = None
    lead_id: uuid.UUID | None = None
    primary_contact_id: uuid.UUID | None = None
    team_member_ids: list[uuid.UUID] | None = None

    @field_validator(
        "name",
        "workstream_count",
        "workstream_capacity",
        "sprint_duration",
        "workstream_labels",
        "team_member_ids",
        mode="before",
    )
    @classmethod
    def reject_null(cls, v: Any) -> Any:
        return require_value(v)


# ── Read ──────────────────────────────────────────────────────────────────────

class DepartmentRead(BaseModel):
    id: uuid.UUID
    name: str
    client_id: uuid.UUID
    workstream_count: int
    workstream_capacity: int
    sprint_duration: int
    workstream_labels: list[str]
    working_hours: WorkingHours | None
    lead_id: uuid.UUID | None
    primary_contact_id: uuid.UUID | None
    team_member_ids: list[str]
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}
