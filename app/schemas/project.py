"""
Project Pydantic schemas.
"""
from __future__ import annotations

import uuid
from datetime import date, datetime
from typing import Any, Literal

from pydantic import BaseModel, Field, field_validator, model_validator

from app.schemas.common import require_value
from app.services.planning import validate_date_range

ProjectStatus = Literal[
    "new",
    "planning",
    "ready_for_work",
    "in_progress",
    "client_review",
    "client_approved",
    "complete",
]
Visibility = Literal["private", "department", "client", "organization"]


# ── Create ────────────────────────────────────────────────────────────────────

class ProjectCreate(BaseModel):
    title: str = Field(min_length=1, max_length=500)
    client_id: uuid.UUID
    department_id: uuid.UUID
    description: str | None = Field(default=None, max_length=10000)
    status: ProjectStatus = "new"
    visibility: Visibility = "department"
    start_date: date | None = None
    target_due_date: date | None = None
    project_manager_id: uuid.UUID | None = None
    team_member_ids: list[uuid.UUID] = Field(default_factory=list)

    @model_validator(mode="after")
    def validate_dates(self) -> "ProjectCreate":
        validate_date_range(self.start_date, self.target_due_date, label="Target due date")
        return self


# ── Update ────────────────────────────────────────────────────────────────────

class ProjectUpdate(BaseModel):
    title: str | None = Field(default=None, min_length=1, max_length=500)
    description: str | None = None
    status: ProjectStatus | None = None
    visibility: Visibility | None = None
    start_date: date | None = None
    target_due_date: date | None = None
    project_manager_id: uuid.UUID | None = None
    team_member_ids: list[uuid.UUID] | None = None

    @field_validator("title", "status", "visibility", "team_member_ids", mode="before")
    @classmethod
    def reject_null(cls, v: Any) -> Any:
        return require_value(v)

    @model_validator(mode="after")
    def validate_dates(self) -> "ProjectUpdate":
        validate_date_range(self.start_date, self.target_due_date, label="Target due date")
        return self


# ── Read ──────────────────────────────────────────────────────────────────────

class ProjectRead(BaseModel):
    id: uuid.UUID
    title: str
    slug: str | None
    description: str | None
    client_id: uuid.UUID
    department_id: uuid.UUID
    status: str
    visibility: str
    start_date: date | None
    target_due_date: date | None
    project_manager_id: uuid.UUID | None
    team_member_ids: list[str]
    created_by: uuid.UUID | None
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class ProjectReadWithDocument(ProjectRead):
    document_id: uuid.UUID | None = None


class ProjectStats(BaseModel):
    project_id: uuid.UUID
    total_tasks: int
    completed_tasks: int
    completion_rate: float
    tasks_by_status: dict[str, int]
