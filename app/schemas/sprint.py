"""
Sprint Pydantic schemas, including the capacity bar and backlog views.
"""
from __future__ import annotations

import uuid
from datetime import date, datetime
from typing import Any, Literal

from pydantic import BaseModel, Field, field_validator, model_validator

from app.schemas.common import require_value
from app.schemas.task import TaskRead
from app.services.planning import validate_date_range

SprintStatus = Literal["planning", "active", "review", "complete", "cancelled"]


# ── Create ────────────────────────────────────────────────────────────────────

class SprintCreate(BaseModel):
    name: str = Field(min_length=1, max_length=255)
    department_id: uuid.UUID
    start_date: date
    # Derived from start_date and duration (business days) when omitted
    end_date: date | None = None
    duration: int | None = Field(default=None, ge=1, le=4)
    description: str | None = Field(default=None, max_length=10000)
    total_capacity: float | None = Field(default=None, gt=0)
    velocity_target: float | None = Field(default=None, ge=0)
    goals: list[str] = Field(default_factory=list)
    sprint_master_id: uuid.UUID | None = None
    team_member_ids: list[uuid.UUID] = Field(default_factory=list)

    @model_validator(mode="after")
    def validate_dates(self) -> "SprintCreate":
        validate_date_range(self.start_date, self.end_date)
        return self


# ── Update ────────────────────────────────────────────────────────────────────

class SprintUpdate(BaseModel):
    name: str | None = Field(default=None, min_length=1, max_length=255)
    description: str | None = None
    start_date: date | None = None
    end_date: date | None = None
    total_capacity: float | None = Field(default=None, gt=0)
    velocity_target: float | None = Field(default=None, ge=0)
    goals: list[str] | None = None
    sprint_master_id: uuid.UUID | None = None
    team_member_ids: list[uuid.UUID] | None = None

    @field_validator(
        "name", "start_date", "end_date", "total_capacity", "goals", "team_member_ids",
        mode="before",
    )
    @classmethod
    def reject_null(cls, v: Any) -> Any:
        return require_value(v)

    @model_validator(mode="after")
    def validate_dates(self) -> "SprintUpdate":
        validate_date_range(self.start_date, self.end_date)
        return self


class SprintTaskAssign(BaseModel):
    task_ids: list[uuid.UUID] = Field(min_length=1)


# ── Read ──────────────────────────────────────────────────────────────────────

class SprintRead(BaseModel):
    id: uuid.UUID
    name: str
    slug: str | None
    description: str | None
    client_id: uuid.UUID
    department_id: uuid.UUID
    start_date: date
    end_date: date
    duration: int
    status: str
    total_capacity: float
    completed_hours: float
    actual_velocity: float
    velocity_target: float | None
    goals: list[str]
    sprint_master_id: uuid.UUID | None
    team_member_ids: list[str]
    created_by: uuid.UUID | None
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class CapacityBarRead(BaseModel):
    committed_hours: float
    capacity_hours: float
    percentage: float
    fill_percentage: float
    bar_percentage: float
    target_percentage: int
    state: str
    color: str
    is_over_capacity: bool
    over_by_hours: float
    committed_label: str
    capacity_label: str
    over_by_label: str | None

    model_config = {"from_attributes": True}


class SprintCapacity(BaseModel):
    sprint_id: uuid.UUID
    task_count: int
    bar: CapacityBarRead


class BacklogGroup(BaseModel):
    project_id: uuid.UUID | None
    project_title: str | None
    tasks: list[TaskRead]
    total_hours: float


class SprintStats(BaseModel):
    department_id: uuid.UUID | None
    total: int
    active: int
    completed: int
    average_velocity: float
    current_utilization: float | None
