"""
Task Pydantic schemas.
Includes create/update/read variants, the list filter, kanban views and the
drag-and-drop move request.
"""
from __future__ import annotations

import uuid
from datetime import date, datetime
from typing import Any, Literal

from pydantic import BaseModel, Field, field_validator

from app.schemas.common import require_value
from app.schemas.project import Visibility

TaskStatus = Literal["todo", "in_progress", "review", "done", "archived"]
TaskPriority = Literal["low", "medium", "high", "urgent"]


# ── Create ────────────────────────────────────────────────────────────────────

class TaskCreate(BaseModel):
    title: str = Field(min_length=1, max_length=500)
    client_id: uuid.UUID
    department_id: uuid.UUID
    description: str | None = Field(default=None, max_length=10000)
    project_id: uuid.UUID | None = None
    sprint_id: uuid.UUID | None = None
    parent_task_id: uuid.UUID | None = None
    status: TaskStatus = "todo"
    priority: TaskPriority = "medium"
    size: str | None = Field(default=None, max_length=20)
    estimated_hours: float | None = Field(default=None, ge=0)
    due_date: date | None = None
    assignee_id: uuid.UUID | None = None
    labels: list[str] = Field(default_factory=list, max_length=20)
    visibility: Visibility = "department"


# ── Update ────────────────────────────────────────────────────────────────────

class TaskUpdate(BaseModel):
    title: str | None = Field(default=None, min_length=1, max_length=500)
    description: str | None = None
    project_id: uuid.UUID | None = None
    status: TaskStatus | None = None
    priority: TaskPriority | None = None
    size: str | None = Field(default=None, max_length=20)
    estimated_hours: float | None = Field(default=None, ge=0)
    actual_hours: float | None = Field(default=None, ge=0)
    due_date: date | None = None
    assignee_id: uuid.UUID | None = None
    labels: list[str] | None = None
    visibility: Visibility | None = None

    @field_validator("title", "status", "priority", "labels", "visibility", mode="before")
    @classmethod
    def reject_null(cls, v: Any) -> Any:
        return require_value(v)


# Fields a task owner may change on a task assigned to them
TASK_OWNER_FIELDS = frozenset({"status", "actual_hours"})


class TaskMove(BaseModel):
    """A resolved drop: ``column:<status>`` or the id of the card dropped onto."""

    over_id: str = Field(min_length=1, max_length=100)


class TaskReorder(BaseModel):
    """Task ids of one department backlog in their new order."""

    department_id: uuid.UUID
    task_ids: list[uuid.UUID] = Field(min_length=1)


# ── Read ──────────────────────────────────────────────────────────────────────

class TaskRead(BaseModel):
    id: uuid.UUID
    title: str
    description: str | None
    slug: str | None
    client_id: uuid.UUID
    department_id: uuid.UUID
    project_id: uuid.UUID | None
    sprint_id: uuid.UUID | None
    parent_task_id: uuid.UUID | None
    status: str
    priority: str
    size: str | None
    size_hours: float | None
    estimated_hours: float | None
    actual_hours: float | None
    due_date: date | None
    completed_date: datetime | None
    assignee_id: uuid.UUID | None
    reporter_id: uuid.UUID | None
    backlog_order: int
    labels: list[str]
    visibility: str
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class TaskMoveResult(BaseModel):
    task: TaskRead
    changed: bool
    previous_status: str


class KanbanBoard(BaseModel):
    todo: list[TaskRead] = []
    in_progress: list[TaskRead] = []
    review: list[TaskRead] = []
    done: list[TaskRead] = []

    @classmethod
    def from_columns(cls, columns: dict[str, list[Any]]) -> "KanbanBoard":
        return cls(
            **{
                column: [TaskRead.model_validate(t) for t in tasks]
                for column, tasks in columns.items()
            }
        )


class TaskStats(BaseModel):
    total: int
    by_status: dict[str, int]
    overdue: int


# ── Filter ────────────────────────────────────────────────────────────────────

class TaskFilter(BaseModel):
    """Query parameters for filtering task list endpoints."""

    status: TaskStatus | None = None
    priority: TaskPriority | None = None
    project_id: uuid.UUID | None = None
    department_id: uuid.UUID | None = None
    sprint_id: uuid.UUID | None = None
    assignee_id: uuid.UUID | None = None
    backlog_only: bool = False
    include_archived: bool = False
    search: str | None = Field(default=None, max_length=200)
    page: int = Field(default=1, ge=1)
    size: int = Field(default=20, ge=1, le=100)
