"""
Task routes.
CRUD, filtering + pagination, the kanban board with drag-and-drop moves and
backlog ordering.
"""
from __future__ import annotations

import uuid
from typing import Annotated

from fastapi import APIRouter, Depends, Query, status

from app.core.dependencies import CurrentUser, DBSession, ManagerUser
from app.schemas.pagination import PaginatedResponse
from app.schemas.task import (
    KanbanBoard,
    TaskCreate,
    TaskFilter,
    TaskMove,
    TaskMoveResult,
    TaskRead,
    TaskReorder,
    TaskStats,
    TaskUpdate,
)
from app.services.task_service import task_service

router = APIRouter(prefix="/tasks", tags=["Tasks"])


def _task_filter_params(
    status: str | None = Query(default=None),
    priority: str | None = Query(default=None),
    project_id: uuid.UUID | None = Query(default=None),
    department_id: uuid.UUID | None = Query(default=None),
    sprint_id: uuid.UUID | None = Query(default=None),
    assignee_id: uuid.UUID | None = Query(default=None),
    backlog_only: bool = Query(default=False),
    include_archived: bool = Query(default=False),
    search: str | None = Query(default=None, max_length=200),
    page: int = Query(default=1, ge=1),
    size: int = Query(default=20, ge=1, le=100),
) -> TaskFilter:
    return TaskFilter(
        status=status,  # type: ignore[arg-type]
        priority=priority,  # type: ignore[arg-type]
        project_id=project_id,
        department_id=department_id,
        sprint_id=sprint_id,
        assignee_id=assignee_id,
        backlog_only=backlog_only,
        include_archived=include_archived,
        search=search,
        page=page,
        size=size,
    )


@router.get(
    "/",
    response_model=PaginatedResponse[TaskRead],
    summary="List tasks with filters and pagination",
)
async def list_tasks(
    current_user: CurrentUser,
    db: DBSession,
    filters: Annotated[TaskFilter, Depends(_task_filter_params)],
) -> PaginatedResponse[TaskRead]:
    tasks, total = await task_service.list_tasks(
        db, filters=filters, current_user=current_user
    )
    return PaginatedResponse.build(
        tasks, total, page=filters.page, size=filters.size, convert=TaskRead.model_validate
    )


@router.post(
    "/",
    response_model=TaskRead,
    status_code=status.HTTP_201_CREATED,
    summary="Create a new task",
)
async def create_task(
    task_in: TaskCreate,
    manager: ManagerUser,
    db: DBSession,
) -> TaskRead:
    task = await task_service.create_task(db, task_in=task_in, current_user=manager)
    return TaskRead.model_validate(task)


@router.get("/stats", response_model=TaskStats, summary="Task counts by status")
async def task_stats(
    current_user: CurrentUser,
    db: DBSession,
    department_id: uuid.UUID | None = Query(default=None),
) -> TaskStats:
    return await task_service.task_stats(
        db, current_user=current_user, department_id=department_id
    )


@router.get(
    "/kanban",
    response_model=KanbanBoard,
    summary="Kanban board for a department, project or sprint",
)
async def get_kanban(
    current_user: CurrentUser,
    db: DBSession,
    department_id: uuid.UUID | None = Query(default=None),
    project_id: uuid.UUID | None = Query(default=None),
    sprint_id: uuid.UUID | None = Query(default=None),
) -> KanbanBoard:
    columns = await task_service.kanban(
        db,
        current_user=current_user,
        department_id=department_id,
        project_id=project_id,
        sprint_id=sprint_id,
    )
    return KanbanBoard.from_columns(columns)


@router.post(
    "/reorder",
    response_model=list[TaskRead],
    summary="Save the order of a department backlog",
)
async def reorder_backlog(
    reorder: TaskReorder,
    manager: ManagerUser,
    db: DBSession,
) -> list[TaskRead]:
    tasks = await task_service.reorder_backlog(db, reorder=reorder, current_user=manager)
    return [TaskRead.model_validate(t) for t in tasks]


@router.get(
    "/{task_id}",
    response_model=TaskRead,
    summary="Get a task by ID",
)
async def get_task(
    task_id: uuid.UUID,
    current_user: CurrentUser,
    db: DBSession,
) -> TaskRead:
    task = await task_service.get_task(db, task_id=task_id, current_user=current_user)
    return TaskRead.model_validate(task)


@router.put(
    "/{task_id}",
    response_model=TaskRead,
    summary="Update a task",
)
async def update_task(
    task_id: uuid.UUID,
    task_in: TaskUpdate,
    current_user: CurrentUser,
    db: DBSession,
) -> TaskRead:
    task = await task_service.update_task(
        db, task_id=task_id, task_in=task_in, current_user=current_user
    )
    return TaskRead.model_validate(task)


@router.post(
    "/{task_id}/move",
    response_model=TaskMoveResult,
    summary="Apply a kanban drag-and-drop",
)
async def move_task(
    task_id: uuid.UUID,
    move: TaskMove,
    current_user: CurrentUser,
    db: DBSession,
) -> TaskMoveResult:
    task, changed, previous = await task_service.move_task(
        db, task_id=task_id, move=move, current_user=current_user
    )
    return TaskMoveResult(
        task=TaskRead.model_validate(task), changed=changed, previous_status=previous
    )


@router.delete(
    "/{task_id}",
    response_model=TaskRead,
    summary="Archive a task",
)
async def delete_task(
    task_id: uuid.UUID,
    manager: ManagerUser,
    db: DBSession,
) -> TaskRead:
    task = await task_service.delete_task(db, task_id=task_id, current_user=manager)
    return TaskRead.model_validate(task)
