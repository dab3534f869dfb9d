"""
Sprint routes.
Planning, lifecycle (start / complete), capacity and the sprint board.
"""
from __future__ import annotations

import uuid

from fastapi import APIRouter, Query, status

from app.core.dependencies import CurrentUser, DBSession, ManagerUser
from app.schemas.pagination import PaginatedResponse
from app.schemas.sprint import (
    SprintCapacity,
    SprintCreate,
    SprintRead,
    SprintStats,
    SprintTaskAssign,
    SprintUpdate,
)
from app.schemas.task import KanbanBoard, TaskRead
from app.services.sprint_service import sprint_service

router = APIRouter(prefix="/sprints", tags=["Sprints"])


@router.get(
    "/",
    response_model=PaginatedResponse[SprintRead],
    summary="List sprints",
)
async def list_sprints(
    current_user: CurrentUser,
    db: DBSession,
    department_id: uuid.UUID | None = Query(default=None),
    status: str | None = Query(default=None),
    page: int = Query(default=1, ge=1),
    size: int = Query(default=20, ge=1, le=100),
) -> PaginatedResponse[SprintRead]:
    sprints, total = await sprint_service.list_sprints(
        db,
        current_user=current_user,
        page=page,
        size=size,
        department_id=department_id,
        status=status,
    )
    return PaginatedResponse.build(
        sprints, total, page=page, size=size, convert=SprintRead.model_validate
    )


@router.post(
    "/",
    response_model=SprintRead,
    status_code=status.HTTP_201_CREATED,
    summary="Create a sprint",
)
async def create_sprint(
    sprint_in: SprintCreate,
    manager: ManagerUser,
    db: DBSession,
) -> SprintRead:
    sprint = await sprint_service.create_sprint(db, sprint_in=sprint_in, current_user=manager)
    return SprintRead.model_validate(sprint)


@router.get("/stats", response_model=SprintStats, summary="Sprint counts and velocity")
async def sprint_stats(
    current_user: CurrentUser,
    db: DBSession,
    department_id: uuid.UUID | None = Query(default=None),
) -> SprintStats:
    return await sprint_service.sprint_stats(
        db, department_id=department_id, current_user=current_user
    )


@router.get("/{sprint_id}", response_model=SprintRead, summary="Get a sprint")
async def get_sprint(
    sprint_id: uuid.UUID,
    current_user: CurrentUser,
    db: DBSession,
) -> SprintRead:
    sprint = await sprint_service.get_sprint(db, sprint_id=sprint_id, current_user=current_user)
    return SprintRead.model_validate(sprint)


@router.put("/{sprint_id}", response_model=SprintRead, summary="Update a sprint")
async def update_sprint(
    sprint_id: uuid.UUID,
    sprint_in: SprintUpdate,
    manager: ManagerUser,
    db: DBSession,
) -> SprintRead:
    sprint = await sprint_service.update_sprint(
        db, sprint_id=sprint_id, sprint_in=sprint_in, current_user=manager
    )
    return SprintRead.model_validate(sprint)


@router.delete(
    "/{sprint_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete a sprint without tasks",
)
async def delete_sprint(
    sprint_id: uuid.UUID,
    manager: ManagerUser,
    db: DBSession,
) -> None:
    await sprint_service.delete_sprint(db, sprint_id=sprint_id, current_user=manager)


@router.post("/{sprint_id}/start", response_model=SprintRead, summary="Start a sprint")
async def start_sprint(
    sprint_id: uuid.UUID,
    manager: ManagerUser,
    db: DBSession,
) -> SprintRead:
    sprint = await sprint_service.start_sprint(db, sprint_id=sprint_id, current_user=manager)
    return SprintRead.model_validate(sprint)


@router.post(
    "/{sprint_id}/complete",
    response_model=SprintRead,
    summary="Complete a sprint and record its velocity",
)
async def complete_sprint(
    sprint_id: uuid.UUID,
    manager: ManagerUser,
    db: DBSession,
) -> SprintRead:
    sprint = await sprint_service.complete_sprint(db, sprint_id=sprint_id, current_user=manager)
    return SprintRead.model_validate(sprint)


@router.get(
    "/{sprint_id}/capacity",
    response_model=SprintCapacity,
    summary="Committed hours against sprint capacity",
)
async def sprint_capacity(
    sprint_id: uuid.UUID,
    current_user: CurrentUser,
    db: DBSession,
) -> SprintCapacity:
    return await sprint_service.capacity(db, sprint_id=sprint_id, current_user=current_user)


@router.post(
    "/{sprint_id}/tasks",
    response_model=list[TaskRead],
    summary="Add backlog tasks to a sprint",
)
async def assign_tasks(
    sprint_id: uuid.UUID,
    body: SprintTaskAssign,
    manager: ManagerUser,
    db: DBSession,
) -> list[TaskRead]:
    tasks = await sprint_service.assign_tasks(
        db, sprint_id=sprint_id, task_ids=body.task_ids, current_user=manager
    )
    return [TaskRead.model_validate(t) for t in tasks]


@router.post(
    "/{sprint_id}/tasks/remove",
    response_model=list[TaskRead],
    summary="Send sprint tasks back to the backlog",
)
async def unassign_tasks(
    sprint_id: uuid.UUID,
    body: SprintTaskAssign,
    manager: ManagerUser,
    db: DBSession,
) -> list[TaskRead]:
    tasks = await sprint_service.unassign_tasks(
        db, sprint_id=sprint_id, task_ids=body.task_ids, current_user=manager
    )
    return [TaskRead.model_validate(t) for t in tasks]


@router.get("/{sprint_id}/kanban", response_model=KanbanBoard, summary="Sprint board")
async def sprint_kanban(
    sprint_id: uuid.UUID,
    current_user: CurrentUser,
    db: DBSession,
) -> KanbanBoard:
    columns = await sprint_service.kanban(db, sprint_id=sprint_id, current_user=current_user)
    return KanbanBoard.from_columns(columns)
