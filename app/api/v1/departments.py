"""
Department routes.
"""
from __future__ import annotations

import uuid

from fastapi import APIRouter, Query, status

from app.core.dependencies import AdminUser, CurrentUser, DBSession, ManagerUser
from app.schemas.department import DepartmentCreate, DepartmentRead, DepartmentUpdate
from app.schemas.sprint import BacklogGroup
from app.services.department_service import department_service
from app.services.sprint_service import sprint_service

router = APIRouter(prefix="/departments", tags=["Departments"])


@router.get("/", response_model=list[DepartmentRead], summary="List departments")
async def list_departments(
    current_user: CurrentUser,
    db: DBSession,
    client_id: uuid.UUID | None = Query(default=None),
) -> list[DepartmentRead]:
    departments = await department_service.list_departments(
        db, client_id=client_id, current_user=current_user
    )
    return [DepartmentRead.model_validate(d) for d in departments]


@router.post(
    "/",
    response_model=DepartmentRead,
    status_code=status.HTTP_201_CREATED,
    summary="Create a department for a client",
)
async def create_department(
    department_in: DepartmentCreate,
    manager: ManagerUser,
    db: DBSession,
) -> DepartmentRead:
    department = await department_service.create_department(
        db, department_in=department_in, current_user=manager
    )
    return DepartmentRead.model_validate(department)


@router.get("/{department_id}", response_model=DepartmentRead, summary="Get a department")
async def get_department(
    department_id: uuid.UUID,
    current_user: CurrentUser,
    db: DBSession,
) -> DepartmentRead:
    department = await department_service.get_department(
        db, department_id=department_id, current_user=current_user
    )
    return DepartmentRead.model_validate(department)


@router.put("/{department_id}", response_model=DepartmentRead, summary="Update a department")
async def update_department(
    department_id: uuid.UUID,
    department_in: DepartmentUpdate,
    manager: ManagerUser,
    db: DBSession,
) -> DepartmentRead:
    department = await department_service.update_department(
        db, department_id=department_id, department_in=department_in, current_user=manager
    )
    return DepartmentRead.model_validate(department)


@router.delete(
    "/{department_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete a department without active projects",
)
async def delete_department(
    department_id: uuid.UUID,
    admin: AdminUser,
    db: DBSession,
) -> None:
    await department_service.delete_department(
        db, department_id=department_id, current_user=admin
    )


@router.get(
    "/{department_id}/backlog",
    response_model=list[BacklogGroup],
    summary="Unplanned tasks grouped by project, highest priority first",
)
async def department_backlog(
    department_id: uuid.UUID,
    current_user: CurrentUser,
    db: DBSession,
) -> list[BacklogGroup]:
    await department_service.get_department(
        db, department_id=department_id, current_user=current_user
    )
    return await sprint_service.backlog(
        db, department_id=department_id, current_user=current_user
    )
