"""
Project routes.
"""
from __future__ import annotations

import uuid

from fastapi import APIRouter, Query, status

from app.core.dependencies import AdminUser, CurrentUser, DBSession, ManagerUser
from app.models.project import Project
from app.schemas.pagination import PaginatedResponse
from app.schemas.project import (
    ProjectCreate,
    ProjectRead,
    ProjectReadWithDocument,
    ProjectStats,
    ProjectUpdate,
)
from app.services.project_service import project_service

router = APIRouter(prefix="/projects", tags=["Projects"])


def _with_document(project: Project) -> ProjectReadWithDocument:
    read = ProjectReadWithDocument.model_validate(project)
    if project.document is not None:
        read.document_id = project.document.id
    return read


@router.get(
    "/",
    response_model=PaginatedResponse[ProjectRead],
    summary="List projects visible to the current user",
)
async def list_projects(
    current_user: CurrentUser,
    db: DBSession,
    client_id: uuid.UUID | None = Query(default=None),
    department_id: uuid.UUID | None = Query(default=None),
    status: str | None = Query(default=None),
    search: str | None = Query(default=None, max_length=200),
    page: int = Query(default=1, ge=1),
    size: int = Query(default=20, ge=1, le=100),
) -> PaginatedResponse[ProjectRead]:
    projects, total = await project_service.list_projects(
        db,
        current_user=current_user,
        page=page,
        size=size,
        client_id=client_id,
        department_id=department_id,
        status=status,
        search=search,
    )
    return PaginatedResponse.build(
        projects, total, page=page, size=size, convert=ProjectRead.model_validate
    )


@router.post(
    "/",
    response_model=ProjectReadWithDocument,
    status_code=status.HTTP_201_CREATED,
    summary="Create a project with its brief document",
)
async def create_project(
    project_in: ProjectCreate,
    manager: ManagerUser,
    db: DBSession,
) -> ProjectReadWithDocument:
    project = await project_service.create_project(
        db, project_in=project_in, current_user=manager
    )
    return _with_document(project)


@router.get(
    "/{project_id}",
    response_model=ProjectReadWithDocument,
    summary="Get a project",
)
async def get_project(
    project_id: uuid.UUID,
    current_user: CurrentUser,
    db: DBSession,
) -> ProjectReadWithDocument:
    project = await project_service.get_project(
        db, project_id=project_id, current_user=current_user
    )
    return _with_document(project)


@router.put(
    "/{project_id}",
    response_model=ProjectReadWithDocument,
    summary="Update a project",
)
async def update_project(
    project_id: uuid.UUID,
    project_in: ProjectUpdate,
    current_user: CurrentUser,
    db: DBSession,
) -> ProjectReadWithDocument:
    project = await project_service.update_project(
        db, project_id=project_id, project_in=project_in, current_user=current_user
    )
    return _with_document(project)


@router.delete(
    "/{project_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete a project and its document",
)
async def delete_project(
    project_id: uuid.UUID,
    admin: AdminUser,
    db: DBSession,
) -> None:
    await project_service.delete_project(db, project_id=project_id, current_user=admin)


@router.get(
    "/{project_id}/stats",
    response_model=ProjectStats,
    summary="Task completion statistics for a project",
)
async def project_stats(
    project_id: uuid.UUID,
    current_user: CurrentUser,
    db: DBSession,
) -> ProjectStats:
    return await project_service.project_stats(
        db, project_id=project_id, current_user=current_user
    )
