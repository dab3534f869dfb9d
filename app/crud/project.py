"""
Project CRUD operations.
Extends CRUDBase with role-scoped listing and per-project task statistics.
"""
from __future__ import annotations

import uuid

from sqlalchemy import func, select, update
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from app.crud.base import CRUDBase
from app.models.document import Document
from app.models.project import Project
from app.models.task import Task
from app.schemas.project import ProjectCreate, ProjectUpdate


class CRUDProject(CRUDBase[Project, ProjectCreate, ProjectUpdate]):

    async def get_with_document(
        self, db: AsyncSession, project_id: uuid.UUID
    ) -> Project | None:
        result = await db.execute(
            select(Project)
            .options(selectinload(Project.document).selectinload(Document.pages))
            .where(Project.id == project_id)
            .execution_options(populate_existing=True)
        )
        return result.scalar_one_or_none()

    async def list_projects(
        self,
        db: AsyncSession,
        *,
        client_id: uuid.UUID | None = None,
        department_id: uuid.UUID | None = None,
        status: str | None = None,
        search: str | None = None,
        restrict_client_id: uuid.UUID | None = None,
        restrict_department_ids: list[uuid.UUID] | None = None,
        skip: int = 0,
        limit: int = 100,
    ) -> tuple[list[Project], int]:
        """
        Return (projects, total).
        ``restrict_client_id`` limits to one client's non-private projects and
        ``restrict_department_ids`` limits to the given departments; both are
        set by the service from the caller's role.
        """
        query = select(Project)

        if restrict_client_id is not None:
            query = query.where(
                Project.client_id == restrict_client_id,
                Project.visibility != "private",
            )
        if restrict_department_ids is not None:
            query = query.where(Project.department_id.in_(restrict_department_ids))

        if client_id is not None:
            query = query.where(Project.client_id == client_id)
        if department_id is not None:
            query = query.where(Project.department_id == department_id)
        if status is not None:
            query = query.where(Project.status == status)
        if search:
            query = query.where(Project.title.ilike(f"%{search}%"))

        return await self.paginate(
            db, query.order_by(Project.created_at.desc()), skip=skip, limit=limit
        )

    async def task_counts(self, db: AsyncSession, project_id: uuid.UUID) -> dict[str, int]:
        result = await db.execute(
            select(Task.status, func.count())
            .where(Task.project_id == project_id)
            .group_by(Task.status)
        )
        return {row[0]: row[1] for row in result.all()}

    async def unlink_tasks(self, db: AsyncSession, project_id: uuid.UUID) -> int:
        """Detach every task from the project. Returns the number of tasks touched."""
        result = await db.execute(
            update(Task).where(Task.project_id == project_id).values(project_id=None)
        )
        return result.rowcount  # type: ignore[return-value]


crud_project = CRUDProject(Project)
