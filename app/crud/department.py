"""
Department CRUD operations.
"""
from __future__ import annotations

import uuid

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.crud.base import CRUDBase
from app.models.department import Department
from app.models.project import Project
from app.schemas.department import DepartmentCreate, DepartmentUpdate


class CRUDDepartment(CRUDBase[Department, DepartmentCreate, DepartmentUpdate]):

    async def get_by_name(
        self, db: AsyncSession, *, client_id: uuid.UUID, name: str
    ) -> Department | None:
        result = await db.execute(
            select(Department).where(
                Department.client_id == client_id,
                func.lower(Department.name) == name.strip().lower(),
            )
        )
        return result.scalar_one_or_none()

    async def list_by_client(
        self, db: AsyncSession, *, client_id: uuid.UUID
    ) -> list[Department]:
        result = await db.execute(
            select(Department)
            .where(Department.client_id == client_id)
            .order_by(Department.name)
        )
        return list(result.scalars().all())

    async def list_all(
        self, db: AsyncSession, *, ids: list[uuid.UUID] | None = None
    ) -> list[Department]:
        query = select(Department).order_by(Department.name)
        if ids is not None:
            query = query.where(Department.id.in_(ids))
        result = await db.execute(query)
        return list(result.scalars().all())

    async def count_incomplete_projects(
        self, db: AsyncSession, department_id: uuid.UUID
    ) -> int:
        result = await db.execute(
            select(func.count())
            .select_from(Project)
            .where(Project.department_id == department_id, Project.status != "complete")
        )
        return result.scalar_one()


crud_department = CRUDDepartment(Department)
