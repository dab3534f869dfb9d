"""
Sprint CRUD operations.
"""
from __future__ import annotations

import uuid
from datetime import date
from typing import Any

from sqlalchemy import Select, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.crud.base import CRUDBase
from app.models.sprint import Sprint
from app.models.task import Task
from app.schemas.sprint import SprintCreate, SprintUpdate


class CRUDSprint(CRUDBase[Sprint, SprintCreate, SprintUpdate]):

    @staticmethod
    def _scoped(
        query: Select[Any],
        *,
        department_id: uuid.UUID | None,
        client_id: uuid.UUID | None,
        restrict_department_ids: list[uuid.UUID] | None,
    ) -> Select[Any]:
        if restrict_department_ids is not None:
            query = query.where(Sprint.department_id.in_(restrict_department_ids))
        if department_id is not None:
            query = query.where(Sprint.department_id == department_id)
        if client_id is not None:
            query = query.where(Sprint.client_id == client_id)
        return query

    async def list_sprints(
        self,
        db: AsyncSession,
        *,
        department_id: uuid.UUID | None = None,
        client_id: uuid.UUID | None = None,
        status: str | None = None,
        restrict_department_ids: list[uuid.UUID] | None = None,
        skip: int = 0,
        limit: int = 100,
    ) -> tuple[list[Sprint], int]:
        query = self._scoped(
            select(Sprint),
            department_id=department_id,
            client_id=client_id,
            restrict_department_ids=restrict_department_ids,
        )
        if status is not None:
            query = query.where(Sprint.status == status)
        return await self.paginate(
            db, query.order_by(Sprint.start_date.desc()), skip=skip, limit=limit
        )

    async def get_active(
        self, db: AsyncSession, department_id: uuid.UUID
    ) -> Sprint | None:
        result = await db.execute(
            select(Sprint)
            .where(Sprint.department_id == department_id, Sprint.status == "active")
            .limit(1)
        )
        return result.scalar_one_or_none()

    async def find_overlapping_active(
        self,
        db: AsyncSession,
        *,
        department_id: uuid.UUID,
        start_date: date,
        end_date: date,
        exclude_id: uuid.UUID | None = None,
    ) -> Sprint | None:
        """An active sprint of the department whose dates intersect [start, end]."""
        query = select(Sprint).where(
            Sprint.department_id == department_id,
            Sprint.status == "active",
            Sprint.start_date <= end_date,
            Sprint.end_date >= start_date,
        )
        if exclude_id is not None:
            query = query.where(Sprint.id != exclude_id)
        result = await db.execute(query.limit(1))
        return result.scalar_one_or_none()

    async def count_tasks(self, db: AsyncSession, sprint_id: uuid.UUID) -> int:
        result = await db.execute(
            select(func.count()).select_from(Task).where(Task.sprint_id == sprint_id)
        )
        return result.scalar_one()

    async def count_by_status(
        self,
        db: AsyncSession,
        *,
        department_id: uuid.UUID | None = None,
        client_id: uuid.UUID | None = None,
        restrict_department_ids: list[uuid.UUID] | None = None,
    ) -> dict[str, int]:
        query = self._scoped(
            select(Sprint.status, func.count()).group_by(Sprint.status),
            department_id=department_id,
            client_id=client_id,
            restrict_department_ids=restrict_department_ids,
        )
        result = await db.execute(query)
        return {row[0]: row[1] for row in result.all()}

    async def recent_completed(
        self,
        db: AsyncSession,
        *,
        limit: int,
        department_id: uuid.UUID | None = None,
        client_id: uuid.UUID | None = None,
        restrict_department_ids: list[uuid.UUID] | None = None,
    ) -> list[Sprint]:
        query = self._scoped(
            select(Sprint).where(Sprint.status == "complete"),
            department_id=department_id,
            client_id=client_id,
            restrict_department_ids=restrict_department_ids,
        )
        result = await db.execute(query.order_by(Sprint.end_date.desc()).limit(limit))
        return list(result.scalars().all())


crud_sprint = CRUDSprint(Sprint)
