"""
Task CRUD operations.
Extends CRUDBase with filtering, pagination, backlog ordering and the
counts used by stats endpoints.
"""
from __future__ import annotations

import uuid
from datetime import date

from sqlalchemy import Select, func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.crud.base import CRUDBase
from app.models.task import Task
from app.schemas.task import TaskCreate, TaskFilter, TaskUpdate

CLOSED_STATUSES = ("done", "archived")


class CRUDTask(CRUDBase[Task, TaskCreate, TaskUpdate]):

    def _scoped(
        self,
        query: Select,
        *,
        restrict_client_id: uuid.UUID | None,
        restrict_department_ids: list[uuid.UUID] | None,
    ) -> Select:
        if restrict_client_id is not None:
            query = query.where(
                Task.client_id == restrict_client_id,
                Task.visibility != "private",
            )
        if restrict_department_ids is not None:
            query = query.where(Task.department_id.in_(restrict_department_ids))
        return query

    async def list_with_filters(
        self,
        db: AsyncSession,
        *,
        filters: TaskFilter,
        restrict_client_id: uuid.UUID | None = None,
        restrict_department_ids: list[uuid.UUID] | None = None,
    ) -> tuple[list[Task], int]:
        """
        Return (tasks, total) applying all filter criteria.
        The restrict_* arguments narrow the result to what the caller's role may see.
        """
        query = self._scoped(
            select(Task),
            restrict_client_id=restrict_client_id,
            restrict_department_ids=restrict_department_ids,
        )

        if not filters.include_archived and filters.status != "archived":
            query = query.where(Task.status != "archived")
        if filters.status is not None:
            query = query.where(Task.status == filters.status)
        if filters.priority is not None:
            query = query.where(Task.priority == filters.priority)
        if filters.project_id is not None:
            query = query.where(Task.project_id == filters.project_id)
        if filters.department_id is not None:
            query = query.where(Task.department_id == filters.department_id)
        if filters.sprint_id is not None:
            query = query.where(Task.sprint_id == filters.sprint_id)
        if filters.assignee_id is not None:
            query = query.where(Task.assignee_id == filters.assignee_id)
        if filters.backlog_only:
            query = query.where(Task.sprint_id.is_(None))

        # Search on title, description and slug
        if filters.search:
            term = f"%{filters.search}%"
            query = query.where(
                or_(Task.title.ilike(term), Task.description.ilike(term), Task.slug.ilike(term))
            )

        skip = (filters.page - 1) * filters.size
        return await self.paginate(
            db,
            query.order_by(Task.backlog_order, Task.created_at.desc()),
            skip=skip,
            limit=filters.size,
        )

    async def list_by_sprint(self, db: AsyncSession, sprint_id: uuid.UUID) -> list[Task]:
        result = await db.execute(
            select(Task)
            .where(Task.sprint_id == sprint_id, Task.status != "archived")
            .order_by(Task.backlog_order)
        )
        return list(result.scalars().all())

    async def list_for_board(
        self,
        db: AsyncSession,
        *,
        department_id: uuid.UUID | None = None,
        project_id: uuid.UUID | None = None,
        sprint_id: uuid.UUID | None = None,
    ) -> list[Task]:
        query = select(Task).where(Task.status != "archived")
        if department_id is not None:
            query = query.where(Task.department_id == department_id)
        if project_id is not None:
            query = query.where(Task.project_id == project_id)
        if sprint_id is not None:
            query = query.where(Task.sprint_id == sprint_id)
        result = await db.execute(query.order_by(Task.backlog_order))
        return list(result.scalars().all())

    async def list_backlog(self, db: AsyncSession, department_id: uuid.UUID) -> list[Task]:
        """Open tasks of a department that are not in any sprint."""
        result = await db.execute(
            select(Task)
            .where(
                Task.department_id == department_id,
                Task.sprint_id.is_(None),
                Task.status.not_in(CLOSED_STATUSES),
            )
            .order_by(Task.backlog_order)
        )
        return list(result.scalars().all())

    async def next_backlog_order(self, db: AsyncSession, department_id: uuid.UUID) -> int:
        result = await db.execute(
            select(func.max(Task.backlog_order)).where(Task.department_id == department_id)
        )
        current = result.scalar_one_or_none()
        return 0 if current is None else current + 1

    async def count_by_status(
        self,
        db: AsyncSession,
        *,
        restrict_client_id: uuid.UUID | None = None,
        restrict_department_ids: list[uuid.UUID] | None = None,
        department_id: uuid.UUID | None = None,
    ) -> dict[str, int]:
        """Return a dict mapping status to count."""
        query = self._scoped(
            select(Task.status, func.count()).group_by(Task.status),
            restrict_client_id=restrict_client_id,
            restrict_department_ids=restrict_department_ids,
        )
        if department_id is not None:
            query = query.where(Task.department_id == department_id)
        result = await db.execute(query)
        return {row[0]: row[1] for row in result.all()}

    async def count_overdue(
        self,
        db: AsyncSession,
        *,
        today: date,
        restrict_client_id: uuid.UUID | None = None,
        restrict_department_ids: list[uuid.UUID] | None = None,
        department_id: uuid.UUID | None = None,
    ) -> int:
        query = self._scoped(
            select(func.count())
            .select_from(Task)
            .where(Task.due_date < today, Task.status.not_in(CLOSED_STATUSES)),
            restrict_client_id=restrict_client_id,
            restrict_department_ids=restrict_department_ids,
        )
        if department_id is not None:
            query = query.where(Task.department_id == department_id)
        result = await db.execute(query)
        return result.scalar_one()


crud_task = CRUDTask(Task)
