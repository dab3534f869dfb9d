"""
Client and ProjectKey CRUD operations.
ProjectKey rows hold the running counters that mint project, task and
sprint slugs (KEY-P-1, KEY-1, KEY-S-1).
"""
from __future__ import annotations

import uuid

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from app.crud.base import CRUDBase
from app.models.client import Client, ProjectKey
from app.models.department import Department
from app.models.project import Project
from app.schemas.client import ClientCreate, ClientUpdate

# Which counter each slug kind increments, and the slug prefix after the key
_SLUG_KINDS: dict[str, tuple[str, str]] = {
    "project": ("last_project_number", "P-"),
    "task": ("last_task_number", ""),
    "sprint": ("last_sprint_number", "S-"),
}


class CRUDClient(CRUDBase[Client, ClientCreate, ClientUpdate]):

    async def get_by_name(self, db: AsyncSession, name: str) -> Client | None:
        result = await db.execute(
            select(Client).where(func.lower(Client.name) == name.strip().lower())
        )
        return result.scalar_one_or_none()

    async def get_with_departments(
        self, db: AsyncSession, client_id: uuid.UUID
    ) -> Client | None:
        result = await db.execute(
            select(Client)
            .options(selectinload(Client.departments))
            .where(Client.id == client_id)
            .execution_options(populate_existing=True)
        )
        return result.scalar_one_or_none()

    async def list_clients(
        self,
        db: AsyncSession,
        *,
        status: str | None = None,
        skip: int = 0,
        limit: int = 100,
    ) -> tuple[list[Client], int]:
        query = select(Client)
        if status is not None:
            query = query.where(Client.status == status)
        return await self.paginate(db, query.order_by(Client.name), skip=skip, limit=limit)

    async def counts_for(
        self, db: AsyncSession, client_ids: list[uuid.UUID]
    ) -> dict[uuid.UUID, dict[str, int]]:
        """Department, project and active (incomplete) project counts per client."""
        counts: dict[uuid.UUID, dict[str, int]] = {
            client_id: {"department_count": 0, "project_count": 0, "active_project_count": 0}
            for client_id in client_ids
        }
        if not client_ids:
            return counts

        departments = await db.execute(
            select(Department.client_id, func.count())
            .where(Department.client_id.in_(client_ids))
            .group_by(Department.client_id)
        )
        for client_id, total in departments.all():
            counts[client_id]["department_count"] = total

        projects = await db.execute(
            select(Project.client_id, Project.status, func.count())
            .where(Project.client_id.in_(client_ids))
            .group_by(Project.client_id, Project.status)
        )
        for client_id, status, total in projects.all():
            counts[client_id]["project_count"] += total
            if status != "complete":
                counts[client_id]["active_project_count"] += total
        return counts

    async def count_incomplete_projects(self, db: AsyncSession, client_id: uuid.UUID) -> int:
        result = await db.execute(
            select(func.count())
            .select_from(Project)
            .where(Project.client_id == client_id, Project.status != "complete")
        )
        return result.scalar_one()


class CRUDProjectKey(CRUDBase[ProjectKey, ClientCreate, ClientUpdate]):

    async def get_by_key(self, db: AsyncSession, key: str) -> ProjectKey | None:
        result = await db.execute(select(ProjectKey).where(ProjectKey.key == key))
        return result.scalar_one_or_none()

    async def get_for_client(self, db: AsyncSession, client_id: uuid.UUID) -> ProjectKey | None:
        result = await db.execute(
            select(ProjectKey)
            .where(ProjectKey.client_id == client_id)
            .order_by(ProjectKey.created_at)
            .limit(1)
        )
        return result.scalar_one_or_none()

    async def unique_key(self, db: AsyncSession, base: str) -> str:
        """Return ``base`` or ``base`` with the first numeric suffix that is free."""
        key = base
        suffix = 0
        while await self.exists(db, key=key) or await crud_client.exists(db, project_key=key):
            suffix += 1
            key = f"{base[: 8 - len(str(suffix))]}{suffix}"
        return key

    async def ensure_for_client(self, db: AsyncSession, client: Client) -> ProjectKey:
        """Return the client's counter row, creating it from the client's key."""
        project_key = await self.get_for_client(db, client.id)
        if project_key is not None:
            return project_key
        if client.project_key is None:
            raise ValueError(f"Client {client.id} has no project key")
        return await self.create_from_dict(
            db, obj_in={"key": client.project_key, "client_id": client.id}
        )

    async def next_slug(self, db: AsyncSession, *, client: Client, kind: str) -> str:
        """Increment the counter for ``kind`` and return the new slug."""
        counter, prefix = _SLUG_KINDS[kind]
        project_key = await self.ensure_for_client(db, client)
        number = getattr(project_key, counter) + 1
        setattr(project_key, counter, number)
        db.add(project_key)
        await db.flush()
        return f"{project_key.key}-{prefix}{number}"

    async def rename(self, db: AsyncSession, *, client: Client, key: str) -> None:
        project_key = await self.get_for_client(db, client.id)
        if project_key is not None:
            await self.update(db, db_obj=project_key, obj_in={"key": key})


crud_client = CRUDClient(Client)
crud_project_key = CRUDProjectKey(ProjectKey)
