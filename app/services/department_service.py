"""
Department service.
"""
from __future__ import annotations

import logging
import uuid

from sqlalchemy.ext.asyncio import AsyncSession

from app.core.exceptions import BadRequestException, ConflictException, NotFoundException
from app.crud.client import crud_client
from app.crud.department import crud_department
from app.crud.organization import crud_organization
from app.models.department import Department
from app.models.user import User, UserRole
from app.schemas.department import DepartmentCreate, DepartmentUpdate
from app.services.activity_service import activity_service

logger = logging.getLogger(__name__)


class DepartmentService:

    async def create_department(
        self, db: AsyncSession, *, department_in: DepartmentCreate, current_user: User
    ) -> Department:
        client = await crud_client.get(db, department_in.client_id)
        if client is None:
            raise NotFoundException("Client", str(department_in.client_id))
        if client.status != "active":
            raise BadRequestException("Departments can only be added to active clients")
        await self._assert_unique_name(db, client_id=client.id, name=department_in.name)

        organization = await crud_organization.get_or_create(db)
        data = department_in.model_dump(mode="json")
        data["client_id"] = client.id
        data["lead_id"] = department_in.lead_id
        data["primary_contact_id"] = department_in.primary_contact_id
        data["name"] = department_in.name.strip()
        if data["workstream_capacity"] is None:
            data["workstream_capacity"] = organization.default_workstream_capacity
        if data["sprint_duration"] is None:
            data["sprint_duration"] = organization.default_sprint_duration

        department = await crud_department.create_from_dict(db, obj_in=data)
        await activity_service.log(
            db,
            user_id=current_user.id,
            action="department_created",
            entity_type="department",
            entity_id=department.id,
            details={"name": department.name, "client_id": client.id},
        )
        logger.info("Department created: department_id=%s client_id=%s", department.id, client.id)
        return department

    async def update_department(
        self,
        db: AsyncSession,
        *,
        department_id: uuid.UUID,
        department_in: DepartmentUpdate,
        current_user: User,
    ) -> Department:
        department = await self._get_or_404(db, department_id)
        changes = department_in.model_dump(mode="json", exclude_unset=True)
        for key in ("lead_id", "primary_contact_id"):
            if key in changes:
                changes[key] = getattr(department_in, key)

        name = changes.get("name")
        if name and name.strip().lower() != department.name.lower():
            await self._assert_unique_name(db, client_id=department.client_id, name=name)

        # Labels stay consistent with whatever count the department ends up with
        count = changes.get("workstream_count", department.workstream_count)
        labels = changes.get("workstream_labels", department.workstream_labels)
        if labels and len(labels) != count:
            raise BadRequestException("Workstream labels must match the workstream count")

        updated = await crud_department.update(db, db_obj=department, obj_in=changes)
        await activity_service.log(
            db,
            user_id=current_user.id,
            action="department_updated",
            entity_type="department",
            entity_id=department.id,
            details=changes,
        )
        return updated

    async def delete_department(
        self, db: AsyncSession, *, department_id: uuid.UUID, current_user: User
    ) -> None:
        department = await self._get_or_404(db, department_id)
        active_projects = await crud_department.count_incomplete_projects(db, department.id)
        if active_projects:
            raise BadRequestException(
                f"Cannot delete department with {active_projects} active project(s). "
                "Complete the projects first."
            )

        await crud_department.remove(db, id=department.id)
        await activity_service.log(
            db,
            user_id=current_user.id,
            action="department_deleted",
            entity_type="department",
            entity_id=department_id,
            details={"name": department.name, "client_id": department.client_id},
        )
        logger.info("Department deleted: department_id=%s", department_id)

    async def get_department(
        self, db: AsyncSession, *, department_id: uuid.UUID, current_user: User
    ) -> Department:
        department = await self._get_or_404(db, department_id)
        if not self._can_view(department, current_user):
            raise NotFoundException("Department", str(department_id))
        return department

    async def list_departments(
        self, db: AsyncSession, *, client_id: uuid.UUID | None, current_user: User
    ) -> list[Department]:
        if current_user.role == UserRole.CLIENT:
            if current_user.client_id is None:
                return []
            client_id = current_user.client_id
        if client_id is not None:
            departments = await crud_department.list_by_client(db, client_id=client_id)
        else:
            departments = await crud_department.list_all(db)
        return [d for d in departments if self._can_view(d, current_user)]

    # ── Private helpers ───────────────────────────────────────────────────────

    async def _get_or_404(self, db: AsyncSession, department_id: uuid.UUID) -> Department:
        department = await crud_department.get(db, department_id)
        if department is None:
            raise NotFoundException("Department", str(department_id))
        return department

    async def _assert_unique_name(
        self, db: AsyncSession, *, client_id: uuid.UUID, name: str
    ) -> None:
        if await crud_department.get_by_name(db, client_id=client_id, name=name) is not None:
            raise ConflictException(f"A department named {name.strip()!r} already exists for this client")

    def _can_view(self, department: Department, user: User) -> bool:
        if user.role in UserRole.MANAGERS:
            return True
        if user.role == UserRole.CLIENT:
            return department.client_id == user.client_id
        return department.id in user.department_uuids


department_service = DepartmentService()
