"""
Client service.
Creating a client derives its project key when none is given and creates
the client's Default department. Deleting a client archives it.
"""
from __future__ import annotations

import logging
import re
import uuid

from sqlalchemy.ext.asyncio import AsyncSession

from app.core.exceptions import BadRequestException, ConflictException, NotFoundException
from app.crud.client import crud_client, crud_project_key
from app.crud.department import crud_department
from app.crud.organization import crud_organization
from app.models.client import Client
from app.models.user import User, UserRole
from app.schemas.client import ClientCreate, ClientSummary, ClientUpdate
from app.services.activity_service import activity_service

logger = logging.getLogger(__name__)

DEFAULT_DEPARTMENT_NAME = "Default"
PROJECT_KEY_LENGTH = 3


def derive_project_key(name: str) -> str:
    """First three letters/digits of the client name, uppercased and padded with X."""
    letters = re.sub(r"[^A-Za-z0-9]", "", name).upper()
    return letters[:PROJECT_KEY_LENGTH].ljust(PROJECT_KEY_LENGTH, "X")


class ClientService:

    async def create_client(
        self, db: AsyncSession, *, client_in: ClientCreate, current_user: User
    ) -> Client:
        if await crud_client.get_by_name(db, client_in.name) is not None:
            raise ConflictException(f"A client named {client_in.name!r} already exists")

        if client_in.project_key:
            key = client_in.project_key
            if await crud_project_key.exists(db, key=key) or await crud_client.exists(
                db, project_key=key
            ):
                raise ConflictException(f"Project key {key!r} already exists")
        else:
            key = await crud_project_key.unique_key(db, derive_project_key(client_in.name))

        client = await crud_client.create_from_dict(
            db,
            obj_in={
                **client_in.model_dump(),
                "project_key": key,
                "created_by": current_user.id,
            },
        )
        await crud_project_key.ensure_for_client(db, client)

        organization = await crud_organization.get_or_create(db)
        await crud_department.create_from_dict(
            db,
            obj_in={
                "name": DEFAULT_DEPARTMENT_NAME,
                "client_id": client.id,
                "workstream_count": 1,
                "workstream_capacity": organization.default_workstream_capacity,
                "sprint_duration": organization.default_sprint_duration,
            },
        )

        await activity_service.log(
            db,
            user_id=current_user.id,
            action="client_created",
            entity_type="client",
            entity_id=client.id,
            details={"name": client.name, "project_key": key},
        )
        logger.info("Client created: client_id=%s key=%s", client.id, key)
        return client

    async def update_client(
        self,
        db: AsyncSession,
        *,
        client_id: uuid.UUID,
        client_in: ClientUpdate,
        current_user: User,
    ) -> Client:
        client = await self.get_client(db, client_id=client_id)
        changes = client_in.model_dump(exclude_unset=True)

        name = changes.get("name")
        if name and name.strip().lower() != client.name.lower():
            if await crud_client.get_by_name(db, name) is not None:
                raise ConflictException(f"A client named {name!r} already exists")

        key = changes.get("project_key")
        if key is None:
            changes.pop("project_key", None)
        elif key != client.project_key:
            if await crud_project_key.exists(db, key=key) or await crud_client.exists(
                db, project_key=key
            ):
                raise ConflictException(f"Project key {key!r} already exists")
            await crud_project_key.rename(db, client=client, key=key)

        updated = await crud_client.update(db, db_obj=client, obj_in=changes)
        await activity_service.log(
            db,
            user_id=current_user.id,
            action="client_updated",
            entity_type="client",
            entity_id=client.id,
            details=changes,
        )
        return updated

    async def delete_client(
        self, db: AsyncSession, *, client_id: uuid.UUID, current_user: User
    ) -> Client:
        """
        Archive a client.
        Blocked while the client still has departments or incomplete projects.
        """
        client = await self.get_client(db, client_id=client_id)

        department_count = await crud_department.count(db, client_id=client.id)
        if department_count:
            raise BadRequestException(
                f"Cannot delete client with {department_count} department(s). "
                "Delete the departments first."
            )
        active_projects = await crud_client.count_incomplete_projects(db, client.id)
        if active_projects:
            raise BadRequestException(
                f"Cannot delete client with {active_projects} active project(s). "
                "Complete or delete the projects first."
            )

        archived = await crud_client.update(db, db_obj=client, obj_in={"status": "archived"})
        await activity_service.log(
            db,
            user_id=current_user.id,
            action="client_archived",
            entity_type="client",
            entity_id=client.id,
        )
        logger.info("Client archived: client_id=%s", client.id)
        return archived

    async def get_client(self, db: AsyncSession, *, client_id: uuid.UUID) -> Client:
        client = await crud_client.get(db, client_id)
        if client is None:
            raise NotFoundException("Client", str(client_id))
        return client

    async def get_client_with_departments(
        self, db: AsyncSession, *, client_id: uuid.UUID, current_user: User
    ) -> Client:
        self._assert_can_view(client_id, current_user)
        client = await crud_client.get_with_departments(db, client_id)
        if client is None:
            raise NotFoundException("Client", str(client_id))
        return client

    async def list_clients(
        self,
        db: AsyncSession,
        *,
        status: str | None,
        page: int,
        size: int,
        current_user: User,
    ) -> tuple[list[ClientSummary], int]:
        if current_user.role == UserRole.CLIENT:
            if current_user.client_id is None:
                return [], 0
            clients = [await self.get_client(db, client_id=current_user.client_id)]
            total = 1
        else:
            clients, total = await crud_client.list_clients(
                db, status=status, skip=(page - 1) * size, limit=size
            )

        counts = await crud_client.counts_for(db, [c.id for c in clients])
        summaries = [
            ClientSummary.model_validate(client).model_copy(update=counts[client.id])
            for client in clients
        ]
        return summaries, total

    # ── Private helpers ───────────────────────────────────────────────────────

    def _assert_can_view(self, client_id: uuid.UUID, user: User) -> None:
        if user.role == UserRole.CLIENT and user.client_id != client_id:
            raise NotFoundException("Client", str(client_id))


client_service = ClientService()
