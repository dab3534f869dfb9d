"""
User management service.
Admin-side account management (invite, update, delete, stats) and the
self-service profile and password operations.
"""
from __future__ import annotations

import logging
import uuid

from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import settings
from app.core.exceptions import (
    BadRequestException,
    ConflictException,
    NotFoundException,
)
from app.core.security import create_invite_token, hash_password, hash_token, verify_password
from app.crud.client import crud_client
from app.crud.department import crud_department
from app.crud.task import crud_task
from app.crud.user import crud_user
from app.models.user import User, UserRole, UserStatus
from app.schemas.user import (
    PasswordChange,
    UserAdminUpdate,
    UserInvitation,
    UserInvite,
    UserRead,
    UserStats,
    UserUpdate,
)
from app.services.activity_service import activity_service

logger = logging.getLogger(__name__)


class UserService:

    async def invite_user(
        self, db: AsyncSession, *, user_in: UserInvite, current_user: User
    ) -> UserInvitation:
        """Create an ``invited`` account and return its invitation token."""
        if await crud_user.get_by_email(db, user_in.email) is not None:
            raise ConflictException("A user with this email already exists")

        await self._assert_valid_placement(
            db, role=user_in.role, client_id=user_in.client_id, department_ids=user_in.department_ids
        )

        user = await crud_user.create_user(
            db,
            email=user_in.email,
            name=user_in.name,
            hashed_password=None,
            role=user_in.role,
            status=UserStatus.INVITED,
            client_id=user_in.client_id,
            department_ids=user_in.department_ids,
            job_title=user_in.job_title,
        )
        invitation = await self._new_invitation(db, user)

        await activity_service.log(
            db,
            user_id=current_user.id,
            action="user_invited",
            entity_type="user",
            entity_id=user.id,
            details={"email": user.email, "role": user.role},
        )
        logger.info("User invited: user_id=%s by=%s", user.id, current_user.id)
        return invitation

    async def resend_invitation(
        self, db: AsyncSession, *, user_id: uuid.UUID, current_user: User
    ) -> UserInvitation:
        user = await self._get_or_404(db, user_id)
        if user.status != UserStatus.INVITED:
            raise BadRequestException("Only invited users can be sent a new invitation")

        invitation = await self._new_invitation(db, user)
        await activity_service.log(
            db,
            user_id=current_user.id,
            action="invitation_resent",
            entity_type="user",
            entity_id=user.id,
        )
        return invitation

    async def admin_update_user(
        self,
        db: AsyncSession,
        *,
        user_id: uuid.UUID,
        user_in: UserAdminUpdate,
        current_user: User,
    ) -> User:
        user = await self._get_or_404(db, user_id)
        changes = user_in.model_dump(exclude_unset=True)

        if user.id == current_user.id and changes.get("status") not in (None, UserStatus.ACTIVE):
            raise BadRequestException("You cannot deactivate your own account")
        if user.id == current_user.id and changes.get("role") not in (None, current_user.role):
            raise BadRequestException("You cannot change your own role")

        role = changes.get("role", user.role)
        client_id = changes["client_id"] if "client_id" in changes else user.client_id
        department_ids = (
            changes["department_ids"]
            if changes.get("department_ids") is not None
            else user.department_uuids
        )
        await self._assert_valid_placement(
            db, role=role, client_id=client_id, department_ids=department_ids
        )
        if "department_ids" in changes:
            changes["department_ids"] = [str(d) for d in changes["department_ids"]]

        updated = await crud_user.update(db, db_obj=user, obj_in=changes)
        await activity_service.log(
            db,
            user_id=current_user.id,
            action="user_updated",
            entity_type="user",
            entity_id=user.id,
            details=changes,
        )
        return updated

    async def delete_user(
        self, db: AsyncSession, *, user_id: uuid.UUID, current_user: User
    ) -> None:
        if user_id == current_user.id:
            raise BadRequestException("You cannot delete your own account")
        user = await self._get_or_404(db, user_id)

        # Done and archived tasks still count; reassign them first
        assigned = await crud_task.count(db, assignee_id=user.id)
        if assigned:
            raise BadRequestException(
                f"Cannot delete user: {assigned} task(s) are still assigned to them"
            )

        await crud_user.remove(db, id=user.id)
        await activity_service.log(
            db,
            user_id=current_user.id,
            action="user_deleted",
            entity_type="user",
            entity_id=user_id,
            details={"email": user.email},
        )
        logger.info("User deleted: user_id=%s by=%s", user_id, current_user.id)

    async def list_users(
        self,
        db: AsyncSession,
        *,
        page: int,
        size: int,
        role: str | None = None,
        status: str | None = None,
        client_id: uuid.UUID | None = None,
        search: str | None = None,
    ) -> tuple[list[User], int]:
        return await crud_user.list_users(
            db,
            skip=(page - 1) * size,
            limit=size,
            role=role,
            status=status,
            client_id=client_id,
            search=search,
        )

    async def get_user(self, db: AsyncSession, *, user_id: uuid.UUID) -> User:
        return await self._get_or_404(db, user_id)

    async def stats(self, db: AsyncSession) -> UserStats:
        return UserStats(**await crud_user.stats(db))

    # ── Self service ──────────────────────────────────────────────────────────

    async def update_profile(
        self, db: AsyncSession, *, user_in: UserUpdate, current_user: User
    ) -> User:
        return await crud_user.update(db, db_obj=current_user, obj_in=user_in)

    async def change_password(
        self, db: AsyncSession, *, body: PasswordChange, current_user: User
    ) -> None:
        if current_user.hashed_password is None or not verify_password(
            body.current_password, current_user.hashed_password
        ):
            raise BadRequestException("Current password is incorrect")
        if body.current_password == body.new_password:
            raise BadRequestException("New password must differ from current password")

        await crud_user.update(
            db,
            db_obj=current_user,
            obj_in={"hashed_password": hash_password(body.new_password), "refresh_token_hash": None},
        )
        await activity_service.log(
            db,
            user_id=current_user.id,
            action="password_changed",
            entity_type="user",
            entity_id=current_user.id,
        )

    # ── Private helpers ───────────────────────────────────────────────────────

    async def _get_or_404(self, db: AsyncSession, user_id: uuid.UUID) -> User:
        user = await crud_user.get(db, user_id)
        if user is None:
            raise NotFoundException("User", str(user_id))
        return user

    async def _new_invitation(self, db: AsyncSession, user: User) -> UserInvitation:
        token = create_invite_token(str(user.id))
        user = await crud_user.set_invite_token_hash(db, user=user, token_hash=hash_token(token))
        return UserInvitation(
            user=UserRead.model_validate(user),
            invite_token=token,
            expires_in_hours=settings.INVITE_TOKEN_EXPIRE_HOURS,
        )

    async def _assert_valid_placement(
        self,
        db: AsyncSession,
        *,
        role: str,
        client_id: uuid.UUID | None,
        department_ids: list[uuid.UUID],
    ) -> None:
        """Client users need a client, and departments must belong to that client."""
        if role == UserRole.CLIENT and client_id is None:
            raise BadRequestException("Client users must be assigned to a client")
        if client_id is not None and await crud_client.get(db, client_id) is None:
            raise NotFoundException("Client", str(client_id))
        if not department_ids:
            return

        departments = await crud_department.get_many(db, list(department_ids))
        if len(departments) != len(set(department_ids)):
            raise NotFoundException("Department")
        if client_id is not None and any(d.client_id != client_id for d in departments):
            raise BadRequestException("Departments must belong to the assigned client")


user_service = UserService()
