"""
User CRUD operations.
Extends CRUDBase with lookups by email, invitation state and list filters.
"""
from __future__ import annotations

import uuid
from typing import Any

from sqlalchemy import func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.crud.base import CRUDBase
from app.models.user import User, UserRole, UserStatus
from app.schemas.user import UserAdminUpdate, UserCreate


class CRUDUser(CRUDBase[User, UserCreate, UserAdminUpdate]):

    async def get_by_email(self, db: AsyncSession, email: str) -> User | None:
        result = await db.execute(
            select(User).where(func.lower(User.email) == email.lower())
        )
        return result.scalar_one_or_none()

    async def get_active_by_email(self, db: AsyncSession, email: str) -> User | None:
        result = await db.execute(
            select(User).where(
                func.lower(User.email) == email.lower(),
                User.status == UserStatus.ACTIVE,
            )
        )
        return result.scalar_one_or_none()

    async def create_user(
        self,
        db: AsyncSession,
        *,
        email: str,
        name: str | None,
        hashed_password: str | None,
        role: str = UserRole.TASK_OWNER,
        status: str = UserStatus.ACTIVE,
        client_id: uuid.UUID | None = None,
        department_ids: list[uuid.UUID] | None = None,
        job_title: str | None = None,
    ) -> User:
        user = User(
            email=email.lower(),
            name=name,
            hashed_password=hashed_password,
            role=role,
            status=status,
            client_id=client_id,
            department_ids=[str(d) for d in department_ids or []],
            job_title=job_title,
        )
        db.add(user)
        await db.flush()
        await db.refresh(user)
        return user

    async def set_refresh_token_hash(
        self, db: AsyncSession, *, user: User, token_hash: str | None
    ) -> User:
        return await self.update(db, db_obj=user, obj_in={"refresh_token_hash": token_hash})

    async def set_invite_token_hash(
        self, db: AsyncSession, *, user: User, token_hash: str | None
    ) -> User:
        return await self.update(db, db_obj=user, obj_in={"invite_token_hash": token_hash})

    async def list_users(
        self,
        db: AsyncSession,
        *,
        skip: int = 0,
        limit: int = 100,
        role: str | None = None,
        status: str | None = None,
        client_id: uuid.UUID | None = None,
        search: str | None = None,
    ) -> tuple[list[User], int]:
        query = select(User)
        if role is not None:
            query = query.where(User.role == role)
        if status is not None:
            query = query.where(User.status == status)
        if client_id is not None:
            query = query.where(User.client_id == client_id)
        if search:
            term = f"%{search}%"
            query = query.where(or_(User.name.ilike(term), User.email.ilike(term)))
        return await self.paginate(
            db, query.order_by(User.created_at.desc()), skip=skip, limit=limit
        )

    async def stats(self, db: AsyncSession) -> dict[str, Any]:
        """Totals by role and by status."""
        return {
            "total": await self.count(db),
            "by_role": await self.count_by(db, "role"),
            "by_status": await self.count_by(db, "status"),
        }


crud_user = CRUDUser(User)
