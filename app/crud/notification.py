"""
Notification CRUD operations.
"""
from __future__ import annotations

import uuid

from sqlalchemy import delete, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from app.crud.base import CRUDBase
from app.models.notification import Notification
from app.schemas.notification import NotificationRead


class CRUDNotification(CRUDBase[Notification, NotificationRead, NotificationRead]):

    async def create_notification(
        self,
        db: AsyncSession,
        *,
        user_id: uuid.UUID,
        type: str,
        title: str,
        message: str,
        priority: str = "medium",
        reference_type: str | None = None,
        reference_id: uuid.UUID | None = None,
    ) -> Notification:
        return await self.create_from_dict(
            db,
            obj_in={
                "user_id": user_id,
                "type": type,
                "title": title,
                "message": message,
                "priority": priority,
                "reference_type": reference_type,
                "reference_id": reference_id,
            },
        )

    async def list_by_user(
        self,
        db: AsyncSession,
        *,
        user_id: uuid.UUID,
        skip: int = 0,
        limit: int = 50,
        unread_only: bool = False,
    ) -> tuple[list[Notification], int]:
        query = select(Notification).where(Notification.user_id == user_id)
        if unread_only:
            query = query.where(Notification.is_read.is_(False))
        return await self.paginate(
            db, query.order_by(Notification.created_at.desc()), skip=skip, limit=limit
        )

    async def get_for_user(
        self, db: AsyncSession, *, notification_id: uuid.UUID, user_id: uuid.UUID
    ) -> Notification | None:
        result = await db.execute(
            select(Notification).where(
                Notification.id == notification_id,
                Notification.user_id == user_id,
            )
        )
        return result.scalar_one_or_none()

    async def mark_as_read(
        self, db: AsyncSession, *, notification_id: uuid.UUID, user_id: uuid.UUID
    ) -> Notification | None:
        obj = await self.get_for_user(db, notification_id=notification_id, user_id=user_id)
        if obj is None:
            return None
        return await self.update(db, db_obj=obj, obj_in={"is_read": True})

    async def mark_all_read(
        self, db: AsyncSession, *, user_id: uuid.UUID
    ) -> int:
        """Mark all unread notifications for a user as read. Returns count updated."""
        result = await db.execute(
            update(Notification)
            .where(
                Notification.user_id == user_id,
                Notification.is_read.is_(False),
            )
            .values(is_read=True)
        )
        return result.rowcount  # type: ignore[return-value]

    async def delete_for_user(
        self, db: AsyncSession, *, notification_id: uuid.UUID, user_id: uuid.UUID
    ) -> bool:
        result = await db.execute(
            delete(Notification).where(
                Notification.id == notification_id,
                Notification.user_id == user_id,
            )
        )
        return bool(result.rowcount)

    async def count_unread(self, db: AsyncSession, *, user_id: uuid.UUID) -> int:
        return await self.count(db, user_id=user_id, is_read=False)


crud_notification = CRUDNotification(Notification)
