"""
ActivityLog queries. Entries are only ever inserted by activity_service.
"""
from __future__ import annotations

import uuid

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.crud.base import CRUDBase
from app.models.activity_log import ActivityLog
from app.schemas.activity_log import ActivityLogRead


class CRUDActivityLog(CRUDBase[ActivityLog, ActivityLogRead, ActivityLogRead]):

    async def list_logs(
        self,
        db: AsyncSession,
        *,
        user_id: uuid.UUID | None = None,
        entity_type: str | None = None,
        entity_id: uuid.UUID | None = None,
        action: str | None = None,
        skip: int = 0,
        limit: int = 100,
    ) -> tuple[list[ActivityLog], int]:
        query = select(ActivityLog)
        if user_id is not None:
            query = query.where(ActivityLog.user_id == user_id)
        if entity_type is not None:
            query = query.where(ActivityLog.entity_type == entity_type)
        if entity_id is not None:
            query = query.where(ActivityLog.entity_id == entity_id)
        if action is not None:
            query = query.where(ActivityLog.action == action)
        return await self.paginate(
            db, query.order_by(ActivityLog.created_at.desc()), skip=skip, limit=limit
        )


crud_activity_log = CRUDActivityLog(ActivityLog)
