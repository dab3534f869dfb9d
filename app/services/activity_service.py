"""
Activity logging service.
Writes immutable audit records to the activity_logs table. Document status
transitions are recorded here as well.
"""
from __future__ import annotations

import logging
import uuid
from typing import Any

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.activity_log import ActivityLog

logger = logging.getLogger(__name__)


class ActivityService:

    async def log(
        self,
        db: AsyncSession,
        *,
        user_id: uuid.UUID | None,
        action: str,
        entity_type: str,
        entity_id: uuid.UUID,
        details: dict[str, Any] | None = None,
    ) -> ActivityLog:
        """Create an activity log entry in the caller's transaction."""
        try:
            entry = ActivityLog(
                user_id=user_id,
                action=action,
                entity_type=entity_type,
                entity_id=entity_id,
                details=_jsonable(details),
            )
            db.add(entry)
            await db.flush()
            return entry
        except SQLAlchemyError:
            logger.error(
                "Failed to write activity log: user_id=%s action=%s entity=%s:%s",
                user_id,
                action,
                entity_type,
                entity_id,
            )
            raise


def _jsonable(value: Any) -> Any:
    # UUIDs and dates arrive from model_dump(); the JSON column needs strings
    if isinstance(value, dict):
        return {str(key): _jsonable(item) for key, item in value.items()}
    if isinstance(value, (list, tuple, set)):
        return [_jsonable(item) for item in value]
    if value is None or isinstance(value, (str, int, float, bool)):
        return value
    return str(value)


activity_service = ActivityService()
