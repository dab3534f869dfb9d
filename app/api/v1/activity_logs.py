"""
Activity log routes.
"""
from __future__ import annotations

import uuid

from fastapi import APIRouter, Query

from app.core.dependencies import AdminUser, CurrentUser, DBSession
from app.core.exceptions import ForbiddenException
from app.crud.activity_log import crud_activity_log
from app.models.user import UserRole
from app.schemas.activity_log import ActivityLogRead
from app.schemas.pagination import PaginatedResponse
from app.services.entities import resolve_entity

router = APIRouter(prefix="/activity", tags=["Activity Logs"])

# Entity types whose history follows the record's own visibility
SCOPED_ENTITY_TYPES = ("task", "project", "sprint", "document")


@router.get(
    "/",
    response_model=PaginatedResponse[ActivityLogRead],
    summary="Get my activity log",
)
async def my_activity(
    current_user: CurrentUser,
    db: DBSession,
    page: int = Query(default=1, ge=1),
    size: int = Query(default=20, ge=1, le=100),
) -> PaginatedResponse[ActivityLogRead]:
    logs, total = await crud_activity_log.list_logs(
        db, user_id=current_user.id, skip=(page - 1) * size, limit=size
    )
    return PaginatedResponse.build(
        logs, total, page=page, size=size, convert=ActivityLogRead.model_validate
    )


@router.get(
    "/{entity_type}/{entity_id}",
    response_model=PaginatedResponse[ActivityLogRead],
    summary="Get the history of one record",
)
async def entity_activity(
    entity_type: str,
    entity_id: uuid.UUID,
    current_user: CurrentUser,
    db: DBSession,
    page: int = Query(default=1, ge=1),
    size: int = Query(default=20, ge=1, le=100),
) -> PaginatedResponse[ActivityLogRead]:
    if entity_type in SCOPED_ENTITY_TYPES:
        await resolve_entity(
            db, entity_type=entity_type, entity_id=entity_id, current_user=current_user
        )
    elif current_user.role not in UserRole.MANAGERS:
        raise ForbiddenException("Only admins and PMs can view this history")

    logs, total = await crud_activity_log.list_logs(
        db,
        entity_type=entity_type,
        entity_id=entity_id,
        skip=(page - 1) * size,
        limit=size,
    )
    return PaginatedResponse.build(
        logs, total, page=page, size=size, convert=ActivityLogRead.model_validate
    )


@router.get(
    "/admin",
    response_model=PaginatedResponse[ActivityLogRead],
    summary="Get all system activity (admin only)",
)
async def admin_activity(
    _admin: AdminUser,
    db: DBSession,
    page: int = Query(default=1, ge=1),
    size: int = Query(default=20, ge=1, le=100),
    user_id: uuid.UUID | None = Query(default=None),
    entity_type: str | None = Query(default=None),
    action: str | None = Query(default=None),
) -> PaginatedResponse[ActivityLogRead]:
    logs, total = await crud_activity_log.list_logs(
        db,
        user_id=user_id,
        entity_type=entity_type,
        action=action,
        skip=(page - 1) * size,
        limit=size,
    )
    return PaginatedResponse.build(
        logs, total, page=page, size=size, convert=ActivityLogRead.model_validate
    )
