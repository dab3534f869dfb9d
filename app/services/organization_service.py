"""
Organization settings service.
"""
from __future__ import annotations

import logging

from sqlalchemy.ext.asyncio import AsyncSession

from app.crud.organization import crud_organization
from app.models.organization import Organization
from app.models.user import User
from app.schemas.organization import OrganizationUpdate
from app.services.activity_service import activity_service

logger = logging.getLogger(__name__)


class OrganizationService:

    async def get_settings(self, db: AsyncSession) -> Organization:
        return await crud_organization.get_or_create(db)

    async def update_settings(
        self, db: AsyncSession, *, settings_in: OrganizationUpdate, current_user: User
    ) -> Organization:
        organization = await crud_organization.get_or_create(db)
        changes = settings_in.model_dump(exclude_unset=True, exclude_none=True)
        updated = await crud_organization.update(db, db_obj=organization, obj_in=changes)

        await activity_service.log(
            db,
            user_id=current_user.id,
            action="organization_updated",
            entity_type="organization",
            entity_id=organization.id,
            details=changes,
        )
        logger.info("Organization settings updated by user_id=%s", current_user.id)
        return updated


organization_service = OrganizationService()
