"""
Organization CRUD operations.
There is a single organization row; it is created with defaults on first read.
"""
from __future__ import annotations

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import settings
from app.crud.base import CRUDBase
from app.models.organization import Organization
from app.schemas.organization import OrganizationUpdate


class CRUDOrganization(CRUDBase[Organization, OrganizationUpdate, OrganizationUpdate]):

    async def get_or_create(self, db: AsyncSession) -> Organization:
        result = await db.execute(select(Organization).limit(1))
        organization = result.scalar_one_or_none()
        if organization is not None:
            return organization
        return await self.create_from_dict(
            db,
            obj_in={
                "name": settings.APP_NAME,
                "default_workstream_capacity": settings.DEFAULT_WORKSTREAM_CAPACITY,
                "default_sprint_duration": settings.DEFAULT_SPRINT_DURATION,
            },
        )


crud_organization = CRUDOrganization(Organization)
