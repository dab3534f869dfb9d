"""
Organization settings routes.
"""
from __future__ import annotations

from fastapi import APIRouter

from app.core.dependencies import AdminUser, CurrentUser, DBSession
from app.schemas.organization import OrganizationRead, OrganizationUpdate
from app.services.organization_service import organization_service

router = APIRouter(prefix="/organization", tags=["Organization"])


@router.get("/", response_model=OrganizationRead, summary="Get organization settings")
async def get_organization(
    _user: CurrentUser,
    db: DBSession,
) -> OrganizationRead:
    organization = await organization_service.get_settings(db)
    return OrganizationRead.model_validate(organization)


@router.put("/", response_model=OrganizationRead, summary="Update organization settings")
async def update_organization(
    settings_in: OrganizationUpdate,
    admin: AdminUser,
    db: DBSession,
) -> OrganizationRead:
    organization = await organization_service.update_settings(
        db, settings_in=settings_in, current_user=admin
    )
    return OrganizationRead.model_validate(organization)
