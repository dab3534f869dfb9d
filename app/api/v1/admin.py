"""
Admin-only dashboard routes.
The role gate runs as a dependency, so nothing is queried for other roles.
"""
from __future__ import annotations

from fastapi import APIRouter

from app.core.dependencies import AdminUser, DBSession
from app.schemas.dashboard import DashboardStats
from app.services.dashboard_service import dashboard_service

router = APIRouter(prefix="/admin", tags=["Admin"])


@router.get(
    "/dashboard",
    response_model=DashboardStats,
    summary="Organization-wide dashboard counts",
)
async def get_dashboard(
    _admin: AdminUser,
    db: DBSession,
) -> DashboardStats:
    return await dashboard_service.admin_stats(db)
