"""
Admin dashboard aggregation.
"""
from __future__ import annotations

from sqlalchemy.ext.asyncio import AsyncSession

from app.crud.client import crud_client
from app.crud.department import crud_department
from app.crud.project import crud_project
from app.crud.sprint import crud_sprint
from app.crud.task import crud_task
from app.crud.user import crud_user
from app.schemas.dashboard import DashboardStats
from app.services.websocket_service import ws_manager


class DashboardService:

    async def admin_stats(self, db: AsyncSession) -> DashboardStats:
        """Organization-wide counts. Callers must have checked the admin role."""
        users = await crud_user.stats(db)
        projects_by_status = await crud_project.count_by(db, "status")
        tasks_by_status = await crud_task.count_by(db, "status")
        return DashboardStats(
            total_users=users["total"],
            users_by_role=users["by_role"],
            users_by_status=users["by_status"],
            total_clients=await crud_client.count(db),
            active_clients=await crud_client.count(db, status="active"),
            total_departments=await crud_department.count(db),
            total_projects=sum(projects_by_status.values()),
            projects_by_status=projects_by_status,
            total_tasks=sum(
                count for status, count in tasks_by_status.items() if status != "archived"
            ),
            tasks_by_status=tasks_by_status,
            active_sprints=await crud_sprint.count(db, status="active"),
            connected_websocket_users=ws_manager.connected_user_count,
        )


dashboard_service = DashboardService()
