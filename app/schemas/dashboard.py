"""
Admin dashboard schema.
"""
from __future__ import annotations

from pydantic import BaseModel


class DashboardStats(BaseModel):
    total_users: int
    users_by_role: dict[str, int]
    users_by_status: dict[str, int]
    total_clients: int
    active_clients: int
    total_departments: int
    total_projects: int
    projects_by_status: dict[str, int]
    total_tasks: int
    tasks_by_status: dict[str, int]
    active_sprints: int
    connected_websocket_users: int
