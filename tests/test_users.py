"""
User management tests.
Covers: self-service profile and password, the assignee directory and
admin account management.
"""
from __future__ import annotations

from typing import Any

import pytest
from httpx import AsyncClient

pytestmark = pytest.mark.asyncio

TEST_PASSWORD = "StridePass1"


class TestSelfService:
    async def test_update_profile(self, client: AsyncClient, pm_headers: dict) -> None:
        response = await client.put(
            "/api/v1/users/me",
            json={"name": "Patricia Manager", "job_title": "Delivery lead"},
            headers=pm_headers,
        )
        assert response.status_code == 200
        assert response.json()["name"] == "Patricia Manager"
        assert response.json()["job_title"] == "Delivery lead"
        assert response.json()["role"] == "pm"

    async def test_change_password(
        self, client: AsyncClient, pm_user: Any, pm_headers: dict
    ) -> None:
        response = await client.put(
            "/api/v1/users/me/password",
            json={"current_password": "wrong", "new_password": "NewStride2"},
            headers=pm_headers,
        )
        assert response.status_code == 400

        response = await client.put(
            "/api/v1/users/me/password",
            json={"current_password": TEST_PASSWORD, "new_password": "NewStride2"},
            headers=pm_headers,
        )
        assert response.status_code == 204

        response = await client.post(
            "/api/v1/auth/login", json={"email": pm_user.email, "password": "NewStride2"}
        )
        assert response.status_code == 200

    async def test_weak_new_password(self, client: AsyncClient, pm_headers: dict) -> None:
        response = await client.put(
            "/api/v1/users/me/password",
            json={"current_password": TEST_PASSWORD, "new_password": "short"},
            headers=pm_headers,
        )
        assert response.status_code == 422


class TestDirectory:
    async def test_lists_active_people(
        self, client: AsyncClient, pm_headers: dict, admin_user: Any, user_factory: Any
    ) -> None:
        await user_factory(email="gone@example.com", role="task_owner", status="inactive")

        response = await client.get("/api/v1/users/directory", headers=pm_headers)
        assert response.status_code == 200
        emails = sorted(u["email"] for u in response.json()["items"])
        assert emails == ["admin@example.com", "pm@example.com"]

    async def test_task_owner_cannot_browse(
        self, client: AsyncClient, owner_headers: dict
    ) -> None:
        response = await client.get("/api/v1/users/directory", headers=owner_headers)
        assert response.status_code == 403


class TestAdminManagement:
    async def test_list_filter_and_stats(
        self, client: AsyncClient, admin_headers: dict, pm_user: Any, client_user: Any
    ) -> None:
        response = await client.get("/api/v1/users/?role=client", headers=admin_headers)
        assert [u["email"] for u in response.json()["items"]] == ["acme.contact@example.com"]

        response = await client.get("/api/v1/users/stats", headers=admin_headers)
        stats = response.json()
        assert stats["total"] == 3
        assert stats["by_role"] == {"admin": 1, "pm": 1, "client": 1}

    async def test_pm_cannot_list_users(self, client: AsyncClient, pm_headers: dict) -> None:
        response = await client.get("/api/v1/users/", headers=pm_headers)
        assert response.status_code == 403
        assert response.json()["detail"] == "Access Denied"

    async def test_update_role_and_departments(
        self,
        client: AsyncClient,
        admin_headers: dict,
        pm_user: Any,
        acme: dict[str, Any],
    ) -> None:
        response = await client.put(
            f"/api/v1/users/{pm_user.id}",
            json={"role": "task_owner", "department_ids": [acme["department"]["id"]]},
            headers=admin_headers,
        )
        assert response.status_code == 200, response.text
        assert response.json()["role"] == "task_owner"
        assert response.json()["department_ids"] == [acme["department"]["id"]]

    async def test_client_role_needs_client(
        self, client: AsyncClient, admin_headers: dict, pm_user: Any
    ) -> None:
        response = await client.put(
            f"/api/v1/users/{pm_user.id}", json={"role": "client"}, headers=admin_headers
        )
        assert response.status_code == 400

    async def test_admin_cannot_demote_self(
        self, client: AsyncClient, admin_headers: dict, admin_user: Any
    ) -> None:
        response = await client.put(
            f"/api/v1/users/{admin_user.id}", json={"status": "inactive"}, headers=admin_headers
        )
        assert response.status_code == 400
        response = await client.delete(f"/api/v1/users/{admin_user.id}", headers=admin_headers)
        assert response.status_code == 400

    async def test_delete_blocked_by_assigned_tasks(
        self,
        client: AsyncClient,
        admin_headers: dict,
        owner_user: Any,
        task_factory: Any,
    ) -> None:
        task = await task_factory("Shipped", status="done", assignee_id=str(owner_user.id))

        response = await client.delete(f"/api/v1/users/{owner_user.id}", headers=admin_headers)
        assert response.status_code == 400
        assert "1 task(s)" in response.json()["detail"]

        response = await client.put(
            f"/api/v1/tasks/{task['id']}", json={"assignee_id": None}, headers=admin_headers
        )
        assert response.status_code == 200, response.text
        response = await client.delete(f"/api/v1/users/{owner_user.id}", headers=admin_headers)
        assert response.status_code == 204

    async def test_resend_invite_only_for_invited(
        self, client: AsyncClient, admin_headers: dict, pm_user: Any
    ) -> None:
        response = await client.post(
            f"/api/v1/users/{pm_user.id}/resend-invite", headers=admin_headers
        )
        assert response.status_code == 400

        response = await client.post(
            "/api/v1/users/invite",
            json={"email": "new@example.com", "name": "New Person"},
            headers=admin_headers,
        )
        invited = response.json()["user"]
        response = await client.post(
            f"/api/v1/users/{invited['id']}/resend-invite", headers=admin_headers
        )
        assert response.status_code == 200
        assert response.json()["invite_token"]
