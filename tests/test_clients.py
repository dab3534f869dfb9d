"""
Client endpoint tests.
Covers: creation with the Default department, project keys, role scoping
and archive rules.
"""
from __future__ import annotations

from typing import Any

import pytest
from httpx import AsyncClient

pytestmark = pytest.mark.asyncio


class TestCreateClient:
    async def test_create_client_adds_default_department(
        self, client: AsyncClient, acme: dict[str, Any]
    ) -> None:
        assert acme["project_key"] == "ACME"
        assert acme["status"] == "active"
        assert acme["department"]["name"] == "Default"
        assert acme["department"]["workstream_count"] == 1
        assert acme["department"]["workstream_capacity"] == 32

    async def test_project_key_is_derived_from_name(
        self, client: AsyncClient, admin_headers: dict
    ) -> None:
        response = await client.post(
            "/api/v1/clients/", json={"name": "Globex Corp"}, headers=admin_headers
        )
        assert response.status_code == 201
        assert response.json()["project_key"] == "GLO"

        # Same prefix gets a numeric suffix
        response = await client.post(
            "/api/v1/clients/", json={"name": "Globe Trotters"}, headers=admin_headers
        )
        assert response.status_code == 201
        assert response.json()["project_key"] == "GLO1"

    async def test_duplicate_name_conflicts(
        self, client: AsyncClient, admin_headers: dict, acme: dict[str, Any]
    ) -> None:
        response = await client.post(
            "/api/v1/clients/", json={"name": "acme"}, headers=admin_headers
        )
        assert response.status_code == 409

    async def test_duplicate_project_key_conflicts(
        self, client: AsyncClient, admin_headers: dict, acme: dict[str, Any]
    ) -> None:
        response = await client.post(
            "/api/v1/clients/",
            json={"name": "Another", "project_key": "acme"},
            headers=admin_headers,
        )
        assert response.status_code == 409

    async def test_invalid_project_key(self, client: AsyncClient, admin_headers: dict) -> None:
        response = await client.post(
            "/api/v1/clients/",
            json={"name": "Keyless", "project_key": "A-B"},
            headers=admin_headers,
        )
        assert response.status_code == 422

    async def test_task_owner_cannot_create(
        self, client: AsyncClient, owner_headers: dict
    ) -> None:
        response = await client.post(
            "/api/v1/clients/", json={"name": "Nope"}, headers=owner_headers
        )
        assert response.status_code == 403


class TestListClients:
    async def test_list_includes_counts(
        self, client: AsyncClient, admin_headers: dict, acme: dict[str, Any]
    ) -> None:
        response = await client.get("/api/v1/clients/", headers=admin_headers)
        assert response.status_code == 200
        data = response.json()
        assert data["total"] == 1
        assert data["items"][0]["department_count"] == 1
        assert data["items"][0]["project_count"] == 0

    async def test_client_user_sees_only_own_client(
        self,
        client: AsyncClient,
        admin_headers: dict,
        client_headers: dict,
        acme: dict[str, Any],
    ) -> None:
        await client.post("/api/v1/clients/", json={"name": "Initech"}, headers=admin_headers)

        response = await client.get("/api/v1/clients/", headers=client_headers)
        items = response.json()["items"]
        assert [item["id"] for item in items] == [acme["id"]]

    async def test_client_user_cannot_read_other_client(
        self, client: AsyncClient, admin_headers: dict, client_headers: dict
    ) -> None:
        other = await client.post(
            "/api/v1/clients/", json={"name": "Initech"}, headers=admin_headers
        )
        response = await client.get(
            f"/api/v1/clients/{other.json()['id']}", headers=client_headers
        )
        assert response.status_code == 404


class TestUpdateClient:
    async def test_rename_project_key(
        self, client: AsyncClient, admin_headers: dict, acme: dict[str, Any]
    ) -> None:
        response = await client.put(
            f"/api/v1/clients/{acme['id']}",
            json={"project_key": "acm2", "website": "https://acme.test"},
            headers=admin_headers,
        )
        assert response.status_code == 200
        assert response.json()["project_key"] == "ACM2"
        assert response.json()["website"] == "https://acme.test"


class TestDeleteClient:
    async def test_delete_blocked_by_departments(
        self, client: AsyncClient, admin_headers: dict, acme: dict[str, Any]
    ) -> None:
        response = await client.delete(f"/api/v1/clients/{acme['id']}", headers=admin_headers)
        assert response.status_code == 400
        assert "1 department" in response.json()["detail"]

    async def test_delete_archives_empty_client(
        self, client: AsyncClient, admin_headers: dict, acme: dict[str, Any]
    ) -> None:
        response = await client.delete(
            f"/api/v1/departments/{acme['department']['id']}", headers=admin_headers
        )
        assert response.status_code == 204

        response = await client.delete(f"/api/v1/clients/{acme['id']}", headers=admin_headers)
        assert response.status_code == 200
        assert response.json()["status"] == "archived"

    async def test_pm_cannot_delete(
        self, client: AsyncClient, pm_headers: dict, acme: dict[str, Any]
    ) -> None:
        response = await client.delete(f"/api/v1/clients/{acme['id']}", headers=pm_headers)
        assert response.status_code == 403
        assert response.json()["detail"] == "Access Denied"
