"""
Department endpoint tests.
Covers: workstream settings, organization defaults, visibility by role and
the grouped backlog view.
"""
from __future__ import annotations

from typing import Any

import pytest
from httpx import AsyncClient

pytestmark = pytest.mark.asyncio


async def _create_department(
    client: AsyncClient, headers: dict, acme: dict[str, Any], **kwargs: Any
) -> dict[str, Any]:
    payload = {"name": "Design", "client_id": acme["id"], **kwargs}
    response = await client.post("/api/v1/departments/", json=payload, headers=headers)
    assert response.status_code == 201, response.text
    return response.json()


class TestCreateDepartment:
    async def test_create_with_workstreams(
        self, client: AsyncClient, admin_headers: dict, acme: dict[str, Any]
    ) -> None:
        department = await _create_department(
            client,
            admin_headers,
            acme,
            workstream_count=2,
            workstream_labels=["Web", "Mobile"],
            working_hours={"start": "08:00", "end": "16:00", "days": [5, 1, 1]},
        )
        assert department["workstream_count"] == 2
        assert department["workstream_labels"] == ["Web", "Mobile"]
        assert department["working_hours"]["days"] == [1, 5]
        # Organization defaults fill in what was not given
        assert department["workstream_capacity"] == 32
        assert department["sprint_duration"] == 2

    async def test_labels_must_match_count(
        self, client: AsyncClient, admin_headers: dict, acme: dict[str, Any]
    ) -> None:
        response = await client.post(
            "/api/v1/departments/",
            json={
                "name": "Design",
                "client_id": acme["id"],
                "workstream_count": 3,
                "workstream_labels": ["Only one"],
            },
            headers=admin_headers,
        )
        assert response.status_code == 422

    async def test_duplicate_name_within_client(
        self, client: AsyncClient, admin_headers: dict, acme: dict[str, Any]
    ) -> None:
        response = await client.post(
            "/api/v1/departments/",
            json={"name": "default", "client_id": acme["id"]},
            headers=admin_headers,
        )
        assert response.status_code == 409

    async def test_organization_defaults_are_used(
        self, client: AsyncClient, admin_headers: dict, acme: dict[str, Any]
    ) -> None:
        response = await client.put(
            "/api/v1/organization/",
            json={"default_workstream_capacity": 40, "default_sprint_duration": 3},
            headers=admin_headers,
        )
        assert response.status_code == 200, response.text

        department = await _create_department(client, admin_headers, acme)
        assert department["workstream_capacity"] == 40
        assert department["sprint_duration"] == 3


class TestUpdateDepartment:
    async def test_reducing_count_requires_matching_labels(
        self, client: AsyncClient, admin_headers: dict, acme: dict[str, Any]
    ) -> None:
        department = await _create_department(
            client, admin_headers, acme, workstream_count=2, workstream_labels=["A", "B"]
        )
        response = await client.put(
            f"/api/v1/departments/{department['id']}",
            json={"workstream_count": 1},
            headers=admin_headers,
        )
        assert response.status_code == 400

        response = await client.put(
            f"/api/v1/departments/{department['id']}",
            json={"workstream_count": 1, "workstream_labels": ["A"]},
            headers=admin_headers,
        )
        assert response.status_code == 200
        assert response.json()["workstream_labels"] == ["A"]


class TestDepartmentVisibility:
    async def test_task_owner_sees_only_member_departments(
        self,
        client: AsyncClient,
        admin_headers: dict,
        owner_headers: dict,
        acme: dict[str, Any],
    ) -> None:
        design = await _create_department(client, admin_headers, acme)

        response = await client.get("/api/v1/departments/", headers=owner_headers)
        assert [d["id"] for d in response.json()] == [acme["department"]["id"]]

        response = await client.get(
            f"/api/v1/departments/{design['id']}", headers=owner_headers
        )
        assert response.status_code == 404


class TestBacklog:
    async def test_backlog_groups_by_project_and_priority(
        self,
        client: AsyncClient,
        admin_headers: dict,
        acme: dict[str, Any],
        task_factory: Any,
    ) -> None:
        response = await client.post(
            "/api/v1/projects/",
            json={
                "title": "Website",
                "client_id": acme["id"],
                "department_id": acme["department"]["id"],
            },
            headers=admin_headers,
        )
        project = response.json()

        await task_factory("Low", priority="low", project_id=project["id"], size="S")
        await task_factory("Urgent", priority="urgent", project_id=project["id"], size="M")
        await task_factory("Loose", priority="high")
        await task_factory("Finished", status="done", project_id=project["id"])

        response = await client.get(
            f"/api/v1/departments/{acme['department']['id']}/backlog", headers=admin_headers
        )
        assert response.status_code == 200, response.text
        groups = response.json()
        assert [g["project_title"] for g in groups] == ["Website", None]
        assert [t["title"] for t in groups[0]["tasks"]] == ["Urgent", "Low"]
        assert groups[0]["total_hours"] == 48
        assert [t["title"] for t in groups[1]["tasks"]] == ["Loose"]


class TestDeleteDepartment:
    async def test_admin_deletes_empty_department(
        self, client: AsyncClient, admin_headers: dict, acme: dict[str, Any]
    ) -> None:
        department = await _create_department(client, admin_headers, acme)
        response = await client.delete(
            f"/api/v1/departments/{department['id']}", headers=admin_headers
        )
        assert response.status_code == 204

    async def test_pm_cannot_delete(
        self,
        client: AsyncClient,
        admin_headers: dict,
        pm_headers: dict,
        acme: dict[str, Any],
    ) -> None:
        department = await _create_department(client, admin_headers, acme)
        response = await client.delete(
            f"/api/v1/departments/{department['id']}", headers=pm_headers
        )
        assert response.status_code == 403
        assert response.json()["detail"] == "Access Denied"
