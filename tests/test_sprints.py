"""
Sprint endpoint tests.
Covers: derived dates and capacity, the sprint lifecycle, task planning
and the capacity bar.
"""
from __future__ import annotations

import uuid
from typing import Any

import pytest
from httpx import AsyncClient

pytestmark = pytest.mark.asyncio


async def _create_sprint(
    client: AsyncClient,
    headers: dict,
    acme: dict[str, Any],
    name: str = "Sprint 1",
    start_date: str = "2024-01-01",
    **kwargs: Any,
) -> dict[str, Any]:
    payload = {
        "name": name,
        "department_id": acme["department"]["id"],
        "start_date": start_date,
        **kwargs,
    }
    response = await client.post("/api/v1/sprints/", json=payload, headers=headers)
    assert response.status_code == 201, response.text
    return response.json()


class TestCreateSprint:
    async def test_derives_end_date_and_capacity(
        self, client: AsyncClient, admin_headers: dict, acme: dict[str, Any]
    ) -> None:
        sprint = await _create_sprint(client, admin_headers, acme)
        assert sprint["slug"] == "ACME-S-1"
        assert sprint["status"] == "planning"
        assert sprint["duration"] == 2
        # Monday start, two weeks of business days
        assert sprint["end_date"] == "2024-01-12"
        assert sprint["total_capacity"] == 32

    async def test_explicit_values_win(
        self, client: AsyncClient, admin_headers: dict, acme: dict[str, Any]
    ) -> None:
        sprint = await _create_sprint(
            client,
            admin_headers,
            acme,
            end_date="2024-01-05",
            total_capacity=80,
        )
        assert sprint["end_date"] == "2024-01-05"
        assert sprint["total_capacity"] == 80

    async def test_end_before_start_rejected(
        self, client: AsyncClient, admin_headers: dict, acme: dict[str, Any]
    ) -> None:
        response = await client.post(
            "/api/v1/sprints/",
            json={
                "name": "Backwards",
                "department_id": acme["department"]["id"],
                "start_date": "2024-01-10",
                "end_date": "2024-01-01",
            },
            headers=admin_headers,
        )
        assert response.status_code == 422

    async def test_task_owner_cannot_create(
        self, client: AsyncClient, owner_headers: dict, acme: dict[str, Any]
    ) -> None:
        response = await client.post(
            "/api/v1/sprints/",
            json={
                "name": "Mine",
                "department_id": acme["department"]["id"],
                "start_date": "2024-01-01",
            },
            headers=owner_headers,
        )
        assert response.status_code == 403

    async def test_overlap_with_active_sprint(
        self, client: AsyncClient, admin_headers: dict, acme: dict[str, Any]
    ) -> None:
        sprint = await _create_sprint(client, admin_headers, acme)
        await client.post(f"/api/v1/sprints/{sprint['id']}/start", headers=admin_headers)

        response = await client.post(
            "/api/v1/sprints/",
            json={
                "name": "Sprint 2",
                "department_id": acme["department"]["id"],
                "start_date": "2024-01-08",
            },
            headers=admin_headers,
        )
        assert response.status_code == 409

        await _create_sprint(client, admin_headers, acme, name="Sprint 2", start_date="2024-01-15")


class TestSprintLifecycle:
    async def test_start_and_complete(
        self,
        client: AsyncClient,
        admin_headers: dict,
        acme: dict[str, Any],
        task_factory: Any,
    ) -> None:
        sprint = await _create_sprint(client, admin_headers, acme)
        shipped = await task_factory("Shipped", size="M")
        open_task = await task_factory("Open", size="L")
        await client.post(
            f"/api/v1/sprints/{sprint['id']}/tasks",
            json={"task_ids": [shipped["id"], open_task["id"]]},
            headers=admin_headers,
        )

        response = await client.post(f"/api/v1/sprints/{sprint['id']}/start", headers=admin_headers)
        assert response.status_code == 200
        assert response.json()["status"] == "active"

        await client.put(
            f"/api/v1/tasks/{shipped['id']}", json={"status": "done"}, headers=admin_headers
        )
        response = await client.post(
            f"/api/v1/sprints/{sprint['id']}/complete", headers=admin_headers
        )
        assert response.status_code == 200
        closed = response.json()
        assert closed["status"] == "complete"
        assert closed["actual_velocity"] == 32
        assert closed["completed_hours"] == 32

        response = await client.get(
            f"/api/v1/sprints/stats?department_id={acme['department']['id']}",
            headers=admin_headers,
        )
        stats = response.json()
        assert stats["completed"] == 1
        assert stats["average_velocity"] == 32.0
        assert stats["current_utilization"] is None

    async def test_stats_only_count_visible_sprints(
        self,
        client: AsyncClient,
        admin_headers: dict,
        client_headers: dict,
        acme: dict[str, Any],
        task_factory: Any,
        user_factory: Any,
        token_for: Any,
    ) -> None:
        sprint = await _create_sprint(client, admin_headers, acme)
        task = await task_factory("Shipped", size="M")
        await client.post(
            f"/api/v1/sprints/{sprint['id']}/tasks",
            json={"task_ids": [task["id"]]},
            headers=admin_headers,
        )
        await client.post(f"/api/v1/sprints/{sprint['id']}/start", headers=admin_headers)
        await client.put(
            f"/api/v1/tasks/{task['id']}", json={"status": "done"}, headers=admin_headers
        )
        await client.post(f"/api/v1/sprints/{sprint['id']}/complete", headers=admin_headers)

        response = await client.post(
            "/api/v1/clients/",
            json={"name": "Globex", "project_key": "GLBX"},
            headers=admin_headers,
        )
        globex_contact = await user_factory(
            email="globex.contact@example.com",
            role="client",
            client_id=uuid.UUID(response.json()["id"]),
        )

        response = await client.get("/api/v1/sprints/stats", headers=token_for(globex_contact))
        stats = response.json()
        assert stats["total"] == 0
        assert stats["completed"] == 0
        assert stats["average_velocity"] == 0.0

        response = await client.get("/api/v1/sprints/stats", headers=client_headers)
        stats = response.json()
        assert stats["completed"] == 1
        assert stats["average_velocity"] == 32.0

    async def test_one_active_sprint_per_department(
        self, client: AsyncClient, admin_headers: dict, acme: dict[str, Any]
    ) -> None:
        first = await _create_sprint(client, admin_headers, acme)
        second = await _create_sprint(client, admin_headers, acme, name="Later", start_date="2024-02-05")

        await client.post(f"/api/v1/sprints/{first['id']}/start", headers=admin_headers)
        response = await client.post(f"/api/v1/sprints/{second['id']}/start", headers=admin_headers)
        assert response.status_code == 409

    async def test_complete_requires_active(
        self, client: AsyncClient, admin_headers: dict, acme: dict[str, Any]
    ) -> None:
        sprint = await _create_sprint(client, admin_headers, acme)
        response = await client.post(
            f"/api/v1/sprints/{sprint['id']}/complete", headers=admin_headers
        )
        assert response.status_code == 400

    async def test_start_notifies_team(
        self,
        client: AsyncClient,
        admin_headers: dict,
        owner_user: Any,
        owner_headers: dict,
        acme: dict[str, Any],
    ) -> None:
        sprint = await _create_sprint(
            client, admin_headers, acme, team_member_ids=[str(owner_user.id)]
        )
        await client.post(f"/api/v1/sprints/{sprint['id']}/start", headers=admin_headers)

        response = await client.get("/api/v1/notifications/", headers=owner_headers)
        assert [n["type"] for n in response.json()["items"]] == ["sprint_started"]


class TestSprintPlanning:
    async def test_assign_and_unassign(
        self,
        client: AsyncClient,
        admin_headers: dict,
        acme: dict[str, Any],
        task_factory: Any,
    ) -> None:
        sprint = await _create_sprint(client, admin_headers, acme)
        task = await task_factory("Planned")

        response = await client.post(
            f"/api/v1/sprints/{sprint['id']}/tasks",
            json={"task_ids": [task["id"]]},
            headers=admin_headers,
        )
        assert response.status_code == 200, response.text
        assert response.json()[0]["sprint_id"] == sprint["id"]

        response = await client.get(
            f"/api/v1/departments/{acme['department']['id']}/backlog", headers=admin_headers
        )
        assert response.json() == []

        response = await client.post(
            f"/api/v1/sprints/{sprint['id']}/tasks/remove",
            json={"task_ids": [task["id"]]},
            headers=admin_headers,
        )
        assert response.json()[0]["sprint_id"] is None

    async def test_done_tasks_cannot_be_planned(
        self,
        client: AsyncClient,
        admin_headers: dict,
        acme: dict[str, Any],
        task_factory: Any,
    ) -> None:
        sprint = await _create_sprint(client, admin_headers, acme)
        task = await task_factory("Finished", status="done")

        response = await client.post(
            f"/api/v1/sprints/{sprint['id']}/tasks",
            json={"task_ids": [task["id"]]},
            headers=admin_headers,
        )
        assert response.status_code == 400

    async def test_capacity_bar_over(
        self,
        client: AsyncClient,
        admin_headers: dict,
        acme: dict[str, Any],
        task_factory: Any,
    ) -> None:
        sprint = await _create_sprint(client, admin_headers, acme)
        big = await task_factory("Big", size="M")
        small = await task_factory("Small", size="S")
        await client.post(
            f"/api/v1/sprints/{sprint['id']}/tasks",
            json={"task_ids": [big["id"], small["id"]]},
            headers=admin_headers,
        )

        response = await client.get(
            f"/api/v1/sprints/{sprint['id']}/capacity", headers=admin_headers
        )
        capacity = response.json()
        bar = capacity["bar"]
        assert capacity["task_count"] == 2
        assert bar["committed_hours"] == 48
        assert bar["capacity_hours"] == 32
        assert bar["state"] == "over"
        assert bar["bar_percentage"] == 100
        assert bar["over_by_label"] == "Over by 16h"

    async def test_delete_with_tasks_blocked(
        self,
        client: AsyncClient,
        admin_headers: dict,
        acme: dict[str, Any],
        task_factory: Any,
    ) -> None:
        sprint = await _create_sprint(client, admin_headers, acme)
        task = await task_factory("Planned")
        await client.post(
            f"/api/v1/sprints/{sprint['id']}/tasks",
            json={"task_ids": [task["id"]]},
            headers=admin_headers,
        )

        response = await client.delete(f"/api/v1/sprints/{sprint['id']}", headers=admin_headers)
        assert response.status_code == 400

        await client.post(
            f"/api/v1/sprints/{sprint['id']}/tasks/remove",
            json={"task_ids": [task["id"]]},
            headers=admin_headers,
        )
        response = await client.delete(f"/api/v1/sprints/{sprint['id']}", headers=admin_headers)
        assert response.status_code == 204


class TestUpdateSprint:
    async def test_rename(
        self, client: AsyncClient, admin_headers: dict, acme: dict[str, Any]
    ) -> None:
        sprint = await _create_sprint(client, admin_headers, acme)
        response = await client.put(
            f"/api/v1/sprints/{sprint['id']}",
            json={"name": "Launch sprint"},
            headers=admin_headers,
        )
        assert response.status_code == 200, response.text
        assert response.json()["name"] == "Launch sprint"

    @pytest.mark.parametrize("field", ["name", "start_date", "total_capacity"])
    async def test_null_for_required_field_rejected(
        self, client: AsyncClient, admin_headers: dict, acme: dict[str, Any], field: str
    ) -> None:
        sprint = await _create_sprint(client, admin_headers, acme)
        response = await client.put(
            f"/api/v1/sprints/{sprint['id']}",
            json={field: None},
            headers=admin_headers,
        )
        assert response.status_code == 422
        assert response.json()["error"] == "VALIDATION_ERROR"
