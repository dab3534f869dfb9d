"""
Comment thread tests.
Covers: threads on tasks and document blocks, mentions, replies,
resolve/reopen and soft deletion.
"""
from __future__ import annotations

from typing import Any

from httpx import AsyncClient

from app.services.comment_service import parse_mentions


async def _open_thread(
    client: AsyncClient, headers: dict, entity_type: str, entity_id: str, content: str, **kwargs: Any
) -> dict[str, Any]:
    response = await client.post(
        "/api/v1/comments/threads",
        json={"entity_type": entity_type, "entity_id": entity_id, "content": content, **kwargs},
        headers=headers,
    )
    assert response.status_code == 201, response.text
    return response.json()


class TestParseMentions:
    def test_extracts_user_ids_and_offsets(self) -> None:
        user_id = "8c9d2a8e-3f0c-4f4e-9a55-0d8f6a2b7c11"
        content = f"Hi @[Pat Manager](user:{user_id}), please check"
        mentions = parse_mentions(content)
        assert mentions == [
            {
                "user_id": user_id,
                "name": "Pat Manager",
                "position": 3,
                "length": len(f"@[Pat Manager](user:{user_id})"),
            }
        ]

    def test_ignores_malformed_ids(self) -> None:
        assert parse_mentions("@[Nobody](user:not-a-uuid) and plain @text") == []


class TestThreads:
    async def test_thread_on_task(
        self, client: AsyncClient, admin_headers: dict, task_factory: Any
    ) -> None:
        task = await task_factory("Discuss me")
        thread = await _open_thread(client, admin_headers, "task", task["id"], "First thoughts")
        assert thread["resolved"] is False
        assert [c["content"] for c in thread["comments"]] == ["First thoughts"]
        assert thread["comments"][0]["author"]["name"] == "Ada Admin"

        response = await client.get(
            f"/api/v1/comments/threads?entity_type=task&entity_id={task['id']}",
            headers=admin_headers,
        )
        assert [t["id"] for t in response.json()] == [thread["id"]]

    async def test_block_thread_requires_block_id(
        self, client: AsyncClient, admin_headers: dict, acme: dict[str, Any]
    ) -> None:
        response = await client.post(
            "/api/v1/comments/threads",
            json={"entity_type": "document_block", "entity_id": acme["id"], "content": "Hmm"},
            headers=admin_headers,
        )
        assert response.status_code == 422

    async def test_hidden_entity_is_404(
        self, client: AsyncClient, client_headers: dict, task_factory: Any
    ) -> None:
        task = await task_factory("Internal", visibility="private")
        response = await client.post(
            "/api/v1/comments/threads",
            json={"entity_type": "task", "entity_id": task["id"], "content": "Peek"},
            headers=client_headers,
        )
        assert response.status_code == 404

    async def test_mentions_notify_and_assignee_hears_about_comment(
        self,
        client: AsyncClient,
        admin_headers: dict,
        pm_user: Any,
        pm_headers: dict,
        owner_user: Any,
        owner_headers: dict,
        task_factory: Any,
    ) -> None:
        task = await task_factory("Assigned", assignee_id=str(owner_user.id))
        await _open_thread(
            client,
            admin_headers,
            "task",
            task["id"],
            f"@[Pat Manager](user:{pm_user.id}) can you review?",
        )

        response = await client.get("/api/v1/notifications/", headers=pm_headers)
        assert [n["type"] for n in response.json()["items"]] == ["mention"]

        response = await client.get("/api/v1/notifications/", headers=owner_headers)
        types = sorted(n["type"] for n in response.json()["items"])
        assert types == ["comment_created", "task_assigned"]

    async def test_reply(
        self, client: AsyncClient, admin_headers: dict, owner_headers: dict, task_factory: Any
    ) -> None:
        task = await task_factory("Chatty")
        thread = await _open_thread(client, admin_headers, "task", task["id"], "Question")

        response = await client.post(
            f"/api/v1/comments/threads/{thread['id']}/replies",
            json={"content": "Answer", "parent_comment_id": thread["comments"][0]["id"]},
            headers=owner_headers,
        )
        assert response.status_code == 201, response.text
        assert response.json()["parent_comment_id"] == thread["comments"][0]["id"]

        response = await client.get(
            f"/api/v1/comments/threads/{thread['id']}", headers=admin_headers
        )
        assert sorted(c["content"] for c in response.json()["comments"]) == ["Answer", "Question"]


class TestResolve:
    async def test_resolve_and_reopen(
        self, client: AsyncClient, admin_headers: dict, task_factory: Any
    ) -> None:
        task = await task_factory("Settled")
        thread = await _open_thread(client, admin_headers, "task", task["id"], "Done?")

        response = await client.post(
            f"/api/v1/comments/threads/{thread['id']}/resolve", headers=admin_headers
        )
        resolved = response.json()
        assert resolved["resolved"] is True
        assert resolved["resolved_at"] is not None

        response = await client.get(
            f"/api/v1/comments/threads?entity_type=task&entity_id={task['id']}",
            headers=admin_headers,
        )
        assert response.json() == []
        response = await client.get(
            f"/api/v1/comments/threads?entity_type=task&entity_id={task['id']}&include_resolved=true",
            headers=admin_headers,
        )
        assert len(response.json()) == 1

        response = await client.post(
            f"/api/v1/comments/threads/{thread['id']}/reopen", headers=admin_headers
        )
        assert response.json()["resolved"] is False
        assert response.json()["resolved_by"] is None

    async def test_only_creator_resolves(
        self, client: AsyncClient, admin_headers: dict, pm_headers: dict, task_factory: Any
    ) -> None:
        task = await task_factory("Mine to close")
        thread = await _open_thread(client, admin_headers, "task", task["id"], "Open question")

        response = await client.post(
            f"/api/v1/comments/threads/{thread['id']}/resolve", headers=pm_headers
        )
        assert response.status_code == 403


class TestEditAndDelete:
    async def test_edit_own_comment(
        self, client: AsyncClient, admin_headers: dict, pm_headers: dict, task_factory: Any
    ) -> None:
        task = await task_factory("Typos")
        thread = await _open_thread(client, admin_headers, "task", task["id"], "Teh plan")
        comment_id = thread["comments"][0]["id"]

        response = await client.put(
            f"/api/v1/comments/{comment_id}", json={"content": "The plan"}, headers=admin_headers
        )
        assert response.status_code == 200
        assert response.json()["content"] == "The plan"

        response = await client.put(
            f"/api/v1/comments/{comment_id}", json={"content": "Hijacked"}, headers=pm_headers
        )
        assert response.status_code == 403

    async def test_delete_is_soft(
        self, client: AsyncClient, admin_headers: dict, task_factory: Any
    ) -> None:
        task = await task_factory("Regrets")
        thread = await _open_thread(client, admin_headers, "task", task["id"], "Oops")
        comment_id = thread["comments"][0]["id"]

        response = await client.delete(f"/api/v1/comments/{comment_id}", headers=admin_headers)
        assert response.status_code == 204

        response = await client.get(
            f"/api/v1/comments/threads/{thread['id']}", headers=admin_headers
        )
        comment = response.json()["comments"][0]
        assert comment["is_deleted"] is True
        assert comment["content"] == "[deleted]"

        response = await client.put(
            f"/api/v1/comments/{comment_id}", json={"content": "Back"}, headers=admin_headers
        )
        assert response.status_code == 400
