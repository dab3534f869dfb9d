"""
Document endpoint tests.
Covers: creation with a first page, page management, status changes,
share links, access rules, collaboration tokens and presence.
"""
from __future__ import annotations

import uuid
from datetime import datetime, timedelta, timezone
from typing import Any

import pytest
from httpx import AsyncClient
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import settings
from app.core.security import decode_collaboration_token
from app.crud.document import crud_document_session
from app.models.document import DocumentSession
from app.models.user import User

pytestmark = pytest.mark.asyncio


async def _create_document(
    client: AsyncClient, headers: dict, title: str = "Handbook", **kwargs: Any
) -> dict[str, Any]:
    response = await client.post(
        "/api/v1/documents/", json={"title": title, **kwargs}, headers=headers
    )
    assert response.status_code == 201, response.text
    return response.json()


class TestCreateDocument:
    async def test_starts_with_one_page(self, client: AsyncClient, admin_headers: dict) -> None:
        document = await _create_document(client, admin_headers, document_type="wiki_article")
        assert document["status"] == "draft"
        assert document["document_type"] == "wiki_article"
        assert [p["title"] for p in document["pages"]] == ["Untitled"]
        assert document["share_id"]

    async def test_client_user_cannot_create(
        self, client: AsyncClient, client_headers: dict
    ) -> None:
        response = await client.post(
            "/api/v1/documents/", json={"title": "Notes"}, headers=client_headers
        )
        assert response.status_code == 403

    async def test_unknown_type_rejected(self, client: AsyncClient, admin_headers: dict) -> None:
        response = await client.post(
            "/api/v1/documents/",
            json={"title": "Odd", "document_type": "spreadsheet"},
            headers=admin_headers,
        )
        assert response.status_code == 422


class TestPages:
    async def test_add_rename_delete(self, client: AsyncClient, admin_headers: dict) -> None:
        document = await _create_document(client, admin_headers)
        first_page = document["pages"][0]

        response = await client.post(
            f"/api/v1/documents/{document['id']}/pages",
            json={"title": "Onboarding", "parent_page_id": first_page["id"]},
            headers=admin_headers,
        )
        assert response.status_code == 201, response.text
        page = response.json()
        assert page["order"] == 1
        assert page["doc_key"] != first_page["doc_key"]

        response = await client.put(
            f"/api/v1/documents/{document['id']}/pages/{page['id']}",
            json={"title": "Getting started"},
            headers=admin_headers,
        )
        assert response.json()["title"] == "Getting started"

        response = await client.delete(
            f"/api/v1/documents/{document['id']}/pages/{first_page['id']}",
            headers=admin_headers,
        )
        assert response.status_code == 204

        response = await client.get(
            f"/api/v1/documents/{document['id']}/pages", headers=admin_headers
        )
        assert [p["title"] for p in response.json()] == ["Getting started"]
        assert response.json()[0]["parent_page_id"] is None

    async def test_deleting_parent_keeps_subpages(
        self, client: AsyncClient, admin_headers: dict
    ) -> None:
        document = await _create_document(client, admin_headers)
        root = document["pages"][0]
        pages_url = f"/api/v1/documents/{document['id']}/pages"

        response = await client.post(
            pages_url, json={"title": "Chapter", "parent_page_id": root["id"]}, headers=admin_headers
        )
        chapter = response.json()
        response = await client.post(
            pages_url, json={"title": "Section", "parent_page_id": chapter["id"]}, headers=admin_headers
        )
        section = response.json()

        response = await client.delete(f"{pages_url}/{chapter['id']}", headers=admin_headers)
        assert response.status_code == 204

        response = await client.get(pages_url, headers=admin_headers)
        pages = {p["title"]: p for p in response.json()}
        assert set(pages) == {"Untitled", "Section"}
        assert pages["Section"]["parent_page_id"] == root["id"]
        assert pages["Section"]["id"] == section["id"]

    async def test_last_page_cannot_be_deleted(
        self, client: AsyncClient, admin_headers: dict
    ) -> None:
        document = await _create_document(client, admin_headers)
        response = await client.delete(
            f"/api/v1/documents/{document['id']}/pages/{document['pages'][0]['id']}",
            headers=admin_headers,
        )
        assert response.status_code == 400


class TestStatusAndAccess:
    async def test_publish_logs_transition(
        self, client: AsyncClient, admin_headers: dict
    ) -> None:
        document = await _create_document(client, admin_headers)

        response = await client.put(
            f"/api/v1/documents/{document['id']}/status",
            json={"status": "published"},
            headers=admin_headers,
        )
        assert response.status_code == 200
        assert response.json()["status"] == "published"

        response = await client.get(
            f"/api/v1/activity/document/{document['id']}", headers=admin_headers
        )
        actions = [entry["action"] for entry in response.json()["items"]]
        assert "document_status_changed" in actions

    async def test_share_link(self, client: AsyncClient, admin_headers: dict) -> None:
        document = await _create_document(client, admin_headers)
        response = await client.get(
            f"/api/v1/documents/shared/{document['share_id']}", headers=admin_headers
        )
        assert response.status_code == 200
        assert response.json()["id"] == document["id"]

        response = await client.get("/api/v1/documents/shared/nope", headers=admin_headers)
        assert response.status_code == 404

    async def test_client_sees_only_client_visible_documents(
        self,
        client: AsyncClient,
        admin_headers: dict,
        client_headers: dict,
        acme: dict[str, Any],
    ) -> None:
        shared = await _create_document(
            client, admin_headers, title="Shared", client_id=acme["id"], client_visible=True
        )
        internal = await _create_document(
            client, admin_headers, title="Internal", client_id=acme["id"]
        )

        response = await client.get("/api/v1/documents/", headers=client_headers)
        assert [d["id"] for d in response.json()["items"]] == [shared["id"]]

        response = await client.get(f"/api/v1/documents/{internal['id']}", headers=client_headers)
        assert response.status_code == 404

        response = await client.post(
            f"/api/v1/documents/{shared['id']}/pages",
            json={"title": "Client page"},
            headers=client_headers,
        )
        assert response.status_code == 403

    async def test_project_brief_cannot_be_deleted_alone(
        self, client: AsyncClient, admin_headers: dict, acme: dict[str, Any]
    ) -> None:
        response = await client.post(
            "/api/v1/projects/",
            json={
                "title": "Launch",
                "client_id": acme["id"],
                "department_id": acme["department"]["id"],
            },
            headers=admin_headers,
        )
        document_id = response.json()["document_id"]

        response = await client.delete(f"/api/v1/documents/{document_id}", headers=admin_headers)
        assert response.status_code == 400

    async def test_delete_standalone_document(
        self, client: AsyncClient, admin_headers: dict
    ) -> None:
        document = await _create_document(client, admin_headers)
        response = await client.delete(
            f"/api/v1/documents/{document['id']}", headers=admin_headers
        )
        assert response.status_code == 204
        response = await client.get(f"/api/v1/documents/{document['id']}", headers=admin_headers)
        assert response.status_code == 404


class TestCollaboration:
    async def test_editor_token(self, client: AsyncClient, admin_headers: dict, admin_user: Any) -> None:
        document = await _create_document(client, admin_headers)

        response = await client.post(
            f"/api/v1/documents/{document['id']}/collaboration/auth",
            json={},
            headers=admin_headers,
        )
        assert response.status_code == 200, response.text
        session = response.json()
        assert session["url"] == settings.COLLAB_SYNC_URL
        assert session["doc_key"] == document["pages"][0]["doc_key"]

        claims = decode_collaboration_token(session["token"])
        assert claims["sub"] == str(admin_user.id)
        assert claims["doc"] == session["doc_key"]
        assert claims["role"] == "editor"

    async def test_client_gets_viewer_token(
        self,
        client: AsyncClient,
        admin_headers: dict,
        client_headers: dict,
        acme: dict[str, Any],
    ) -> None:
        document = await _create_document(
            client, admin_headers, client_id=acme["id"], client_visible=True
        )
        response = await client.post(
            f"/api/v1/documents/{document['id']}/collaboration/auth",
            json={},
            headers=client_headers,
        )
        claims = decode_collaboration_token(response.json()["token"])
        assert claims["role"] == "viewer"

    async def test_unknown_page(self, client: AsyncClient, admin_headers: dict, acme: dict[str, Any]) -> None:
        document = await _create_document(client, admin_headers)
        response = await client.post(
            f"/api/v1/documents/{document['id']}/collaboration/auth",
            json={"page_id": acme["id"]},
            headers=admin_headers,
        )
        assert response.status_code == 404


class TestPresence:
    async def test_join_heartbeat_leave(
        self, client: AsyncClient, admin_headers: dict, pm_headers: dict
    ) -> None:
        document = await _create_document(client, admin_headers)
        url = f"/api/v1/documents/{document['id']}/presence"

        response = await client.post(url, json={"user_agent": "pytest"}, headers=admin_headers)
        assert response.status_code == 200
        response = await client.post(url, json={}, headers=pm_headers)
        assert sorted(p["user"]["name"] for p in response.json()) == ["Ada Admin", "Pat Manager"]

        response = await client.put(
            url,
            json={"status": "typing", "cursor_position": {"block": "b1", "offset": 4}},
            headers=pm_headers,
        )
        assert response.status_code == 204

        response = await client.delete(url, headers=admin_headers)
        assert response.status_code == 204

        response = await client.get(url, headers=pm_headers)
        present = response.json()
        assert len(present) == 1
        assert present[0]["status"] == "typing"
        assert present[0]["cursor_position"] == {"block": "b1", "offset": 4}

    async def test_join_prunes_stale_sessions(
        self,
        client: AsyncClient,
        db: AsyncSession,
        admin_user: User,
        admin_headers: dict,
        pm_headers: dict,
    ) -> None:
        document = await _create_document(client, admin_headers)
        url = f"/api/v1/documents/{document['id']}/presence"
        await client.post(url, json={}, headers=admin_headers)

        session = await crud_document_session.get_for_user(
            db, document_id=uuid.UUID(document["id"]), user_id=admin_user.id
        )
        session.last_seen = datetime.now(timezone.utc) - timedelta(
            minutes=settings.PRESENCE_TIMEOUT_MINUTES + 1
        )
        await db.flush()

        response = await client.post(url, json={}, headers=pm_headers)
        assert response.status_code == 200
        assert [p["user"]["name"] for p in response.json()] == ["Pat Manager"]

        result = await db.execute(
            select(DocumentSession).where(DocumentSession.user_id == admin_user.id)
        )
        assert result.scalars().all() == []

    async def test_heartbeat_without_join(self, client: AsyncClient, admin_headers: dict) -> None:
        document = await _create_document(client, admin_headers)
        response = await client.put(
            f"/api/v1/documents/{document['id']}/presence",
            json={"status": "idle"},
            headers=admin_headers,
        )
        assert response.status_code == 404
