"""
Attachment upload, download and deletion tests.
"""
from __future__ import annotations

from pathlib import Path
from typing import Any

import pytest
from httpx import AsyncClient

from app.core.config import settings

pytestmark = pytest.mark.asyncio


@pytest.fixture(autouse=True)
def upload_dir(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    monkeypatch.setattr(settings, "UPLOAD_DIR", str(tmp_path))
    return tmp_path


async def _upload(
    client: AsyncClient, headers: dict, task_id: str, name: str = "brief.txt", body: bytes = b"hello"
) -> Any:
    return await client.post(
        f"/api/v1/attachments/task/{task_id}",
        files={"file": (name, body, "text/plain")},
        headers=headers,
    )


async def test_upload_list_download_delete(
    client: AsyncClient, admin_headers: dict, task_factory: Any, upload_dir: Path
) -> None:
    task = await task_factory("With files")

    response = await _upload(client, admin_headers, task["id"], name="../../etc/brief.txt")
    assert response.status_code == 201, response.text
    attachment = response.json()
    assert attachment["filename"] == "brief.txt"
    assert attachment["size"] == 5
    assert len(list(upload_dir.iterdir())) == 1

    response = await client.get(f"/api/v1/attachments/task/{task['id']}", headers=admin_headers)
    assert [a["id"] for a in response.json()["items"]] == [attachment["id"]]

    response = await client.get(
        f"/api/v1/attachments/{attachment['id']}/download", headers=admin_headers
    )
    assert response.status_code == 200
    assert response.content == b"hello"

    response = await client.delete(f"/api/v1/attachments/{attachment['id']}", headers=admin_headers)
    assert response.status_code == 204
    assert list(upload_dir.iterdir()) == []


async def test_file_too_large(
    client: AsyncClient,
    admin_headers: dict,
    task_factory: Any,
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    monkeypatch.setattr(settings, "MAX_FILE_SIZE_MB", 0)
    task = await task_factory("Heavy")

    response = await _upload(client, admin_headers, task["id"])
    assert response.status_code == 413
    assert response.json()["error"] == "FILE_TOO_LARGE"


async def test_client_cannot_upload(
    client: AsyncClient, client_headers: dict, task_factory: Any
) -> None:
    task = await task_factory("Shared", visibility="client")
    response = await _upload(client, client_headers, task["id"])
    assert response.status_code == 403


async def test_only_uploader_or_admin_deletes(
    client: AsyncClient, pm_headers: dict, owner_headers: dict, task_factory: Any
) -> None:
    task = await task_factory("Team file")
    response = await _upload(client, pm_headers, task["id"])
    attachment_id = response.json()["id"]

    response = await client.delete(f"/api/v1/attachments/{attachment_id}", headers=owner_headers)
    assert response.status_code == 403


async def test_hidden_record_is_404(
    client: AsyncClient, admin_headers: dict, client_headers: dict, task_factory: Any
) -> None:
    task = await task_factory("Private", visibility="private")
    await _upload(client, admin_headers, task["id"])

    response = await client.get(f"/api/v1/attachments/task/{task['id']}", headers=client_headers)
    assert response.status_code == 404
