"""
Document, page and collaboration Pydantic schemas.
"""
from __future__ import annotations

import uuid
from datetime import datetime
from typing import Any, Literal

from pydantic import BaseModel, Field, field_validator

from app.schemas.common import require_value
from app.schemas.user import UserReadPublic

DocumentType = Literal[
    "project_brief",
    "meeting_notes",
    "wiki_article",
    "resource_doc",
    "retrospective",
    "blank",
]
DocumentStatus = Literal["draft", "published", "archived"]
PresenceStatus = Literal["active", "typing", "idle"]


# ── Documents ─────────────────────────────────────────────────────────────────

class DocumentCreate(BaseModel):
    title: str = Field(min_length=1, max_length=500)
    document_type: DocumentType = "blank"
    client_id: uuid.UUID | None = None
    department_id: uuid.UUID | None = None
    client_visible: bool = False


class DocumentUpdate(BaseModel):
    title: str | None = Field(default=None, min_length=1, max_length=500)
    client_visible: bool | None = None

    @field_validator("title", "client_visible", mode="before")
    @classmethod
    def reject_null(cls, v: Any) -> Any:
        return require_value(v)


class DocumentStatusUpdate(BaseModel):
    status: DocumentStatus


class PageRead(BaseModel):
    id: uuid.UUID
    document_id: uuid.UUID
    parent_page_id: uuid.UUID | None
    title: str
    order: int
    doc_key: str
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class DocumentRead(BaseModel):
    id: uuid.UUID
    title: str
    document_type: str
    status: str
    project_id: uuid.UUID | None
    client_id: uuid.UUID | None
    department_id: uuid.UUID | None
    owner_id: uuid.UUID | None
    share_id: str
    client_visible: bool
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class DocumentReadWithPages(DocumentRead):
    pages: list[PageRead] = []


# ── Pages ─────────────────────────────────────────────────────────────────────

class PageCreate(BaseModel):
    title: str = Field(default="Untitled", min_length=1, max_length=500)
    parent_page_id: uuid.UUID | None = None


class PageUpdate(BaseModel):
    title: str = Field(min_length=1, max_length=500)


# ── Collaboration ─────────────────────────────────────────────────────────────

class CollaborationAuthRequest(BaseModel):
    # First page of the document when omitted
    page_id: uuid.UUID | None = None


class CollaborationSession(BaseModel):
    url: str
    token: str
    doc_key: str
    expires_at: datetime


class PresenceJoin(BaseModel):
    user_agent: str | None = Field(default=None, max_length=500)


class PresenceHeartbeat(BaseModel):
    status: PresenceStatus = "active"
    cursor_position: dict[str, Any] | None = None


class PresenceRead(BaseModel):
    id: uuid.UUID
    document_id: uuid.UUID
    user_id: uuid.UUID
    status: str
    cursor_position: dict[str, Any] | None
    last_seen: datetime
    joined_at: datetime
    user: UserReadPublic | None = None

    model_config = {"from_attributes": True}
