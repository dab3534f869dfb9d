"""
Comment thread Pydantic schemas.
"""
from __future__ import annotations

import uuid
from datetime import datetime
from typing import Any, Literal

from pydantic import BaseModel, Field, model_validator

from app.schemas.user import UserReadPublic

CommentEntityType = Literal["document_block", "task", "project", "sprint"]


class ThreadCreate(BaseModel):
    entity_type: CommentEntityType
    entity_id: uuid.UUID
    block_id: str | None = Field(default=None, max_length=100)
    content: str = Field(min_length=1, max_length=10000)

    @model_validator(mode="after")
    def validate_block(self) -> "ThreadCreate":
        if self.entity_type == "document_block" and not self.block_id:
            raise ValueError("block_id is required for document_block threads")
        return self


class CommentCreate(BaseModel):
    content: str = Field(min_length=1, max_length=10000)
    parent_comment_id: uuid.UUID | None = None


class CommentUpdate(BaseModel):
    content: str = Field(min_length=1, max_length=10000)


class CommentRead(BaseModel):
    id: uuid.UUID
    thread_id: uuid.UUID
    parent_comment_id: uuid.UUID | None
    content: str
    author_id: uuid.UUID
    mentions: list[dict[str, Any]]
    is_deleted: bool
    created_at: datetime
    updated_at: datetime
    author: UserReadPublic | None = None

    model_config = {"from_attributes": True}


class ThreadRead(BaseModel):
    id: uuid.UUID
    entity_type: str
    entity_id: uuid.UUID
    block_id: str | None
    resolved: bool
    resolved_by: uuid.UUID | None
    resolved_at: datetime | None
    creator_id: uuid.UUID | None
    created_at: datetime
    comments: list[CommentRead] = []

    model_config = {"from_attributes": True}
