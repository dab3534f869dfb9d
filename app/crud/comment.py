"""
Comment thread and comment CRUD operations.
"""
from __future__ import annotations

import uuid
from typing import Any

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from app.crud.base import CRUDBase
from app.models.comment import Comment, CommentThread
from app.schemas.comment import CommentCreate, CommentUpdate, ThreadCreate


class CRUDCommentThread(CRUDBase[CommentThread, ThreadCreate, ThreadCreate]):

    async def get_with_comments(
        self, db: AsyncSession, thread_id: uuid.UUID
    ) -> CommentThread | None:
        result = await db.execute(
            select(CommentThread)
            .options(selectinload(CommentThread.comments).selectinload(Comment.author))
            .where(CommentThread.id == thread_id)
            .execution_options(populate_existing=True)
        )
        return result.scalar_one_or_none()

    async def list_by_entity(
        self,
        db: AsyncSession,
        *,
        entity_type: str,
        entity_id: uuid.UUID,
        block_id: str | None = None,
        include_resolved: bool = False,
    ) -> list[CommentThread]:
        query = (
            select(CommentThread)
            .options(selectinload(CommentThread.comments).selectinload(Comment.author))
            .where(
                CommentThread.entity_type == entity_type,
                CommentThread.entity_id == entity_id,
            )
        )
        if block_id is not None:
            query = query.where(CommentThread.block_id == block_id)
        if not include_resolved:
            query = query.where(CommentThread.resolved.is_(False))
        result = await db.execute(
            query.order_by(CommentThread.created_at).execution_options(populate_existing=True)
        )
        return list(result.scalars().all())


class CRUDComment(CRUDBase[Comment, CommentCreate, CommentUpdate]):

    async def create_comment(
        self,
        db: AsyncSession,
        *,
        thread_id: uuid.UUID,
        content: str,
        author_id: uuid.UUID,
        mentions: list[dict[str, Any]],
        parent_comment_id: uuid.UUID | None = None,
    ) -> Comment:
        comment = Comment(
            thread_id=thread_id,
            content=content,
            author_id=author_id,
            mentions=mentions,
            parent_comment_id=parent_comment_id,
        )
        db.add(comment)
        await db.flush()
        return await self.get_with_author(db, comment.id)  # type: ignore[return-value]

    async def get_with_author(
        self, db: AsyncSession, comment_id: uuid.UUID
    ) -> Comment | None:
        result = await db.execute(
            select(Comment)
            .options(selectinload(Comment.author))
            .where(Comment.id == comment_id)
            .execution_options(populate_existing=True)
        )
        return result.scalar_one_or_none()


crud_comment_thread = CRUDCommentThread(CommentThread)
crud_comment = CRUDComment(Comment)
