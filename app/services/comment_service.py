"""
Comment thread service.
Threads anchor to a document block, task, project or sprint. Mentions use
the ``@[Name](user:<id>)`` markup and notify the mentioned users.
"""
from __future__ import annotations

import logging
import re
import uuid
from datetime import datetime, timezone
from typing import Any

from sqlalchemy.ext.asyncio import AsyncSession

from app.core.exceptions import BadRequestException, ForbiddenException, NotFoundException
from app.crud.comment import crud_comment, crud_comment_thread
from app.crud.user import crud_user
from app.models.comment import Comment, CommentThread
from app.models.user import User
from app.schemas.comment import CommentCreate, CommentUpdate, ThreadCreate
from app.services.activity_service import activity_service
from app.services.entities import EntityRef, resolve_entity
from app.services.notification_service import notification_service

logger = logging.getLogger(__name__)

MENTION_PATTERN = re.compile(r"@\[([^\]]+)\]\(user:([^\)]+)\)")
DELETED_PLACEHOLDER = "[deleted]"


def parse_mentions(content: str) -> list[dict[str, Any]]:
    """
    Extract mentions from comment markup.
    Each item carries the user id, the match offset and its length. Ids that
    are not UUIDs are ignored.
    """
    mentions: list[dict[str, Any]] = []
    for match in MENTION_PATTERN.finditer(content):
        try:
            user_id = uuid.UUID(match.group(2).strip())
        except ValueError:
            continue
        mentions.append(
            {
                "user_id": str(user_id),
                "name": match.group(1),
                "position": match.start(),
                "length": match.end() - match.start(),
            }
        )
    return mentions


class CommentService:

    async def create_thread(
        self, db: AsyncSession, *, thread_in: ThreadCreate, current_user: User
    ) -> CommentThread:
        """Open a thread on an entity with its first comment."""
        entity = await resolve_entity(
            db,
            entity_type=thread_in.entity_type,
            entity_id=thread_in.entity_id,
            current_user=current_user,
        )
        thread = CommentThread(
            entity_type=thread_in.entity_type,
            entity_id=thread_in.entity_id,
            block_id=thread_in.block_id,
            creator_id=current_user.id,
        )
        db.add(thread)
        await db.flush()

        await self._add_comment(
            db, thread=thread, entity=entity, content=thread_in.content, current_user=current_user
        )
        return await self._get_or_404(db, thread.id)

    async def reply(
        self,
        db: AsyncSession,
        *,
        thread_id: uuid.UUID,
        comment_in: CommentCreate,
        current_user: User,
    ) -> Comment:
        thread = await self._get_or_404(db, thread_id)
        entity = await self._entity_of(db, thread, current_user)
        if comment_in.parent_comment_id is not None and comment_in.parent_comment_id not in {
            c.id for c in thread.comments
        }:
            raise BadRequestException("Parent comment belongs to another thread")

        return await self._add_comment(
            db,
            thread=thread,
            entity=entity,
            content=comment_in.content,
            current_user=current_user,
            parent_comment_id=comment_in.parent_comment_id,
        )

    async def list_threads(
        self,
        db: AsyncSession,
        *,
        entity_type: str,
        entity_id: uuid.UUID,
        current_user: User,
        block_id: str | None = None,
        include_resolved: bool = False,
    ) -> list[CommentThread]:
        await resolve_entity(
            db, entity_type=entity_type, entity_id=entity_id, current_user=current_user
        )
        return await crud_comment_thread.list_by_entity(
            db,
            entity_type=entity_type,
            entity_id=entity_id,
            block_id=block_id,
            include_resolved=include_resolved,
        )

    async def get_thread(
        self, db: AsyncSession, *, thread_id: uuid.UUID, current_user: User
    ) -> CommentThread:
        thread = await self._get_or_404(db, thread_id)
        await self._entity_of(db, thread, current_user)
        return thread

    async def edit_comment(
        self,
        db: AsyncSession,
        *,
        comment_id: uuid.UUID,
        comment_in: CommentUpdate,
        current_user: User,
    ) -> Comment:
        comment = await self._get_own_comment(db, comment_id, current_user)
        if comment.is_deleted:
            raise BadRequestException("Deleted comments cannot be edited")

        await crud_comment.update(
            db,
            db_obj=comment,
            obj_in={"content": comment_in.content, "mentions": parse_mentions(comment_in.content)},
        )
        return await crud_comment.get_with_author(db, comment.id)  # type: ignore[return-value]

    async def delete_comment(
        self, db: AsyncSession, *, comment_id: uuid.UUID, current_user: User
    ) -> None:
        """Soft-delete: the comment stays in the thread so replies keep their parent."""
        comment = await self._get_own_comment(db, comment_id, current_user)
        await crud_comment.update(
            db,
            db_obj=comment,
            obj_in={"is_deleted": True, "content": DELETED_PLACEHOLDER, "mentions": []},
        )
        await activity_service.log(
            db,
            user_id=current_user.id,
            action="comment_deleted",
            entity_type="comment",
            entity_id=comment.id,
            details={"thread_id": comment.thread_id},
        )

    async def set_resolved(
        self,
        db: AsyncSession,
        *,
        thread_id: uuid.UUID,
        resolved: bool,
        current_user: User,
    ) -> CommentThread:
        """Resolve or reopen a thread. Only its creator may do so once a creator is recorded."""
        thread = await self._get_or_404(db, thread_id)
        await self._entity_of(db, thread, current_user)
        if thread.creator_id is not None and thread.creator_id != current_user.id:
            raise ForbiddenException("Only the thread creator can resolve or reopen it")

        if resolved:
            changes = {
                "resolved": True,
                "resolved_by": current_user.id,
                "resolved_at": datetime.now(timezone.utc),
            }
        else:
            changes = {"resolved": False, "resolved_by": None, "resolved_at": None}
        await crud_comment_thread.update(db, db_obj=thread, obj_in=changes)
        await activity_service.log(
            db,
            user_id=current_user.id,
            action="thread_resolved" if resolved else "thread_reopened",
            entity_type=thread.entity_type,
            entity_id=thread.entity_id,
            details={"thread_id": thread.id},
        )
        return await self._get_or_404(db, thread.id)

    # ── Private helpers ───────────────────────────────────────────────────────

    async def _add_comment(
        self,
        db: AsyncSession,
        *,
        thread: CommentThread,
        entity: EntityRef,
        content: str,
        current_user: User,
        parent_comment_id: uuid.UUID | None = None,
    ) -> Comment:
        mentions = parse_mentions(content)
        comment = await crud_comment.create_comment(
            db,
            thread_id=thread.id,
            content=content,
            author_id=current_user.id,
            mentions=mentions,
            parent_comment_id=parent_comment_id,
        )
        await activity_service.log(
            db,
            user_id=current_user.id,
            action="comment_created",
            entity_type=entity.entity_type,
            entity_id=entity.entity_id,
            details={"thread_id": thread.id, "comment_id": comment.id},
        )

        mentioned = await crud_user.get_many(
            db, [uuid.UUID(m["user_id"]) for m in mentions]
        )
        for user in mentioned:
            if user.id == current_user.id:
                continue
            await notification_service.notify_mention(
                db,
                user_id=user.id,
                thread_id=thread.id,
                author_name=current_user.display_name,
            )

        mentioned_ids = {user.id for user in mentioned}
        if (
            entity.assignee_id is not None
            and entity.assignee_id != current_user.id
            and entity.assignee_id not in mentioned_ids
        ):
            await notification_service.notify_comment_created(
                db,
                user_id=entity.assignee_id,
                entity_type=entity.entity_type,
                entity_id=entity.entity_id,
                commenter_name=current_user.display_name,
                entity_title=entity.title,
            )
        return comment

    async def _get_or_404(self, db: AsyncSession, thread_id: uuid.UUID) -> CommentThread:
        thread = await crud_comment_thread.get_with_comments(db, thread_id)
        if thread is None:
            raise NotFoundException("Comment thread", str(thread_id))
        return thread

    async def _entity_of(
        self, db: AsyncSession, thread: CommentThread, user: User
    ) -> EntityRef:
        return await resolve_entity(
            db, entity_type=thread.entity_type, entity_id=thread.entity_id, current_user=user
        )

    async def _get_own_comment(
        self, db: AsyncSession, comment_id: uuid.UUID, user: User
    ) -> Comment:
        comment = await crud_comment.get(db, comment_id)
        if comment is None:
            raise NotFoundException("Comment", str(comment_id))
        if comment.author_id != user.id:
            raise ForbiddenException("You can only change your own comments")
        return comment


comment_service = CommentService()
