"""
Comment thread routes.
Threads are listed per entity: /comments/threads?entity_type=task&entity_id=...
"""
from __future__ import annotations

import uuid

from fastapi import APIRouter, Query, status

from app.core.dependencies import CurrentUser, DBSession
from app.schemas.comment import (
    CommentCreate,
    CommentEntityType,
    CommentRead,
    CommentUpdate,
    ThreadCreate,
    ThreadRead,
)
from app.services.comment_service import comment_service

router = APIRouter(prefix="/comments", tags=["Comments"])


@router.get(
    "/threads",
    response_model=list[ThreadRead],
    summary="List comment threads on an entity",
)
async def list_threads(
    current_user: CurrentUser,
    db: DBSession,
    entity_type: CommentEntityType = Query(),
    entity_id: uuid.UUID = Query(),
    block_id: str | None = Query(default=None, max_length=100),
    include_resolved: bool = Query(default=False),
) -> list[ThreadRead]:
    threads = await comment_service.list_threads(
        db,
        entity_type=entity_type,
        entity_id=entity_id,
        block_id=block_id,
        include_resolved=include_resolved,
        current_user=current_user,
    )
    return [ThreadRead.model_validate(t) for t in threads]


@router.post(
    "/threads",
    response_model=ThreadRead,
    status_code=status.HTTP_201_CREATED,
    summary="Start a thread with its first comment",
)
async def create_thread(
    thread_in: ThreadCreate,
    current_user: CurrentUser,
    db: DBSession,
) -> ThreadRead:
    thread = await comment_service.create_thread(
        db, thread_in=thread_in, current_user=current_user
    )
    return ThreadRead.model_validate(thread)


@router.get("/threads/{thread_id}", response_model=ThreadRead, summary="Get a thread")
async def get_thread(
    thread_id: uuid.UUID,
    current_user: CurrentUser,
    db: DBSession,
) -> ThreadRead:
    thread = await comment_service.get_thread(db, thread_id=thread_id, current_user=current_user)
    return ThreadRead.model_validate(thread)


@router.post(
    "/threads/{thread_id}/replies",
    response_model=CommentRead,
    status_code=status.HTTP_201_CREATED,
    summary="Reply in a thread",
)
async def reply(
    thread_id: uuid.UUID,
    comment_in: CommentCreate,
    current_user: CurrentUser,
    db: DBSession,
) -> CommentRead:
    comment = await comment_service.reply(
        db, thread_id=thread_id, comment_in=comment_in, current_user=current_user
    )
    return CommentRead.model_validate(comment)


@router.post(
    "/threads/{thread_id}/resolve",
    response_model=ThreadRead,
    summary="Resolve a thread",
)
async def resolve_thread(
    thread_id: uuid.UUID,
    current_user: CurrentUser,
    db: DBSession,
) -> ThreadRead:
    thread = await comment_service.set_resolved(
        db, thread_id=thread_id, resolved=True, current_user=current_user
    )
    return ThreadRead.model_validate(thread)


@router.post(
    "/threads/{thread_id}/reopen",
    response_model=ThreadRead,
    summary="Reopen a resolved thread",
)
async def reopen_thread(
    thread_id: uuid.UUID,
    current_user: CurrentUser,
    db: DBSession,
) -> ThreadRead:
    thread = await comment_service.set_resolved(
        db, thread_id=thread_id, resolved=False, current_user=current_user
    )
    return ThreadRead.model_validate(thread)


@router.put(
    "/{comment_id}",
    response_model=CommentRead,
    summary="Edit your own comment",
)
async def edit_comment(
    comment_id: uuid.UUID,
    comment_in: CommentUpdate,
    current_user: CurrentUser,
    db: DBSession,
) -> CommentRead:
    comment = await comment_service.edit_comment(
        db, comment_id=comment_id, comment_in=comment_in, current_user=current_user
    )
    return CommentRead.model_validate(comment)


@router.delete(
    "/{comment_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete your own comment",
)
async def delete_comment(
    comment_id: uuid.UUID,
    current_user: CurrentUser,
    db: DBSession,
) -> None:
    await comment_service.delete_comment(db, comment_id=comment_id, current_user=current_user)
