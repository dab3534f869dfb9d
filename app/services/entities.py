"""
Resolve the record a comment thread or attachment hangs off.
Lookup goes through the owning service so its visibility rules apply.
"""
from __future__ import annotations

import uuid
from dataclasses import dataclass

from sqlalchemy.ext.asyncio import AsyncSession

from app.core.exceptions import BadRequestException, NotFoundException
from app.crud.comment import crud_comment, crud_comment_thread
from app.models.user import User
from app.services.document_service import document_service
from app.services.project_service import project_service
from app.services.sprint_service import sprint_service
from app.services.task_service import task_service


@dataclass(frozen=True)
class EntityRef:
    entity_type: str
    entity_id: uuid.UUID
    title: str
    # Task assignee; None for other entity types
    assignee_id: uuid.UUID | None = None


async def resolve_entity(
    db: AsyncSession, *, entity_type: str, entity_id: uuid.UUID, current_user: User
) -> EntityRef:
    """Load an entity the user can see, or raise NotFoundException."""
    if entity_type == "task":
        task = await task_service.get_task(db, task_id=entity_id, current_user=current_user)
        return EntityRef(entity_type, task.id, task.title, task.assignee_id)
    if entity_type == "project":
        project = await project_service.get_project(
            db, project_id=entity_id, current_user=current_user
        )
        return EntityRef(entity_type, project.id, project.title)
    if entity_type == "sprint":
        sprint = await sprint_service.get_sprint(db, sprint_id=entity_id, current_user=current_user)
        return EntityRef(entity_type, sprint.id, sprint.name)
    if entity_type in ("document", "document_block"):
        document = await document_service.get_document(
            db, document_id=entity_id, current_user=current_user
        )
        return EntityRef(entity_type, document.id, document.title)
    if entity_type == "comment":
        comment = await crud_comment.get(db, entity_id)
        if comment is None:
            raise NotFoundException("Comment", str(entity_id))
        thread = await crud_comment_thread.get(db, comment.thread_id)
        if thread is None:
            raise NotFoundException("Comment", str(entity_id))
        await resolve_entity(
            db, entity_type=thread.entity_type, entity_id=thread.entity_id, current_user=current_user
        )
        return EntityRef(entity_type, comment.id, "comment")
    raise BadRequestException(f"Unsupported entity type {entity_type!r}")
