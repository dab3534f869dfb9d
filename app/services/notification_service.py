"""
Notification fan-out service.
Creates DB notification records and pushes real-time messages via WebSocket.
"""
from __future__ import annotations

import uuid
from collections.abc import Iterable
from typing import Any

from sqlalchemy.ext.asyncio import AsyncSession

from app.crud.notification import crud_notification
from app.models.notification import Notification
from app.services.websocket_service import ws_manager


class NotificationService:

    async def notify_user(
        self,
        db: AsyncSession,
        *,
        user_id: uuid.UUID,
        type: str,
        title: str,
        message: str,
        priority: str = "medium",
        reference_type: str | None = None,
        reference_id: uuid.UUID | None = None,
    ) -> Notification:
        """
        Persist a notification to the database and push it via WebSocket
        if the user is currently connected.
        """
        notification = await crud_notification.create_notification(
            db,
            user_id=user_id,
            type=type,
            title=title,
            message=message,
            priority=priority,
            reference_type=reference_type,
            reference_id=reference_id,
        )

        if ws_manager.is_connected(str(user_id)):
            payload: dict[str, Any] = {
                "type": "notification",
                "data": {
                    "id": str(notification.id),
                    "title": title,
                    "message": message,
                    "notification_type": type,
                    "priority": priority,
                    "reference_type": reference_type,
                    "reference_id": str(reference_id) if reference_id else None,
                    "is_read": False,
                    "created_at": notification.created_at.isoformat(),
                },
            }
            await ws_manager.send_personal_message(str(user_id), payload)

        return notification

    async def notify_many(
        self,
        db: AsyncSession,
        *,
        user_ids: Iterable[uuid.UUID],
        exclude: uuid.UUID | None = None,
        **kwargs: Any,
    ) -> int:
        """Notify each distinct user once, skipping ``exclude``. Returns the count sent."""
        sent = 0
        for user_id in dict.fromkeys(user_ids):
            if user_id == exclude:
                continue
            await self.notify_user(db, user_id=user_id, **kwargs)
            sent += 1
        return sent

    async def notify_task_assigned(
        self,
        db: AsyncSession,
        *,
        assignee_id: uuid.UUID,
        task_id: uuid.UUID,
        task_title: str,
        assigner_name: str,
    ) -> None:
        await self.notify_user(
            db,
            user_id=assignee_id,
            type="task_assigned",
            title="Task assigned",
            message=f"{assigner_name} assigned you to task: {task_title!r}",
            reference_type="task",
            reference_id=task_id,
        )

    async def notify_task_status_changed(
        self,
        db: AsyncSession,
        *,
        user_ids: Iterable[uuid.UUID],
        actor_id: uuid.UUID,
        task_id: uuid.UUID,
        task_title: str,
        old_status: str,
        new_status: str,
        actor_name: str,
    ) -> None:
        await self.notify_many(
            db,
            user_ids=user_ids,
            exclude=actor_id,
            type="task_status_changed",
            title="Task status changed",
            message=(
                f"{actor_name} moved {task_title!r} from "
                f"{old_status.replace('_', ' ')} to {new_status.replace('_', ' ')}"
            ),
            reference_type="task",
            reference_id=task_id,
        )

    async def notify_comment_created(
        self,
        db: AsyncSession,
        *,
        user_id: uuid.UUID,
        entity_type: str,
        entity_id: uuid.UUID,
        commenter_name: str,
        entity_title: str,
    ) -> None:
        await self.notify_user(
            db,
            user_id=user_id,
            type="comment_created",
            title="New comment",
            message=f"{commenter_name} commented on {entity_title!r}",
            reference_type=entity_type,
            reference_id=entity_id,
        )

    async def notify_mention(
        self,
        db: AsyncSession,
        *,
        user_id: uuid.UUID,
        thread_id: uuid.UUID,
        author_name: str,
    ) -> None:
        await self.notify_user(
            db,
            user_id=user_id,
            type="mention",
            title="You were mentioned",
            message=f"{author_name} mentioned you in a comment",
            priority="high",
            reference_type="comment_thread",
            reference_id=thread_id,
        )

    async def notify_project_created(
        self,
        db: AsyncSession,
        *,
        manager_id: uuid.UUID,
        project_id: uuid.UUID,
        project_title: str,
        creator_name: str,
    ) -> None:
        await self.notify_user(
            db,
            user_id=manager_id,
            type="project_created",
            title="New project",
            message=f"{creator_name} created project {project_title!r} and made you its manager",
            reference_type="project",
            reference_id=project_id,
        )

    async def notify_sprint_event(
        self,
        db: AsyncSession,
        *,
        user_ids: Iterable[uuid.UUID],
        actor_id: uuid.UUID,
        sprint_id: uuid.UUID,
        sprint_name: str,
        started: bool,
    ) -> None:
        verb = "started" if started else "completed"
        await self.notify_many(
            db,
            user_ids=user_ids,
            exclude=actor_id,
            type=f"sprint_{verb}",
            title=f"Sprint {verb}",
            message=f"Sprint {sprint_name!r} has {verb}",
            reference_type="sprint",
            reference_id=sprint_id,
        )


notification_service = NotificationService()
