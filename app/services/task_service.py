"""
Task business logic service.
Enforces role rules, keeps completion dates and planning hours consistent,
and fires notifications/activity logs.
"""
from __future__ import annotations

import logging
import uuid
from datetime import date, datetime, timezone
from typing import Any

from sqlalchemy.ext.asyncio import AsyncSession

from app.core.exceptions import BadRequestException, ForbiddenException, NotFoundException
from app.crud.client import crud_client, crud_project_key
from app.crud.department import crud_department
from app.crud.project import crud_project
from app.crud.sprint import crud_sprint
from app.crud.task import crud_task
from app.models.task import Task
from app.models.user import User, UserRole
from app.schemas.task import (
    TASK_OWNER_FIELDS,
    TaskCreate,
    TaskFilter,
    TaskMove,
    TaskReorder,
    TaskStats,
    TaskUpdate,
)
from app.services import planning
from app.services.activity_service import activity_service
from app.services.notification_service import notification_service
from app.services.scope import can_see, scope_for

logger = logging.getLogger(__name__)


class TaskService:

    async def create_task(
        self,
        db: AsyncSession,
        *,
        task_in: TaskCreate,
        current_user: User,
    ) -> Task:
        """
        Create a task in a department backlog (or straight into a sprint).
        Mints the KEY-n slug and appends the task to the end of the backlog.
        """
        client = await crud_client.get(db, task_in.client_id)
        if client is None:
            raise NotFoundException("Client", str(task_in.client_id))
        department = await crud_department.get(db, task_in.department_id)
        if department is None or department.client_id != client.id:
            raise BadRequestException("Department does not belong to the selected client")
        await self._assert_placement(
            db,
            department_id=department.id,
            project_id=task_in.project_id,
            sprint_id=task_in.sprint_id,
        )

        data = task_in.model_dump()
        data.update(
            slug=await crud_project_key.next_slug(db, client=client, kind="task"),
            backlog_order=await crud_task.next_backlog_order(db, department.id),
            size_hours=self._size_hours(task_in.size),
            reporter_id=current_user.id,
        )
        if task_in.status == "done":
            data["completed_date"] = datetime.now(timezone.utc)
        task = await crud_task.create_from_dict(db, obj_in=data)

        await activity_service.log(
            db,
            user_id=current_user.id,
            action="task_created",
            entity_type="task",
            entity_id=task.id,
            details={"title": task.title, "slug": task.slug, "status": task.status},
        )

        if task.assignee_id and task.assignee_id != current_user.id:
            await notification_service.notify_task_assigned(
                db,
                assignee_id=task.assignee_id,
                task_id=task.id,
                task_title=task.title,
                assigner_name=current_user.display_name,
            )

        return task

    async def get_task(
        self,
        db: AsyncSession,
        *,
        task_id: uuid.UUID,
        current_user: User,
    ) -> Task:
        """Fetch a task, enforcing visibility rules."""
        task = await self._get_or_404(db, task_id)
        self._assert_can_view(task, current_user)
        return task

    async def update_task(
        self,
        db: AsyncSession,
        *,
        task_id: uuid.UUID,
        task_in: TaskUpdate,
        current_user: User,
    ) -> Task:
        """
        Update a task.
        Admins and PMs may change anything. A task owner may only change the
        status and hours of a task assigned to them. Clients cannot update.
        """
        task = await self._get_or_404(db, task_id)
        self._assert_can_view(task, current_user)
        return await self._apply_update(
            db, task=task, changes=task_in.model_dump(exclude_unset=True), current_user=current_user
        )

    async def delete_task(
        self,
        db: AsyncSession,
        *,
        task_id: uuid.UUID,
        current_user: User,
    ) -> Task:
        """Soft-delete (archive) a task."""
        task = await self._get_or_404(db, task_id)
        archived = await crud_task.update(db, db_obj=task, obj_in={"status": "archived"})

        await activity_service.log(
            db,
            user_id=current_user.id,
            action="task_archived",
            entity_type="task",
            entity_id=task.id,
        )
        return archived

    async def list_tasks(
        self,
        db: AsyncSession,
        *,
        filters: TaskFilter,
        current_user: User,
    ) -> tuple[list[Task], int]:
        """List tasks visible to the current user with filters applied."""
        return await crud_task.list_with_filters(
            db, filters=filters, **scope_for(current_user).as_filters()
        )

    async def task_stats(
        self,
        db: AsyncSession,
        *,
        current_user: User,
        department_id: uuid.UUID | None = None,
    ) -> TaskStats:
        """Per-status counts plus tasks past their due date that are still open."""
        scope = scope_for(current_user).as_filters()
        by_status = await crud_task.count_by_status(db, department_id=department_id, **scope)
        overdue = await crud_task.count_overdue(
            db, today=date.today(), department_id=department_id, **scope
        )
        return TaskStats(
            total=sum(count for status, count in by_status.items() if status != "archived"),
            by_status=by_status,
            overdue=overdue,
        )

    async def kanban(
        self,
        db: AsyncSession,
        *,
        current_user: User,
        department_id: uuid.UUID | None = None,
        project_id: uuid.UUID | None = None,
        sprint_id: uuid.UUID | None = None,
    ) -> dict[str, list[Task]]:
        if department_id is None and project_id is None and sprint_id is None:
            raise BadRequestException("A department, project or sprint is required for the board")
        tasks = await crud_task.list_for_board(
            db, department_id=department_id, project_id=project_id, sprint_id=sprint_id
        )
        visible = [task for task in tasks if self._can_view(task, current_user)]
        return planning.group_kanban(visible)

    async def move_task(
        self,
        db: AsyncSession,
        *,
        task_id: uuid.UUID,
        move: TaskMove,
        current_user: User,
    ) -> tuple[Task, bool, str]:
        """
        Apply a kanban drop.
        Dropping onto a column or onto another card results in at most one
        status update. Returns (task, changed, previous status).
        """
        task = await self._get_or_404(db, task_id)
        self._assert_can_view(task, current_user)
        previous = task.status

        candidates: list[Task] = []
        if not move.over_id.startswith(planning.COLUMN_DROP_PREFIX):
            try:
                target_id = uuid.UUID(move.over_id)
            except ValueError:
                raise BadRequestException(f"Unknown drop target {move.over_id!r}")
            target = await crud_task.get(db, target_id)
            if target is not None:
                candidates.append(target)

        new_status = planning.resolve_drop_status(move.over_id, candidates)
        if new_status is None:
            raise BadRequestException(f"Unknown drop target {move.over_id!r}")
        if new_status == previous:
            return task, False, previous

        updated = await self._apply_update(
            db, task=task, changes={"status": new_status}, current_user=current_user
        )
        return updated, True, previous

    async def reorder_backlog(
        self,
        db: AsyncSession,
        *,
        reorder: TaskReorder,
        current_user: User,
    ) -> list[Task]:
        """Persist a new backlog order for tasks of one department."""
        tasks = await crud_task.get_many(db, reorder.task_ids)
        by_id = {task.id: task for task in tasks}
        if len(by_id) != len(set(reorder.task_ids)):
            raise NotFoundException("Task")
        if any(task.department_id != reorder.department_id for task in tasks):
            raise BadRequestException("All tasks must belong to the given department")

        for position, task_id in enumerate(reorder.task_ids):
            by_id[task_id].backlog_order = position
        await db.flush()
        for task in tasks:
            await db.refresh(task)

        await activity_service.log(
            db,
            user_id=current_user.id,
            action="backlog_reordered",
            entity_type="department",
            entity_id=reorder.department_id,
            details={"task_ids": reorder.task_ids},
        )
        return [by_id[task_id] for task_id in reorder.task_ids]

    # ── Private helpers ───────────────────────────────────────────────────────

    async def _get_or_404(self, db: AsyncSession, task_id: uuid.UUID) -> Task:
        task = await crud_task.get(db, task_id)
        if task is None:
            raise NotFoundException("Task", str(task_id))
        return task

    async def _apply_update(
        self,
        db: AsyncSession,
        *,
        task: Task,
        changes: dict[str, Any],
        current_user: User,
    ) -> Task:
        self._assert_can_modify(task, current_user, fields=set(changes))

        if "project_id" in changes:
            await self._assert_placement(
                db, department_id=task.department_id, project_id=changes["project_id"], sprint_id=None
            )
        if "size" in changes:
            changes["size_hours"] = self._size_hours(changes["size"])

        old_status = task.status
        old_assignee = task.assignee_id
        new_status = changes.get("status", old_status)
        if new_status != old_status:
            if new_status == "done":
                changes["completed_date"] = datetime.now(timezone.utc)
            elif old_status == "done":
                changes["completed_date"] = None

        updated = await crud_task.update(db, db_obj=task, obj_in=changes)

        await activity_service.log(
            db,
            user_id=current_user.id,
            action="task_status_changed" if new_status != old_status else "task_updated",
            entity_type="task",
            entity_id=task.id,
            details={**changes, "previous_status": old_status},
        )

        new_assignee = changes.get("assignee_id")
        if (
            new_assignee is not None
            and new_assignee != old_assignee
            and new_assignee != current_user.id
        ):
            await notification_service.notify_task_assigned(
                db,
                assignee_id=new_assignee,
                task_id=task.id,
                task_title=updated.title,
                assigner_name=current_user.display_name,
            )

        if new_status != old_status:
            logger.info("Task %s status %s -> %s", task.id, old_status, new_status)
            await notification_service.notify_task_status_changed(
                db,
                user_ids=[u for u in (updated.assignee_id, updated.reporter_id) if u],
                actor_id=current_user.id,
                task_id=task.id,
                task_title=updated.title,
                old_status=old_status,
                new_status=new_status,
                actor_name=current_user.display_name,
            )

        return updated

    async def _assert_placement(
        self,
        db: AsyncSession,
        *,
        department_id: uuid.UUID,
        project_id: uuid.UUID | None,
        sprint_id: uuid.UUID | None,
    ) -> None:
        if project_id is not None:
            project = await crud_project.get(db, project_id)
            if project is None:
                raise NotFoundException("Project", str(project_id))
            if project.department_id != department_id:
                raise BadRequestException("Project does not belong to the task's department")
        if sprint_id is not None:
            sprint = await crud_sprint.get(db, sprint_id)
            if sprint is None:
                raise NotFoundException("Sprint", str(sprint_id))
            if sprint.department_id != department_id:
                raise BadRequestException("Sprint does not belong to the task's department")

    @staticmethod
    def _size_hours(size: str | None) -> float | None:
        return planning.task_size_to_hours(size) if size else None

    def _can_view(self, task: Task, user: User) -> bool:
        return can_see(
            user,
            client_id=task.client_id,
            department_id=task.department_id,
            visibility=task.visibility,
            owner_ids=(task.assignee_id, task.reporter_id),
        )

    def _assert_can_view(self, task: Task, user: User) -> None:
        if not self._can_view(task, user):
            raise NotFoundException("Task", str(task.id))

    def _assert_can_modify(self, task: Task, user: User, *, fields: set[str]) -> None:
        if user.role in UserRole.MANAGERS:
            return
        if user.role == UserRole.TASK_OWNER:
            if task.assignee_id != user.id:
                raise ForbiddenException("You can only update tasks assigned to you")
            disallowed = fields - TASK_OWNER_FIELDS
            if disallowed:
                raise ForbiddenException(
                    "Task owners may only change status and hours; not allowed: "
                    + ", ".join(sorted(disallowed))
                )
            return
        raise ForbiddenException("You do not have permission to update tasks")


task_service = TaskService()
