"""
Sprint service.
Sprints belong to one department. A department runs at most one active
sprint at a time; capacity is fixed in hours when the sprint is created.
"""
from __future__ import annotations

import logging
import uuid
from collections.abc import Sequence

from sqlalchemy.ext.asyncio import AsyncSession

from app.core.exceptions import BadRequestException, ConflictException, NotFoundException
from app.crud.client import crud_client, crud_project_key
from app.crud.department import crud_department
from app.crud.organization import crud_organization
from app.crud.project import crud_project
from app.crud.sprint import crud_sprint
from app.crud.task import CLOSED_STATUSES, crud_task
from app.models.sprint import Sprint
from app.models.task import Task
from app.models.user import User
from app.schemas.sprint import (
    BacklogGroup,
    CapacityBarRead,
    SprintCapacity,
    SprintCreate,
    SprintStats,
    SprintUpdate,
)
from app.schemas.task import TaskRead
from app.services import planning
from app.services.activity_service import activity_service
from app.services.notification_service import notification_service
from app.services.scope import can_see, scope_for

logger = logging.getLogger(__name__)

VELOCITY_WINDOW = 6


class SprintService:

    async def create_sprint(
        self, db: AsyncSession, *, sprint_in: SprintCreate, current_user: User
    ) -> Sprint:
        """
        Create a sprint in ``planning``.
        The end date defaults to ``duration`` weeks of business days and the
        capacity to the department's workstreams at the organization rate.
        """
        department = await crud_department.get(db, sprint_in.department_id)
        if department is None:
            raise NotFoundException("Department", str(sprint_in.department_id))
        client = await crud_client.get(db, department.client_id)
        if client is None:
            raise NotFoundException("Client", str(department.client_id))

        duration = sprint_in.duration or department.sprint_duration
        end_date = sprint_in.end_date or planning.sprint_end_date(sprint_in.start_date, duration)
        try:
            planning.validate_date_range(sprint_in.start_date, end_date)
        except ValueError as exc:
            raise BadRequestException(str(exc))

        overlapping = await crud_sprint.find_overlapping_active(
            db, department_id=department.id, start_date=sprint_in.start_date, end_date=end_date
        )
        if overlapping is not None:
            raise ConflictException(
                f"Sprint dates overlap the active sprint {overlapping.name!r}"
            )

        capacity = sprint_in.total_capacity
        if capacity is None:
            organization = await crud_organization.get_or_create(db)
            capacity = planning.sprint_capacity(
                department.workstream_count, organization.default_workstream_capacity
            )

        data = sprint_in.model_dump(exclude={"end_date", "duration", "total_capacity"})
        data.update(
            team_member_ids=[str(u) for u in sprint_in.team_member_ids],
            client_id=client.id,
            end_date=end_date,
            duration=duration,
            total_capacity=capacity,
            slug=await crud_project_key.next_slug(db, client=client, kind="sprint"),
            created_by=current_user.id,
        )
        sprint = await crud_sprint.create_from_dict(db, obj_in=data)

        await activity_service.log(
            db,
            user_id=current_user.id,
            action="sprint_created",
            entity_type="sprint",
            entity_id=sprint.id,
            details={"name": sprint.name, "slug": sprint.slug, "capacity": capacity},
        )
        logger.info("Sprint created: sprint_id=%s slug=%s", sprint.id, sprint.slug)
        return sprint

    async def get_sprint(
        self, db: AsyncSession, *, sprint_id: uuid.UUID, current_user: User
    ) -> Sprint:
        sprint = await self._get_or_404(db, sprint_id)
        self._assert_can_view(sprint, current_user)
        return sprint

    async def list_sprints(
        self,
        db: AsyncSession,
        *,
        current_user: User,
        page: int,
        size: int,
        department_id: uuid.UUID | None = None,
        status: str | None = None,
    ) -> tuple[list[Sprint], int]:
        scope = scope_for(current_user)
        return await crud_sprint.list_sprints(
            db,
            department_id=department_id,
            status=status,
            client_id=scope.client_id,
            restrict_department_ids=scope.department_ids,
            skip=(page - 1) * size,
            limit=size,
        )

    async def update_sprint(
        self,
        db: AsyncSession,
        *,
        sprint_id: uuid.UUID,
        sprint_in: SprintUpdate,
        current_user: User,
    ) -> Sprint:
        sprint = await self._get_or_404(db, sprint_id)
        if sprint.status in ("complete", "cancelled"):
            raise BadRequestException(f"A {sprint.status} sprint cannot be edited")

        changes = sprint_in.model_dump(exclude_unset=True)
        start = changes.get("start_date", sprint.start_date)
        end = changes.get("end_date", sprint.end_date)
        try:
            planning.validate_date_range(start, end)
        except ValueError as exc:
            raise BadRequestException(str(exc))
        if sprint.status == "active" and ("start_date" in changes or "end_date" in changes):
            overlapping = await crud_sprint.find_overlapping_active(
                db,
                department_id=sprint.department_id,
                start_date=start,
                end_date=end,
                exclude_id=sprint.id,
            )
            if overlapping is not None:
                raise ConflictException(
                    f"Sprint dates overlap the active sprint {overlapping.name!r}"
                )
        if "team_member_ids" in changes:
            changes["team_member_ids"] = [str(u) for u in changes["team_member_ids"]]

        updated = await crud_sprint.update(db, db_obj=sprint, obj_in=changes)
        await activity_service.log(
            db,
            user_id=current_user.id,
            action="sprint_updated",
            entity_type="sprint",
            entity_id=sprint.id,
            details=changes,
        )
        return updated

    async def delete_sprint(
        self, db: AsyncSession, *, sprint_id: uuid.UUID, current_user: User
    ) -> None:
        sprint = await self._get_or_404(db, sprint_id)
        task_count = await crud_sprint.count_tasks(db, sprint.id)
        if task_count:
            raise BadRequestException(
                f"Cannot delete sprint with {task_count} assigned task(s). "
                "Move the tasks back to the backlog first."
            )
        await crud_sprint.remove(db, id=sprint.id)
        await activity_service.log(
            db,
            user_id=current_user.id,
            action="sprint_deleted",
            entity_type="sprint",
            entity_id=sprint_id,
            details={"name": sprint.name, "slug": sprint.slug},
        )
        logger.info("Sprint deleted: sprint_id=%s", sprint_id)

    # ── Lifecycle ─────────────────────────────────────────────────────────────

    async def start_sprint(
        self, db: AsyncSession, *, sprint_id: uuid.UUID, current_user: User
    ) -> Sprint:
        sprint = await self._get_or_404(db, sprint_id)
        if sprint.status != "planning":
            raise BadRequestException(
                f"Only sprints in planning can be started (current status: {sprint.status})"
            )
        active = await crud_sprint.get_active(db, sprint.department_id)
        if active is not None:
            raise ConflictException(
                f"Sprint {active.name!r} is already active for this department"
            )

        started = await crud_sprint.update(db, db_obj=sprint, obj_in={"status": "active"})
        await activity_service.log(
            db,
            user_id=current_user.id,
            action="sprint_started",
            entity_type="sprint",
            entity_id=sprint.id,
        )
        await notification_service.notify_sprint_event(
            db,
            user_ids=self._audience(started),
            actor_id=current_user.id,
            sprint_id=started.id,
            sprint_name=started.name,
            started=True,
        )
        logger.info("Sprint %s started", sprint.id)
        return started

    async def complete_sprint(
        self, db: AsyncSession, *, sprint_id: uuid.UUID, current_user: User
    ) -> Sprint:
        """Close an active sprint. Velocity is the hours credited for its done tasks."""
        sprint = await self._get_or_404(db, sprint_id)
        if sprint.status != "active":
            raise BadRequestException(
                f"Only active sprints can be completed (current status: {sprint.status})"
            )

        tasks = await crud_task.list_by_sprint(db, sprint.id)
        completed = sum(
            planning.completed_task_hours(task) for task in tasks if task.status == "done"
        )
        closed = await crud_sprint.update(
            db,
            db_obj=sprint,
            obj_in={"status": "complete", "completed_hours": completed, "actual_velocity": completed},
        )
        await activity_service.log(
            db,
            user_id=current_user.id,
            action="sprint_completed",
            entity_type="sprint",
            entity_id=sprint.id,
            details={"velocity": completed, "open_tasks": sum(t.status != "done" for t in tasks)},
        )
        await notification_service.notify_sprint_event(
            db,
            user_ids=self._audience(closed),
            actor_id=current_user.id,
            sprint_id=closed.id,
            sprint_name=closed.name,
            started=False,
        )
        logger.info("Sprint %s completed with velocity %.1f", sprint.id, completed)
        return closed

    # ── Planning ──────────────────────────────────────────────────────────────

    async def capacity(
        self, db: AsyncSession, *, sprint_id: uuid.UUID, current_user: User
    ) -> SprintCapacity:
        sprint = await self.get_sprint(db, sprint_id=sprint_id, current_user=current_user)
        tasks = await crud_task.list_by_sprint(db, sprint.id)
        bar = planning.capacity_bar(planning.committed_hours(tasks), sprint.total_capacity)
        return SprintCapacity(
            sprint_id=sprint.id,
            task_count=len(tasks),
            bar=CapacityBarRead.model_validate(bar),
        )

    async def assign_tasks(
        self,
        db: AsyncSession,
        *,
        sprint_id: uuid.UUID,
        task_ids: Sequence[uuid.UUID],
        current_user: User,
    ) -> list[Task]:
        """Pull backlog tasks into a sprint."""
        sprint = await self._get_or_404(db, sprint_id)
        if sprint.status in ("complete", "cancelled"):
            raise BadRequestException(f"Tasks cannot be added to a {sprint.status} sprint")

        tasks = await self._load_tasks(db, task_ids)
        for task in tasks:
            if task.department_id != sprint.department_id:
                raise BadRequestException(
                    f"Task {task.slug or task.id} belongs to another department"
                )
            if task.status in CLOSED_STATUSES:
                raise BadRequestException(
                    f"Task {task.slug or task.id} is {task.status} and cannot be planned"
                )
        return await self._set_sprint(
            db, tasks, sprint.id, current_user, sprint=sprint, action="sprint_tasks_added"
        )

    async def unassign_tasks(
        self,
        db: AsyncSession,
        *,
        sprint_id: uuid.UUID,
        task_ids: Sequence[uuid.UUID],
        current_user: User,
    ) -> list[Task]:
        """Send tasks of a sprint back to the department backlog."""
        sprint = await self._get_or_404(db, sprint_id)
        tasks = await self._load_tasks(db, task_ids)
        if any(task.sprint_id != sprint.id for task in tasks):
            raise BadRequestException("All tasks must belong to this sprint")
        return await self._set_sprint(
            db, tasks, None, current_user, sprint=sprint, action="sprint_tasks_removed"
        )

    async def backlog(
        self, db: AsyncSession, *, department_id: uuid.UUID, current_user: User
    ) -> list[BacklogGroup]:
        """Open, unplanned tasks of a department grouped by project, highest priority first."""
        department = await crud_department.get(db, department_id)
        if department is None:
            raise NotFoundException("Department", str(department_id))

        tasks = [
            task
            for task in await crud_task.list_backlog(db, department.id)
            if can_see(
                current_user,
                client_id=task.client_id,
                department_id=task.department_id,
                visibility=task.visibility,
                owner_ids=(task.assignee_id, task.reporter_id),
            )
        ]
        grouped: dict[uuid.UUID | None, list[Task]] = {}
        for task in tasks:
            grouped.setdefault(task.project_id, []).append(task)

        project_ids = [pid for pid in grouped if pid is not None]
        titles = {p.id: p.title for p in await crud_project.get_many(db, project_ids)}

        groups = [
            BacklogGroup(
                project_id=project_id,
                project_title=titles.get(project_id) if project_id else None,
                tasks=[TaskRead.model_validate(t) for t in planning.sort_by_priority(items)],
                total_hours=planning.committed_hours(items),
            )
            for project_id, items in grouped.items()
        ]
        # Unassigned tasks last
        groups.sort(key=lambda g: (g.project_id is None, g.project_title or ""))
        return groups

    async def sprint_stats(
        self,
        db: AsyncSession,
        *,
        department_id: uuid.UUID | None,
        current_user: User,
    ) -> SprintStats:
        scope = scope_for(current_user)
        filters = {
            "department_id": department_id,
            "client_id": scope.client_id,
            "restrict_department_ids": scope.department_ids,
        }
        by_status = await crud_sprint.count_by_status(db, **filters)

        recent = await crud_sprint.recent_completed(db, limit=VELOCITY_WINDOW, **filters)
        average = (
            round(sum(s.actual_velocity for s in recent) / len(recent), 1) if recent else 0.0
        )

        utilization = None
        if department_id is not None:
            active = await crud_sprint.get_active(db, department_id)
            if active is not None and self._can_view(active, current_user):
                tasks = await crud_task.list_by_sprint(db, active.id)
                utilization = planning.capacity_bar(
                    planning.committed_hours(tasks), active.total_capacity
                ).percentage

        return SprintStats(
            department_id=department_id,
            total=sum(by_status.values()),
            active=by_status.get("active", 0),
            completed=by_status.get("complete", 0),
            average_velocity=average,
            current_utilization=utilization,
        )

    async def kanban(
        self, db: AsyncSession, *, sprint_id: uuid.UUID, current_user: User
    ) -> dict[str, list[Task]]:
        sprint = await self.get_sprint(db, sprint_id=sprint_id, current_user=current_user)
        return planning.group_kanban(await crud_task.list_by_sprint(db, sprint.id))

    # ── Private helpers ───────────────────────────────────────────────────────

    async def _get_or_404(self, db: AsyncSession, sprint_id: uuid.UUID) -> Sprint:
        sprint = await crud_sprint.get(db, sprint_id)
        if sprint is None:
            raise NotFoundException("Sprint", str(sprint_id))
        return sprint

    async def _load_tasks(
        self, db: AsyncSession, task_ids: Sequence[uuid.UUID]
    ) -> list[Task]:
        tasks = await crud_task.get_many(db, task_ids)
        if len(tasks) != len(set(task_ids)):
            raise NotFoundException("Task")
        return tasks

    async def _set_sprint(
        self,
        db: AsyncSession,
        tasks: list[Task],
        sprint_id: uuid.UUID | None,
        current_user: User,
        *,
        sprint: Sprint,
        action: str,
    ) -> list[Task]:
        for task in tasks:
            task.sprint_id = sprint_id
        await db.flush()
        for task in tasks:
            await db.refresh(task)

        await activity_service.log(
            db,
            user_id=current_user.id,
            action=action,
            entity_type="sprint",
            entity_id=sprint.id,
            details={"task_ids": [task.id for task in tasks]},
        )
        return tasks

    @staticmethod
    def _audience(sprint: Sprint) -> list[uuid.UUID]:
        members = [uuid.UUID(member) for member in sprint.team_member_ids or []]
        if sprint.sprint_master_id is not None:
            members.append(sprint.sprint_master_id)
        return members

    def _can_view(self, sprint: Sprint, user: User) -> bool:
        members = tuple(uuid.UUID(m) for m in sprint.team_member_ids or [])
        return can_see(
            user,
            client_id=sprint.client_id,
            department_id=sprint.department_id,
            visibility="client",
            owner_ids=(sprint.sprint_master_id, *members),
        )

    def _assert_can_view(self, sprint: Sprint, user: User) -> None:
        if not self._can_view(sprint, user):
            raise NotFoundException("Sprint", str(sprint.id))


sprint_service = SprintService()
