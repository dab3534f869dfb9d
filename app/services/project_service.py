"""
Project service.
Creating a project mints its KEY-P-n slug, creates its brief document and
tells the project manager. Visibility follows the caller's role.
"""
from __future__ import annotations

import logging
import uuid

from sqlalchemy.ext.asyncio import AsyncSession

from app.core.exceptions import BadRequestException, ForbiddenException, NotFoundException
from app.crud.client import crud_client, crud_project_key
from app.crud.department import crud_department
from app.crud.project import crud_project
from app.models.document import Document, DocumentPage
from app.models.project import Project
from app.models.user import User, UserRole
from app.schemas.project import ProjectCreate, ProjectStats, ProjectUpdate
from app.services.activity_service import activity_service
from app.services.notification_service import notification_service
from app.services.scope import can_see, scope_for

logger = logging.getLogger(__name__)

DEFAULT_PAGE_TITLE = "Overview"


class ProjectService:

    async def create_project(
        self, db: AsyncSession, *, project_in: ProjectCreate, current_user: User
    ) -> Project:
        client = await crud_client.get(db, project_in.client_id)
        if client is None:
            raise NotFoundException("Client", str(project_in.client_id))
        department = await crud_department.get(db, project_in.department_id)
        if department is None:
            raise NotFoundException("Department", str(project_in.department_id))
        if department.client_id != client.id:
            raise BadRequestException("Department does not belong to the selected client")

        slug = await crud_project_key.next_slug(db, client=client, kind="project")
        data = project_in.model_dump(mode="json")
        data.update(
            client_id=client.id,
            department_id=department.id,
            start_date=project_in.start_date,
            target_due_date=project_in.target_due_date,
            project_manager_id=project_in.project_manager_id,
            slug=slug,
            created_by=current_user.id,
        )
        project = await crud_project.create_from_dict(db, obj_in=data)

        document = Document(
            title=project.title,
            document_type="project_brief",
            project_id=project.id,
            client_id=client.id,
            department_id=department.id,
            owner_id=current_user.id,
            client_visible=project.visibility in ("client", "organization"),
        )
        db.add(document)
        await db.flush()
        db.add(DocumentPage(document_id=document.id, title=DEFAULT_PAGE_TITLE, order=0))
        await db.flush()

        await activity_service.log(
            db,
            user_id=current_user.id,
            action="project_created",
            entity_type="project",
            entity_id=project.id,
            details={"title": project.title, "slug": slug, "document_id": document.id},
        )
        if project.project_manager_id and project.project_manager_id != current_user.id:
            await notification_service.notify_project_created(
                db,
                manager_id=project.project_manager_id,
                project_id=project.id,
                project_title=project.title,
                creator_name=current_user.display_name,
            )
        logger.info("Project created: project_id=%s slug=%s", project.id, slug)
        return await self._get_or_404(db, project.id)

    async def get_project(
        self, db: AsyncSession, *, project_id: uuid.UUID, current_user: User
    ) -> Project:
        project = await self._get_or_404(db, project_id)
        self._assert_can_view(project, current_user)
        return project

    async def list_projects(
        self,
        db: AsyncSession,
        *,
        current_user: User,
        page: int,
        size: int,
        client_id: uuid.UUID | None = None,
        department_id: uuid.UUID | None = None,
        status: str | None = None,
        search: str | None = None,
    ) -> tuple[list[Project], int]:
        return await crud_project.list_projects(
            db,
            client_id=client_id,
            department_id=department_id,
            status=status,
            search=search,
            skip=(page - 1) * size,
            limit=size,
            **scope_for(current_user).as_filters(),
        )

    async def update_project(
        self,
        db: AsyncSession,
        *,
        project_id: uuid.UUID,
        project_in: ProjectUpdate,
        current_user: User,
    ) -> Project:
        project = await self._get_or_404(db, project_id)
        self._assert_can_view(project, current_user)
        self._assert_can_modify(project, current_user)

        changes = project_in.model_dump(exclude_unset=True)
        start = changes.get("start_date", project.start_date)
        due = changes.get("target_due_date", project.target_due_date)
        if start is not None and due is not None and due <= start:
            raise BadRequestException("Target due date must be after start date")
        if "team_member_ids" in changes:
            changes["team_member_ids"] = [str(u) for u in changes["team_member_ids"]]

        old_status = project.status
        await crud_project.update(db, db_obj=project, obj_in=changes)
        await activity_service.log(
            db,
            user_id=current_user.id,
            action="project_updated",
            entity_type="project",
            entity_id=project.id,
            details=changes,
        )
        if "status" in changes and changes["status"] != old_status:
            logger.info(
                "Project %s status %s -> %s", project.id, old_status, changes["status"]
            )
        return await self._get_or_404(db, project.id)

    async def delete_project(
        self, db: AsyncSession, *, project_id: uuid.UUID, current_user: User
    ) -> None:
        """Delete a project with its document; its tasks stay but lose the link."""
        project = await self._get_or_404(db, project_id)
        unlinked = await crud_project.unlink_tasks(db, project.id)
        await db.delete(project)
        await db.flush()

        await activity_service.log(
            db,
            user_id=current_user.id,
            action="project_deleted",
            entity_type="project",
            entity_id=project_id,
            details={"title": project.title, "unlinked_tasks": unlinked},
        )
        logger.info("Project deleted: project_id=%s unlinked_tasks=%d", project_id, unlinked)

    async def project_stats(
        self, db: AsyncSession, *, project_id: uuid.UUID, current_user: User
    ) -> ProjectStats:
        project = await self.get_project(db, project_id=project_id, current_user=current_user)
        by_status = await crud_project.task_counts(db, project.id)
        total = sum(count for status, count in by_status.items() if status != "archived")
        completed = by_status.get("done", 0)
        return ProjectStats(
            project_id=project.id,
            total_tasks=total,
            completed_tasks=completed,
            completion_rate=round(completed / total * 100, 1) if total else 0.0,
            tasks_by_status=by_status,
        )

    # ── Private helpers ───────────────────────────────────────────────────────

    async def _get_or_404(self, db: AsyncSession, project_id: uuid.UUID) -> Project:
        project = await crud_project.get_with_document(db, project_id)
        if project is None:
            raise NotFoundException("Project", str(project_id))
        return project

    def _assert_can_view(self, project: Project, user: User) -> None:
        visible = can_see(
            user,
            client_id=project.client_id,
            department_id=project.department_id,
            visibility=project.visibility,
            owner_ids=(project.project_manager_id, project.created_by),
        )
        if not visible:
            # Hidden projects are reported as missing
            raise NotFoundException("Project", str(project.id))

    def _assert_can_modify(self, project: Project, user: User) -> None:
        if user.role in UserRole.MANAGERS or user.id == project.project_manager_id:
            return
        raise ForbiddenException(
            "Only admins, PMs or the project manager can update this project"
        )


project_service = ProjectService()
