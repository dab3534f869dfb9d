"""001_initial_tables

Revision ID: 001
Revises:
Create Date: 2026-10-18 00:00:00.000000

Creates all initial tables for strideOS:
  - organizations
  - clients, project_keys
  - users
  - departments
  - projects
  - documents, document_pages, document_sessions
  - sprints
  - tasks
  - comment_threads, comments
  - notifications
  - activity_logs
  - attachments
"""
from __future__ import annotations

import sqlalchemy as sa
from alembic import op
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision: str = "001"
down_revision: str | None = None
branch_labels: str | None = None
depends_on: str | None = None

UUID = postgresql.UUID(as_uuid=True)
JSONB = postgresql.JSONB()


def _enum(name: str, *values: str) -> postgresql.ENUM:
    return postgresql.ENUM(*values, name=name, create_type=False)


ENUMS: dict[str, postgresql.ENUM] = {
    "user_role_enum": _enum("user_role_enum", "admin", "pm", "task_owner", "client"),
    "user_status_enum": _enum("user_status_enum", "active", "inactive", "invited"),
    "client_status_enum": _enum("client_status_enum", "active", "inactive", "archived"),
    "project_status_enum": _enum(
        "project_status_enum",
        "new", "planning", "ready_for_work", "in_progress",
        "client_review", "client_approved", "complete",
    ),
    "visibility_enum": _enum("visibility_enum", "private", "department", "client", "organization"),
    "document_type_enum": _enum(
        "document_type_enum",
        "project_brief", "meeting_notes", "wiki_article", "resource_doc", "retrospective", "blank",
    ),
    "document_status_enum": _enum("document_status_enum", "draft", "published", "archived"),
    "presence_status_enum": _enum("presence_status_enum", "active", "typing", "idle"),
    "sprint_status_enum": _enum(
        "sprint_status_enum", "planning", "active", "review", "complete", "cancelled"
    ),
    "task_status_enum": _enum(
        "task_status_enum", "todo", "in_progress", "review", "done", "archived"
    ),
    "task_priority_enum": _enum("task_priority_enum", "low", "medium", "high", "urgent"),
    "comment_entity_type_enum": _enum(
        "comment_entity_type_enum", "document_block", "task", "project", "sprint"
    ),
    "notification_type_enum": _enum(
        "notification_type_enum",
        "comment_created", "task_assigned", "task_status_changed", "document_updated",
        "sprint_started", "sprint_completed", "mention", "project_created", "general",
    ),
    "notification_priority_enum": _enum(
        "notification_priority_enum", "low", "medium", "high", "urgent"
    ),
    "attachment_entity_type_enum": _enum(
        "attachment_entity_type_enum", "task", "comment", "project", "document"
    ),
}


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.text("now()"),
        ),
        sa.Column(
            "updated_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.text("now()"),
        ),
    ]


def _fk(table: str, column: str, target: str, ondelete: str) -> sa.ForeignKeyConstraint:
    return sa.ForeignKeyConstraint(
        [column], [f"{target}.id"],
        name=f"fk_{table}_{column}_{target}",
        ondelete=ondelete,
    )


def upgrade() -> None:
    # ── Enums ─────────────────────────────────────────────────────────────────
    for enum in ENUMS.values():
        enum.create(op.get_bind(), checkfirst=True)

    # ── organizations ─────────────────────────────────────────────────────────
    op.create_table(
        "organizations",
        sa.Column("id", UUID, nullable=False),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("default_workstream_capacity", sa.Integer(), nullable=False, server_default="32"),
        sa.Column("default_sprint_duration", sa.Integer(), nullable=False, server_default="2"),
        sa.Column("email_from_name", sa.String(255), nullable=True),
        sa.Column("primary_color", sa.String(20), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id", name="pk_organizations"),
    )

    # ── clients ───────────────────────────────────────────────────────────────
    op.create_table(
        "clients",
        sa.Column("id", UUID, nullable=False),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("website", sa.String(500), nullable=True),
        sa.Column("is_internal", sa.Boolean(), nullable=False, server_default="false"),
        sa.Column("project_key", sa.String(8), nullable=True),
        sa.Column(
            "status", ENUMS["client_status_enum"], nullable=False, server_default="active"
        ),
        sa.Column("created_by", UUID, nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id", name="pk_clients"),
        sa.UniqueConstraint("name", name="uq_clients_name"),
        sa.UniqueConstraint("project_key", name="uq_clients_project_key"),
    )
    op.create_index("ix_clients_status", "clients", ["status"])

    op.create_table(
        "project_keys",
        sa.Column("id", UUID, nullable=False),
        sa.Column("key", sa.String(8), nullable=False),
        sa.Column("client_id", UUID, nullable=False),
        sa.Column("last_project_number", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("last_task_number", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("last_sprint_number", sa.Integer(), nullable=False, server_default="0"),
        *_timestamps(),
        _fk("project_keys", "client_id", "clients", "CASCADE"),
        sa.PrimaryKeyConstraint("id", name="pk_project_keys"),
        sa.UniqueConstraint("key", name="uq_project_keys_key"),
    )
    op.create_index("ix_project_keys_client_id", "project_keys", ["client_id"])

    # ── users ─────────────────────────────────────────────────────────────────
    op.create_table(
        "users",
        sa.Column("id", UUID, nullable=False),
        sa.Column("email", sa.String(255), nullable=False),
        sa.Column("name", sa.String(255), nullable=True),
        sa.Column("hashed_password", sa.String(255), nullable=True),
        sa.Column("role", ENUMS["user_role_enum"], nullable=False, server_default="task_owner"),
        sa.Column("status", ENUMS["user_status_enum"], nullable=False, server_default="active"),
        sa.Column("client_id", UUID, nullable=True),
        sa.Column("department_ids", JSONB, nullable=False, server_default="[]"),
        sa.Column("job_title", sa.String(255), nullable=True),
        sa.Column("avatar_url", sa.String(500), nullable=True),
        sa.Column("refresh_token_hash", sa.String(64), nullable=True),
        sa.Column("invite_token_hash", sa.String(64), nullable=True),
        *_timestamps(),
        _fk("users", "client_id", "clients", "SET NULL"),
        sa.PrimaryKeyConstraint("id", name="pk_users"),
    )
    op.create_index("ix_users_email", "users", ["email"], unique=True)
    op.create_index("ix_users_role", "users", ["role"])
    op.create_index("ix_users_status", "users", ["status"])
    op.create_index("ix_users_client_id", "users", ["client_id"])

    # ── departments ───────────────────────────────────────────────────────────
    op.create_table(
        "departments",
        sa.Column("id", UUID, nullable=False),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("client_id", UUID, nullable=False),
        sa.Column("workstream_count", sa.Integer(), nullable=False, server_default="1"),
        sa.Column("workstream_capacity", sa.Integer(), nullable=False, server_default="32"),
        sa.Column("sprint_duration", sa.Integer(), nullable=False, server_default="2"),
        sa.Column("workstream_labels", JSONB, nullable=False, server_default="[]"),
        sa.Column("working_hours", JSONB, nullable=True),
        sa.Column("lead_id", UUID, nullable=True),
        sa.Column("primary_contact_id", UUID, nullable=True),
        sa.Column("team_member_ids", JSONB, nullable=False, server_default="[]"),
        *_timestamps(),
        _fk("departments", "client_id", "clients", "CASCADE"),
        _fk("departments", "lead_id", "users", "SET NULL"),
        _fk("departments", "primary_contact_id", "users", "SET NULL"),
        sa.PrimaryKeyConstraint("id", name="pk_departments"),
        sa.UniqueConstraint("client_id", "name", name="uq_departments_client_id_name"),
    )
    op.create_index("ix_departments_client_id", "departments", ["client_id"])

    # ── projects ──────────────────────────────────────────────────────────────
    op.create_table(
        "projects",
        sa.Column("id", UUID, nullable=False),
        sa.Column("title", sa.String(500), nullable=False),
        sa.Column("slug", sa.String(40), nullable=True),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("client_id", UUID, nullable=False),
        sa.Column("department_id", UUID, nullable=False),
        sa.Column("status", ENUMS["project_status_enum"], nullable=False, server_default="new"),
        sa.Column(
            "visibility", ENUMS["visibility_enum"], nullable=False, server_default="department"
        ),
        sa.Column("start_date", sa.Date(), nullable=True),
        sa.Column("target_due_date", sa.Date(), nullable=True),
        sa.Column("project_manager_id", UUID, nullable=True),
        sa.Column("team_member_ids", JSONB, nullable=False, server_default="[]"),
        sa.Column("created_by", UUID, nullable=True),
        *_timestamps(),
        _fk("projects", "client_id", "clients", "CASCADE"),
        _fk("projects", "department_id", "departments", "CASCADE"),
        _fk("projects", "project_manager_id", "users", "SET NULL"),
        _fk("projects", "created_by", "users", "SET NULL"),
        sa.PrimaryKeyConstraint("id", name="pk_projects"),
        sa.UniqueConstraint("slug", name="uq_projects_slug"),
    )
    op.create_index("ix_projects_client_id", "projects", ["client_id"])
    op.create_index("ix_projects_department_id", "projects", ["department_id"])
    op.create_index("ix_projects_status", "projects", ["status"])

    # ── documents ─────────────────────────────────────────────────────────────
    op.create_table(
        "documents",
        sa.Column("id", UUID, nullable=False),
        sa.Column("title", sa.String(500), nullable=False),
        sa.Column(
            "document_type", ENUMS["document_type_enum"], nullable=False, server_default="blank"
        ),
        sa.Column("status", ENUMS["document_status_enum"], nullable=False, server_default="draft"),
        sa.Column("project_id", UUID, nullable=True),
        sa.Column("client_id", UUID, nullable=True),
        sa.Column("department_id", UUID, nullable=True),
        sa.Column("owner_id", UUID, nullable=True),
        sa.Column("share_id", sa.String(32), nullable=False),
        sa.Column("client_visible", sa.Boolean(), nullable=False, server_default="false"),
        *_timestamps(),
        _fk("documents", "project_id", "projects", "CASCADE"),
        _fk("documents", "client_id", "clients", "SET NULL"),
        _fk("documents", "department_id", "departments", "SET NULL"),
        _fk("documents", "owner_id", "users", "SET NULL"),
        sa.PrimaryKeyConstraint("id", name="pk_documents"),
        sa.UniqueConstraint("project_id", name="uq_documents_project_id"),
        sa.UniqueConstraint("share_id", name="uq_documents_share_id"),
    )
    op.create_index("ix_documents_client_id", "documents", ["client_id"])
    op.create_index("ix_documents_status", "documents", ["status"])

    op.create_table(
        "document_pages",
        sa.Column("id", UUID, nullable=False),
        sa.Column("document_id", UUID, nullable=False),
        sa.Column("parent_page_id", UUID, nullable=True),
        sa.Column("title", sa.String(500), nullable=False),
        sa.Column("order", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("doc_key", sa.String(64), nullable=False),
        *_timestamps(),
        _fk("document_pages", "document_id", "documents", "CASCADE"),
        _fk("document_pages", "parent_page_id", "document_pages", "CASCADE"),
        sa.PrimaryKeyConstraint("id", name="pk_document_pages"),
        sa.UniqueConstraint("doc_key", name="uq_document_pages_doc_key"),
    )
    op.create_index("ix_document_pages_document_id", "document_pages", ["document_id"])

    op.create_table(
        "document_sessions",
        sa.Column("id", UUID, nullable=False),
        sa.Column("document_id", UUID, nullable=False),
        sa.Column("user_id", UUID, nullable=False),
        sa.Column("status", ENUMS["presence_status_enum"], nullable=False, server_default="active"),
        sa.Column("cursor_position", JSONB, nullable=True),
        sa.Column("user_agent", sa.String(500), nullable=True),
        sa.Column("last_seen", sa.DateTime(timezone=True), nullable=False),
        sa.Column(
            "joined_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.text("now()"),
        ),
        _fk("document_sessions", "document_id", "documents", "CASCADE"),
        _fk("document_sessions", "user_id", "users", "CASCADE"),
        sa.PrimaryKeyConstraint("id", name="pk_document_sessions"),
    )
    op.create_index("ix_document_sessions_document_id", "document_sessions", ["document_id"])
    op.create_index(
        "ix_document_sessions_user_document",
        "document_sessions",
        ["user_id", "document_id"],
        unique=True,
    )

    # ── sprints ───────────────────────────────────────────────────────────────
    op.create_table(
        "sprints",
        sa.Column("id", UUID, nullable=False),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("slug", sa.String(40), nullable=True),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("client_id", UUID, nullable=False),
        sa.Column("department_id", UUID, nullable=False),
        sa.Column("start_date", sa.Date(), nullable=False),
        sa.Column("end_date", sa.Date(), nullable=False),
        sa.Column("duration", sa.Integer(), nullable=False, server_default="2"),
        sa.Column("status", ENUMS["sprint_status_enum"], nullable=False, server_default="planning"),
        sa.Column("total_capacity", sa.Float(), nullable=False, server_default="0"),
        sa.Column("completed_hours", sa.Float(), nullable=False, server_default="0"),
        sa.Column("actual_velocity", sa.Float(), nullable=False, server_default="0"),
        sa.Column("velocity_target", sa.Float(), nullable=True),
        sa.Column("goals", JSONB, nullable=False, server_default="[]"),
        sa.Column("sprint_master_id", UUID, nullable=True),
        sa.Column("team_member_ids", JSONB, nullable=False, server_default="[]"),
        sa.Column("created_by", UUID, nullable=True),
        *_timestamps(),
        _fk("sprints", "client_id", "clients", "CASCADE"),
        _fk("sprints", "department_id", "departments", "CASCADE"),
        _fk("sprints", "sprint_master_id", "users", "SET NULL"),
        _fk("sprints", "created_by", "users", "SET NULL"),
        sa.PrimaryKeyConstraint("id", name="pk_sprints"),
        sa.UniqueConstraint("slug", name="uq_sprints_slug"),
    )
    op.create_index("ix_sprints_client_id", "sprints", ["client_id"])
    op.create_index("ix_sprints_department_status", "sprints", ["department_id", "status"])
    op.create_index("ix_sprints_start_date", "sprints", ["start_date"])

    # ── tasks ─────────────────────────────────────────────────────────────────
    op.create_table(
        "tasks",
        sa.Column("id", UUID, nullable=False),
        sa.Column("title", sa.String(500), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("slug", sa.String(40), nullable=True),
        sa.Column("client_id", UUID, nullable=False),
        sa.Column("department_id", UUID, nullable=False),
        sa.Column("project_id", UUID, nullable=True),
        sa.Column("sprint_id", UUID, nullable=True),
        sa.Column("parent_task_id", UUID, nullable=True),
        sa.Column("status", ENUMS["task_status_enum"], nullable=False, server_default="todo"),
        sa.Column(
            "priority", ENUMS["task_priority_enum"], nullable=False, server_default="medium"
        ),
        sa.Column("size", sa.String(20), nullable=True),
        sa.Column("size_hours", sa.Float(), nullable=True),
        sa.Column("estimated_hours", sa.Float(), nullable=True),
        sa.Column("actual_hours", sa.Float(), nullable=True),
        sa.Column("due_date", sa.Date(), nullable=True),
        sa.Column("completed_date", sa.DateTime(timezone=True), nullable=True),
        sa.Column("assignee_id", UUID, nullable=True),
        sa.Column("reporter_id", UUID, nullable=True),
        sa.Column("backlog_order", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("labels", JSONB, nullable=False, server_default="[]"),
        sa.Column(
            "visibility", ENUMS["visibility_enum"], nullable=False, server_default="department"
        ),
        *_timestamps(),
        _fk("tasks", "client_id", "clients", "CASCADE"),
        _fk("tasks", "department_id", "departments", "CASCADE"),
        _fk("tasks", "project_id", "projects", "SET NULL"),
        _fk("tasks", "sprint_id", "sprints", "SET NULL"),
        _fk("tasks", "parent_task_id", "tasks", "SET NULL"),
        _fk("tasks", "assignee_id", "users", "SET NULL"),
        _fk("tasks", "reporter_id", "users", "SET NULL"),
        sa.PrimaryKeyConstraint("id", name="pk_tasks"),
        sa.UniqueConstraint("slug", name="uq_tasks_slug"),
    )
    op.create_index("ix_tasks_client_id", "tasks", ["client_id"])
    op.create_index("ix_tasks_department_id", "tasks", ["department_id"])
    op.create_index("ix_tasks_project_id", "tasks", ["project_id"])
    op.create_index("ix_tasks_sprint_id", "tasks", ["sprint_id"])
    op.create_index("ix_tasks_assignee_id", "tasks", ["assignee_id"])
    op.create_index("ix_tasks_status", "tasks", ["status"])
    op.create_index("ix_tasks_due_date", "tasks", ["due_date"])
    op.create_index("ix_tasks_department_backlog", "tasks", ["department_id", "backlog_order"])

    # ── comments ──────────────────────────────────────────────────────────────
    op.create_table(
        "comment_threads",
        sa.Column("id", UUID, nullable=False),
        sa.Column("entity_type", ENUMS["comment_entity_type_enum"], nullable=False),
        sa.Column("entity_id", UUID, nullable=False),
        sa.Column("block_id", sa.String(100), nullable=True),
        sa.Column("resolved", sa.Boolean(), nullable=False, server_default="false"),
        sa.Column("resolved_by", UUID, nullable=True),
        sa.Column("resolved_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("creator_id", UUID, nullable=True),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.text("now()"),
        ),
        _fk("comment_threads", "resolved_by", "users", "SET NULL"),
        _fk("comment_threads", "creator_id", "users", "SET NULL"),
        sa.PrimaryKeyConstraint("id", name="pk_comment_threads"),
    )
    op.create_index(
        "ix_comment_threads_entity", "comment_threads", ["entity_type", "entity_id"]
    )

    op.create_table(
        "comments",
        sa.Column("id", UUID, nullable=False),
        sa.Column("thread_id", UUID, nullable=False),
        sa.Column("parent_comment_id", UUID, nullable=True),
        sa.Column("content", sa.Text(), nullable=False),
        sa.Column("author_id", UUID, nullable=False),
        sa.Column("mentions", JSONB, nullable=False, server_default="[]"),
        sa.Column("is_deleted", sa.Boolean(), nullable=False, server_default="false"),
        *_timestamps(),
        _fk("comments", "thread_id", "comment_threads", "CASCADE"),
        _fk("comments", "parent_comment_id", "comments", "SET NULL"),
        _fk("comments", "author_id", "users", "CASCADE"),
        sa.PrimaryKeyConstraint("id", name="pk_comments"),
    )
    op.create_index("ix_comments_thread_id", "comments", ["thread_id"])
    op.create_index("ix_comments_author_id", "comments", ["author_id"])

    # ── notifications ─────────────────────────────────────────────────────────
    op.create_table(
        "notifications",
        sa.Column("id", UUID, nullable=False),
        sa.Column("user_id", UUID, nullable=False),
        sa.Column(
            "type", ENUMS["notification_type_enum"], nullable=False, server_default="general"
        ),
        sa.Column("title", sa.String(255), nullable=False),
        sa.Column("message", sa.String(1000), nullable=False),
        sa.Column(
            "priority",
            ENUMS["notification_priority_enum"],
            nullable=False,
            server_default="medium",
        ),
        sa.Column("is_read", sa.Boolean(), nullable=False, server_default="false"),
        sa.Column("reference_type", sa.String(50), nullable=True),
        sa.Column("reference_id", UUID, nullable=True),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.text("now()"),
        ),
        _fk("notifications", "user_id", "users", "CASCADE"),
        sa.PrimaryKeyConstraint("id", name="pk_notifications"),
    )
    op.create_index("ix_notifications_user_id", "notifications", ["user_id"])
    op.create_index("ix_notifications_user_is_read", "notifications", ["user_id", "is_read"])
    op.create_index("ix_notifications_created_at", "notifications", ["created_at"])

    # ── activity_logs ─────────────────────────────────────────────────────────
    op.create_table(
        "activity_logs",
        sa.Column("id", UUID, nullable=False),
        sa.Column("user_id", UUID, nullable=True),
        sa.Column("action", sa.String(200), nullable=False),
        sa.Column("entity_type", sa.String(100), nullable=False),
        sa.Column("entity_id", UUID, nullable=False),
        sa.Column("details", JSONB, nullable=True),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.text("now()"),
        ),
        _fk("activity_logs", "user_id", "users", "SET NULL"),
        sa.PrimaryKeyConstraint("id", name="pk_activity_logs"),
    )
    op.create_index("ix_activity_logs_user_id", "activity_logs", ["user_id"])
    op.create_index("ix_activity_logs_entity", "activity_logs", ["entity_type", "entity_id"])
    op.create_index("ix_activity_logs_created_at", "activity_logs", ["created_at"])

    # ── attachments ───────────────────────────────────────────────────────────
    op.create_table(
        "attachments",
        sa.Column("id", UUID, nullable=False),
        sa.Column("filename", sa.String(500), nullable=False),
        sa.Column("storage_path", sa.String(2000), nullable=False),
        sa.Column("size", sa.BigInteger(), nullable=False),
        sa.Column("mime_type", sa.String(200), nullable=False),
        sa.Column("entity_type", ENUMS["attachment_entity_type_enum"], nullable=False),
        sa.Column("entity_id", UUID, nullable=False),
        sa.Column("uploaded_by", UUID, nullable=False),
        sa.Column(
            "uploaded_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.text("now()"),
        ),
        _fk("attachments", "uploaded_by", "users", "CASCADE"),
        sa.PrimaryKeyConstraint("id", name="pk_attachments"),
    )
    op.create_index("ix_attachments_entity", "attachments", ["entity_type", "entity_id"])
    op.create_index("ix_attachments_uploaded_by", "attachments", ["uploaded_by"])


def downgrade() -> None:
    # Drop tables in reverse dependency order
    for table in (
        "attachments",
        "activity_logs",
        "notifications",
        "comments",
        "comment_threads",
        "tasks",
        "sprints",
        "document_sessions",
        "document_pages",
        "documents",
        "projects",
        "departments",
        "users",
        "project_keys",
        "clients",
        "organizations",
    ):
        op.drop_table(table)

    # Drop enums
    for enum_name in reversed(list(ENUMS)):
        op.execute(f"DROP TYPE IF EXISTS {enum_name}")
