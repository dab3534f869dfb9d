"""
ORM model package. Import all models here so Alembic autogenerate
can discover every table through the shared Base metadata.
"""
from app.models.user import User  # noqa: F401
from app.models.organization import Organization  # noqa: F401
from app.models.client import Client, ProjectKey  # noqa: F401
from app.models.department import Department  # noqa: F401
from app.models.project import Project  # noqa: F401
from app.models.document import Document, DocumentPage, DocumentSession  # noqa: F401
from app.models.sprint import Sprint  # noqa: F401
from app.models.task import Task  # noqa: F401
from app.models.comment import Comment, CommentThread  # noqa: F401
from app.models.attachment import Attachment  # noqa: F401
from app.models.notification import Notification  # noqa: F401
from app.models.activity_log import ActivityLog  # noqa: F401
