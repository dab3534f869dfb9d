"""
Role-based visibility scope.
Admins and PMs see everything. Client users see their own client's
non-private records and task owners see the departments they belong to.
"""
from __future__ import annotations

import uuid
from dataclasses import dataclass
from typing import Any

from app.models.user import User, UserRole


@dataclass(frozen=True)
class Scope:
    client_id: uuid.UUID | None = None
    department_ids: list[uuid.UUID] | None = None

    @property
    def unrestricted(self) -> bool:
        return self.client_id is None and self.department_ids is None

    def as_filters(self) -> dict[str, Any]:
        return {
            "restrict_client_id": self.client_id,
            "restrict_department_ids": self.department_ids,
        }


def scope_for(user: User) -> Scope:
    if user.role in UserRole.MANAGERS:
        return Scope()
    if user.role == UserRole.CLIENT:
        # A client user with no client sees nothing
        return Scope(client_id=user.client_id or uuid.UUID(int=0))
    return Scope(department_ids=user.department_uuids)


def can_see(
    user: User,
    *,
    client_id: uuid.UUID | None,
    department_id: uuid.UUID | None,
    visibility: str,
    owner_ids: tuple[uuid.UUID | None, ...] = (),
) -> bool:
    """Whether ``user`` may read a record with the given placement."""
    if user.role in UserRole.MANAGERS or user.id in owner_ids:
        return True
    if user.role == UserRole.CLIENT:
        return (
            client_id is not None
            and client_id == user.client_id
            and visibility != "private"
        )
    if visibility == "private":
        return False
    if visibility == "organization":
        return True
    return department_id is not None and department_id in user.department_uuids
