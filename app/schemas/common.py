"""
Validators shared by the update schemas.
"""
from __future__ import annotations

from typing import Any


def require_value(value: Any) -> Any:
    """Refuse an explicit ``null`` for a column that cannot be empty.

    Partial updates omit a field to keep its current value; sending ``null``
    would try to clear it.
    """
    if value is None:
        raise ValueError("Field cannot be null; omit it to keep the current value")
    return value
