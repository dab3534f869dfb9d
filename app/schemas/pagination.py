"""
Generic paginated response schema shared by every list endpoint.
"""
from __future__ import annotations

import math
from collections.abc import Callable, Sequence
from typing import Any, Generic, TypeVar

from pydantic import BaseModel, computed_field

T = TypeVar("T")


class PaginatedResponse(BaseModel, Generic[T]):
    """Items of one page plus the total count, page number and page size."""

    items: list[T]
    total: int
    page: int
    size: int

    @computed_field  # type: ignore[misc]
    @property
    def pages(self) -> int:
        if self.size == 0:
            return 0
        return math.ceil(self.total / self.size)

    @classmethod
    def build(
        cls,
        rows: Sequence[Any],
        total: int,
        *,
        page: int,
        size: int,
        convert: Callable[[Any], T],
    ) -> "PaginatedResponse[T]":
        return cls(items=[convert(row) for row in rows], total=total, page=page, size=size)

    model_config = {"from_attributes": True}
