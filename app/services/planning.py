"""
Sprint planning arithmetic.

Pure functions shared by the task and sprint services: t-shirt size to hours,
sprint capacity, the capacity bar shown on sprint pages, business-day sprint
end dates and kanban column grouping / drop resolution. Nothing here touches
the database.
"""
from __future__ import annotations

import re
from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from datetime import date, timedelta
from typing import Any, Protocol

TASK_SIZE_HOURS: dict[str, int] = {"XS": 4, "S": 16, "M": 32, "L": 48, "XL": 64}

HOURS_PER_DAY = 8
HOURS_PER_WEEK = 40
BUSINESS_DAYS_PER_WEEK = 5

CAPACITY_TARGET_PERCENT = 80
CAPACITY_FILL_MAX_PERCENT = 150

KANBAN_COLUMNS: tuple[str, ...] = ("todo", "in_progress", "review", "done")
KANBAN_DEFAULT_COLUMN = "todo"
COLUMN_DROP_PREFIX = "column:"

PRIORITY_RANK: dict[str, int] = {"urgent": 4, "high": 3, "medium": 2, "low": 1}

_FREE_FORM_SIZE = re.compile(r"^\s*(\d+(?:\.\d+)?)\s*([hdw])\s*$", re.IGNORECASE)


class HasHours(Protocol):
    size: str | None
    size_hours: float | None
    estimated_hours: float | None


class HasStatus(Protocol):
    id: Any
    status: str


# ── Task hours ────────────────────────────────────────────────────────────────

def task_size_to_hours(size: str | None) -> float:
    """
    Convert a task size to hours.

    ``XS``/``S``/``M``/``L``/``XL`` map to fixed budgets (case insensitive).
    Free-form sizes count hours (``6h``), eight-hour days (``3d``) or
    forty-hour weeks (``1w``). Anything else is 0.
    """
    if not size:
        return 0
    normalized = size.strip().upper()
    if normalized in TASK_SIZE_HOURS:
        return TASK_SIZE_HOURS[normalized]
    match = _FREE_FORM_SIZE.match(size)
    if match is None:
        return 0
    amount = float(match.group(1))
    unit = match.group(2).lower()
    if unit == "d":
        return amount * HOURS_PER_DAY
    if unit == "w":
        return amount * HOURS_PER_WEEK
    return amount


def task_hours(task: HasHours) -> float:
    """Hours a task commits to a sprint: size_hours, then estimate, then size."""
    if task.size_hours is not None:
        return task.size_hours
    if task.estimated_hours is not None:
        return task.estimated_hours
    return task_size_to_hours(task.size)


def completed_task_hours(task: Any) -> float:
    """Hours credited when a task is done: actual, then estimate, then size."""
    if getattr(task, "actual_hours", None) is not None:
        return task.actual_hours
    if task.estimated_hours is not None:
        return task.estimated_hours
    return task_size_to_hours(task.size)


def committed_hours(tasks: Iterable[HasHours]) -> float:
    return sum(task_hours(task) for task in tasks)


# ── Capacity ──────────────────────────────────────────────────────────────────

def sprint_capacity(workstream_count: int | None, hours_per_workstream: float) -> float:
    """Sprint capacity in hours. A department always has at least one workstream."""
    return max(1, workstream_count or 1) * hours_per_workstream


def format_hours(hours: float) -> str:
    return f"{round(hours)}h"


@dataclass(frozen=True)
class CapacityBar:
    committed_hours: float
    capacity_hours: float
    percentage: float
    fill_percentage: float
    bar_percentage: float
    target_percentage: int
    state: str
    color: str
    is_over_capacity: bool
    over_by_hours: float
    committed_label: str
    capacity_label: str
    over_by_label: str | None


def capacity_bar(committed: float, capacity: float) -> CapacityBar:
    """
    Derive the capacity bar for a sprint.

    A zero (or negative) capacity reads as 0 %. Over 100 % is ``over`` (red),
    from the 80 % target up is ``target`` (green), anything lower is
    ``under`` (amber). The fill is clamped to 0-150 % and the bar itself never
    draws past 100 %.
    """
    percentage = (committed / capacity) * 100 if capacity > 0 else 0.0
    if percentage > 100:
        state, color = "over", "red"
    elif percentage >= CAPACITY_TARGET_PERCENT:
        state, color = "target", "green"
    else:
        state, color = "under", "amber"

    is_over = state == "over"
    over_by = committed - capacity if is_over else 0.0
    return CapacityBar(
        committed_hours=committed,
        capacity_hours=capacity,
        percentage=round(percentage, 2),
        fill_percentage=round(min(max(percentage, 0.0), CAPACITY_FILL_MAX_PERCENT), 2),
        bar_percentage=round(min(percentage, 100.0), 2),
        target_percentage=CAPACITY_TARGET_PERCENT,
        state=state,
        color=color,
        is_over_capacity=is_over,
        over_by_hours=over_by,
        committed_label=format_hours(committed),
        capacity_label=format_hours(capacity),
        over_by_label=f"Over by {format_hours(over_by)}" if is_over else None,
    )


# ── Dates ─────────────────────────────────────────────────────────────────────

def is_business_day(day: date) -> bool:
    return day.weekday() < 5


def add_business_days(start: date, days: int) -> date:
    """
    Return the date on which ``days`` business days have elapsed.

    ``start`` always counts as day one; each following Monday-Friday adds one.
    """
    current = start
    counted = 1
    while counted < days:
        current += timedelta(days=1)
        if is_business_day(current):
            counted += 1
    return current


def sprint_end_date(start: date, duration_weeks: int) -> date:
    """End date of a sprint of ``duration_weeks`` starting on ``start``."""
    return add_business_days(start, max(1, duration_weeks * BUSINESS_DAYS_PER_WEEK))


def validate_date_range(start: date | None, end: date | None, *, label: str = "End date") -> None:
    """Raise ValueError unless ``end`` falls strictly after ``start``."""
    if start is not None and end is not None and end <= start:
        raise ValueError(f"{label} must be after start date")


# ── Kanban ────────────────────────────────────────────────────────────────────

def kanban_column_for(status: str | None) -> str:
    return status if status in KANBAN_COLUMNS else KANBAN_DEFAULT_COLUMN


def group_kanban(tasks: Iterable[HasStatus]) -> dict[str, list[Any]]:
    """Group tasks into the fixed kanban columns; unknown statuses go to todo."""
    columns: dict[str, list[Any]] = {column: [] for column in KANBAN_COLUMNS}
    for task in tasks:
        columns[kanban_column_for(task.status)].append(task)
    return columns


def resolve_drop_status(over_id: str | None, tasks: Sequence[HasStatus]) -> str | None:
    """
    Resolve the status a card dropped on ``over_id`` should take.

    ``column:<status>`` targets a column directly. Any other id is treated as
    the task the card was dropped onto, and that task's column is the target.
    Returns None when the target is unknown.
    """
    if not over_id:
        return None
    if over_id.startswith(COLUMN_DROP_PREFIX):
        status = over_id[len(COLUMN_DROP_PREFIX):]
        return status if status in KANBAN_COLUMNS else None
    for task in tasks:
        if str(task.id) == over_id:
            return kanban_column_for(task.status)
    return None


def sort_by_priority(tasks: Iterable[Any]) -> list[Any]:
    """Highest priority first; stable for equal priorities."""
    return sorted(tasks, key=lambda task: PRIORITY_RANK.get(task.priority, 0), reverse=True)
