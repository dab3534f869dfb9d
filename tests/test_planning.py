"""
Sprint planning arithmetic tests.
Covers: task sizes, capacity bar states, business-day end dates and kanban drops.
"""
from __future__ import annotations

import uuid
from dataclasses import dataclass
from datetime import date

import pytest

from app.services import planning


@dataclass
class _Task:
    id: uuid.UUID
    status: str = "todo"
    priority: str = "medium"
    size: str | None = None
    size_hours: float | None = None
    estimated_hours: float | None = None
    actual_hours: float | None = None


class TestTaskHours:
    @pytest.mark.parametrize(
        ("size", "hours"),
        [("XS", 4), ("s", 16), ("M", 32), ("L", 48), ("xl", 64), ("6h", 6), ("3d", 24), ("1w", 40)],
    )
    def test_size_to_hours(self, size: str, hours: float) -> None:
        assert planning.task_size_to_hours(size) == hours

    @pytest.mark.parametrize("size", [None, "", "huge", "3 months"])
    def test_unknown_size_is_zero(self, size: str | None) -> None:
        assert planning.task_size_to_hours(size) == 0

    def test_committed_hours_prefers_size_hours_then_estimate(self) -> None:
        tasks = [
            _Task(uuid.uuid4(), size="M", size_hours=10),
            _Task(uuid.uuid4(), size="M", estimated_hours=5),
            _Task(uuid.uuid4(), size="S"),
        ]
        assert planning.committed_hours(tasks) == 10 + 5 + 16

    def test_completed_hours_prefers_actual(self) -> None:
        task = _Task(uuid.uuid4(), size="L", estimated_hours=20, actual_hours=25)
        assert planning.completed_task_hours(task) == 25


class TestCapacity:
    def test_capacity_uses_at_least_one_workstream(self) -> None:
        assert planning.sprint_capacity(3, 32) == 96
        assert planning.sprint_capacity(0, 32) == 32
        assert planning.sprint_capacity(None, 40) == 40

    def test_zero_capacity_reads_as_zero_percent(self) -> None:
        bar = planning.capacity_bar(20, 0)
        assert bar.percentage == 0
        assert bar.state == "under"
        assert not bar.is_over_capacity

    def test_target_band(self) -> None:
        bar = planning.capacity_bar(80, 100)
        assert bar.state == "target"
        assert bar.color == "green"

    def test_under_target(self) -> None:
        bar = planning.capacity_bar(40, 100)
        assert bar.state == "under"
        assert bar.color == "amber"
        assert bar.committed_label == "40h"

    def test_over_capacity(self) -> None:
        bar = planning.capacity_bar(200, 100)
        assert bar.state == "over"
        assert bar.color == "red"
        assert bar.is_over_capacity
        assert bar.over_by_hours == 100
        assert bar.over_by_label == "Over by 100h"
        assert bar.fill_percentage == planning.CAPACITY_FILL_MAX_PERCENT
        assert bar.bar_percentage == 100


class TestBusinessDays:
    def test_two_week_sprint_from_monday_ends_on_friday(self) -> None:
        assert planning.sprint_end_date(date(2024, 1, 1), 2) == date(2024, 1, 12)

    def test_start_date_counts_as_first_day(self) -> None:
        # Saturday start: Sat, Mon, Tue, Wed, Thu
        assert planning.sprint_end_date(date(2024, 1, 6), 1) == date(2024, 1, 11)

    def test_single_day(self) -> None:
        assert planning.add_business_days(date(2024, 1, 3), 1) == date(2024, 1, 3)

    def test_date_range_must_be_increasing(self) -> None:
        with pytest.raises(ValueError, match="must be after start date"):
            planning.validate_date_range(date(2024, 1, 5), date(2024, 1, 5))
        planning.validate_date_range(date(2024, 1, 5), None)


class TestKanban:
    def test_unknown_status_groups_into_todo(self) -> None:
        tasks = [_Task(uuid.uuid4(), status="archived"), _Task(uuid.uuid4(), status="review")]
        columns = planning.group_kanban(tasks)
        assert list(columns) == list(planning.KANBAN_COLUMNS)
        assert len(columns["todo"]) == 1
        assert len(columns["review"]) == 1

    def test_drop_on_column(self) -> None:
        assert planning.resolve_drop_status("column:done", []) == "done"
        assert planning.resolve_drop_status("column:nowhere", []) is None

    def test_drop_on_card_takes_its_column(self) -> None:
        target = _Task(uuid.uuid4(), status="in_progress")
        assert planning.resolve_drop_status(str(target.id), [target]) == "in_progress"
        assert planning.resolve_drop_status(str(uuid.uuid4()), [target]) is None
        assert planning.resolve_drop_status(None, [target]) is None

    def test_sort_by_priority_is_stable(self) -> None:
        low = _Task(uuid.uuid4(), priority="low")
        first_high = _Task(uuid.uuid4(), priority="high")
        urgent = _Task(uuid.uuid4(), priority="urgent")
        second_high = _Task(uuid.uuid4(), priority="high")
        ordered = planning.sort_by_priority([low, first_high, urgent, second_high])
        assert ordered == [urgent, first_high, second_high, low]
