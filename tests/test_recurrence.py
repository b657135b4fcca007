from __future__ import annotations

from dataclasses import replace
from datetime import date
from types import SimpleNamespace

import pytest

from fieldops.domain.enums import RecurrencePattern, TaskPriority, TaskStatus, TaskType
from fieldops.domain.errors import (
    EmptyDescription,
    InvalidRecurrenceInterval,
    MissingRecurrencePattern,
    TaskValidationError,
)
from fieldops.domain.recurrence import EditState, TaskRecurrenceManager

manager = TaskRecurrenceManager()


def _stored(**fields) -> SimpleNamespace:
    defaults = {
        "description": "Service boiler",
        "priority": "normal",
        "status": "pending",
        "due_date": None,
        "task_type": "one-time",
        "recurrence_pattern": None,
        "recurrence_interval": None,
    }
    defaults.update(fields)
    return SimpleNamespace(**defaults)


def _assert_consistent(state: EditState) -> None:
    if state.task_type == TaskType.ONE_TIME:
        assert state.recurrence_pattern == RecurrencePattern.NONE
        assert state.recurrence_interval == 1
    else:
        assert state.recurrence_pattern != RecurrencePattern.NONE
        assert 1 <= state.recurrence_interval <= 52


def test_recurring_record_with_none_pattern_defaults_to_weekly() -> None:
    state = manager.initialize_from_task(
        _stored(task_type="recurring", recurrence_pattern="none", recurrence_interval=None)
    )

    assert state.task_type == TaskType.RECURRING
    assert state.recurrence_pattern == RecurrencePattern.WEEKLY
    assert state.recurrence_interval == 1


def test_one_time_record_drops_stale_recurrence() -> None:
    state = manager.initialize_from_task(
        _stored(task_type="one-time", recurrence_pattern="monthly", recurrence_interval=6)
    )

    assert state.recurrence_pattern == RecurrencePattern.NONE
    assert state.recurrence_interval == 1


def test_recurring_record_keeps_stored_pattern_and_interval() -> None:
    state = manager.initialize_from_task(
        _stored(task_type="recurring", recurrence_pattern="quarterly", recurrence_interval=2)
    )

    assert state.recurrence_pattern == RecurrencePattern.QUARTERLY
    assert state.recurrence_interval == 2


def test_initialize_copies_plain_fields_with_defaults() -> None:
    state = manager.initialize_from_task(
        _stored(description=None, priority=None, status="", due_date=date(2026, 3, 1))
    )

    assert state.description == ""
    assert state.priority == TaskPriority.NORMAL
    assert state.status == TaskStatus.PENDING
    assert state.due_date == date(2026, 3, 1)


@pytest.mark.parametrize(
    "record",
    [
        _stored(task_type="bogus"),
        _stored(task_type=None, recurrence_pattern="weekly"),
        _stored(task_type="recurring", recurrence_pattern="fortnightly", recurrence_interval="x"),
        _stored(task_type="recurring", recurrence_pattern="yearly", recurrence_interval=0),
        _stored(task_type="recurring", recurrence_pattern="monthly", recurrence_interval=400),
        _stored(task_type="recurring", recurrence_pattern="weekly", recurrence_interval=float("inf")),
        _stored(task_type="recurring", recurrence_pattern="weekly", recurrence_interval=float("nan")),
        _stored(priority="whenever", status="lost"),
        SimpleNamespace(),
    ],
)
def test_initialize_repairs_malformed_records(record) -> None:
    _assert_consistent(manager.initialize_from_task(record))


def test_initialize_without_task_gives_blank_state() -> None:
    state = manager.initialize_from_task(None)

    assert state == EditState()
    _assert_consistent(state)


def test_switch_to_one_time_resets_recurrence() -> None:
    state = EditState(
        task_type=TaskType.RECURRING,
        recurrence_pattern=RecurrencePattern.MONTHLY,
        recurrence_interval=3,
    )

    state = manager.on_task_type_change(state, "one-time")

    assert state.task_type == TaskType.ONE_TIME
    assert state.recurrence_pattern == RecurrencePattern.NONE
    assert state.recurrence_interval == 1


def test_switch_to_recurring_selects_weekly() -> None:
    state = manager.on_task_type_change(EditState(), TaskType.RECURRING)

    assert state.recurrence_pattern == RecurrencePattern.WEEKLY
    assert state.recurrence_interval == 1


def test_switch_to_recurring_keeps_existing_pattern() -> None:
    state = EditState(
        task_type=TaskType.RECURRING,
        recurrence_pattern=RecurrencePattern.YEARLY,
        recurrence_interval=4,
    )

    assert manager.on_task_type_change(state, TaskType.RECURRING) == state


def test_toggling_back_to_recurring_does_not_restore_previous_pattern() -> None:
    state = EditState(
        task_type=TaskType.RECURRING,
        recurrence_pattern=RecurrencePattern.SEMI_ANNUAL,
        recurrence_interval=2,
    )

    state = manager.on_task_type_change(state, TaskType.ONE_TIME)
    state = manager.on_task_type_change(state, TaskType.RECURRING)

    assert state.recurrence_pattern == RecurrencePattern.WEEKLY
    assert state.recurrence_interval == 1


def test_pattern_and_interval_edits_ignored_for_one_time() -> None:
    state = EditState()

    assert manager.on_pattern_change(state, "monthly") == state
    assert manager.on_interval_change(state, 5) == state


def test_interval_edit_is_clamped() -> None:
    state = manager.on_task_type_change(EditState(), TaskType.RECURRING)

    assert manager.on_interval_change(state, 0).recurrence_interval == 1
    assert manager.on_interval_change(state, 99).recurrence_interval == 52
    assert manager.on_interval_change(state, 12).recurrence_interval == 12


def test_blank_description_is_rejected() -> None:
    with pytest.raises(EmptyDescription) as excinfo:
        manager.validate_for_submit(EditState(description="   "))

    assert excinfo.value.code == "EmptyDescription"
    assert isinstance(excinfo.value, TaskValidationError)


def test_recurring_without_pattern_is_rejected() -> None:
    state = EditState(
        description="Fix unit",
        task_type=TaskType.RECURRING,
        recurrence_pattern=RecurrencePattern.NONE,
        recurrence_interval=2,
    )

    with pytest.raises(MissingRecurrencePattern):
        manager.validate_for_submit(state)


@pytest.mark.parametrize("interval", [None, 0, -3, 53, "3", 2.0, True])
def test_out_of_range_interval_is_rejected(interval) -> None:
    state = EditState(
        description="Fix unit",
        task_type=TaskType.RECURRING,
        recurrence_pattern=RecurrencePattern.WEEKLY,
        recurrence_interval=interval,
    )

    with pytest.raises(InvalidRecurrenceInterval):
        manager.validate_for_submit(state)


@pytest.mark.parametrize("interval", [1, 52])
def test_interval_bounds_are_accepted(interval) -> None:
    state = EditState(
        description="Fix unit",
        task_type=TaskType.RECURRING,
        recurrence_pattern=RecurrencePattern.WEEKLY,
        recurrence_interval=interval,
    )

    assert manager.validate_for_submit(state).recurrence_interval == interval


def test_valid_recurring_state_produces_store_payload() -> None:
    state = EditState(
        description="Fix unit",
        priority=None,
        status=None,
        task_type=TaskType.RECURRING,
        recurrence_pattern=RecurrencePattern.YEARLY,
        recurrence_interval=1,
    )

    update = manager.validate_for_submit(state)

    assert update.as_dict() == {
        "description": "Fix unit",
        "priority": "normal",
        "status": "pending",
        "due_date": None,
        "task_type": "recurring",
        "recurrence_pattern": "yearly",
        "recurrence_interval": 1,
    }


def test_one_time_submit_clears_stale_recurrence() -> None:
    state = EditState(
        description="  Replace filter  ",
        task_type=TaskType.ONE_TIME,
        recurrence_pattern=RecurrencePattern.MONTHLY,
        recurrence_interval=4,
        due_date=date(2026, 5, 4),
    )

    payload = manager.validate_for_submit(state).as_dict()

    assert payload["description"] == "Replace filter"
    assert payload["recurrence_pattern"] is None
    assert payload["recurrence_interval"] is None
    assert payload["due_date"] == date(2026, 5, 4)


def test_submit_is_repeatable() -> None:
    state = replace(
        manager.on_task_type_change(EditState(description="Check pressure"), TaskType.RECURRING),
        priority=TaskPriority.URGENT,
    )

    assert manager.validate_for_submit(state) == manager.validate_for_submit(state)


def test_failed_validation_leaves_state_untouched() -> None:
    state = EditState(description="", task_type=TaskType.RECURRING)
    before = replace(state)

    with pytest.raises(EmptyDescription):
        manager.validate_for_submit(state)

    assert state == before


@pytest.mark.parametrize(
    ("pattern", "interval", "expected"),
    [
        ("weekly", 2, date(2026, 1, 29)),
        ("monthly", 1, date(2026, 2, 15)),
        ("quarterly", 1, date(2026, 4, 15)),
        ("semi-annual", 1, date(2026, 7, 15)),
        ("yearly", 2, date(2028, 1, 15)),
    ],
)
def test_next_due_date(pattern, interval, expected) -> None:
    assert manager.next_due_date(date(2026, 1, 15), pattern, interval) == expected


def test_next_due_date_clamps_to_month_end() -> None:
    assert manager.next_due_date(date(2026, 1, 31), "monthly", 1) == date(2026, 2, 28)


def test_next_due_date_rejects_non_recurring_pattern() -> None:
    with pytest.raises(ValueError):
        manager.next_due_date(date(2026, 1, 15), "none", 1)
