"""Recurring-task edit rules.

The edit dialog changes task type, recurrence pattern and interval through
separate controls, so the combination can be inconsistent between events.
Every legal transition lives here and the invariant is asserted again in
``validate_for_submit`` before anything is written to the store:

* one-time  -> pattern ``none`` (stored as NULL), interval NULL
* recurring -> pattern other than ``none``, interval in [1, 52]

All functions are pure; ``EditState`` is immutable.
"""
from __future__ import annotations

from dataclasses import dataclass, replace
from datetime import date, timedelta
from enum import StrEnum
from typing import Any, Optional, TypeVar

from .errors import EmptyDescription, InvalidRecurrenceInterval, MissingRecurrencePattern
from .enums import RecurrencePattern, TaskPriority, TaskStatus, TaskType

MIN_INTERVAL = 1
MAX_INTERVAL = 52

MONTHS_PER_PATTERN = {
    RecurrencePattern.MONTHLY: 1,
    RecurrencePattern.QUARTERLY: 3,
    RecurrencePattern.SEMI_ANNUAL: 6,
    RecurrencePattern.YEARLY: 12,
}

_E = TypeVar("_E", bound=StrEnum)


@dataclass(frozen=True)
class EditState:
    description: str = ""
    priority: TaskPriority = TaskPriority.NORMAL
    status: TaskStatus = TaskStatus.PENDING
    due_date: Optional[date] = None
    task_type: TaskType = TaskType.ONE_TIME
    recurrence_pattern: RecurrencePattern = RecurrencePattern.NONE
    recurrence_interval: int | None = 1


@dataclass(frozen=True)
class NormalizedUpdate:
    description: str
    priority: TaskPriority
    status: TaskStatus
    due_date: Optional[date]
    task_type: TaskType
    recurrence_pattern: RecurrencePattern | None
    recurrence_interval: int | None

    def as_dict(self) -> dict:
        return {
            "description": self.description,
            "priority": self.priority.value,
            "status": self.status.value,
            "due_date": self.due_date,
            "task_type": self.task_type.value,
            "recurrence_pattern": self.recurrence_pattern.value if self.recurrence_pattern else None,
            "recurrence_interval": self.recurrence_interval,
        }


class TaskRecurrenceManager:
    def initialize_from_task(self, task: Any | None) -> EditState:
        """Build an edit state from a stored task, repairing inconsistent records.

        Accepts a ``TaskEntity`` or anything exposing the same attributes;
        ``None`` gives the blank state for a new task. Never raises.
        """
        if task is None:
            return EditState()

        description = getattr(task, "description", None) or ""
        priority = _coerce(TaskPriority, getattr(task, "priority", None), TaskPriority.NORMAL)
        status = _coerce(TaskStatus, getattr(task, "status", None), TaskStatus.PENDING)
        due_date = getattr(task, "due_date", None)
        if not isinstance(due_date, date):
            due_date = None
        task_type = _coerce(TaskType, getattr(task, "task_type", None), TaskType.ONE_TIME)

        if task_type == TaskType.ONE_TIME:
            return EditState(
                description=description,
                priority=priority,
                status=status,
                due_date=due_date,
                task_type=task_type,
                recurrence_pattern=RecurrencePattern.NONE,
                recurrence_interval=MIN_INTERVAL,
            )

        pattern = _coerce(
            RecurrencePattern,
            getattr(task, "recurrence_pattern", None),
            RecurrencePattern.NONE,
        )
        if pattern == RecurrencePattern.NONE:
            pattern = RecurrencePattern.WEEKLY

        return EditState(
            description=description,
            priority=priority,
            status=status,
            due_date=due_date,
            task_type=task_type,
            recurrence_pattern=pattern,
            recurrence_interval=_clamp_interval(getattr(task, "recurrence_interval", None)),
        )

    def on_task_type_change(self, state: EditState, new_type: TaskType | str) -> EditState:
        new_type = TaskType(new_type)
        if new_type == TaskType.ONE_TIME:
            # Prior recurring selections are discarded, not remembered.
            return replace(
                state,
                task_type=new_type,
                recurrence_pattern=RecurrencePattern.NONE,
                recurrence_interval=MIN_INTERVAL,
            )
        if state.recurrence_pattern == RecurrencePattern.NONE:
            return replace(
                state,
                task_type=new_type,
                recurrence_pattern=RecurrencePattern.WEEKLY,
                recurrence_interval=MIN_INTERVAL,
            )
        return replace(state, task_type=new_type)

    def on_pattern_change(self, state: EditState, pattern: RecurrencePattern | str) -> EditState:
        if state.task_type != TaskType.RECURRING:
            return state
        return replace(state, recurrence_pattern=RecurrencePattern(pattern))

    def on_interval_change(self, state: EditState, interval: int) -> EditState:
        if state.task_type != TaskType.RECURRING:
            return state
        return replace(state, recurrence_interval=_clamp_interval(interval))

    def validate_for_submit(self, state: EditState) -> NormalizedUpdate:
        description = (state.description or "").strip()
        if not description:
            raise EmptyDescription()

        task_type = TaskType(state.task_type) if state.task_type else TaskType.ONE_TIME
        priority = TaskPriority(state.priority) if state.priority else TaskPriority.NORMAL
        status = TaskStatus(state.status) if state.status else TaskStatus.PENDING

        if task_type == TaskType.ONE_TIME:
            return NormalizedUpdate(
                description=description,
                priority=priority,
                status=status,
                due_date=state.due_date or None,
                task_type=task_type,
                recurrence_pattern=None,
                recurrence_interval=None,
            )

        if not state.recurrence_pattern or state.recurrence_pattern == RecurrencePattern.NONE:
            raise MissingRecurrencePattern()
        interval = state.recurrence_interval
        # Only real ints; "3" or 2.0 from a careless caller are rejected, not compared.
        if not isinstance(interval, int) or isinstance(interval, bool):
            raise InvalidRecurrenceInterval()
        if not MIN_INTERVAL <= interval <= MAX_INTERVAL:
            raise InvalidRecurrenceInterval()

        return NormalizedUpdate(
            description=description,
            priority=priority,
            status=status,
            due_date=state.due_date or None,
            task_type=task_type,
            recurrence_pattern=RecurrencePattern(state.recurrence_pattern),
            recurrence_interval=int(interval),
        )

    @staticmethod
    def next_due_date(current: date, pattern: RecurrencePattern | str, interval: int) -> date:
        pattern = RecurrencePattern(pattern)
        interval = _clamp_interval(interval)
        if pattern == RecurrencePattern.WEEKLY:
            return current + timedelta(weeks=interval)
        if pattern in MONTHS_PER_PATTERN:
            return _add_months(current, MONTHS_PER_PATTERN[pattern] * interval)
        raise ValueError(f"Task with pattern {pattern.value!r} does not recur")


def _coerce(enum_cls: type[_E], value: Any, default: _E) -> _E:
    if not value:
        return default
    try:
        return enum_cls(value)
    except ValueError:
        return default


def _clamp_interval(value: Any) -> int:
    try:
        interval = int(value)
    except (TypeError, ValueError, OverflowError):
        return MIN_INTERVAL
    return max(MIN_INTERVAL, min(MAX_INTERVAL, interval))


def _add_months(base: date, months: int) -> date:
    year = base.year + (base.month - 1 + months) // 12
    month = (base.month - 1 + months) % 12 + 1
    day = min(base.day, _days_in_month(year, month))
    return date(year, month, day)


def _days_in_month(year: int, month: int) -> int:
    if month == 12:
        next_month = date(year + 1, 1, 1)
    else:
        next_month = date(year, month + 1, 1)
    return (next_month - timedelta(days=1)).day
