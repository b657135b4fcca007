from __future__ import annotations

from dataclasses import replace
from datetime import date, datetime

import pytest

from fieldops.domain.entities import TaskEntity
from fieldops.domain.enums import RecurrencePattern, TaskPriority, TaskStatus, TaskType
from fieldops.domain.errors import EmptyDescription, MissingRecurrencePattern
from fieldops.domain.filters import TaskFilters
from fieldops.domain.recurrence import EditState
from fieldops.services.task_service import TaskService


class FakeRepo:
    def __init__(self) -> None:
        self.tasks: list[TaskEntity] = []
        self.updates: list[tuple[int, dict]] = []
        self._id = 1

    def list_tasks(self, filters: TaskFilters) -> list[TaskEntity]:
        return self.tasks

    def get_task(self, task_id: int) -> TaskEntity | None:
        return next((t for t in self.tasks if t.id == task_id), None)

    def create_task(self, data: dict) -> TaskEntity:
        pattern = data.get("recurrence_pattern")
        task = TaskEntity(
            id=self._id,
            description=data["description"],
            priority=TaskPriority(data.get("priority", "normal")),
            status=TaskStatus(data.get("status", "pending")),
            due_date=data.get("due_date"),
            task_type=TaskType(data.get("task_type", "one-time")),
            recurrence_pattern=RecurrencePattern(pattern) if pattern else None,
            recurrence_interval=data.get("recurrence_interval"),
            client_id=data.get("client_id"),
            appliance_id=data.get("appliance_id"),
            created_at=datetime.utcnow(),
            updated_at=datetime.utcnow(),
            completed_at=data.get("completed_at"),
        )
        self.tasks.append(task)
        self._id += 1
        return task

    def update_task(self, task_id: int, data: dict) -> TaskEntity | None:
        self.updates.append((task_id, dict(data)))
        task = self.get_task(task_id)
        if not task:
            return None
        changes = dict(data)
        for key, enum_cls in (
            ("priority", TaskPriority),
            ("status", TaskStatus),
            ("task_type", TaskType),
            ("recurrence_pattern", RecurrencePattern),
        ):
            if changes.get(key) is not None:
                changes[key] = enum_cls(changes[key])
        updated = replace(task, **changes)
        self.tasks = [updated if t.id == task_id else t for t in self.tasks]
        return updated

    def delete_task(self, task_id: int) -> None:
        self.tasks = [t for t in self.tasks if t.id != task_id]

    def get_stats(self) -> dict[str, int]:
        return {"total": len(self.tasks), "pending": 0, "in_progress": 0, "completed": 0, "overdue": 0}


def _recurring_state(**fields) -> EditState:
    base = EditState(
        description="Descale coffee machine",
        due_date=date(2026, 1, 31),
        task_type=TaskType.RECURRING,
        recurrence_pattern=RecurrencePattern.MONTHLY,
        recurrence_interval=1,
    )
    return replace(base, **fields)


def test_create_task_persists_normalized_payload() -> None:
    repo = FakeRepo()
    service = TaskService(repo)

    task = service.create_task(_recurring_state(description="  Descale  "), client_id=7, appliance_id=3)

    assert task.description == "Descale"
    assert task.client_id == 7
    assert task.appliance_id == 3
    assert task.recurrence_pattern == RecurrencePattern.MONTHLY


def test_update_sends_cleared_recurrence_for_one_time() -> None:
    repo = FakeRepo()
    service = TaskService(repo)
    task = service.create_task(_recurring_state())

    state = service.recurrence.initialize_from_task(task)
    state = service.recurrence.on_task_type_change(state, TaskType.ONE_TIME)
    updated = service.update_task(task.id, state)

    _, payload = repo.updates[-1]
    assert payload["task_type"] == "one-time"
    assert payload["recurrence_pattern"] is None
    assert payload["recurrence_interval"] is None
    assert updated.recurrence_pattern is None


def test_validation_error_never_reaches_store() -> None:
    repo = FakeRepo()
    service = TaskService(repo)
    task = service.create_task(_recurring_state())

    with pytest.raises(EmptyDescription):
        service.update_task(task.id, _recurring_state(description=" "))
    with pytest.raises(MissingRecurrencePattern):
        service.update_task(task.id, _recurring_state(recurrence_pattern=RecurrencePattern.NONE))

    assert repo.updates == []


def test_update_unknown_task_returns_none() -> None:
    service = TaskService(FakeRepo())

    assert service.update_task(99, _recurring_state()) is None


def test_completing_recurring_task_schedules_next_occurrence() -> None:
    repo = FakeRepo()
    service = TaskService(repo)
    task = service.create_task(_recurring_state(), client_id=2)

    done = service.complete_task(task.id)

    assert done.status == TaskStatus.COMPLETED
    assert done.completed_at is not None
    assert len(repo.tasks) == 2
    next_task = repo.tasks[1]
    assert next_task.status == TaskStatus.PENDING
    assert next_task.due_date == date(2026, 2, 28)
    assert next_task.client_id == 2
    assert next_task.recurrence_pattern == RecurrencePattern.MONTHLY


def test_completing_one_time_task_does_not_reschedule() -> None:
    repo = FakeRepo()
    service = TaskService(repo)
    task = service.create_task(EditState(description="Install unit", due_date=date(2026, 1, 2)))

    service.complete_task(task.id)

    assert len(repo.tasks) == 1


def test_recurring_task_without_due_date_does_not_reschedule() -> None:
    repo = FakeRepo()
    service = TaskService(repo)
    task = service.create_task(_recurring_state(due_date=None))

    service.complete_task(task.id)

    assert len(repo.tasks) == 1


def test_reopening_task_clears_completion_time() -> None:
    repo = FakeRepo()
    service = TaskService(repo)
    task = service.create_task(EditState(description="Install unit"))
    service.complete_task(task.id)

    reopened = service.set_status(task.id, TaskStatus.IN_PROGRESS)

    assert reopened.status == TaskStatus.IN_PROGRESS
    assert reopened.completed_at is None


def test_completing_twice_schedules_only_one_occurrence() -> None:
    repo = FakeRepo()
    service = TaskService(repo)
    task = service.create_task(_recurring_state())

    first = service.complete_task(task.id)
    second = service.complete_task(task.id)

    assert len(repo.tasks) == 2
    assert second.completed_at == first.completed_at


def test_editing_completed_task_keeps_completion_time() -> None:
    repo = FakeRepo()
    service = TaskService(repo)
    task = service.create_task(EditState(description="Install unit"))
    done = service.complete_task(task.id)

    state = service.recurrence.initialize_from_task(done)
    edited = service.update_task(task.id, replace(state, description="Install unit, floor 2"))

    _, payload = repo.updates[-1]
    assert "completed_at" not in payload
    assert edited.completed_at == done.completed_at
    assert edited.description == "Install unit, floor 2"


def test_completing_through_edit_schedules_next_occurrence() -> None:
    repo = FakeRepo()
    service = TaskService(repo)
    task = service.create_task(_recurring_state())

    done = service.update_task(task.id, _recurring_state(status=TaskStatus.COMPLETED))

    assert done.completed_at is not None
    assert len(repo.tasks) == 2
    assert repo.tasks[1].due_date == date(2026, 2, 28)
    assert repo.tasks[1].status == TaskStatus.PENDING


def test_set_status_on_completed_task_is_idempotent() -> None:
    repo = FakeRepo()
    service = TaskService(repo)
    task = service.create_task(_recurring_state())
    service.set_status(task.id, TaskStatus.COMPLETED)

    service.set_status(task.id, TaskStatus.COMPLETED)

    assert len(repo.tasks) == 2
