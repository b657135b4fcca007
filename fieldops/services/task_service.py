from __future__ import annotations

import logging
from datetime import datetime

from fieldops.domain.entities import TaskEntity
from fieldops.domain.enums import RecurrencePattern, TaskStatus, TaskType
from fieldops.domain.filters import TaskFilters
from fieldops.domain.recurrence import EditState, TaskRecurrenceManager
from fieldops.infra.repository import TaskRepository

logger = logging.getLogger(__name__)


class TaskService:
    def __init__(self, repo: TaskRepository, recurrence: TaskRecurrenceManager | None = None) -> None:
        self._repo = repo
        self.recurrence = recurrence or TaskRecurrenceManager()

    def list_tasks(self, filters: TaskFilters) -> list[TaskEntity]:
        return self._repo.list_tasks(filters)

    def get_task(self, task_id: int) -> TaskEntity | None:
        return self._repo.get_task(task_id)

    def get_stats(self) -> dict[str, int]:
        return self._repo.get_stats()

    def create_task(
        self,
        state: EditState,
        client_id: int | None = None,
        appliance_id: int | None = None,
    ) -> TaskEntity:
        payload = self.recurrence.validate_for_submit(state).as_dict()
        payload["client_id"] = client_id
        payload["appliance_id"] = appliance_id
        if payload["status"] == TaskStatus.COMPLETED.value:
            payload["completed_at"] = datetime.utcnow()
        task = self._repo.create_task(payload)
        logger.info("Created task %s (%s)", task.id, task.task_type.value)
        return task

    def update_task(self, task_id: int, state: EditState) -> TaskEntity | None:
        """Validate an edit state and send it to the store as a partial update.

        Validation errors are raised before the store is touched. Moving the
        status into ``completed`` here behaves like ``complete_task``.
        """
        payload = self.recurrence.validate_for_submit(state).as_dict()
        current = self._repo.get_task(task_id)
        if current is None:
            logger.warning("Task %s not found for update", task_id)
            return None
        return self._save(current, payload)

    def set_status(self, task_id: int, status: TaskStatus | str) -> TaskEntity | None:
        current = self._repo.get_task(task_id)
        if current is None:
            return None
        return self._save(current, {"status": TaskStatus(status).value})

    def complete_task(self, task_id: int) -> TaskEntity | None:
        current = self._repo.get_task(task_id)
        if current is None:
            return None
        if current.status == TaskStatus.COMPLETED:
            return current
        return self._save(current, {"status": TaskStatus.COMPLETED.value})

    def delete_task(self, task_id: int) -> None:
        self._repo.delete_task(task_id)
        logger.info("Deleted task %s", task_id)

    def _save(self, current: TaskEntity, payload: dict) -> TaskEntity | None:
        status = payload.get("status")
        completing = status == TaskStatus.COMPLETED.value and current.status != TaskStatus.COMPLETED
        if completing:
            payload["completed_at"] = datetime.utcnow()
        elif status and status != TaskStatus.COMPLETED.value:
            payload["completed_at"] = None

        task = self._repo.update_task(current.id, payload)
        if task is None:
            return None
        logger.info("Updated task %s", task.id)
        if completing:
            self._schedule_next(task)
        return task

    def _schedule_next(self, task: TaskEntity) -> TaskEntity | None:
        if task.task_type != TaskType.RECURRING or not task.due_date:
            return None
        if not task.recurrence_pattern or task.recurrence_pattern == RecurrencePattern.NONE:
            return None

        interval = task.recurrence_interval or 1
        next_due = self.recurrence.next_due_date(task.due_date, task.recurrence_pattern, interval)
        next_task = self._repo.create_task({
            "description": task.description,
            "priority": task.priority.value,
            "status": TaskStatus.PENDING.value,
            "due_date": next_due,
            "task_type": TaskType.RECURRING.value,
            "recurrence_pattern": task.recurrence_pattern.value,
            "recurrence_interval": interval,
            "client_id": task.client_id,
            "appliance_id": task.appliance_id,
        })
        logger.info("Scheduled next occurrence of task %s on %s", task.id, next_due.isoformat())
        return next_task
