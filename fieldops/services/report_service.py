"""Service reports: the record of work done on a task.

Filing a report takes the used parts out of stock and completes the task,
which for a recurring task also schedules its next occurrence.
"""
from __future__ import annotations

import logging
from typing import Iterable

from fieldops.config import SETTINGS
from fieldops.domain.entities import ApplianceHistory, ServiceReportEntity
from fieldops.domain.errors import (
    EmptyWorkDescription,
    InvalidDuration,
    InvalidPartQuantity,
    UnknownSparePart,
)
from fieldops.infra.repository import ReportRepository

from .task_service import TaskService

logger = logging.getLogger(__name__)


def _is_whole(value) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


def normalize_parts(parts: Iterable[tuple[int | None, int]]) -> list[tuple[int, int]]:
    """Check part rows and merge repeated parts, keeping first-seen order."""
    merged: dict[int, int] = {}
    for part_id, quantity in parts:
        if part_id is None:
            raise UnknownSparePart()
        if not _is_whole(quantity) or quantity < 1:
            raise InvalidPartQuantity()
        merged[part_id] = merged.get(part_id, 0) + quantity
    return list(merged.items())


class ReportService:
    def __init__(
        self,
        repo: ReportRepository,
        task_service: TaskService,
        technician: str | None = None,
    ) -> None:
        self._repo = repo
        self._tasks = task_service
        self.technician = SETTINGS.technician if technician is None else technician

    def create_report(
        self,
        task_id: int,
        description: str,
        duration_minutes: int,
        parts: Iterable[tuple[int | None, int]] = (),
        technician: str | None = None,
    ) -> ServiceReportEntity | None:
        description = (description or "").strip()
        if not description:
            raise EmptyWorkDescription()
        if not _is_whole(duration_minutes) or duration_minutes < 0:
            raise InvalidDuration()
        used = normalize_parts(parts)

        task = self._tasks.get_task(task_id)
        if task is None:
            logger.warning("Task %s not found for report", task_id)
            return None

        report = self._repo.create_report(
            {
                "task_id": task.id,
                "appliance_id": task.appliance_id,
                "description": description,
                "duration_minutes": duration_minutes,
                "technician": (technician if technician is not None else self.technician).strip(),
            },
            used,
        )
        logger.info("Filed report %s for task %s (%s parts)", report.id, task.id, len(used))
        self._tasks.complete_task(task.id)
        return report

    def list_reports(
        self,
        appliance_id: int | None = None,
        task_id: int | None = None,
    ) -> list[ServiceReportEntity]:
        return self._repo.list_reports(appliance_id=appliance_id, task_id=task_id)

    def appliance_history(self, appliance_id: int) -> ApplianceHistory:
        reports = self._repo.list_reports(appliance_id=appliance_id)
        last_service = max((report.created_at for report in reports), default=None)
        return ApplianceHistory(
            appliance_id=appliance_id,
            reports=reports,
            last_service=last_service.date() if last_service else None,
            next_service=self._repo.next_open_due_date(appliance_id),
        )
