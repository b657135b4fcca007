from __future__ import annotations

from dataclasses import replace
from datetime import date, datetime

import pytest

from fieldops.domain.entities import (
    ReportPartEntity,
    ServiceReportEntity,
    SparePartEntity,
    TaskEntity,
)
from fieldops.domain.enums import TaskPriority, TaskStatus, TaskType
from fieldops.domain.errors import (
    EmptyWorkDescription,
    InvalidDuration,
    InvalidPartQuantity,
    ServiceReportError,
    UnknownSparePart,
)
from fieldops.services.inventory_service import InventoryService
from fieldops.services.report_service import ReportService, normalize_parts


def _task(task_id: int = 1, **fields) -> TaskEntity:
    base = TaskEntity(
        id=task_id,
        description="Inspect freezer",
        priority=TaskPriority.NORMAL,
        status=TaskStatus.PENDING,
        due_date=None,
        task_type=TaskType.ONE_TIME,
        recurrence_pattern=None,
        recurrence_interval=None,
        client_id=4,
        appliance_id=9,
        created_at=datetime(2026, 1, 1),
        updated_at=datetime(2026, 1, 1),
        completed_at=None,
    )
    return replace(base, **fields)


class FakeTasks:
    def __init__(self, *tasks: TaskEntity) -> None:
        self.tasks = {task.id: task for task in tasks}
        self.completed: list[int] = []

    def get_task(self, task_id: int) -> TaskEntity | None:
        return self.tasks.get(task_id)

    def complete_task(self, task_id: int) -> TaskEntity | None:
        self.completed.append(task_id)
        return self.tasks.get(task_id)


class FakeReportRepo:
    def __init__(self, next_due: date | None = None) -> None:
        self.reports: list[ServiceReportEntity] = []
        self.created: list[tuple[dict, list[tuple[int, int]]]] = []
        self.next_due = next_due

    def create_report(self, data: dict, parts: list[tuple[int, int]]) -> ServiceReportEntity:
        self.created.append((dict(data), list(parts)))
        report = ServiceReportEntity(
            id=len(self.reports) + 1,
            created_at=datetime.utcnow(),
            parts=tuple(ReportPartEntity(part_id, f"part {part_id}", qty) for part_id, qty in parts),
            **data,
        )
        self.reports.append(report)
        return report

    def list_reports(self, appliance_id: int | None = None, task_id: int | None = None):
        return [
            report
            for report in self.reports
            if (appliance_id is None or report.appliance_id == appliance_id)
            and (task_id is None or report.task_id == task_id)
        ]

    def next_open_due_date(self, appliance_id: int) -> date | None:
        return self.next_due


class FakeInventoryRepo:
    def __init__(self) -> None:
        self.parts: dict[int, SparePartEntity] = {}

    def list_parts(self, search: str | None = None) -> list[SparePartEntity]:
        return [p for p in self.parts.values() if not search or search.lower() in p.name.lower()]

    def get_part(self, part_id: int) -> SparePartEntity | None:
        return self.parts.get(part_id)

    def create_part(self, data: dict) -> SparePartEntity:
        part = SparePartEntity(id=len(self.parts) + 1, created_at=datetime.utcnow(), **data)
        self.parts[part.id] = part
        return part

    def adjust_quantity(self, part_id: int, delta: int) -> SparePartEntity | None:
        part = self.parts.get(part_id)
        if part is None:
            return None
        part = replace(part, quantity=part.quantity + delta)
        self.parts[part_id] = part
        return part


def test_report_completes_task_and_copies_appliance() -> None:
    tasks = FakeTasks(_task())
    repo = FakeReportRepo()
    service = ReportService(repo, tasks, technician="John Smith")

    report = service.create_report(1, "  Replaced compressor belt  ", 45, [(3, 1)])

    data, parts = repo.created[0]
    assert data == {
        "task_id": 1,
        "appliance_id": 9,
        "description": "Replaced compressor belt",
        "duration_minutes": 45,
        "technician": "John Smith",
    }
    assert parts == [(3, 1)]
    assert report.parts[0].quantity == 1
    assert tasks.completed == [1]


@pytest.mark.parametrize(
    ("description", "duration", "error"),
    [
        ("   ", 30, EmptyWorkDescription),
        ("Cleaned coils", -1, InvalidDuration),
        ("Cleaned coils", "30", InvalidDuration),
        ("Cleaned coils", True, InvalidDuration),
    ],
)
def test_invalid_report_never_reaches_store(description, duration, error) -> None:
    tasks = FakeTasks(_task())
    repo = FakeReportRepo()
    service = ReportService(repo, tasks)

    with pytest.raises(error) as excinfo:
        service.create_report(1, description, duration)

    assert isinstance(excinfo.value, ServiceReportError)
    assert repo.created == []
    assert tasks.completed == []


def test_zero_duration_is_allowed() -> None:
    service = ReportService(FakeReportRepo(), FakeTasks(_task()))

    assert service.create_report(1, "Visual check only", 0).duration_minutes == 0


def test_report_for_unknown_task_returns_none() -> None:
    repo = FakeReportRepo()
    service = ReportService(repo, FakeTasks())

    assert service.create_report(5, "Cleaned coils", 20) is None
    assert repo.created == []


def test_repeated_parts_are_merged() -> None:
    assert normalize_parts([(1, 2), (2, 1), (1, 3)]) == [(1, 5), (2, 1)]


@pytest.mark.parametrize(
    ("rows", "error"),
    [
        ([(1, 0)], InvalidPartQuantity),
        ([(1, -2)], InvalidPartQuantity),
        ([(1, 1.5)], InvalidPartQuantity),
        ([(None, 1)], UnknownSparePart),
    ],
)
def test_bad_part_rows_are_rejected(rows, error) -> None:
    with pytest.raises(error):
        normalize_parts(rows)


def test_appliance_history_dates() -> None:
    repo = FakeReportRepo(next_due=date(2026, 6, 1))
    tasks = FakeTasks(_task(1), _task(2), _task(3, appliance_id=10))
    service = ReportService(repo, tasks)
    service.create_report(1, "First visit", 30)
    service.create_report(2, "Second visit", 15)
    service.create_report(3, "Other appliance", 10)

    history = service.appliance_history(9)

    assert [r.task_id for r in history.reports] == [1, 2]
    assert history.last_service == max(r.created_at for r in history.reports).date()
    assert history.next_service == date(2026, 6, 1)


def test_appliance_without_reports_has_no_last_service() -> None:
    history = ReportService(FakeReportRepo(), FakeTasks()).appliance_history(9)

    assert history.reports == []
    assert history.last_service is None
    assert history.next_service is None


def test_create_part_normalizes_fields() -> None:
    service = InventoryService(FakeInventoryRepo(), low_stock_threshold=5)

    part = service.create_part({"name": " Door Seal Gasket ", "maker": "Universal", "quantity": 22})

    assert part.name == "Door Seal Gasket"
    assert part.detail == ""
    assert part.quantity == 22


@pytest.mark.parametrize("data", [{"name": "  "}, {"name": "Belt", "quantity": -1}, {"name": "Belt", "quantity": "3"}])
def test_create_part_rejects_bad_input(data) -> None:
    with pytest.raises(ValueError):
        InventoryService(FakeInventoryRepo()).create_part(data)


def test_restock_and_low_stock_flag() -> None:
    service = InventoryService(FakeInventoryRepo(), low_stock_threshold=5)
    part = service.create_part({"name": "Refrigerant R-134a", "quantity": 3})

    assert service.is_low_stock(part)
    restocked = service.restock(part.id, 10)
    assert restocked.quantity == 13
    assert not service.is_low_stock(restocked)
    assert service.restock(404, 1) is None
    with pytest.raises(ValueError):
        service.restock(part.id, 0)
