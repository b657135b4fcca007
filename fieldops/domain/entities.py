from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from typing import Optional

from .enums import RecurrencePattern, TaskPriority, TaskStatus, TaskType


@dataclass(frozen=True)
class TaskEntity:
    id: int | None
    description: str
    priority: TaskPriority
    status: TaskStatus
    due_date: Optional[date]
    task_type: TaskType
    recurrence_pattern: RecurrencePattern | None
    recurrence_interval: int | None
    client_id: int | None
    appliance_id: int | None
    created_at: datetime
    updated_at: datetime
    completed_at: Optional[datetime]


@dataclass(frozen=True)
class ClientEntity:
    id: int | None
    name: str
    email: str
    phone: str
    address: str
    created_at: datetime


@dataclass(frozen=True)
class ApplianceEntity:
    id: int | None
    client_id: int
    name: str
    maker: str
    serial_number: str
    age_years: int | None
    created_at: datetime


@dataclass(frozen=True)
class SparePartEntity:
    id: int | None
    name: str
    maker: str
    detail: str
    quantity: int
    created_at: datetime


@dataclass(frozen=True)
class ReportPartEntity:
    spare_part_id: int
    name: str
    quantity: int


@dataclass(frozen=True)
class ServiceReportEntity:
    id: int | None
    task_id: int
    appliance_id: int | None
    description: str
    duration_minutes: int
    technician: str
    created_at: datetime
    parts: tuple[ReportPartEntity, ...] = ()


@dataclass(frozen=True)
class ApplianceHistory:
    appliance_id: int
    reports: list[ServiceReportEntity]
    last_service: Optional[date]
    next_service: Optional[date]
