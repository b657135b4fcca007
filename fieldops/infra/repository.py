from __future__ import annotations

from datetime import date, timedelta
from typing import Optional

from sqlalchemy import func, or_, select
from sqlalchemy.orm import sessionmaker

from fieldops.config import SETTINGS
from fieldops.domain.entities import (
    ApplianceEntity,
    ClientEntity,
    ReportPartEntity,
    ServiceReportEntity,
    SparePartEntity,
    TaskEntity,
)
from fieldops.domain.enums import RecurrencePattern, TaskPriority, TaskStatus, TaskType
from fieldops.domain.errors import InsufficientStock, UnknownSparePart
from fieldops.domain.filters import TaskFilters

from .db import SessionLocal
from .models import (
    ApplianceModel,
    ClientModel,
    ReportPartModel,
    ServiceReportModel,
    SparePartModel,
    TaskModel,
)

STATUS_COMPLETED = TaskStatus.COMPLETED.value


def _enum_or(enum_cls, value, default):
    try:
        return enum_cls(value)
    except ValueError:
        return default


def _to_entity(model: TaskModel) -> TaskEntity:
    pattern = model.recurrence_pattern
    return TaskEntity(
        id=model.id,
        description=model.description,
        priority=_enum_or(TaskPriority, model.priority, TaskPriority.NORMAL),
        status=_enum_or(TaskStatus, model.status, TaskStatus.PENDING),
        due_date=model.due_date,
        task_type=_enum_or(TaskType, model.task_type, TaskType.ONE_TIME),
        recurrence_pattern=_enum_or(RecurrencePattern, pattern, RecurrencePattern.NONE) if pattern else None,
        recurrence_interval=model.recurrence_interval,
        client_id=model.client_id,
        appliance_id=model.appliance_id,
        created_at=model.created_at,
        updated_at=model.updated_at,
        completed_at=model.completed_at,
    )


def _to_client(model: ClientModel) -> ClientEntity:
    return ClientEntity(
        id=model.id,
        name=model.name,
        email=model.email,
        phone=model.phone,
        address=model.address,
        created_at=model.created_at,
    )


def _to_appliance(model: ApplianceModel) -> ApplianceEntity:
    return ApplianceEntity(
        id=model.id,
        client_id=model.client_id,
        name=model.name,
        maker=model.maker,
        serial_number=model.serial_number,
        age_years=model.age_years,
        created_at=model.created_at,
    )


def _to_part(model: SparePartModel) -> SparePartEntity:
    return SparePartEntity(
        id=model.id,
        name=model.name,
        maker=model.maker,
        detail=model.detail,
        quantity=model.quantity,
        created_at=model.created_at,
    )


def _to_report(model: ServiceReportModel, parts: tuple[ReportPartEntity, ...] = ()) -> ServiceReportEntity:
    return ServiceReportEntity(
        id=model.id,
        task_id=model.task_id,
        appliance_id=model.appliance_id,
        description=model.description,
        duration_minutes=model.duration_minutes,
        technician=model.technician,
        created_at=model.created_at,
        parts=parts,
    )


def _apply_filters(stmt, filters: TaskFilters) -> object:
    today = date.today()

    if filters.filter_key == "pending":
        stmt = stmt.where(TaskModel.status == TaskStatus.PENDING.value)
    elif filters.filter_key == "in_progress":
        stmt = stmt.where(TaskModel.status == TaskStatus.IN_PROGRESS.value)
    elif filters.filter_key == "completed":
        stmt = stmt.where(TaskModel.status == STATUS_COMPLETED)
    elif filters.filter_key == "recurring":
        stmt = stmt.where(TaskModel.task_type == TaskType.RECURRING.value)
    elif filters.filter_key == "overdue":
        stmt = stmt.where(
            TaskModel.due_date.is_not(None),
            TaskModel.due_date < today,
            TaskModel.status != STATUS_COMPLETED,
        )
    elif filters.filter_key == "upcoming":
        horizon = today + timedelta(days=SETTINGS.upcoming_days)
        stmt = stmt.where(
            TaskModel.due_date.is_not(None),
            TaskModel.due_date.between(today, horizon),
            TaskModel.status != STATUS_COMPLETED,
        )

    if filters.client_id is not None:
        stmt = stmt.where(TaskModel.client_id == filters.client_id)

    if filters.search:
        pattern = f"%{filters.search}%"
        matching_clients = select(ClientModel.id).where(ClientModel.name.ilike(pattern))
        stmt = stmt.where(
            or_(
                TaskModel.description.ilike(pattern),
                TaskModel.client_id.in_(matching_clients),
            )
        )

    return stmt


class TaskRepository:
    def __init__(self, session_factory: sessionmaker = SessionLocal) -> None:
        self._session_factory = session_factory

    def list_tasks(self, filters: TaskFilters) -> list[TaskEntity]:
        with self._session_factory() as session:
            stmt = select(TaskModel)
            stmt = _apply_filters(stmt, filters)
            stmt = stmt.order_by(
                TaskModel.due_date.is_(None),
                TaskModel.due_date.asc(),
                TaskModel.created_at.desc(),
                TaskModel.id.desc(),
            )
            return [_to_entity(task) for task in session.scalars(stmt)]

    def get_task(self, task_id: int) -> Optional[TaskEntity]:
        with self._session_factory() as session:
            task = session.get(TaskModel, task_id)
            return _to_entity(task) if task else None

    def create_task(self, data: dict) -> TaskEntity:
        with self._session_factory() as session:
            task = TaskModel(**data)
            session.add(task)
            session.commit()
            session.refresh(task)
            return _to_entity(task)

    def update_task(self, task_id: int, data: dict) -> Optional[TaskEntity]:
        """Apply a partial update: absent keys stay as they are, None clears."""
        with self._session_factory() as session:
            task = session.get(TaskModel, task_id)
            if not task:
                return None
            for key, value in data.items():
                setattr(task, key, value)
            session.commit()
            session.refresh(task)
            return _to_entity(task)

    def delete_task(self, task_id: int) -> None:
        with self._session_factory() as session:
            task = session.get(TaskModel, task_id)
            if not task:
                return
            session.delete(task)
            session.commit()

    def get_stats(self) -> dict[str, int]:
        with self._session_factory() as session:
            counts = dict(
                session.execute(
                    select(TaskModel.status, func.count()).group_by(TaskModel.status)
                ).all()
            )
            overdue = session.scalar(
                select(func.count())
                .select_from(TaskModel)
                .where(
                    TaskModel.due_date.is_not(None),
                    TaskModel.due_date < date.today(),
                    TaskModel.status != STATUS_COMPLETED,
                )
            ) or 0
            return {
                "total": sum(counts.values()),
                "pending": counts.get(TaskStatus.PENDING.value, 0),
                "in_progress": counts.get(TaskStatus.IN_PROGRESS.value, 0),
                "completed": counts.get(STATUS_COMPLETED, 0),
                "overdue": overdue,
            }


class ClientRepository:
    def __init__(self, session_factory: sessionmaker = SessionLocal) -> None:
        self._session_factory = session_factory

    def list_clients(self, search: str | None = None) -> list[ClientEntity]:
        with self._session_factory() as session:
            stmt = select(ClientModel)
            if search:
                stmt = stmt.where(ClientModel.name.ilike(f"%{search}%"))
            stmt = stmt.order_by(ClientModel.name.asc())
            return [_to_client(client) for client in session.scalars(stmt)]

    def get_client(self, client_id: int) -> Optional[ClientEntity]:
        with self._session_factory() as session:
            client = session.get(ClientModel, client_id)
            return _to_client(client) if client else None

    def create_client(self, data: dict) -> ClientEntity:
        with self._session_factory() as session:
            client = ClientModel(**data)
            session.add(client)
            session.commit()
            session.refresh(client)
            return _to_client(client)

    def list_appliances(self, client_id: int) -> list[ApplianceEntity]:
        with self._session_factory() as session:
            stmt = (
                select(ApplianceModel)
                .where(ApplianceModel.client_id == client_id)
                .order_by(ApplianceModel.name.asc())
            )
            return [_to_appliance(appliance) for appliance in session.scalars(stmt)]

    def get_appliance(self, appliance_id: int) -> Optional[ApplianceEntity]:
        with self._session_factory() as session:
            appliance = session.get(ApplianceModel, appliance_id)
            return _to_appliance(appliance) if appliance else None

    def create_appliance(self, data: dict) -> ApplianceEntity:
        with self._session_factory() as session:
            appliance = ApplianceModel(**data)
            session.add(appliance)
            session.commit()
            session.refresh(appliance)
            return _to_appliance(appliance)


class InventoryRepository:
    def __init__(self, session_factory: sessionmaker = SessionLocal) -> None:
        self._session_factory = session_factory

    def list_parts(self, search: str | None = None) -> list[SparePartEntity]:
        with self._session_factory() as session:
            stmt = select(SparePartModel)
            if search:
                pattern = f"%{search}%"
                stmt = stmt.where(
                    or_(SparePartModel.name.ilike(pattern), SparePartModel.maker.ilike(pattern))
                )
            stmt = stmt.order_by(SparePartModel.name.asc(), SparePartModel.id.asc())
            return [_to_part(part) for part in session.scalars(stmt)]

    def get_part(self, part_id: int) -> Optional[SparePartEntity]:
        with self._session_factory() as session:
            part = session.get(SparePartModel, part_id)
            return _to_part(part) if part else None

    def create_part(self, data: dict) -> SparePartEntity:
        with self._session_factory() as session:
            part = SparePartModel(**data)
            session.add(part)
            session.commit()
            session.refresh(part)
            return _to_part(part)

    def adjust_quantity(self, part_id: int, delta: int) -> Optional[SparePartEntity]:
        """Add ``delta`` to the stock level; the level never drops below zero."""
        with self._session_factory() as session:
            part = session.get(SparePartModel, part_id)
            if not part:
                return None
            if part.quantity + delta < 0:
                raise InsufficientStock(part.name, part.quantity)
            part.quantity += delta
            session.commit()
            session.refresh(part)
            return _to_part(part)


class ReportRepository:
    def __init__(self, session_factory: sessionmaker = SessionLocal) -> None:
        self._session_factory = session_factory

    def create_report(self, data: dict, parts: list[tuple[int, int]]) -> ServiceReportEntity:
        """Store a report and take the used parts out of stock in one transaction.

        Nothing is written when a part is unknown or short.
        """
        with self._session_factory() as session:
            used: list[ReportPartEntity] = []
            for part_id, quantity in parts:
                part = session.get(SparePartModel, part_id)
                if not part:
                    raise UnknownSparePart()
                if part.quantity < quantity:
                    raise InsufficientStock(part.name, part.quantity)
                part.quantity -= quantity
                used.append(ReportPartEntity(spare_part_id=part.id, name=part.name, quantity=quantity))

            report = ServiceReportModel(**data)
            session.add(report)
            session.flush()
            for item in used:
                session.add(
                    ReportPartModel(
                        report_id=report.id,
                        spare_part_id=item.spare_part_id,
                        quantity=item.quantity,
                    )
                )
            session.commit()
            session.refresh(report)
            return _to_report(report, tuple(used))

    def list_reports(
        self,
        appliance_id: int | None = None,
        task_id: int | None = None,
    ) -> list[ServiceReportEntity]:
        with self._session_factory() as session:
            stmt = select(ServiceReportModel)
            if appliance_id is not None:
                stmt = stmt.where(ServiceReportModel.appliance_id == appliance_id)
            if task_id is not None:
                stmt = stmt.where(ServiceReportModel.task_id == task_id)
            stmt = stmt.order_by(ServiceReportModel.created_at.desc(), ServiceReportModel.id.desc())
            reports = list(session.scalars(stmt))
            parts = self._parts_by_report(session, [report.id for report in reports])
            return [_to_report(report, parts.get(report.id, ())) for report in reports]

    def next_open_due_date(self, appliance_id: int) -> Optional[date]:
        with self._session_factory() as session:
            return session.scalar(
                select(func.min(TaskModel.due_date)).where(
                    TaskModel.appliance_id == appliance_id,
                    TaskModel.due_date.is_not(None),
                    TaskModel.status != STATUS_COMPLETED,
                )
            )

    @staticmethod
    def _parts_by_report(session, report_ids: list[int]) -> dict[int, tuple[ReportPartEntity, ...]]:
        if not report_ids:
            return {}
        rows = session.execute(
            select(ReportPartModel.report_id, SparePartModel.id, SparePartModel.name, ReportPartModel.quantity)
            .join(SparePartModel, SparePartModel.id == ReportPartModel.spare_part_id)
            .where(ReportPartModel.report_id.in_(report_ids))
            .order_by(ReportPartModel.id.asc())
        ).all()
        grouped: dict[int, list[ReportPartEntity]] = {}
        for report_id, part_id, name, quantity in rows:
            grouped.setdefault(report_id, []).append(
                ReportPartEntity(spare_part_id=part_id, name=name, quantity=quantity)
            )
        return {report_id: tuple(items) for report_id, items in grouped.items()}
