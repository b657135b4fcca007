from __future__ import annotations

from datetime import datetime

from sqlalchemy import CheckConstraint, Column, Date, DateTime, ForeignKey, Integer, String, Text

from .db import Base


def utcnow() -> datetime:
    return datetime.utcnow()


class ClientModel(Base):
    __tablename__ = "clients"

    id = Column(Integer, primary_key=True)
    name = Column(String(200), nullable=False, index=True)
    email = Column(String(200), nullable=False, default="")
    phone = Column(String(50), nullable=False, default="")
    address = Column(Text, nullable=False, default="")
    created_at = Column(DateTime, nullable=False, default=utcnow)


class ApplianceModel(Base):
    __tablename__ = "appliances"

    id = Column(Integer, primary_key=True)
    client_id = Column(Integer, ForeignKey("clients.id", ondelete="CASCADE"), nullable=False, index=True)
    name = Column(String(200), nullable=False)
    maker = Column(String(120), nullable=False, default="")
    serial_number = Column(String(120), nullable=False, default="")
    age_years = Column(Integer, nullable=True)
    created_at = Column(DateTime, nullable=False, default=utcnow)


class TaskModel(Base):
    __tablename__ = "tasks"

    id = Column(Integer, primary_key=True)
    description = Column(Text, nullable=False)
    priority = Column(String(20), nullable=False, default="normal")
    status = Column(String(20), nullable=False, default="pending", index=True)
    due_date = Column(Date, nullable=True)
    task_type = Column(String(20), nullable=False, default="one-time")
    recurrence_pattern = Column(String(20), nullable=True)
    recurrence_interval = Column(Integer, nullable=True)
    client_id = Column(Integer, ForeignKey("clients.id", ondelete="SET NULL"), nullable=True, index=True)
    appliance_id = Column(Integer, ForeignKey("appliances.id", ondelete="SET NULL"), nullable=True)
    created_at = Column(DateTime, nullable=False, default=utcnow)
    updated_at = Column(DateTime, nullable=False, default=utcnow, onupdate=utcnow)
    completed_at = Column(DateTime, nullable=True)


class SparePartModel(Base):
    __tablename__ = "spare_parts"
    __table_args__ = (CheckConstraint("quantity >= 0", name="ck_spare_parts_quantity"),)

    id = Column(Integer, primary_key=True)
    name = Column(String(200), nullable=False, index=True)
    maker = Column(String(120), nullable=False, default="")
    detail = Column(Text, nullable=False, default="")
    quantity = Column(Integer, nullable=False, default=0)
    created_at = Column(DateTime, nullable=False, default=utcnow)


class ServiceReportModel(Base):
    __tablename__ = "service_reports"

    id = Column(Integer, primary_key=True)
    task_id = Column(Integer, ForeignKey("tasks.id", ondelete="CASCADE"), nullable=False, index=True)
    appliance_id = Column(Integer, ForeignKey("appliances.id", ondelete="SET NULL"), nullable=True, index=True)
    description = Column(Text, nullable=False)
    duration_minutes = Column(Integer, nullable=False, default=0)
    technician = Column(String(200), nullable=False, default="")
    created_at = Column(DateTime, nullable=False, default=utcnow)


class ReportPartModel(Base):
    __tablename__ = "report_parts"

    id = Column(Integer, primary_key=True)
    report_id = Column(
        Integer, ForeignKey("service_reports.id", ondelete="CASCADE"), nullable=False, index=True
    )
    spare_part_id = Column(Integer, ForeignKey("spare_parts.id", ondelete="RESTRICT"), nullable=False)
    quantity = Column(Integer, nullable=False)
