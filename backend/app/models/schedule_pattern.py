import uuid
from datetime import date, datetime
from enum import Enum

from sqlalchemy import Date, DateTime, Enum as SAEnum, ForeignKey, JSON, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship
from sqlalchemy.sql import func

from app.db.base import Base
from app.models.common import SystemStatus


class RecurrenceType(str, Enum):
    daily = "DAILY"
    weekly = "WEEKLY"
    biweekly = "BIWEEKLY"
    monthly = "MONTHLY"
    custom = "CUSTOM"


class SchedulePattern(Base):
    __tablename__ = "schedule_patterns"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    name: Mapped[str] = mapped_column(String(200), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    days_of_week: Mapped[list[str]] = mapped_column(JSON, nullable=False, default=list)
    start_time: Mapped[str] = mapped_column(String(5), nullable=False)
    end_time: Mapped[str] = mapped_column(String(5), nullable=False)
    recurrence: Mapped[RecurrenceType] = mapped_column(
        SAEnum(RecurrenceType, name="recurrence_type"), nullable=False, index=True
    )
    start_date: Mapped[date] = mapped_column(Date, nullable=False, index=True)
    end_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    status: Mapped[SystemStatus] = mapped_column(
        SAEnum(SystemStatus, name="system_status"), nullable=False, default=SystemStatus.active, index=True
    )
    deleted_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())
    updated_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), onupdate=func.now())

    exceptions: Mapped[list["ScheduleException"]] = relationship(
        back_populates="schedule_pattern",
        order_by="ScheduleException.exception_date",
    )
    timetables: Mapped[list["Timetable"]] = relationship(back_populates="schedule_pattern")  # noqa: F821


class ScheduleException(Base):
    __tablename__ = "schedule_exceptions"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    schedule_pattern_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("schedule_patterns.id"), nullable=False, index=True
    )
    exception_date: Mapped[date] = mapped_column(Date, nullable=False, index=True)
    reason: Mapped[str | None] = mapped_column(Text, nullable=True)
    alternative_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    alternative_start: Mapped[str | None] = mapped_column(String(5), nullable=True)
    alternative_end: Mapped[str | None] = mapped_column(String(5), nullable=True)
    status: Mapped[SystemStatus] = mapped_column(
        SAEnum(SystemStatus, name="system_status"), nullable=False, default=SystemStatus.active
    )
    deleted_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())
    updated_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), onupdate=func.now())

    schedule_pattern: Mapped[SchedulePattern] = relationship(back_populates="exceptions")
