import uuid
from datetime import date, datetime
from enum import Enum
from typing import Optional

from sqlalchemy import Boolean, Date, DateTime, Enum as SAEnum, ForeignKey, JSON, String
from sqlalchemy.orm import Mapped, mapped_column, relationship
from sqlalchemy.sql import func

from app.db.base import Base
from app.models.common import DayOfWeek, SystemStatus


class PeriodType(str, Enum):
    lecture = "LECTURE"
    lab = "LAB"
    tutorial = "TUTORIAL"
    workshop = "WORKSHOP"
    exam = "EXAM"


class Timetable(Base):
    __tablename__ = "timetables"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    class_id: Mapped[str] = mapped_column(String(36), nullable=False, index=True)
    course_campus_id: Mapped[str] = mapped_column(String(36), nullable=False, index=True)
    schedule_pattern_id: Mapped[str | None] = mapped_column(
        String(36), ForeignKey("schedule_patterns.id"), nullable=True, index=True
    )
    start_date: Mapped[date] = mapped_column(Date, nullable=False)
    end_date: Mapped[date] = mapped_column(Date, nullable=False)
    status: Mapped[SystemStatus] = mapped_column(
        SAEnum(SystemStatus, name="system_status"), nullable=False, default=SystemStatus.active, index=True
    )
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())
    updated_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), onupdate=func.now())

    schedule_pattern: Mapped[Optional["SchedulePattern"]] = relationship(back_populates="timetables")  # noqa: F821
    periods: Mapped[list["TimetablePeriod"]] = relationship(back_populates="timetable")


class TimetablePeriod(Base):
    __tablename__ = "timetable_periods"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    timetable_id: Mapped[str] = mapped_column(String(36), ForeignKey("timetables.id"), nullable=False, index=True)
    day_of_week: Mapped[DayOfWeek] = mapped_column(SAEnum(DayOfWeek, name="day_of_week"), nullable=False)
    start_time: Mapped[str] = mapped_column(String(5), nullable=False)
    end_time: Mapped[str] = mapped_column(String(5), nullable=False)
    type: Mapped[PeriodType] = mapped_column(SAEnum(PeriodType, name="period_type"), nullable=False)
    facility_id: Mapped[str | None] = mapped_column(String(36), nullable=True, index=True)
    assignment_id: Mapped[str] = mapped_column(String(36), nullable=False, index=True)
    recurring: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    # `metadata` is reserved on declarative classes.
    extra: Mapped[dict] = mapped_column("metadata", JSON, nullable=False, default=dict)
    status: Mapped[SystemStatus] = mapped_column(
        SAEnum(SystemStatus, name="system_status"), nullable=False, default=SystemStatus.active, index=True
    )
    deleted_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())
    updated_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), onupdate=func.now())

    timetable: Mapped[Timetable] = relationship(back_populates="periods")
