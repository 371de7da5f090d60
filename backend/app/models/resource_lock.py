from datetime import datetime
from enum import Enum

from sqlalchemy import DateTime, Enum as SAEnum, String
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.sql import func

from app.db.base import Base
from app.models.common import DayOfWeek


class ResourceKind(str, Enum):
    facility = "FACILITY"
    teacher_assignment = "TEACHER_ASSIGNMENT"


class ResourceDayLock(Base):
    """One row per bookable resource and weekday; period commits lock it FOR UPDATE."""

    __tablename__ = "resource_day_locks"

    resource_kind: Mapped[ResourceKind] = mapped_column(
        SAEnum(ResourceKind, name="resource_kind"), primary_key=True
    )
    resource_id: Mapped[str] = mapped_column(String(36), primary_key=True)
    day_of_week: Mapped[DayOfWeek] = mapped_column(SAEnum(DayOfWeek, name="day_of_week"), primary_key=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())
