from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field
from datetime import date, datetime, timezone

from sqlalchemy import func, or_, select
from sqlalchemy.orm import Session, selectinload

from app.core.exceptions import DateRangeViolation, ResourceNotFoundError, ValidationError
from app.models.common import SystemStatus
from app.models.schedule_pattern import RecurrenceType, ScheduleException, SchedulePattern
from app.models.timetable import Timetable
from app.services.time_intervals import coerce_enum, validate_date_range, validate_days, validate_time_range

logger = logging.getLogger(__name__)

PATTERN_FIELDS = (
    "name",
    "description",
    "days_of_week",
    "start_time",
    "end_time",
    "recurrence",
    "start_date",
    "end_date",
)
EXCEPTION_FIELDS = ("exception_date", "reason", "alternative_date", "alternative_start", "alternative_end")


@dataclass
class PatternFilters:
    status: SystemStatus = SystemStatus.active
    start_date: date | None = None
    end_date: date | None = None
    recurrence: RecurrenceType | None = None


@dataclass
class Page:
    items: list = field(default_factory=list)
    total: int = 0
    page: int = 1
    page_size: int = 10

    @property
    def total_pages(self) -> int:
        return math.ceil(self.total / self.page_size) if self.page_size else 0


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _validate_pattern_fields(values: dict) -> list[str]:
    if not values.get("name"):
        raise ValidationError("Name is required")
    if values.get("start_date") is None:
        raise ValidationError("Start date is required")
    validate_date_range(values["start_date"], values.get("end_date"))
    validate_time_range(values["start_time"], values["end_time"])
    return [day.value for day in validate_days(values.get("days_of_week"))]


def _ensure_within_pattern(pattern: SchedulePattern, value: date, label: str) -> None:
    if value < pattern.start_date or (pattern.end_date is not None and value > pattern.end_date):
        raise DateRangeViolation(
            f"{label} must be within pattern date range",
            details={
                "date": value.isoformat(),
                "pattern_start_date": pattern.start_date.isoformat(),
                "pattern_end_date": pattern.end_date.isoformat() if pattern.end_date else None,
            },
        )


def _validate_alternative_times(pattern: SchedulePattern, start: str | None, end: str | None) -> None:
    if start is None and end is None:
        return
    validate_time_range(start or pattern.start_time, end or pattern.end_time)


class SchedulePatternStore:
    """Persistence for recurring schedule patterns and their exceptions."""

    def __init__(self, db: Session) -> None:
        self.db = db

    def _load(self, pattern_id: str) -> SchedulePattern:
        pattern = self.db.get(SchedulePattern, pattern_id)
        if pattern is None or pattern.status == SystemStatus.deleted:
            raise ResourceNotFoundError("Schedule pattern", pattern_id)
        return pattern

    def _load_exception(self, exception_id: str) -> ScheduleException:
        exception = self.db.get(ScheduleException, exception_id)
        if exception is None or exception.status == SystemStatus.deleted:
            raise ResourceNotFoundError("Schedule exception", exception_id)
        return exception

    def create(self, data: dict) -> SchedulePattern:
        values = {key: data.get(key) for key in PATTERN_FIELDS}
        values["days_of_week"] = _validate_pattern_fields(values)
        values["recurrence"] = coerce_enum(RecurrenceType, values["recurrence"], "recurrence")

        pattern = SchedulePattern(**values, status=SystemStatus.active)
        self.db.add(pattern)
        self.db.flush()
        logger.info("Created schedule pattern %s (%s)", pattern.id, pattern.recurrence.value)
        return pattern

    def update(self, pattern_id: str, data: dict) -> SchedulePattern:
        pattern = self._load(pattern_id)
        changes = {key: value for key, value in data.items() if key in PATTERN_FIELDS}

        merged = {key: getattr(pattern, key) for key in PATTERN_FIELDS}
        merged.update(changes)
        days = _validate_pattern_fields(merged)
        if "days_of_week" in changes:
            changes["days_of_week"] = days
        if "recurrence" in changes:
            changes["recurrence"] = coerce_enum(RecurrenceType, changes["recurrence"], "recurrence")

        for key, value in changes.items():
            setattr(pattern, key, value)
        self.db.flush()
        logger.info("Updated schedule pattern %s fields=%s", pattern.id, sorted(changes))
        return pattern

    def get(self, pattern_id: str) -> SchedulePattern:
        self._load(pattern_id)
        return self.db.execute(
            select(SchedulePattern)
            .where(SchedulePattern.id == pattern_id)
            .options(selectinload(SchedulePattern.exceptions), selectinload(SchedulePattern.timetables))
        ).scalar_one()

    def active_exceptions(self, pattern: SchedulePattern) -> list[ScheduleException]:
        return [item for item in pattern.exceptions if item.status == SystemStatus.active]

    def active_timetables(self, pattern: SchedulePattern) -> list[Timetable]:
        return [item for item in pattern.timetables if item.status == SystemStatus.active]

    def list(self, filters: PatternFilters | None = None, page: int = 1, page_size: int = 10) -> Page:
        filters = filters or PatternFilters()
        conditions = [SchedulePattern.status == filters.status]
        if filters.start_date is not None and filters.end_date is not None:
            conditions.append(SchedulePattern.start_date <= filters.end_date)
            conditions.append(
                or_(SchedulePattern.end_date.is_(None), SchedulePattern.end_date >= filters.start_date)
            )
        if filters.recurrence is not None:
            conditions.append(SchedulePattern.recurrence == filters.recurrence)

        total = self.db.execute(select(func.count()).select_from(SchedulePattern).where(*conditions)).scalar_one()
        items = list(
            self.db.execute(
                select(SchedulePattern)
                .where(*conditions)
                .options(selectinload(SchedulePattern.exceptions), selectinload(SchedulePattern.timetables))
                .order_by(SchedulePattern.start_date.asc(), SchedulePattern.created_at.asc())
                .offset((page - 1) * page_size)
                .limit(page_size)
            ).scalars()
        )
        return Page(items=items, total=total, page=page, page_size=page_size)

    def soft_delete(self, pattern_id: str) -> None:
        pattern = self._load(pattern_id)
        pattern.status = SystemStatus.deleted
        pattern.deleted_at = _utcnow()
        self.db.flush()
        logger.info("Soft-deleted schedule pattern %s", pattern.id)

    def _ensure_single_exception(self, pattern_id: str, exception_date: date, exclude_id: str | None = None) -> None:
        query = select(ScheduleException.id).where(
            ScheduleException.schedule_pattern_id == pattern_id,
            ScheduleException.exception_date == exception_date,
            ScheduleException.status == SystemStatus.active,
        )
        if exclude_id is not None:
            query = query.where(ScheduleException.id != exclude_id)
        if self.db.execute(query).first() is not None:
            raise ValidationError(
                "An exception already exists for this date",
                details={"exception_date": exception_date.isoformat()},
            )

    def create_exception(self, pattern_id: str, data: dict) -> ScheduleException:
        pattern = self._load(pattern_id)
        values = {key: data.get(key) for key in EXCEPTION_FIELDS}
        if values["exception_date"] is None:
            raise ValidationError("Exception date is required")

        _ensure_within_pattern(pattern, values["exception_date"], "Exception date")
        if values["alternative_date"] is not None:
            _ensure_within_pattern(pattern, values["alternative_date"], "Alternative date")
        _validate_alternative_times(pattern, values["alternative_start"], values["alternative_end"])
        self._ensure_single_exception(pattern.id, values["exception_date"])

        exception = ScheduleException(schedule_pattern_id=pattern.id, status=SystemStatus.active, **values)
        self.db.add(exception)
        self.db.flush()
        logger.info(
            "Created schedule exception %s for pattern %s on %s",
            exception.id,
            pattern.id,
            exception.exception_date.isoformat(),
        )
        return exception

    def update_exception(self, exception_id: str, data: dict) -> ScheduleException:
        exception = self._load_exception(exception_id)
        pattern = self._load(exception.schedule_pattern_id)
        changes = {key: value for key, value in data.items() if key in EXCEPTION_FIELDS}

        if changes.get("exception_date") is not None:
            _ensure_within_pattern(pattern, changes["exception_date"], "Exception date")
            self._ensure_single_exception(pattern.id, changes["exception_date"], exclude_id=exception.id)
        elif "exception_date" in changes:
            raise ValidationError("Exception date is required")
        if changes.get("alternative_date") is not None:
            _ensure_within_pattern(pattern, changes["alternative_date"], "Alternative date")
        _validate_alternative_times(
            pattern,
            changes.get("alternative_start", exception.alternative_start),
            changes.get("alternative_end", exception.alternative_end),
        )

        for key, value in changes.items():
            setattr(exception, key, value)
        self.db.flush()
        logger.info("Updated schedule exception %s fields=%s", exception.id, sorted(changes))
        return exception

    def delete_exception(self, exception_id: str) -> None:
        exception = self._load_exception(exception_id)
        exception.status = SystemStatus.deleted
        exception.deleted_at = _utcnow()
        self.db.flush()
        logger.info("Soft-deleted schedule exception %s", exception.id)
