from __future__ import annotations

import logging
from datetime import date, datetime, timezone

from sqlalchemy import func, select, update
from sqlalchemy.orm import Session

from app.core.exceptions import ResourceNotFoundError, ValidationError
from app.models.common import WEEKDAY_ORDER, DayOfWeek, SystemStatus
from app.models.schedule_pattern import SchedulePattern
from app.models.timetable import PeriodType, Timetable, TimetablePeriod
from app.services.pattern_store import Page
from app.services.time_intervals import coerce_enum, validate_date_range, validate_time_range

logger = logging.getLogger(__name__)

TIMETABLE_FIELDS = ("name", "class_id", "course_campus_id", "schedule_pattern_id", "start_date", "end_date")
PERIOD_FIELDS = (
    "day_of_week",
    "start_time",
    "end_time",
    "type",
    "facility_id",
    "assignment_id",
    "recurring",
    "extra",
)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def period_sort_key(period: TimetablePeriod) -> tuple[int, str]:
    return WEEKDAY_ORDER.index(period.day_of_week), period.start_time


class ResourceAssignmentStore:
    """Persistence for timetables and the periods that book facilities and teacher assignments."""

    def __init__(self, db: Session) -> None:
        self.db = db

    # Timetables

    def _check_pattern(self, pattern_id: str | None) -> None:
        if pattern_id is None:
            return
        pattern = self.db.get(SchedulePattern, pattern_id)
        if pattern is None or pattern.status == SystemStatus.deleted:
            raise ResourceNotFoundError("Schedule pattern", pattern_id)

    def create_timetable(self, data: dict) -> Timetable:
        values = {key: data.get(key) for key in TIMETABLE_FIELDS}
        validate_date_range(values["start_date"], values["end_date"])
        self._check_pattern(values["schedule_pattern_id"])
        timetable = Timetable(**values, status=SystemStatus.active)
        self.db.add(timetable)
        self.db.flush()
        logger.info("Created timetable %s for class %s", timetable.id, timetable.class_id)
        return timetable

    def get_timetable(self, timetable_id: str) -> Timetable:
        timetable = self.db.get(Timetable, timetable_id)
        if timetable is None or timetable.status == SystemStatus.deleted:
            raise ResourceNotFoundError("Timetable", timetable_id)
        return timetable

    def list_timetables(
        self,
        *,
        status: SystemStatus = SystemStatus.active,
        class_id: str | None = None,
        page: int = 1,
        page_size: int = 10,
    ) -> Page:
        conditions = [Timetable.status == status]
        if class_id is not None:
            conditions.append(Timetable.class_id == class_id)

        total = self.db.execute(select(func.count()).select_from(Timetable).where(*conditions)).scalar_one()
        items = list(
            self.db.execute(
                select(Timetable)
                .where(*conditions)
                .order_by(Timetable.start_date.asc(), Timetable.name.asc())
                .offset((page - 1) * page_size)
                .limit(page_size)
            ).scalars()
        )
        return Page(items=items, total=total, page=page, page_size=page_size)

    def update_timetable(self, timetable_id: str, data: dict) -> Timetable:
        timetable = self.get_timetable(timetable_id)
        changes = {key: value for key, value in data.items() if key in TIMETABLE_FIELDS}
        for required in ("name", "class_id", "course_campus_id", "start_date", "end_date"):
            if required in changes and changes[required] is None:
                raise ValidationError(f"{required} is required")
        validate_date_range(
            changes.get("start_date", timetable.start_date),
            changes.get("end_date", timetable.end_date),
        )
        if "schedule_pattern_id" in changes:
            self._check_pattern(changes["schedule_pattern_id"])
        for key, value in changes.items():
            setattr(timetable, key, value)
        self.db.flush()
        return timetable

    def soft_delete_timetable(self, timetable_id: str) -> int:
        timetable = self.get_timetable(timetable_id)
        timetable.status = SystemStatus.deleted
        now = _utcnow()
        result = self.db.execute(
            update(TimetablePeriod)
            .where(TimetablePeriod.timetable_id == timetable.id, TimetablePeriod.status != SystemStatus.deleted)
            .values(status=SystemStatus.deleted, deleted_at=now)
            .execution_options(synchronize_session="fetch")
        )
        self.db.flush()
        logger.info("Soft-deleted timetable %s and %d period(s)", timetable.id, result.rowcount)
        return result.rowcount

    # Periods

    def get_period(self, period_id: str) -> TimetablePeriod:
        period = self.db.get(TimetablePeriod, period_id)
        if period is None or period.status == SystemStatus.deleted:
            raise ResourceNotFoundError("Timetable period", period_id)
        return period

    def create_period(self, timetable_id: str, data: dict) -> TimetablePeriod:
        timetable = self.get_timetable(timetable_id)
        values = {key: data.get(key) for key in PERIOD_FIELDS}
        validate_time_range(values["start_time"], values["end_time"])
        if not values["assignment_id"]:
            raise ValidationError("Teacher subject assignment is required")
        values["day_of_week"] = coerce_enum(DayOfWeek, values["day_of_week"], "day of week")
        values["type"] = coerce_enum(PeriodType, values["type"], "period type")
        if values["recurring"] is None:
            values["recurring"] = True
        values["extra"] = values["extra"] or {}

        period = TimetablePeriod(timetable_id=timetable.id, status=SystemStatus.active, **values)
        self.db.add(period)
        self.db.flush()
        return period

    def update_period(self, period_id: str, data: dict) -> TimetablePeriod:
        period = self.get_period(period_id)
        changes = {key: value for key, value in data.items() if key in PERIOD_FIELDS}
        for required in ("day_of_week", "start_time", "end_time", "type", "assignment_id", "recurring"):
            if required in changes and changes[required] is None:
                raise ValidationError(f"{required} is required")
        if "day_of_week" in changes:
            changes["day_of_week"] = coerce_enum(DayOfWeek, changes["day_of_week"], "day of week")
        if "type" in changes:
            changes["type"] = coerce_enum(PeriodType, changes["type"], "period type")
        validate_time_range(changes.get("start_time", period.start_time), changes.get("end_time", period.end_time))
        for key, value in changes.items():
            setattr(period, key, value if key != "extra" else (value or {}))
        self.db.flush()
        return period

    def soft_delete_period(self, period_id: str) -> TimetablePeriod:
        period = self.get_period(period_id)
        period.status = SystemStatus.deleted
        period.deleted_at = _utcnow()
        self.db.flush()
        return period

    # Lookups

    def _active_periods(self):
        return (
            select(TimetablePeriod)
            .join(Timetable, Timetable.id == TimetablePeriod.timetable_id)
            .where(TimetablePeriod.status == SystemStatus.active, Timetable.status == SystemStatus.active)
        )

    def find_active_periods_for_facility(
        self, facility_id: str, day_of_week: DayOfWeek, *, on_date: date | None = None
    ) -> list[TimetablePeriod]:
        query = self._active_periods().where(
            TimetablePeriod.facility_id == facility_id,
            TimetablePeriod.day_of_week == day_of_week,
        )
        return self._run(query, on_date)

    def find_active_periods_for_assignment(
        self, assignment_id: str, day_of_week: DayOfWeek, *, on_date: date | None = None
    ) -> list[TimetablePeriod]:
        query = self._active_periods().where(
            TimetablePeriod.assignment_id == assignment_id,
            TimetablePeriod.day_of_week == day_of_week,
        )
        return self._run(query, on_date)

    def _run(self, query, on_date: date | None) -> list[TimetablePeriod]:
        if on_date is not None:
            query = query.where(Timetable.start_date <= on_date, Timetable.end_date >= on_date)
        return list(self.db.execute(query.order_by(TimetablePeriod.start_time.asc())).scalars())

    def list_periods(
        self,
        *,
        timetable_id: str | None = None,
        class_id: str | None = None,
        facility_id: str | None = None,
        assignment_id: str | None = None,
        day_of_week: DayOfWeek | None = None,
    ) -> list[TimetablePeriod]:
        query = self._active_periods()
        if timetable_id is not None:
            query = query.where(TimetablePeriod.timetable_id == timetable_id)
        if class_id is not None:
            query = query.where(Timetable.class_id == class_id)
        if facility_id is not None:
            query = query.where(TimetablePeriod.facility_id == facility_id)
        if assignment_id is not None:
            query = query.where(TimetablePeriod.assignment_id == assignment_id)
        if day_of_week is not None:
            query = query.where(TimetablePeriod.day_of_week == day_of_week)
        periods = self.db.execute(query).scalars()
        return sorted(periods, key=period_sort_key)
