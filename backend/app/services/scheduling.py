"""Scheduling facade used by the API routes.

A timetable period moves through four states:

* Proposed: a candidate that has not been persisted yet.
* Committed: persisted and ACTIVE after a clean conflict check.
* Modified: an update, re-checked against the same rule before it lands.
* Retired: soft-deleted; it no longer blocks other bookings.

Proposed -> Committed and Modified both run under the per-(resource, weekday)
serialization of ``resource_locks``; a non-empty conflict list rolls the
session back and raises ``ConflictError``.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from datetime import date

from sqlalchemy.orm import Session

from app.core.exceptions import ConflictError, ValidationError
from app.models.common import DayOfWeek, SystemStatus
from app.models.resource_lock import ResourceKind
from app.models.schedule_pattern import ScheduleException, SchedulePattern
from app.models.timetable import Timetable, TimetablePeriod
from app.services.conflict_service import CandidateSlot, ConflictEntry, ConflictService, PeriodConflict
from app.services.occurrences import Occurrence, generate_occurrences
from app.services.pattern_store import PatternFilters, Page, SchedulePatternStore
from app.services.period_store import ResourceAssignmentStore
from app.services.resource_locks import (
    KeyedLockRegistry,
    ResourceDayKey,
    claim_resource_days,
    get_lock_registry,
)
from app.services.time_intervals import coerce_enum, validate_time_range

logger = logging.getLogger(__name__)


def resource_day_keys(
    day_of_week: DayOfWeek, assignment_id: str, facility_id: str | None = None
) -> list[ResourceDayKey]:
    day_of_week = coerce_enum(DayOfWeek, day_of_week, "day of week")
    keys: list[ResourceDayKey] = [(ResourceKind.teacher_assignment, assignment_id, day_of_week)]
    if facility_id:
        keys.append((ResourceKind.facility, facility_id, day_of_week))
    return keys


def conflict_message(conflicts: list[PeriodConflict]) -> str:
    message = conflicts[0].description
    if len(conflicts) > 1:
        message += f" (and {len(conflicts) - 1} more conflict(s))"
    return message


class SchedulingService:
    def __init__(self, db: Session, locks: KeyedLockRegistry | None = None) -> None:
        self.db = db
        self.patterns = SchedulePatternStore(db)
        self.assignments = ResourceAssignmentStore(db)
        self.conflicts = ConflictService(db)
        self.locks = locks or get_lock_registry()

    def _commit(self, instance=None):
        self.db.commit()
        if instance is not None:
            self.db.refresh(instance)
        return instance

    # Patterns and exceptions

    def create_pattern(self, data: dict) -> SchedulePattern:
        return self._commit(self.patterns.create(data))

    def update_pattern(self, pattern_id: str, data: dict) -> SchedulePattern:
        return self._commit(self.patterns.update(pattern_id, data))

    def delete_pattern(self, pattern_id: str) -> None:
        self.patterns.soft_delete(pattern_id)
        self._commit()

    def get_pattern(self, pattern_id: str) -> SchedulePattern:
        return self.patterns.get(pattern_id)

    def list_patterns(self, filters: PatternFilters, page: int, page_size: int) -> Page:
        return self.patterns.list(filters, page=page, page_size=page_size)

    def create_exception(self, pattern_id: str, data: dict) -> ScheduleException:
        return self._commit(self.patterns.create_exception(pattern_id, data))

    def update_exception(self, exception_id: str, data: dict) -> ScheduleException:
        return self._commit(self.patterns.update_exception(exception_id, data))

    def delete_exception(self, exception_id: str) -> None:
        self.patterns.delete_exception(exception_id)
        self._commit()

    def generate_occurrences(self, pattern_id: str, window_start: date, window_end: date) -> list[Occurrence]:
        return generate_occurrences(self.db, pattern_id, window_start, window_end)

    # Timetables

    def create_timetable(self, data: dict) -> Timetable:
        return self._commit(self.assignments.create_timetable(data))

    def get_timetable(self, timetable_id: str) -> Timetable:
        return self.assignments.get_timetable(timetable_id)

    def list_timetables(
        self, *, status: SystemStatus, class_id: str | None, page: int, page_size: int
    ) -> Page:
        return self.assignments.list_timetables(status=status, class_id=class_id, page=page, page_size=page_size)

    def update_timetable(self, timetable_id: str, data: dict) -> Timetable:
        return self._commit(self.assignments.update_timetable(timetable_id, data))

    def delete_timetable(self, timetable_id: str) -> int:
        retired = self.assignments.soft_delete_timetable(timetable_id)
        self._commit()
        return retired

    # Periods

    def get_period(self, period_id: str) -> TimetablePeriod:
        return self.assignments.get_period(period_id)

    def list_periods(self, **filters) -> list[TimetablePeriod]:
        return self.assignments.list_periods(**filters)

    def _reject(self, conflicts: list[PeriodConflict], action: str) -> None:
        logger.warning("Rejected %s: %d conflicting period(s)", action, len(conflicts))
        raise ConflictError(conflict_message(conflicts), conflicts)

    def create_period(self, timetable_id: str, data: dict) -> TimetablePeriod:
        if not data.get("assignment_id") or data.get("day_of_week") is None:
            raise ValidationError("Day of week and teacher subject assignment are required")
        validate_time_range(data.get("start_time"), data.get("end_time"))
        self.assignments.get_timetable(timetable_id)
        keys = resource_day_keys(data.get("day_of_week"), data.get("assignment_id"), data.get("facility_id"))

        with self.locks.hold(keys):
            try:
                claim_resource_days(self.db, keys)
                conflicts = self.conflicts.conflicts_for_period(
                    day_of_week=data.get("day_of_week"),
                    start_time=data.get("start_time"),
                    end_time=data.get("end_time"),
                    assignment_id=data.get("assignment_id"),
                    facility_id=data.get("facility_id"),
                )
                if conflicts:
                    self._reject(conflicts, f"period for timetable {timetable_id}")
                period = self.assignments.create_period(timetable_id, data)
                self._commit(period)
            except Exception:
                self.db.rollback()
                raise

        logger.info(
            "Committed period %s (%s %s-%s) on timetable %s",
            period.id,
            period.day_of_week.value,
            period.start_time,
            period.end_time,
            timetable_id,
        )
        return period

    def update_period(self, period_id: str, data: dict) -> TimetablePeriod:
        period = self.assignments.get_period(period_id)
        merged = {
            "day_of_week": data.get("day_of_week") or period.day_of_week,
            "start_time": data.get("start_time") or period.start_time,
            "end_time": data.get("end_time") or period.end_time,
            "assignment_id": data.get("assignment_id") or period.assignment_id,
            "facility_id": data["facility_id"] if "facility_id" in data else period.facility_id,
        }
        validate_time_range(merged["start_time"], merged["end_time"])
        keys = resource_day_keys(period.day_of_week, period.assignment_id, period.facility_id) + resource_day_keys(
            merged["day_of_week"], merged["assignment_id"], merged["facility_id"]
        )

        with self.locks.hold(keys):
            try:
                claim_resource_days(self.db, keys)
                conflicts = self.conflicts.conflicts_for_period(exclude_period_id=period.id, **merged)
                if conflicts:
                    self._reject(conflicts, f"update of period {period.id}")
                self.assignments.update_period(period.id, data)
                self._commit(period)
            except Exception:
                self.db.rollback()
                raise

        logger.info("Updated period %s", period.id)
        return period

    def delete_period(self, period_id: str) -> TimetablePeriod:
        period = self.assignments.soft_delete_period(period_id)
        self._commit()
        logger.info("Retired period %s", period.id)
        return period

    # Conflict checks

    def detect_conflicts(
        self,
        resource_kind: ResourceKind,
        resource_id: str,
        day_of_week: DayOfWeek,
        start_time: str,
        end_time: str,
        exclude_period_id: str | None = None,
    ) -> list[TimetablePeriod]:
        return self.conflicts.find_conflicts(
            resource_kind, resource_id, day_of_week, start_time, end_time, exclude_period_id=exclude_period_id
        )

    def check_conflicts(
        self, resource_kind: ResourceKind, resource_id: str, candidates: Iterable[CandidateSlot]
    ) -> list[ConflictEntry]:
        return self.conflicts.check_conflicts(resource_kind, resource_id, candidates)

    def check_pattern_conflicts(
        self, resource_kind: ResourceKind, resource_id: str, pattern_id: str, window_start: date, window_end: date
    ) -> tuple[list[ConflictEntry], int]:
        """Check every occurrence of the pattern in the window; returns the colliding entries and the number checked."""
        occurrences = self.generate_occurrences(pattern_id, window_start, window_end)
        candidates = [CandidateSlot(item.date, item.start_time, item.end_time) for item in occurrences]
        return self.conflicts.check_conflicts(resource_kind, resource_id, candidates), len(candidates)
