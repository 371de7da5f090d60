from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, field
from datetime import date

from sqlalchemy.orm import Session

from app.core.config import get_settings
from app.core.exceptions import ValidationError
from app.models.common import DayOfWeek
from app.models.resource_lock import ResourceKind
from app.models.timetable import TimetablePeriod
from app.services.occurrences import generate_occurrences
from app.services.period_store import ResourceAssignmentStore
from app.services.time_intervals import coerce_enum, overlaps, validate_time_range, weekday_of

RESOURCE_LABELS = {
    ResourceKind.facility: "Facility",
    ResourceKind.teacher_assignment: "Teacher assignment",
}


def describe_conflict(resource_kind: ResourceKind, resource_id: str, period: TimetablePeriod) -> str:
    label = RESOURCE_LABELS[resource_kind]
    return (
        f"{label} {resource_id} is already booked "
        f"{period.start_time}-{period.end_time} on {period.day_of_week.value}"
    )


@dataclass
class PeriodConflict:
    resource_kind: ResourceKind
    resource_id: str
    period: TimetablePeriod

    @property
    def description(self) -> str:
        return describe_conflict(self.resource_kind, self.resource_id, self.period)

    def as_detail(self) -> dict:
        return {
            "resource_kind": self.resource_kind.value,
            "resource_id": self.resource_id,
            "period_id": self.period.id,
            "timetable_id": self.period.timetable_id,
            "day_of_week": self.period.day_of_week.value,
            "start_time": self.period.start_time,
            "end_time": self.period.end_time,
            "description": self.description,
        }


@dataclass(frozen=True)
class CandidateSlot:
    date: date
    start_time: str
    end_time: str


@dataclass
class ConflictEntry:
    date: date
    day_of_week: DayOfWeek
    start_time: str
    end_time: str
    overlapping_periods: list[TimetablePeriod] = field(default_factory=list)


class ConflictService:
    """Answers whether booking a window would double-book a facility or teacher assignment.

    The service only reads; it takes no locks. Callers that commit on a clean
    result must serialize per resource and weekday (see ``resource_locks``).
    """

    def __init__(self, db: Session) -> None:
        self.db = db
        self.store = ResourceAssignmentStore(db)

    def _periods_for(
        self,
        resource_kind: ResourceKind,
        resource_id: str,
        day_of_week: DayOfWeek,
        on_date: date | None = None,
    ) -> list[TimetablePeriod]:
        if resource_kind == ResourceKind.facility:
            return self.store.find_active_periods_for_facility(resource_id, day_of_week, on_date=on_date)
        return self.store.find_active_periods_for_assignment(resource_id, day_of_week, on_date=on_date)

    def find_conflicts(
        self,
        resource_kind: ResourceKind,
        resource_id: str,
        day_of_week: DayOfWeek,
        start_time: str,
        end_time: str,
        exclude_period_id: str | None = None,
        on_date: date | None = None,
    ) -> list[TimetablePeriod]:
        validate_time_range(start_time, end_time)
        resource_kind = coerce_enum(ResourceKind, resource_kind, "resource kind")
        day_of_week = coerce_enum(DayOfWeek, day_of_week, "day of week")
        return [
            period
            for period in self._periods_for(resource_kind, resource_id, day_of_week, on_date)
            if period.id != exclude_period_id and overlaps(start_time, end_time, period.start_time, period.end_time)
        ]

    def conflicts_for_period(
        self,
        *,
        day_of_week: DayOfWeek,
        start_time: str,
        end_time: str,
        assignment_id: str,
        facility_id: str | None = None,
        exclude_period_id: str | None = None,
    ) -> list[PeriodConflict]:
        resources: list[tuple[ResourceKind, str]] = []
        if facility_id:
            resources.append((ResourceKind.facility, facility_id))
        resources.append((ResourceKind.teacher_assignment, assignment_id))

        conflicts: list[PeriodConflict] = []
        for resource_kind, resource_id in resources:
            for period in self.find_conflicts(
                resource_kind, resource_id, day_of_week, start_time, end_time, exclude_period_id=exclude_period_id
            ):
                conflicts.append(PeriodConflict(resource_kind, resource_id, period))
        return conflicts

    def check_conflicts(
        self,
        resource_kind: ResourceKind,
        resource_id: str,
        candidates: Iterable[CandidateSlot],
    ) -> list[ConflictEntry]:
        candidates = list(candidates)
        max_candidates = get_settings().max_conflict_candidates
        if len(candidates) > max_candidates:
            raise ValidationError(f"Cannot check more than {max_candidates} candidate dates at once")
        for candidate in candidates:
            validate_time_range(candidate.start_time, candidate.end_time)

        # Each lookup is an independent read; they run sequentially.
        entries: list[ConflictEntry] = []
        for candidate in candidates:
            day_of_week = weekday_of(candidate.date)
            overlapping = self.find_conflicts(
                resource_kind,
                resource_id,
                day_of_week,
                candidate.start_time,
                candidate.end_time,
                on_date=candidate.date,
            )
            if overlapping:
                entries.append(
                    ConflictEntry(
                        date=candidate.date,
                        day_of_week=day_of_week,
                        start_time=candidate.start_time,
                        end_time=candidate.end_time,
                        overlapping_periods=overlapping,
                    )
                )
        return entries

    def check_pattern_conflicts(
        self,
        resource_kind: ResourceKind,
        resource_id: str,
        pattern_id: str,
        window_start: date,
        window_end: date,
    ) -> list[ConflictEntry]:
        occurrences = generate_occurrences(self.db, pattern_id, window_start, window_end)
        candidates = [CandidateSlot(item.date, item.start_time, item.end_time) for item in occurrences]
        return self.check_conflicts(resource_kind, resource_id, candidates)
