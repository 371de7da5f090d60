"""Expansion of recurring schedule patterns into dated occurrences.

Cadence rules, applied on top of the pattern's weekday set:

* DAILY, WEEKLY and CUSTOM admit every matching weekday in range.
* BIWEEKLY admits every second matching weekday counting from the pattern's
  start date, i.e. days whose offset from ``start_date`` falls in an even week.
* MONTHLY admits matching weekdays whose week-of-month ordinal equals the one
  of ``start_date`` (a pattern starting on the first Monday of a month yields
  the first Monday of each month).

Exceptions are matched on the exact scheduled date. An exception without an
alternative date cancels the day; one with an alternative date moves the
occurrence. Every emitted occurrence falls inside the query window, so a
reschedule into the window from a scheduled day outside it is emitted, and a
reschedule out of the window is not. Output is ordered by original date.
"""

from __future__ import annotations

from collections.abc import Iterable, Iterator
from dataclasses import dataclass
from datetime import date, timedelta

from sqlalchemy.orm import Session

from app.core.config import get_settings
from app.core.exceptions import ValidationError
from app.models.schedule_pattern import RecurrenceType, ScheduleException, SchedulePattern
from app.services.pattern_store import SchedulePatternStore
from app.services.time_intervals import weekday_of

ONE_DAY = timedelta(days=1)


@dataclass(frozen=True)
class Occurrence:
    date: date
    start_time: str
    end_time: str
    is_rescheduled: bool = False
    original_date: date | None = None
    reason: str | None = None


def _week_of_month(value: date) -> int:
    return (value.day - 1) // 7 + 1


def is_scheduled_day(pattern: SchedulePattern, day: date) -> bool:
    """Whether the pattern's weekday set and cadence put a regular occurrence on ``day``."""
    if day < pattern.start_date or (pattern.end_date is not None and day > pattern.end_date):
        return False
    if weekday_of(day).value not in pattern.days_of_week:
        return False
    if pattern.recurrence == RecurrenceType.biweekly:
        return ((day - pattern.start_date).days // 7) % 2 == 0
    if pattern.recurrence == RecurrenceType.monthly:
        return _week_of_month(day) == _week_of_month(pattern.start_date)
    return True


def _occurrence_for(pattern: SchedulePattern, day: date, exception: ScheduleException | None) -> Occurrence | None:
    if exception is None:
        return Occurrence(date=day, start_time=pattern.start_time, end_time=pattern.end_time)
    if exception.alternative_date is None:
        return None
    return Occurrence(
        date=exception.alternative_date,
        start_time=exception.alternative_start or pattern.start_time,
        end_time=exception.alternative_end or pattern.end_time,
        is_rescheduled=True,
        original_date=day,
        reason=exception.reason,
    )


def _moved_in(
    pattern: SchedulePattern,
    exceptions: Iterable[ScheduleException],
    window_start: date,
    window_end: date,
) -> Iterator[Occurrence]:
    for exception in exceptions:
        occurrence = _occurrence_for(pattern, exception.exception_date, exception)
        if occurrence is not None and window_start <= occurrence.date <= window_end:
            yield occurrence


def expand_pattern(
    pattern: SchedulePattern,
    exceptions: Iterable[ScheduleException],
    window_start: date,
    window_end: date,
) -> Iterator[Occurrence]:
    """Lazily yield the occurrences of ``pattern`` that land in ``[window_start, window_end]``."""
    by_date = {item.exception_date: item for item in exceptions}

    effective_start = max(window_start, pattern.start_date)
    effective_end = window_end if pattern.end_date is None else min(window_end, pattern.end_date)

    # Scheduled days outside the walked range that were moved into the window.
    outside = [
        item
        for item in by_date.values()
        if item.alternative_date is not None
        and not (effective_start <= item.exception_date <= effective_end)
        and is_scheduled_day(pattern, item.exception_date)
    ]
    before = sorted((item for item in outside if item.exception_date < effective_start), key=lambda e: e.exception_date)
    after = sorted((item for item in outside if item.exception_date > effective_end), key=lambda e: e.exception_date)

    yield from _moved_in(pattern, before, window_start, window_end)

    current = effective_start
    while current <= effective_end:
        if is_scheduled_day(pattern, current):
            occurrence = _occurrence_for(pattern, current, by_date.get(current))
            if occurrence is not None and window_start <= occurrence.date <= window_end:
                yield occurrence
        current += ONE_DAY

    yield from _moved_in(pattern, after, window_start, window_end)


def validate_window(window_start: date, window_end: date) -> None:
    if window_start > window_end:
        raise ValidationError(
            "Start date must be before end date",
            details={"start_date": window_start.isoformat(), "end_date": window_end.isoformat()},
        )
    max_days = get_settings().max_occurrence_window_days
    if (window_end - window_start).days + 1 > max_days:
        raise ValidationError(f"Occurrence window cannot exceed {max_days} days")


def generate_occurrences(db: Session, pattern_id: str, window_start: date, window_end: date) -> list[Occurrence]:
    validate_window(window_start, window_end)
    store = SchedulePatternStore(db)
    pattern = store.get(pattern_id)
    return list(expand_pattern(pattern, store.active_exceptions(pattern), window_start, window_end))
