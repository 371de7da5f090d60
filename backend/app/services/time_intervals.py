from __future__ import annotations

import re
from datetime import date

from app.core.exceptions import ValidationError
from app.models.common import WEEKDAY_ORDER, DayOfWeek

TIME_PATTERN = re.compile(r"^([01]\d|2[0-3]):([0-5]\d)$")

INVALID_TIME_MESSAGE = "Invalid time format. Use HH:MM format (e.g., 09:30)"


def parse_time(value: str) -> tuple[int, int]:
    match = TIME_PATTERN.match(value or "")
    if match is None:
        raise ValidationError(INVALID_TIME_MESSAGE, details={"value": value})
    return int(match.group(1)), int(match.group(2))


def to_minutes(value: str) -> int:
    hours, minutes = parse_time(value)
    return hours * 60 + minutes


def overlaps(a_start: str, a_end: str, b_start: str, b_end: str) -> bool:
    """Half-open window overlap: a period ending at 10:00 does not touch one starting at 10:00."""
    return to_minutes(a_start) < to_minutes(b_end) and to_minutes(b_start) < to_minutes(a_end)


def weekday_of(value: date) -> DayOfWeek:
    # date.weekday() is Monday=0; shift so Sunday=0.
    return WEEKDAY_ORDER[(value.weekday() + 1) % 7]


def validate_time_range(start_time: str, end_time: str) -> None:
    if not TIME_PATTERN.match(start_time or "") or not TIME_PATTERN.match(end_time or ""):
        raise ValidationError(INVALID_TIME_MESSAGE, details={"start_time": start_time, "end_time": end_time})
    if to_minutes(start_time) >= to_minutes(end_time):
        raise ValidationError(
            "Start time must be before end time",
            details={"start_time": start_time, "end_time": end_time},
        )


def validate_date_range(start_date: date, end_date: date | None) -> None:
    if end_date is not None and start_date > end_date:
        raise ValidationError(
            "Start date must be before end date",
            details={"start_date": start_date.isoformat(), "end_date": end_date.isoformat()},
        )


def validate_days(days_of_week) -> list[DayOfWeek]:
    if not days_of_week:
        raise ValidationError("At least one day of week must be selected")
    try:
        days = [DayOfWeek(day) for day in days_of_week]
    except ValueError as exc:
        raise ValidationError("Invalid day of week", details={"days_of_week": list(days_of_week)}) from exc
    # Preserve weekday order and drop duplicates.
    return [day for day in WEEKDAY_ORDER if day in days]


def coerce_enum(enum_cls, value, label: str):
    if value is None:
        raise ValidationError(f"{label} is required")
    try:
        return enum_cls(value)
    except ValueError as exc:
        raise ValidationError(f"Invalid {label}", details={"value": str(value)}) from exc
