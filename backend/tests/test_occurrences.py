from datetime import date

import pytest

from app.core.exceptions import ResourceNotFoundError, ValidationError
from app.services.occurrences import generate_occurrences
from app.services.pattern_store import SchedulePatternStore


def create_pattern(db, **overrides):
    data = {
        "name": "Morning Lecture",
        "days_of_week": ["MONDAY", "WEDNESDAY"],
        "start_time": "09:00",
        "end_time": "10:00",
        "recurrence": "WEEKLY",
        "start_date": date(2024, 1, 1),
        "end_date": date(2024, 1, 31),
    }
    data.update(overrides)
    pattern = SchedulePatternStore(db).create(data)
    db.commit()
    return pattern


def add_exception(db, pattern, **data):
    exception = SchedulePatternStore(db).create_exception(pattern.id, data)
    db.commit()
    return exception


def test_january_scenario_with_cancellation_and_reschedule(db_session):
    pattern = create_pattern(db_session)
    add_exception(db_session, pattern, exception_date=date(2024, 1, 15), reason="Holiday")
    add_exception(
        db_session,
        pattern,
        exception_date=date(2024, 1, 17),
        reason="Room maintenance",
        alternative_date=date(2024, 1, 18),
        alternative_start="14:00",
        alternative_end="15:00",
    )

    occurrences = generate_occurrences(db_session, pattern.id, date(2024, 1, 1), date(2024, 1, 31))

    assert [item.date for item in occurrences] == [
        date(2024, 1, 1),
        date(2024, 1, 3),
        date(2024, 1, 8),
        date(2024, 1, 10),
        date(2024, 1, 18),
        date(2024, 1, 22),
        date(2024, 1, 24),
        date(2024, 1, 29),
        date(2024, 1, 31),
    ]
    moved = occurrences[4]
    assert moved.is_rescheduled is True
    assert moved.original_date == date(2024, 1, 17)
    assert (moved.start_time, moved.end_time) == ("14:00", "15:00")
    assert moved.reason == "Room maintenance"
    assert all(not item.is_rescheduled for item in occurrences if item is not moved)
    assert all((item.start_time, item.end_time) == ("09:00", "10:00") for item in occurrences if item is not moved)


def test_generation_is_idempotent(db_session):
    pattern = create_pattern(db_session)
    add_exception(db_session, pattern, exception_date=date(2024, 1, 8))

    first = generate_occurrences(db_session, pattern.id, date(2024, 1, 1), date(2024, 1, 31))
    second = generate_occurrences(db_session, pattern.id, date(2024, 1, 1), date(2024, 1, 31))
    assert first == second


def test_occurrences_stay_inside_window_and_pattern_range(db_session):
    pattern = create_pattern(db_session, start_date=date(2024, 1, 10), end_date=date(2024, 1, 20))

    occurrences = generate_occurrences(db_session, pattern.id, date(2024, 1, 1), date(2024, 2, 29))
    assert [item.date for item in occurrences] == [date(2024, 1, 10), date(2024, 1, 15), date(2024, 1, 17)]


def test_open_ended_pattern_is_bounded_by_window(db_session):
    pattern = create_pattern(db_session, days_of_week=["FRIDAY"], end_date=None)

    occurrences = generate_occurrences(db_session, pattern.id, date(2024, 3, 1), date(2024, 3, 31))
    assert [item.date.day for item in occurrences] == [1, 8, 15, 22, 29]


def test_cancelled_day_is_not_emitted(db_session):
    pattern = create_pattern(db_session)
    add_exception(db_session, pattern, exception_date=date(2024, 1, 3))

    dates = [item.date for item in generate_occurrences(db_session, pattern.id, date(2024, 1, 1), date(2024, 1, 7))]
    assert dates == [date(2024, 1, 1)]


def test_reschedule_out_of_window_is_dropped_and_into_window_is_kept(db_session):
    pattern = create_pattern(db_session)
    add_exception(
        db_session,
        pattern,
        exception_date=date(2024, 1, 3),
        alternative_date=date(2024, 1, 9),
    )
    add_exception(
        db_session,
        pattern,
        exception_date=date(2024, 1, 10),
        alternative_date=date(2024, 1, 5),
    )

    first_week = generate_occurrences(db_session, pattern.id, date(2024, 1, 1), date(2024, 1, 7))
    assert [(item.date, item.original_date) for item in first_week] == [
        (date(2024, 1, 1), None),
        (date(2024, 1, 5), date(2024, 1, 10)),
    ]

    second_week = generate_occurrences(db_session, pattern.id, date(2024, 1, 8), date(2024, 1, 14))
    assert [(item.date, item.original_date) for item in second_week] == [
        (date(2024, 1, 9), date(2024, 1, 3)),
        (date(2024, 1, 8), None),
    ]


def test_deleted_exception_is_ignored(db_session):
    pattern = create_pattern(db_session)
    exception = add_exception(db_session, pattern, exception_date=date(2024, 1, 3))
    SchedulePatternStore(db_session).delete_exception(exception.id)
    db_session.commit()

    dates = [item.date for item in generate_occurrences(db_session, pattern.id, date(2024, 1, 1), date(2024, 1, 7))]
    assert dates == [date(2024, 1, 1), date(2024, 1, 3)]


def test_biweekly_counts_weeks_from_start_date(db_session):
    pattern = create_pattern(
        db_session,
        days_of_week=["MONDAY", "WEDNESDAY"],
        recurrence="BIWEEKLY",
        start_date=date(2024, 1, 1),
        end_date=date(2024, 2, 29),
    )

    dates = [item.date for item in generate_occurrences(db_session, pattern.id, date(2024, 1, 1), date(2024, 2, 4))]
    assert dates == [
        date(2024, 1, 1),
        date(2024, 1, 3),
        date(2024, 1, 15),
        date(2024, 1, 17),
        date(2024, 1, 29),
        date(2024, 1, 31),
    ]


def test_monthly_keeps_week_of_month_ordinal(db_session):
    # 2024-01-08 is the second Monday of January.
    pattern = create_pattern(
        db_session,
        days_of_week=["MONDAY"],
        recurrence="MONTHLY",
        start_date=date(2024, 1, 8),
        end_date=date(2024, 6, 30),
    )

    dates = [item.date for item in generate_occurrences(db_session, pattern.id, date(2024, 1, 1), date(2024, 4, 30))]
    assert dates == [date(2024, 1, 8), date(2024, 2, 12), date(2024, 3, 11), date(2024, 4, 8)]


def test_daily_and_custom_follow_weekday_set(db_session):
    daily = create_pattern(db_session, days_of_week=["TUESDAY", "THURSDAY"], recurrence="DAILY")
    custom = create_pattern(db_session, name="Custom", days_of_week=["TUESDAY", "THURSDAY"], recurrence="CUSTOM")

    window = (date(2024, 1, 1), date(2024, 1, 7))
    assert [item.date for item in generate_occurrences(db_session, daily.id, *window)] == [
        date(2024, 1, 2),
        date(2024, 1, 4),
    ]
    assert generate_occurrences(db_session, daily.id, *window) == generate_occurrences(db_session, custom.id, *window)


def test_window_validation(db_session):
    pattern = create_pattern(db_session)

    with pytest.raises(ValidationError, match="Start date must be before end date"):
        generate_occurrences(db_session, pattern.id, date(2024, 1, 31), date(2024, 1, 1))
    with pytest.raises(ValidationError, match="Occurrence window cannot exceed"):
        generate_occurrences(db_session, pattern.id, date(2024, 1, 1), date(2030, 1, 1))


def test_unknown_or_deleted_pattern(db_session):
    with pytest.raises(ResourceNotFoundError):
        generate_occurrences(db_session, "missing", date(2024, 1, 1), date(2024, 1, 31))

    pattern = create_pattern(db_session)
    SchedulePatternStore(db_session).soft_delete(pattern.id)
    db_session.commit()
    with pytest.raises(ResourceNotFoundError):
        generate_occurrences(db_session, pattern.id, date(2024, 1, 1), date(2024, 1, 31))
