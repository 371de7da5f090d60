from __future__ import annotations

import logging

from sqlalchemy import inspect
from sqlalchemy.engine import Connection

from app.db.base import Base
from app.db.session import engine

logger = logging.getLogger(__name__)

REQUIRED_COLUMNS: dict[str, set[str]] = {
    "users": {"id", "email", "role", "is_active"},
    "schedule_patterns": {
        "id",
        "days_of_week",
        "start_time",
        "end_time",
        "recurrence",
        "start_date",
        "end_date",
        "status",
    },
    "schedule_exceptions": {"id", "schedule_pattern_id", "exception_date", "alternative_date", "status"},
    "timetables": {"id", "class_id", "schedule_pattern_id", "start_date", "end_date", "status"},
    "timetable_periods": {
        "id",
        "timetable_id",
        "day_of_week",
        "start_time",
        "end_time",
        "facility_id",
        "assignment_id",
        "metadata",
        "status",
    },
    "resource_day_locks": {"resource_kind", "resource_id", "day_of_week"},
}


def find_schema_gaps(connection: Connection) -> tuple[list[str], dict[str, list[str]]]:
    """Return (missing tables, missing columns per table) for the scheduling schema."""
    inspector = inspect(connection)
    table_names = set(inspector.get_table_names())
    missing_tables: list[str] = []
    missing_columns: dict[str, list[str]] = {}
    for table_name, required in REQUIRED_COLUMNS.items():
        if table_name not in table_names:
            missing_tables.append(table_name)
            continue
        existing = {item["name"] for item in inspector.get_columns(table_name)}
        missing = sorted(required - existing)
        if missing:
            missing_columns[table_name] = missing
    return sorted(missing_tables), missing_columns


def _assert_required_columns() -> None:
    with engine.begin() as connection:
        missing_tables, missing_columns = find_schema_gaps(connection)
    if missing_tables:
        raise RuntimeError(f"Missing required tables: {', '.join(missing_tables)}")
    if missing_columns:
        flattened = [f"{table}.{column}" for table, columns in missing_columns.items() for column in columns]
        raise RuntimeError(f"Missing required columns: {', '.join(flattened)}")


def ensure_runtime_schema_compatibility() -> None:
    try:
        Base.metadata.create_all(bind=engine)
        _assert_required_columns()
    except Exception as exc:  # pragma: no cover - runtime environment dependent
        logger.exception("Runtime schema bootstrap failed")
        raise RuntimeError("Runtime schema bootstrap failed") from exc
    logger.info("Runtime schema verified (%d tables)", len(REQUIRED_COLUMNS))
