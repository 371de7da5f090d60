"""create scheduling tables

Revision ID: 20261016_0001
Revises: None
Create Date: 2026-10-16 00:00:00.000000

"""

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

revision = "20261016_0001"
down_revision = None
branch_labels = None
depends_on = None

# Enum labels are the Python member names, which is what SQLAlchemy persists.
user_role = postgresql.ENUM("admin", "scheduler", "faculty", "student", name="user_role", create_type=False)
system_status = postgresql.ENUM("active", "inactive", "deleted", name="system_status", create_type=False)
recurrence_type = postgresql.ENUM(
    "daily", "weekly", "biweekly", "monthly", "custom", name="recurrence_type", create_type=False
)
day_of_week = postgresql.ENUM(
    "sunday",
    "monday",
    "tuesday",
    "wednesday",
    "thursday",
    "friday",
    "saturday",
    name="day_of_week",
    create_type=False,
)
period_type = postgresql.ENUM("lecture", "lab", "tutorial", "workshop", "exam", name="period_type", create_type=False)
resource_kind = postgresql.ENUM("facility", "teacher_assignment", name="resource_kind", create_type=False)

ENUMS = (user_role, system_status, recurrence_type, day_of_week, period_type, resource_kind)


def upgrade() -> None:
    for enum_type in ENUMS:
        enum_type.create(op.get_bind(), checkfirst=True)

    op.create_table(
        "users",
        sa.Column("id", sa.String(length=36), primary_key=True, nullable=False),
        sa.Column("email", sa.String(length=255), nullable=False),
        sa.Column("display_name", sa.String(length=200), nullable=False),
        sa.Column("role", user_role, nullable=False),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    )
    op.create_index("ix_users_email", "users", ["email"], unique=True)

    op.create_table(
        "schedule_patterns",
        sa.Column("id", sa.String(length=36), primary_key=True, nullable=False),
        sa.Column("name", sa.String(length=200), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("days_of_week", sa.JSON(), nullable=False),
        sa.Column("start_time", sa.String(length=5), nullable=False),
        sa.Column("end_time", sa.String(length=5), nullable=False),
        sa.Column("recurrence", recurrence_type, nullable=False),
        sa.Column("start_date", sa.Date(), nullable=False),
        sa.Column("end_date", sa.Date(), nullable=True),
        sa.Column("status", system_status, nullable=False, server_default="active"),
        sa.Column("deleted_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=True),
    )
    op.create_index("ix_schedule_patterns_recurrence", "schedule_patterns", ["recurrence"], unique=False)
    op.create_index("ix_schedule_patterns_start_date", "schedule_patterns", ["start_date"], unique=False)
    op.create_index("ix_schedule_patterns_status", "schedule_patterns", ["status"], unique=False)

    op.create_table(
        "schedule_exceptions",
        sa.Column("id", sa.String(length=36), primary_key=True, nullable=False),
        sa.Column("schedule_pattern_id", sa.String(length=36), sa.ForeignKey("schedule_patterns.id"), nullable=False),
        sa.Column("exception_date", sa.Date(), nullable=False),
        sa.Column("reason", sa.Text(), nullable=True),
        sa.Column("alternative_date", sa.Date(), nullable=True),
        sa.Column("alternative_start", sa.String(length=5), nullable=True),
        sa.Column("alternative_end", sa.String(length=5), nullable=True),
        sa.Column("status", system_status, nullable=False, server_default="active"),
        sa.Column("deleted_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=True),
    )
    op.create_index(
        "ix_schedule_exceptions_schedule_pattern_id", "schedule_exceptions", ["schedule_pattern_id"], unique=False
    )
    op.create_index("ix_schedule_exceptions_exception_date", "schedule_exceptions", ["exception_date"], unique=False)

    op.create_table(
        "timetables",
        sa.Column("id", sa.String(length=36), primary_key=True, nullable=False),
        sa.Column("name", sa.String(length=100), nullable=False),
        sa.Column("class_id", sa.String(length=36), nullable=False),
        sa.Column("course_campus_id", sa.String(length=36), nullable=False),
        sa.Column("schedule_pattern_id", sa.String(length=36), sa.ForeignKey("schedule_patterns.id"), nullable=True),
        sa.Column("start_date", sa.Date(), nullable=False),
        sa.Column("end_date", sa.Date(), nullable=False),
        sa.Column("status", system_status, nullable=False, server_default="active"),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=True),
    )
    op.create_index("ix_timetables_class_id", "timetables", ["class_id"], unique=False)
    op.create_index("ix_timetables_course_campus_id", "timetables", ["course_campus_id"], unique=False)
    op.create_index("ix_timetables_schedule_pattern_id", "timetables", ["schedule_pattern_id"], unique=False)
    op.create_index("ix_timetables_status", "timetables", ["status"], unique=False)

    op.create_table(
        "timetable_periods",
        sa.Column("id", sa.String(length=36), primary_key=True, nullable=False),
        sa.Column("timetable_id", sa.String(length=36), sa.ForeignKey("timetables.id"), nullable=False),
        sa.Column("day_of_week", day_of_week, nullable=False),
        sa.Column("start_time", sa.String(length=5), nullable=False),
        sa.Column("end_time", sa.String(length=5), nullable=False),
        sa.Column("type", period_type, nullable=False),
        sa.Column("facility_id", sa.String(length=36), nullable=True),
        sa.Column("assignment_id", sa.String(length=36), nullable=False),
        sa.Column("recurring", sa.Boolean(), nullable=False, server_default=sa.text("true")),
        sa.Column("metadata", sa.JSON(), nullable=False),
        sa.Column("status", system_status, nullable=False, server_default="active"),
        sa.Column("deleted_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=True),
    )
    op.create_index("ix_timetable_periods_timetable_id", "timetable_periods", ["timetable_id"], unique=False)
    op.create_index("ix_timetable_periods_facility_id", "timetable_periods", ["facility_id"], unique=False)
    op.create_index("ix_timetable_periods_assignment_id", "timetable_periods", ["assignment_id"], unique=False)
    op.create_index("ix_timetable_periods_status", "timetable_periods", ["status"], unique=False)

    op.create_table(
        "resource_day_locks",
        sa.Column("resource_kind", resource_kind, primary_key=True, nullable=False),
        sa.Column("resource_id", sa.String(length=36), primary_key=True, nullable=False),
        sa.Column("day_of_week", day_of_week, primary_key=True, nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    )


def downgrade() -> None:
    op.drop_table("resource_day_locks")
    op.drop_table("timetable_periods")
    op.drop_table("timetables")
    op.drop_table("schedule_exceptions")
    op.drop_table("schedule_patterns")
    op.drop_index("ix_users_email", table_name="users")
    op.drop_table("users")
    for enum_type in reversed(ENUMS):
        enum_type.drop(op.get_bind(), checkfirst=True)
