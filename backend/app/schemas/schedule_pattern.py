from datetime import date

from pydantic import BaseModel, Field, field_validator

from app.models.common import DayOfWeek, SystemStatus
from app.models.schedule_pattern import RecurrenceType
from app.services.time_intervals import TIME_PATTERN


def _check_time(value: str | None) -> str | None:
    if value is not None and not TIME_PATTERN.match(value):
        raise ValueError("Time must be in HH:MM 24-hour format")
    return value


class SchedulePatternBase(BaseModel):
    name: str = Field(min_length=1, max_length=200)
    description: str | None = Field(default=None, max_length=2000)
    days_of_week: list[DayOfWeek] = Field(max_length=7)
    start_time: str
    end_time: str
    recurrence: RecurrenceType
    start_date: date
    end_date: date | None = None

    @field_validator("start_time", "end_time")
    @classmethod
    def validate_time_format(cls, value: str) -> str:
        return _check_time(value)


class SchedulePatternCreate(SchedulePatternBase):
    pass


class SchedulePatternUpdate(BaseModel):
    name: str | None = Field(default=None, min_length=1, max_length=200)
    description: str | None = Field(default=None, max_length=2000)
    days_of_week: list[DayOfWeek] | None = Field(default=None, max_length=7)
    start_time: str | None = None
    end_time: str | None = None
    recurrence: RecurrenceType | None = None
    start_date: date | None = None
    end_date: date | None = None

    @field_validator("start_time", "end_time")
    @classmethod
    def validate_time_format(cls, value: str | None) -> str | None:
        return _check_time(value)


class ScheduleExceptionCreate(BaseModel):
    exception_date: date
    reason: str | None = Field(default=None, max_length=500)
    alternative_date: date | None = None
    alternative_start: str | None = None
    alternative_end: str | None = None

    @field_validator("alternative_start", "alternative_end")
    @classmethod
    def validate_time_format(cls, value: str | None) -> str | None:
        return _check_time(value)


class ScheduleExceptionUpdate(BaseModel):
    exception_date: date | None = None
    reason: str | None = Field(default=None, max_length=500)
    alternative_date: date | None = None
    alternative_start: str | None = None
    alternative_end: str | None = None

    @field_validator("alternative_start", "alternative_end")
    @classmethod
    def validate_time_format(cls, value: str | None) -> str | None:
        return _check_time(value)


class ScheduleExceptionOut(BaseModel):
    id: str
    schedule_pattern_id: str
    exception_date: date
    reason: str | None = None
    alternative_date: date | None = None
    alternative_start: str | None = None
    alternative_end: str | None = None
    status: SystemStatus

    model_config = {"from_attributes": True}


class PatternTimetableOut(BaseModel):
    id: str
    name: str
    class_id: str
    start_date: date
    end_date: date

    model_config = {"from_attributes": True}


class SchedulePatternOut(SchedulePatternBase):
    id: str
    status: SystemStatus
    exceptions: list[ScheduleExceptionOut] = Field(default_factory=list)
    timetables: list[PatternTimetableOut] = Field(default_factory=list)

    model_config = {"from_attributes": True}

    @field_validator("exceptions", "timetables", mode="before")
    @classmethod
    def drop_retired(cls, value):
        return [item for item in value or [] if getattr(item, "status", SystemStatus.active) == SystemStatus.active]


class SchedulePatternPage(BaseModel):
    items: list[SchedulePatternOut]
    total: int
    page: int
    page_size: int
    total_pages: int


class OccurrenceOut(BaseModel):
    date: date
    start_time: str
    end_time: str
    is_rescheduled: bool = False
    original_date: date | None = None
    reason: str | None = None

    model_config = {"from_attributes": True}
