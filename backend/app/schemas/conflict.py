from datetime import date

from pydantic import BaseModel, Field, field_validator

from app.models.common import DayOfWeek
from app.models.resource_lock import ResourceKind
from app.schemas.timetable import PeriodOut
from app.services.time_intervals import TIME_PATTERN


def _check_time(value: str) -> str:
    if not TIME_PATTERN.match(value):
        raise ValueError("Time must be in HH:MM 24-hour format")
    return value


class ConflictDetectRequest(BaseModel):
    resource_kind: ResourceKind
    resource_id: str = Field(min_length=1, max_length=36)
    day_of_week: DayOfWeek
    start_time: str
    end_time: str
    exclude_period_id: str | None = None

    @field_validator("start_time", "end_time")
    @classmethod
    def validate_time_format(cls, value: str) -> str:
        return _check_time(value)


class ConflictDetectResponse(BaseModel):
    has_conflicts: bool
    conflicts: list[PeriodOut] = Field(default_factory=list)


class CandidateIn(BaseModel):
    date: date
    start_time: str
    end_time: str

    @field_validator("start_time", "end_time")
    @classmethod
    def validate_time_format(cls, value: str) -> str:
        return _check_time(value)


class ConflictCheckRequest(BaseModel):
    resource_kind: ResourceKind
    resource_id: str = Field(min_length=1, max_length=36)
    candidates: list[CandidateIn] = Field(default_factory=list)


class PatternConflictCheckRequest(BaseModel):
    resource_kind: ResourceKind
    resource_id: str = Field(min_length=1, max_length=36)
    pattern_id: str
    start_date: date
    end_date: date


class ConflictEntryOut(BaseModel):
    date: date
    day_of_week: DayOfWeek
    start_time: str
    end_time: str
    overlapping_periods: list[PeriodOut] = Field(default_factory=list)

    model_config = {"from_attributes": True}


class ConflictCheckResponse(BaseModel):
    has_conflicts: bool
    checked: int
    conflicts: list[ConflictEntryOut] = Field(default_factory=list)
