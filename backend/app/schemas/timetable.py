from datetime import date

from pydantic import BaseModel, Field, field_validator

from app.models.common import DayOfWeek, SystemStatus
from app.models.timetable import PeriodType
from app.services.time_intervals import TIME_PATTERN


class TimetableBase(BaseModel):
    name: str = Field(min_length=1, max_length=100)
    class_id: str = Field(min_length=1, max_length=36)
    course_campus_id: str = Field(min_length=1, max_length=36)
    schedule_pattern_id: str | None = None
    start_date: date
    end_date: date


class TimetableCreate(TimetableBase):
    pass


class TimetableUpdate(BaseModel):
    name: str | None = Field(default=None, min_length=1, max_length=100)
    class_id: str | None = Field(default=None, min_length=1, max_length=36)
    course_campus_id: str | None = Field(default=None, min_length=1, max_length=36)
    schedule_pattern_id: str | None = None
    start_date: date | None = None
    end_date: date | None = None


class TimetableOut(TimetableBase):
    id: str
    status: SystemStatus

    model_config = {"from_attributes": True}


class PeriodBase(BaseModel):
    day_of_week: DayOfWeek
    start_time: str
    end_time: str
    type: PeriodType = PeriodType.lecture
    facility_id: str | None = Field(default=None, max_length=36)
    assignment_id: str = Field(min_length=1, max_length=36)
    recurring: bool = True
    metadata: dict = Field(default_factory=dict)

    @field_validator("start_time", "end_time")
    @classmethod
    def validate_time_format(cls, value: str) -> str:
        if not TIME_PATTERN.match(value):
            raise ValueError("Time must be in HH:MM 24-hour format")
        return value


class PeriodCreate(PeriodBase):
    pass


class PeriodUpdate(BaseModel):
    day_of_week: DayOfWeek | None = None
    start_time: str | None = None
    end_time: str | None = None
    type: PeriodType | None = None
    facility_id: str | None = Field(default=None, max_length=36)
    assignment_id: str | None = Field(default=None, min_length=1, max_length=36)
    recurring: bool | None = None
    metadata: dict | None = None

    @field_validator("start_time", "end_time")
    @classmethod
    def validate_time_format(cls, value: str | None) -> str | None:
        if value is not None and not TIME_PATTERN.match(value):
            raise ValueError("Time must be in HH:MM 24-hour format")
        return value


class PeriodOut(PeriodBase):
    id: str
    timetable_id: str
    status: SystemStatus
    # The ORM attribute is `extra`; the column and the API field are `metadata`.
    metadata: dict = Field(default_factory=dict, validation_alias="extra")

    model_config = {"from_attributes": True, "populate_by_name": True}


class TimetableDetailOut(TimetableOut):
    periods: list[PeriodOut] = Field(default_factory=list)


class TimetablePage(BaseModel):
    items: list[TimetableOut]
    total: int
    page: int
    page_size: int
    total_pages: int


def period_values(payload: BaseModel) -> dict:
    """Request payload as store keyword data, with `metadata` renamed to the ORM attribute."""
    data = payload.model_dump(exclude_unset=True)
    if "metadata" in data:
        data["extra"] = data.pop("metadata")
    return data
