from enum import Enum


class SystemStatus(str, Enum):
    active = "ACTIVE"
    inactive = "INACTIVE"
    deleted = "DELETED"


class DayOfWeek(str, Enum):
    # Declaration order is the weekday index: Sunday=0 ... Saturday=6.
    sunday = "SUNDAY"
    monday = "MONDAY"
    tuesday = "TUESDAY"
    wednesday = "WEDNESDAY"
    thursday = "THURSDAY"
    friday = "FRIDAY"
    saturday = "SATURDAY"


WEEKDAY_ORDER: tuple[DayOfWeek, ...] = tuple(DayOfWeek)
