from app.models.common import DayOfWeek, SystemStatus  # noqa: F401
from app.models.resource_lock import ResourceDayLock, ResourceKind  # noqa: F401
from app.models.schedule_pattern import RecurrenceType, ScheduleException, SchedulePattern  # noqa: F401
from app.models.timetable import PeriodType, Timetable, TimetablePeriod  # noqa: F401
from app.models.user import User, UserRole  # noqa: F401
