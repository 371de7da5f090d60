from datetime import date

from fastapi import APIRouter, Depends, Query, status

from app.api.deps import get_scheduling_service, require_roles
from app.core.config import get_settings
from app.models.common import SystemStatus
from app.models.schedule_pattern import RecurrenceType
from app.models.user import SCHEDULE_READERS, SCHEDULE_WRITERS, User
from app.schemas.schedule_pattern import (
    OccurrenceOut,
    ScheduleExceptionCreate,
    ScheduleExceptionOut,
    ScheduleExceptionUpdate,
    SchedulePatternCreate,
    SchedulePatternOut,
    SchedulePatternPage,
    SchedulePatternUpdate,
)
from app.services.pattern_store import PatternFilters
from app.services.scheduling import SchedulingService

router = APIRouter()

settings = get_settings()


@router.post("/schedule-patterns", response_model=SchedulePatternOut, status_code=status.HTTP_201_CREATED)
def create_pattern(
    payload: SchedulePatternCreate,
    current_user: User = Depends(require_roles(*SCHEDULE_WRITERS)),
    service: SchedulingService = Depends(get_scheduling_service),
) -> SchedulePatternOut:
    return service.create_pattern(payload.model_dump())


@router.get("/schedule-patterns", response_model=SchedulePatternPage)
def list_patterns(
    page: int = Query(default=1, ge=1),
    page_size: int = Query(default=settings.default_page_size, ge=1, le=settings.max_page_size),
    status_filter: SystemStatus = Query(default=SystemStatus.active, alias="status"),
    start_date: date | None = Query(default=None),
    end_date: date | None = Query(default=None),
    recurrence: RecurrenceType | None = Query(default=None),
    current_user: User = Depends(require_roles(*SCHEDULE_READERS)),
    service: SchedulingService = Depends(get_scheduling_service),
) -> SchedulePatternPage:
    filters = PatternFilters(status=status_filter, start_date=start_date, end_date=end_date, recurrence=recurrence)
    result = service.list_patterns(filters, page=page, page_size=page_size)
    return SchedulePatternPage(
        items=[SchedulePatternOut.model_validate(item) for item in result.items],
        total=result.total,
        page=result.page,
        page_size=result.page_size,
        total_pages=result.total_pages,
    )


@router.get("/schedule-patterns/{pattern_id}", response_model=SchedulePatternOut)
def get_pattern(
    pattern_id: str,
    current_user: User = Depends(require_roles(*SCHEDULE_READERS)),
    service: SchedulingService = Depends(get_scheduling_service),
) -> SchedulePatternOut:
    return service.get_pattern(pattern_id)


@router.put("/schedule-patterns/{pattern_id}", response_model=SchedulePatternOut)
def update_pattern(
    pattern_id: str,
    payload: SchedulePatternUpdate,
    current_user: User = Depends(require_roles(*SCHEDULE_WRITERS)),
    service: SchedulingService = Depends(get_scheduling_service),
) -> SchedulePatternOut:
    return service.update_pattern(pattern_id, payload.model_dump(exclude_unset=True))


@router.delete("/schedule-patterns/{pattern_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_pattern(
    pattern_id: str,
    current_user: User = Depends(require_roles(*SCHEDULE_WRITERS)),
    service: SchedulingService = Depends(get_scheduling_service),
) -> None:
    service.delete_pattern(pattern_id)


@router.get("/schedule-patterns/{pattern_id}/occurrences", response_model=list[OccurrenceOut])
def list_occurrences(
    pattern_id: str,
    start_date: date = Query(...),
    end_date: date = Query(...),
    current_user: User = Depends(require_roles(*SCHEDULE_READERS)),
    service: SchedulingService = Depends(get_scheduling_service),
) -> list[OccurrenceOut]:
    return service.generate_occurrences(pattern_id, start_date, end_date)


@router.post(
    "/schedule-patterns/{pattern_id}/exceptions",
    response_model=ScheduleExceptionOut,
    status_code=status.HTTP_201_CREATED,
)
def create_exception(
    pattern_id: str,
    payload: ScheduleExceptionCreate,
    current_user: User = Depends(require_roles(*SCHEDULE_WRITERS)),
    service: SchedulingService = Depends(get_scheduling_service),
) -> ScheduleExceptionOut:
    return service.create_exception(pattern_id, payload.model_dump())


@router.put("/schedule-exceptions/{exception_id}", response_model=ScheduleExceptionOut)
def update_exception(
    exception_id: str,
    payload: ScheduleExceptionUpdate,
    current_user: User = Depends(require_roles(*SCHEDULE_WRITERS)),
    service: SchedulingService = Depends(get_scheduling_service),
) -> ScheduleExceptionOut:
    return service.update_exception(exception_id, payload.model_dump(exclude_unset=True))


@router.delete("/schedule-exceptions/{exception_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_exception(
    exception_id: str,
    current_user: User = Depends(require_roles(*SCHEDULE_WRITERS)),
    service: SchedulingService = Depends(get_scheduling_service),
) -> None:
    service.delete_exception(exception_id)
