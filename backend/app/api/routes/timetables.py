from fastapi import APIRouter, Depends, Query, status

from app.api.deps import get_scheduling_service, require_roles
from app.core.config import get_settings
from app.models.common import DayOfWeek, SystemStatus
from app.models.user import SCHEDULE_READERS, SCHEDULE_WRITERS, User
from app.schemas.timetable import (
    PeriodCreate,
    PeriodOut,
    PeriodUpdate,
    TimetableCreate,
    TimetableDetailOut,
    TimetableOut,
    TimetablePage,
    TimetableUpdate,
    period_values,
)
from app.services.scheduling import SchedulingService

router = APIRouter()
settings = get_settings()


@router.post("/timetables", response_model=TimetableOut, status_code=status.HTTP_201_CREATED)
def create_timetable(
    payload: TimetableCreate,
    current_user: User = Depends(require_roles(*SCHEDULE_WRITERS)),
    service: SchedulingService = Depends(get_scheduling_service),
) -> TimetableOut:
    return service.create_timetable(payload.model_dump())


@router.get("/timetables", response_model=TimetablePage)
def list_timetables(
    page: int = Query(default=1, ge=1),
    page_size: int = Query(default=settings.default_page_size, ge=1, le=settings.max_page_size),
    status_filter: SystemStatus = Query(default=SystemStatus.active, alias="status"),
    class_id: str | None = Query(default=None),
    current_user: User = Depends(require_roles(*SCHEDULE_READERS)),
    service: SchedulingService = Depends(get_scheduling_service),
) -> TimetablePage:
    result = service.list_timetables(status=status_filter, class_id=class_id, page=page, page_size=page_size)
    return TimetablePage(
        items=[TimetableOut.model_validate(item) for item in result.items],
        total=result.total,
        page=result.page,
        page_size=result.page_size,
        total_pages=result.total_pages,
    )


@router.get("/timetables/{timetable_id}", response_model=TimetableDetailOut)
def get_timetable(
    timetable_id: str,
    current_user: User = Depends(require_roles(*SCHEDULE_READERS)),
    service: SchedulingService = Depends(get_scheduling_service),
) -> TimetableDetailOut:
    timetable = service.get_timetable(timetable_id)
    periods = service.list_periods(timetable_id=timetable.id)
    return TimetableDetailOut(
        **TimetableOut.model_validate(timetable).model_dump(),
        periods=[PeriodOut.model_validate(period) for period in periods],
    )


@router.put("/timetables/{timetable_id}", response_model=TimetableOut)
def update_timetable(
    timetable_id: str,
    payload: TimetableUpdate,
    current_user: User = Depends(require_roles(*SCHEDULE_WRITERS)),
    service: SchedulingService = Depends(get_scheduling_service),
) -> TimetableOut:
    return service.update_timetable(timetable_id, payload.model_dump(exclude_unset=True))


@router.delete("/timetables/{timetable_id}")
def delete_timetable(
    timetable_id: str,
    current_user: User = Depends(require_roles(*SCHEDULE_WRITERS)),
    service: SchedulingService = Depends(get_scheduling_service),
) -> dict:
    retired = service.delete_timetable(timetable_id)
    return {"success": True, "retired_periods": retired}


@router.post(
    "/timetables/{timetable_id}/periods",
    response_model=PeriodOut,
    status_code=status.HTTP_201_CREATED,
)
def create_period(
    timetable_id: str,
    payload: PeriodCreate,
    current_user: User = Depends(require_roles(*SCHEDULE_WRITERS)),
    service: SchedulingService = Depends(get_scheduling_service),
) -> PeriodOut:
    return service.create_period(timetable_id, period_values(payload))


@router.get("/periods", response_model=list[PeriodOut])
def list_periods(
    timetable_id: str | None = Query(default=None),
    class_id: str | None = Query(default=None),
    facility_id: str | None = Query(default=None),
    assignment_id: str | None = Query(default=None),
    day_of_week: DayOfWeek | None = Query(default=None),
    current_user: User = Depends(require_roles(*SCHEDULE_READERS)),
    service: SchedulingService = Depends(get_scheduling_service),
) -> list[PeriodOut]:
    return service.list_periods(
        timetable_id=timetable_id,
        class_id=class_id,
        facility_id=facility_id,
        assignment_id=assignment_id,
        day_of_week=day_of_week,
    )


@router.get("/periods/{period_id}", response_model=PeriodOut)
def get_period(
    period_id: str,
    current_user: User = Depends(require_roles(*SCHEDULE_READERS)),
    service: SchedulingService = Depends(get_scheduling_service),
) -> PeriodOut:
    return service.get_period(period_id)


@router.put("/periods/{period_id}", response_model=PeriodOut)
def update_period(
    period_id: str,
    payload: PeriodUpdate,
    current_user: User = Depends(require_roles(*SCHEDULE_WRITERS)),
    service: SchedulingService = Depends(get_scheduling_service),
) -> PeriodOut:
    return service.update_period(period_id, period_values(payload))


@router.delete("/periods/{period_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_period(
    period_id: str,
    current_user: User = Depends(require_roles(*SCHEDULE_WRITERS)),
    service: SchedulingService = Depends(get_scheduling_service),
) -> None:
    service.delete_period(period_id)
