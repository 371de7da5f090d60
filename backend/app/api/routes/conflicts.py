from fastapi import APIRouter, Depends

from app.api.deps import get_scheduling_service, require_roles
from app.models.user import SCHEDULE_WRITERS, User
from app.schemas.conflict import (
    ConflictCheckRequest,
    ConflictCheckResponse,
    ConflictDetectRequest,
    ConflictDetectResponse,
    ConflictEntryOut,
    PatternConflictCheckRequest,
)
from app.schemas.timetable import PeriodOut
from app.services.conflict_service import CandidateSlot, ConflictEntry
from app.services.scheduling import SchedulingService

router = APIRouter()


def _check_response(entries: list[ConflictEntry], checked: int) -> ConflictCheckResponse:
    return ConflictCheckResponse(
        has_conflicts=bool(entries),
        checked=checked,
        conflicts=[ConflictEntryOut.model_validate(entry) for entry in entries],
    )


@router.post("/detect", response_model=ConflictDetectResponse)
def detect_conflicts(
    payload: ConflictDetectRequest,
    current_user: User = Depends(require_roles(*SCHEDULE_WRITERS)),
    service: SchedulingService = Depends(get_scheduling_service),
) -> ConflictDetectResponse:
    periods = service.detect_conflicts(
        payload.resource_kind,
        payload.resource_id,
        payload.day_of_week,
        payload.start_time,
        payload.end_time,
        exclude_period_id=payload.exclude_period_id,
    )
    return ConflictDetectResponse(
        has_conflicts=bool(periods),
        conflicts=[PeriodOut.model_validate(period) for period in periods],
    )


@router.post("/check", response_model=ConflictCheckResponse)
def check_conflicts(
    payload: ConflictCheckRequest,
    current_user: User = Depends(require_roles(*SCHEDULE_WRITERS)),
    service: SchedulingService = Depends(get_scheduling_service),
) -> ConflictCheckResponse:
    candidates = [CandidateSlot(item.date, item.start_time, item.end_time) for item in payload.candidates]
    entries = service.check_conflicts(payload.resource_kind, payload.resource_id, candidates)
    return _check_response(entries, len(candidates))


@router.post("/check-pattern", response_model=ConflictCheckResponse)
def check_pattern_conflicts(
    payload: PatternConflictCheckRequest,
    current_user: User = Depends(require_roles(*SCHEDULE_WRITERS)),
    service: SchedulingService = Depends(get_scheduling_service),
) -> ConflictCheckResponse:
    entries, checked = service.check_pattern_conflicts(
        payload.resource_kind,
        payload.resource_id,
        payload.pattern_id,
        payload.start_date,
        payload.end_date,
    )
    return _check_response(entries, checked)
