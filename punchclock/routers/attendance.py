from fastapi import APIRouter, Depends, Request

from punchclock.dependencies import get_checkin_service, require_identity
from punchclock.errors import ValidationError
from punchclock.schemas import CheckinRequest, CheckinResponse, PunchEventRead, TodayStatusResponse
from punchclock.services.attendance import CheckinService

router = APIRouter(tags=["attendance"])


@router.post("/checkin", response_model=CheckinResponse)
@router.post("/api/attendance/checkin", response_model=CheckinResponse, include_in_schema=False)
def checkin(
    payload: CheckinRequest,
    request: Request,
    identity: str = Depends(require_identity),
    service: CheckinService = Depends(get_checkin_service),
) -> CheckinResponse:
    if not payload.punch_type or payload.location is None:
        raise ValidationError()

    request.state.punch_type = payload.punch_type
    outcome = service.submit_punch(
        identity,
        payload.punch_type,
        payload.location.latitude,
        payload.location.longitude,
    )
    request.state.event_id = outcome.event.id
    return CheckinResponse(
        success=True,
        message=outcome.message,
        punch_type=outcome.event.punch_type,
        ts_utc=outcome.event.ts_utc,
        distance_m=outcome.event.distance_m,
    )


@router.get("/checkin/today", response_model=TodayStatusResponse)
def checkin_today(
    identity: str = Depends(require_identity),
    service: CheckinService = Depends(get_checkin_service),
) -> TodayStatusResponse:
    status = service.today_status(identity)
    return TodayStatusResponse(
        identity=status.identity,
        local_day=status.local_day,
        state=status.state.value,
        next_punch=status.next_punch,
        cooldown_remaining_minutes=status.cooldown_remaining_minutes,
        punches=[PunchEventRead.model_validate(item) for item in status.punches],
    )
