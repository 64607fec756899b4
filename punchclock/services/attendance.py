from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime
from math import ceil
from zoneinfo import ZoneInfo

from punchclock.errors import ApiError, CooldownActive, GeofenceViolation
from punchclock.models import PunchEvent, PunchType
from punchclock.services.event_store import EventStore
from punchclock.services.local_time import (
    attendance_timezone,
    local_day_bounds_utc,
    local_day_from_utc,
    normalize_ts,
    utcnow,
)
from punchclock.services.location import OfficeConfig, evaluate_geofence
from punchclock.services.sequence import (
    DayState,
    current_state,
    next_expected_punch,
    validate_next_punch,
)

logger = logging.getLogger("punchclock.attendance")

EXIT_MESSAGE = "Your workday is complete. See you tomorrow!"


@dataclass(frozen=True)
class PunchOutcome:
    event: PunchEvent
    message: str


@dataclass(frozen=True)
class TodayStatus:
    identity: str
    local_day: str
    punches: list[PunchEvent]
    state: DayState
    next_punch: PunchType | None
    cooldown_remaining_minutes: int


def success_message(punch_type: PunchType) -> str:
    if punch_type == PunchType.EXIT:
        return EXIT_MESSAGE
    return f"'{punch_type.label}' recorded successfully."


def cooldown_remaining_minutes(
    last_ts_utc: datetime,
    now_utc: datetime,
    cooldown_minutes: int,
) -> int:
    """Whole minutes still to wait, or 0 when the cooldown has elapsed."""
    elapsed_minutes = (normalize_ts(now_utc) - normalize_ts(last_ts_utc)).total_seconds() / 60
    if elapsed_minutes >= cooldown_minutes:
        return 0
    remaining = ceil(cooldown_minutes - elapsed_minutes)
    return min(max(1, remaining), cooldown_minutes)


class CheckinService:
    def __init__(
        self,
        store: EventStore,
        office: OfficeConfig,
        *,
        tz: ZoneInfo | None = None,
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        self.store = store
        self.office = office
        self.tz = tz or attendance_timezone()
        self.clock = clock

    def _todays_events(self, identity: str, now_utc: datetime) -> list[PunchEvent]:
        start_utc, end_utc = local_day_bounds_utc(local_day_from_utc(now_utc, self.tz), self.tz)
        events = self.store.query_by_identity_and_window(identity, start_utc, end_utc)
        return sorted(events, key=lambda item: (normalize_ts(item.ts_utc), item.id or 0))

    def submit_punch(
        self,
        identity: str,
        requested_type: PunchType | str | None,
        lat: float,
        lon: float,
    ) -> PunchOutcome:
        try:
            outcome = self._submit_punch(identity, requested_type, lat, lon)
        except ApiError as exc:
            if exc.status_code < 500:
                logger.info(
                    "punch_rejected",
                    extra={
                        "identity": identity,
                        "punch_type": getattr(requested_type, "value", requested_type),
                        "code": exc.code,
                    },
                )
            raise

        logger.info(
            "punch_recorded",
            extra={
                "identity": identity,
                "punch_type": outcome.event.punch_type.value,
                "event_id": outcome.event.id,
                "distance_m": outcome.event.distance_m,
            },
        )
        return outcome

    def _submit_punch(
        self,
        identity: str,
        requested_type: PunchType | str | None,
        lat: float,
        lon: float,
    ) -> PunchOutcome:
        geofence = evaluate_geofence(self.office, lat, lon)
        if not geofence.within_radius:
            raise GeofenceViolation(geofence.distance_m)

        now_utc = normalize_ts(self.clock())
        todays_events = self._todays_events(identity, now_utc)

        if todays_events:
            remaining = cooldown_remaining_minutes(
                todays_events[-1].ts_utc,
                now_utc,
                self.office.cooldown_minutes,
            )
            if remaining > 0:
                raise CooldownActive(remaining, self.office.cooldown_minutes)

        punch_type = validate_next_punch(
            requested_type,
            [item.punch_type for item in todays_events],
            max_punches_per_day=self.office.max_punches_per_day,
        )

        event = PunchEvent(
            identity=identity,
            punch_type=punch_type,
            ts_utc=now_utc,
            local_day=local_day_from_utc(now_utc, self.tz),
            lat=lat,
            lon=lon,
            distance_m=round(geofence.distance_m, 2),
        )
        stored = self.store.append(event)
        return PunchOutcome(event=stored, message=success_message(punch_type))

    def today_status(self, identity: str) -> TodayStatus:
        now_utc = normalize_ts(self.clock())
        todays_events = self._todays_events(identity, now_utc)
        punch_types = [item.punch_type for item in todays_events]

        remaining = 0
        if todays_events:
            remaining = cooldown_remaining_minutes(
                todays_events[-1].ts_utc,
                now_utc,
                self.office.cooldown_minutes,
            )
        state = current_state(punch_types)
        if len(punch_types) >= self.office.max_punches_per_day:
            state = DayState.DONE

        return TodayStatus(
            identity=identity,
            local_day=local_day_from_utc(now_utc, self.tz).isoformat(),
            punches=todays_events,
            state=state,
            next_punch=None if state == DayState.DONE else next_expected_punch(punch_types),
            cooldown_remaining_minutes=remaining,
        )
