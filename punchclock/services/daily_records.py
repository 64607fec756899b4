from __future__ import annotations

import logging
from collections.abc import Iterable
from dataclasses import dataclass, replace
from datetime import date, datetime
from zoneinfo import ZoneInfo

from punchclock.errors import UnknownType
from punchclock.models import PunchEvent, PunchType
from punchclock.services.local_time import attendance_timezone, local_day_from_utc, normalize_ts
from punchclock.services.sequence import parse_punch_type
from punchclock.services.worked_hours import WorkedDuration, calculate_worked_duration

logger = logging.getLogger("punchclock.daily_records")

DailyKey = tuple[str, date]

_FIELD_BY_TYPE: dict[PunchType, str] = {
    PunchType.ENTRY: "entry",
    PunchType.LUNCH_START: "lunch_start",
    PunchType.LUNCH_END: "lunch_end",
    PunchType.EXIT: "exit",
}
# Duplicates of these keep the earliest timestamp; the rest keep the latest.
_KEEP_EARLIEST = {PunchType.ENTRY, PunchType.LUNCH_START}


@dataclass(frozen=True)
class DailyRecord:
    identity: str
    day: date
    entry: datetime | None = None
    lunch_start: datetime | None = None
    lunch_end: datetime | None = None
    exit: datetime | None = None

    @property
    def worked_duration(self) -> WorkedDuration | None:
        return calculate_worked_duration(self.entry, self.lunch_start, self.lunch_end, self.exit)

    def with_punch(self, punch_type: PunchType, ts_utc: datetime) -> DailyRecord:
        field_name = _FIELD_BY_TYPE[punch_type]
        current: datetime | None = getattr(self, field_name)
        if current is not None:
            if punch_type in _KEEP_EARLIEST and current <= ts_utc:
                return self
            if punch_type not in _KEEP_EARLIEST and current >= ts_utc:
                return self
        return replace(self, **{field_name: ts_utc})


def aggregate_daily_records(
    events: Iterable[PunchEvent],
    tz: ZoneInfo | None = None,
) -> dict[DailyKey, DailyRecord]:
    """Group events into one record per (identity, local calendar day).

    Events without a timestamp or with an unrecognised type are skipped.
    Keys keep the order in which they first appear in ``events``.
    """
    zone = tz or attendance_timezone()
    records: dict[DailyKey, DailyRecord] = {}
    skipped = 0

    for event in events:
        if event.ts_utc is None:
            skipped += 1
            continue
        try:
            punch_type = parse_punch_type(event.punch_type)
        except UnknownType:
            skipped += 1
            continue

        ts_utc = normalize_ts(event.ts_utc)
        key = (event.identity, local_day_from_utc(ts_utc, zone))
        record = records.get(key) or DailyRecord(identity=key[0], day=key[1])
        records[key] = record.with_punch(punch_type, ts_utc)

    if skipped:
        logger.warning("daily_records_skipped_events", extra={"skipped": skipped})
    return records
