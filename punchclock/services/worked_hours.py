from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta

NOT_APPLICABLE = "N/A"


@dataclass(frozen=True)
class WorkedDuration:
    hours: int
    minutes: int

    @classmethod
    def from_timedelta(cls, value: timedelta) -> WorkedDuration:
        total_minutes = int(value.total_seconds() // 60)
        return cls(hours=total_minutes // 60, minutes=total_minutes % 60)

    @property
    def total_minutes(self) -> int:
        return self.hours * 60 + self.minutes

    def __str__(self) -> str:
        return f"{self.hours}h {self.minutes}m"


def calculate_worked_duration(
    entry: datetime | None,
    lunch_start: datetime | None,
    lunch_end: datetime | None,
    exit_: datetime | None,
) -> WorkedDuration | None:
    if entry is None or exit_ is None:
        return None

    worked = exit_ - entry
    if lunch_start is not None and lunch_end is not None and lunch_end >= lunch_start:
        worked -= lunch_end - lunch_start

    if worked < timedelta(0):
        return None
    return WorkedDuration.from_timedelta(worked)


def format_worked_duration(value: WorkedDuration | None) -> str:
    if value is None:
        return NOT_APPLICABLE
    return str(value)
