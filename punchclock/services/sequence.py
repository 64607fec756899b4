from __future__ import annotations

import enum
from collections.abc import Sequence

from punchclock.errors import DayComplete, DuplicateEntry, OutOfOrder, UnknownType
from punchclock.models import PunchType


class DayState(str, enum.Enum):
    NOT_STARTED = "NOT_STARTED"
    WORKING = "WORKING"
    AT_LUNCH = "AT_LUNCH"
    RETURNED_FROM_LUNCH = "RETURNED_FROM_LUNCH"
    DONE = "DONE"


TRANSITIONS: dict[tuple[DayState, PunchType], DayState] = {
    (DayState.NOT_STARTED, PunchType.ENTRY): DayState.WORKING,
    (DayState.WORKING, PunchType.LUNCH_START): DayState.AT_LUNCH,
    (DayState.AT_LUNCH, PunchType.LUNCH_END): DayState.RETURNED_FROM_LUNCH,
    (DayState.RETURNED_FROM_LUNCH, PunchType.EXIT): DayState.DONE,
}

STATE_AFTER_PUNCH: dict[PunchType | None, DayState] = {
    None: DayState.NOT_STARTED,
    PunchType.ENTRY: DayState.WORKING,
    PunchType.LUNCH_START: DayState.AT_LUNCH,
    PunchType.LUNCH_END: DayState.RETURNED_FROM_LUNCH,
    PunchType.EXIT: DayState.DONE,
}

REQUIRED_PREVIOUS: dict[PunchType, PunchType] = {
    PunchType.LUNCH_START: PunchType.ENTRY,
    PunchType.LUNCH_END: PunchType.LUNCH_START,
    PunchType.EXIT: PunchType.LUNCH_END,
}


def parse_punch_type(raw_value: PunchType | str | None) -> PunchType:
    if isinstance(raw_value, PunchType):
        return raw_value
    if not isinstance(raw_value, str):
        raise UnknownType(raw_value)
    try:
        return PunchType(raw_value.strip().upper())
    except ValueError as exc:
        raise UnknownType(raw_value) from exc


def current_state(todays_punches: Sequence[PunchType]) -> DayState:
    last_punch = todays_punches[-1] if todays_punches else None
    return STATE_AFTER_PUNCH[last_punch]


def next_expected_punch(todays_punches: Sequence[PunchType]) -> PunchType | None:
    state = current_state(todays_punches)
    for (from_state, punch_type), _ in TRANSITIONS.items():
        if from_state == state:
            return punch_type
    return None


def validate_next_punch(
    requested: PunchType | str | None,
    todays_punches: Sequence[PunchType],
    *,
    max_punches_per_day: int = 4,
) -> PunchType:
    """Return the parsed punch type if it is a legal next punch today.

    ``todays_punches`` must be in chronological order. Raises the matching
    ``ApiError`` subclass otherwise.
    """
    state = current_state(todays_punches)
    if len(todays_punches) >= max_punches_per_day or state == DayState.DONE:
        raise DayComplete(max_punches_per_day)

    punch_type = parse_punch_type(requested)

    if punch_type == PunchType.ENTRY and PunchType.ENTRY in todays_punches:
        raise DuplicateEntry()

    if (state, punch_type) not in TRANSITIONS:
        required = REQUIRED_PREVIOUS.get(punch_type)
        if required is None:
            # Entry after a day already started without one (imported data).
            raise OutOfOrder("Entry can only be the first punch of the day.")
        raise OutOfOrder(f"You must record '{required.label}' first.")

    return punch_type
