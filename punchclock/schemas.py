from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

from punchclock.models import PunchType


class CheckinLocation(BaseModel):
    latitude: float
    longitude: float


class CheckinRequest(BaseModel):
    # Presence and type are checked by the router and the sequence validator.
    punch_type: str | None = Field(default=None, alias="punchType")
    location: CheckinLocation | None = None

    model_config = ConfigDict(populate_by_name=True)


class CheckinResponse(BaseModel):
    success: bool
    message: str
    punch_type: PunchType
    ts_utc: datetime
    distance_m: float


class PunchEventRead(BaseModel):
    id: int
    identity: str
    punch_type: PunchType
    ts_utc: datetime
    lat: float | None
    lon: float | None
    distance_m: float

    model_config = ConfigDict(from_attributes=True)


class TodayStatusResponse(BaseModel):
    identity: str
    local_day: str
    state: str
    next_punch: PunchType | None = None
    cooldown_remaining_minutes: int = 0
    punches: list[PunchEventRead] = Field(default_factory=list)
