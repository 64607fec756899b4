from __future__ import annotations

import enum
from datetime import date, datetime

from sqlalchemy import Date, DateTime, Enum, Float, Integer, String, UniqueConstraint, text
from sqlalchemy.orm import Mapped, mapped_column

from punchclock.db import Base


class PunchType(str, enum.Enum):
    ENTRY = "ENTRY"
    LUNCH_START = "LUNCH_START"
    LUNCH_END = "LUNCH_END"
    EXIT = "EXIT"

    @property
    def label(self) -> str:
        return PUNCH_TYPE_LABELS[self]


PUNCH_TYPE_LABELS: dict[PunchType, str] = {
    PunchType.ENTRY: "Entry",
    PunchType.LUNCH_START: "Lunch start",
    PunchType.LUNCH_END: "Lunch end",
    PunchType.EXIT: "Exit",
}


class PunchEvent(Base):
    __tablename__ = "punch_events"
    __table_args__ = (
        UniqueConstraint(
            "identity",
            "local_day",
            "punch_type",
            name="uq_punch_events_identity_day_type",
        ),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    identity: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
    punch_type: Mapped[PunchType] = mapped_column(
        Enum(PunchType, name="punch_type"),
        nullable=False,
    )
    ts_utc: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, index=True)
    local_day: Mapped[date] = mapped_column(Date, nullable=False)
    lat: Mapped[float | None] = mapped_column(Float, nullable=True)
    lon: Mapped[float | None] = mapped_column(Float, nullable=True)
    distance_m: Mapped[float] = mapped_column(Float, nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        server_default=text("CURRENT_TIMESTAMP"),
    )
