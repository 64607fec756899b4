from __future__ import annotations

import logging
from datetime import datetime
from typing import Protocol

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError, OperationalError
from sqlalchemy.exc import TimeoutError as PoolTimeoutError
from sqlalchemy.orm import Session

from punchclock.errors import DuplicateEntry, OutOfOrder, UpstreamUnavailable
from punchclock.models import PunchEvent, PunchType

logger = logging.getLogger("punchclock.event_store")


class EventStore(Protocol):
    def append(self, event: PunchEvent) -> PunchEvent: ...

    def query_by_identity_and_window(
        self,
        identity: str,
        start_utc: datetime,
        end_utc: datetime,
    ) -> list[PunchEvent]: ...

    def query_all(
        self,
        start_utc: datetime | None = None,
        end_utc: datetime | None = None,
    ) -> list[PunchEvent]: ...


class SqlAlchemyEventStore:
    def __init__(self, db: Session) -> None:
        self.db = db

    def append(self, event: PunchEvent) -> PunchEvent:
        self.db.add(event)
        try:
            self.db.commit()
        except IntegrityError as exc:
            self.db.rollback()
            # A concurrent submission already took this (identity, day, type) slot.
            logger.warning(
                "punch_slot_conflict",
                extra={
                    "identity": event.identity,
                    "punch_type": event.punch_type.value,
                    "local_day": event.local_day.isoformat(),
                },
            )
            if event.punch_type == PunchType.ENTRY:
                raise DuplicateEntry() from exc
            raise OutOfOrder(
                f"'{event.punch_type.label}' was already recorded today."
            ) from exc
        except (OperationalError, PoolTimeoutError) as exc:
            self.db.rollback()
            logger.exception("event_store_append_failed", extra={"identity": event.identity})
            raise UpstreamUnavailable() from exc
        self.db.refresh(event)
        return event

    def query_by_identity_and_window(
        self,
        identity: str,
        start_utc: datetime,
        end_utc: datetime,
    ) -> list[PunchEvent]:
        stmt = (
            select(PunchEvent)
            .where(
                PunchEvent.identity == identity,
                PunchEvent.ts_utc >= start_utc,
                PunchEvent.ts_utc < end_utc,
            )
            .order_by(PunchEvent.ts_utc.asc(), PunchEvent.id.asc())
        )
        return self._fetch(stmt)

    def query_all(
        self,
        start_utc: datetime | None = None,
        end_utc: datetime | None = None,
    ) -> list[PunchEvent]:
        stmt = select(PunchEvent).order_by(PunchEvent.ts_utc.asc(), PunchEvent.id.asc())
        if start_utc is not None:
            stmt = stmt.where(PunchEvent.ts_utc >= start_utc)
        if end_utc is not None:
            stmt = stmt.where(PunchEvent.ts_utc < end_utc)
        return self._fetch(stmt)

    def _fetch(self, stmt) -> list[PunchEvent]:  # type: ignore[no-untyped-def]
        try:
            return list(self.db.scalars(stmt).all())
        except (OperationalError, PoolTimeoutError) as exc:
            logger.exception("event_store_query_failed")
            raise UpstreamUnavailable() from exc
