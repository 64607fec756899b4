from __future__ import annotations

from collections.abc import Callable
from datetime import datetime

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from punchclock.db import get_db
from punchclock.errors import AuthInvalid
from punchclock.services.attendance import CheckinService
from punchclock.services.event_store import EventStore, SqlAlchemyEventStore
from punchclock.services.exports import DocumentSink, XlsxDocumentSink
from punchclock.services.identity import IdentityVerifier, JwtIdentityVerifier
from punchclock.services.local_time import utcnow
from punchclock.services.location import OfficeConfig
from punchclock.settings import get_settings

bearer_scheme = HTTPBearer(auto_error=False)


def get_event_store(db: Session = Depends(get_db)) -> EventStore:
    return SqlAlchemyEventStore(db)


def get_identity_verifier() -> IdentityVerifier:
    return JwtIdentityVerifier.from_settings(get_settings())


def get_document_sink() -> DocumentSink:
    return XlsxDocumentSink()


def get_office_config() -> OfficeConfig:
    settings = get_settings()
    return OfficeConfig(
        latitude=settings.office_latitude,
        longitude=settings.office_longitude,
        radius_m=settings.allowed_radius_m,
        cooldown_minutes=settings.cooldown_minutes,
        max_punches_per_day=settings.max_punches_per_day,
    )


def get_clock() -> Callable[[], datetime]:
    return utcnow


def get_checkin_service(
    store: EventStore = Depends(get_event_store),
    office: OfficeConfig = Depends(get_office_config),
    clock: Callable[[], datetime] = Depends(get_clock),
) -> CheckinService:
    return CheckinService(store, office, clock=clock)


def require_identity(
    request: Request,
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
    verifier: IdentityVerifier = Depends(get_identity_verifier),
) -> str:
    if credentials is None or credentials.scheme.lower() != "bearer":
        raise AuthInvalid("Missing bearer token.")

    identity = verifier.verify(credentials.credentials)
    request.state.actor = "employee"
    request.state.identity = identity
    return identity
