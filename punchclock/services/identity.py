from __future__ import annotations

import logging
from typing import Any, Protocol

from jose import JWTError, jwt

from punchclock.errors import AuthInvalid
from punchclock.settings import Settings

logger = logging.getLogger("punchclock.identity")


class IdentityVerifier(Protocol):
    def verify(self, credential: str) -> str: ...


class JwtIdentityVerifier:
    """Resolves a bearer JWT to the employee identity (``email`` or ``sub``)."""

    def __init__(
        self,
        secret: str,
        *,
        issuer: str | None = None,
        audience: str | None = None,
        algorithms: tuple[str, ...] = ("HS256",),
    ) -> None:
        self.secret = secret
        self.issuer = issuer
        self.audience = audience
        self.algorithms = list(algorithms)

    @classmethod
    def from_settings(cls, settings: Settings) -> JwtIdentityVerifier:
        return cls(
            settings.jwt_secret,
            issuer=settings.jwt_issuer,
            audience=settings.jwt_audience,
        )

    def verify(self, credential: str) -> str:
        if not self.secret:
            logger.error("identity_secret_not_configured")
            raise AuthInvalid()
        if not credential:
            raise AuthInvalid("Missing bearer token.")

        try:
            payload: dict[str, Any] = jwt.decode(
                credential,
                self.secret,
                algorithms=self.algorithms,
                audience=self.audience,
                issuer=self.issuer,
                options={
                    "verify_aud": self.audience is not None,
                    "require_exp": True,
                },
            )
        except JWTError as exc:
            raise AuthInvalid() from exc

        identity = payload.get("email") or payload.get("sub")
        if not isinstance(identity, str) or not identity.strip():
            raise AuthInvalid("Token subject is invalid.")
        return identity.strip()
