from __future__ import annotations

import math
from typing import Any

from fastapi import Request
from fastapi.responses import JSONResponse


class ApiError(Exception):
    def __init__(self, status_code: int, code: str, message: str):
        super().__init__(message)
        self.status_code = status_code
        self.code = code
        self.message = message

    def details(self) -> dict[str, Any]:
        return {}


class ValidationError(ApiError):
    def __init__(self, message: str = "Missing required fields in request.") -> None:
        super().__init__(status_code=400, code="VALIDATION_ERROR", message=message)


class GeofenceViolation(ApiError):
    def __init__(self, distance_m: float) -> None:
        if math.isnan(distance_m):
            message = "Check-in rejected. Your location could not be verified."
        else:
            message = f"Check-in rejected. You are {distance_m:.0f}m away from the office."
        super().__init__(status_code=400, code="GEOFENCE_VIOLATION", message=message)
        self.distance_m = distance_m

    def details(self) -> dict[str, Any]:
        if math.isnan(self.distance_m):
            return {"distance_m": None}
        return {"distance_m": round(self.distance_m, 2)}


class CooldownActive(ApiError):
    def __init__(self, remaining_minutes: int, cooldown_minutes: int) -> None:
        super().__init__(
            status_code=429,
            code="COOLDOWN_ACTIVE",
            message=f"You must wait {cooldown_minutes} minutes between punches. {remaining_minutes} min left.",
        )
        self.remaining_minutes = remaining_minutes
        self.cooldown_minutes = cooldown_minutes

    def details(self) -> dict[str, Any]:
        return {"remaining_minutes": self.remaining_minutes}


class DuplicateEntry(ApiError):
    def __init__(self, message: str = "You already recorded your entry today.") -> None:
        super().__init__(status_code=409, code="DUPLICATE_ENTRY", message=message)


class OutOfOrder(ApiError):
    def __init__(self, message: str) -> None:
        super().__init__(status_code=409, code="OUT_OF_ORDER", message=message)


class DayComplete(ApiError):
    def __init__(self, max_punches_per_day: int) -> None:
        super().__init__(
            status_code=409,
            code="DAY_COMPLETE",
            message=f"You have already completed your {max_punches_per_day} punches for today.",
        )


class UnknownType(ApiError):
    def __init__(self, raw_value: object) -> None:
        super().__init__(status_code=400, code="UNKNOWN_PUNCH_TYPE", message="Invalid punch type.")
        self.raw_value = raw_value


class AuthInvalid(ApiError):
    def __init__(self, message: str = "Token is invalid.") -> None:
        super().__init__(status_code=401, code="INVALID_TOKEN", message=message)


class UpstreamUnavailable(ApiError):
    def __init__(self, message: str = "Service temporarily unavailable. Please retry.") -> None:
        super().__init__(status_code=503, code="UPSTREAM_UNAVAILABLE", message=message)


class EmptyReport(ApiError):
    def __init__(self) -> None:
        super().__init__(status_code=404, code="EMPTY_REPORT", message="There are no punches to export.")


class InternalError(ApiError):
    def __init__(self, message: str = "Unexpected server error.") -> None:
        super().__init__(status_code=500, code="INTERNAL_ERROR", message=message)


def get_request_id(request: Request) -> str:
    request_id = getattr(request.state, "request_id", None)
    if request_id:
        return str(request_id)
    return "unknown"


def error_response(
    request: Request,
    *,
    status_code: int,
    code: str,
    message: str,
    details: dict[str, Any] | None = None,
) -> JSONResponse:
    error: dict[str, Any] = {
        "code": code,
        "message": message,
        "request_id": get_request_id(request),
    }
    if details:
        error.update(details)
    payload = {
        "success": False,
        "message": message,
        "error": error,
    }
    return JSONResponse(status_code=status_code, content=payload)
