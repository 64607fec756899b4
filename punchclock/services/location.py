from __future__ import annotations

from dataclasses import dataclass
from math import asin, cos, isfinite, nan, radians, sin, sqrt

EARTH_RADIUS_M = 6371000.0


@dataclass(frozen=True)
class OfficeConfig:
    latitude: float
    longitude: float
    radius_m: float
    cooldown_minutes: int = 15
    max_punches_per_day: int = 4


@dataclass(frozen=True)
class GeofenceResult:
    distance_m: float
    within_radius: bool


def _is_valid_coordinate(lat: float, lon: float) -> bool:
    if not (isfinite(lat) and isfinite(lon)):
        return False
    return -90.0 <= lat <= 90.0 and -180.0 <= lon <= 180.0


def distance_m(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """Haversine great-circle distance in meters.

    Malformed coordinates (non-finite or out of range) yield NaN.
    """
    if not (_is_valid_coordinate(lat1, lon1) and _is_valid_coordinate(lat2, lon2)):
        return nan

    lat1_rad = radians(lat1)
    lon1_rad = radians(lon1)
    lat2_rad = radians(lat2)
    lon2_rad = radians(lon2)

    delta_lat = lat2_rad - lat1_rad
    delta_lon = lon2_rad - lon1_rad

    a = sin(delta_lat / 2) ** 2 + cos(lat1_rad) * cos(lat2_rad) * sin(delta_lon / 2) ** 2
    # Rounding can push antipodal points just past 1.0.
    c = 2 * asin(sqrt(min(1.0, a)))
    return EARTH_RADIUS_M * c


def evaluate_geofence(office: OfficeConfig, lat: float, lon: float) -> GeofenceResult:
    value = distance_m(office.latitude, office.longitude, lat, lon)
    # NaN compares False, so malformed input is never within radius.
    return GeofenceResult(distance_m=value, within_radius=value <= office.radius_m)
