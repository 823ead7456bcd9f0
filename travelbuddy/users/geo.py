"""Great-circle helpers for the nearby-users lookup."""

from __future__ import annotations

import math

EARTH_RADIUS_METERS = 6371e3


def haversine_distance(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """Distance in meters between two (lat, lon) points in degrees."""
    phi1 = math.radians(lat1)
    phi2 = math.radians(lat2)
    d_phi = math.radians(lat2 - lat1)
    d_lambda = math.radians(lon2 - lon1)

    a = (
        math.sin(d_phi / 2) ** 2
        + math.cos(phi1) * math.cos(phi2) * math.sin(d_lambda / 2) ** 2
    )
    c = 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))
    return EARTH_RADIUS_METERS * c


def bounding_box(
    lat: float, lon: float, radius_m: float
) -> tuple[float, float, float, float] | None:
    """Return (min_lat, max_lat, min_lon, max_lon) enclosing the radius.

    Returns None when the box would touch a pole or wrap the antimeridian;
    callers then fall back to a full scan.
    """
    if radius_m <= 0:
        return (lat, lat, lon, lon)
    d_lat = math.degrees(radius_m / EARTH_RADIUS_METERS)
    min_lat, max_lat = lat - d_lat, lat + d_lat
    if min_lat <= -90 or max_lat >= 90:  # noqa: PLR2004
        return None
    cos_lat = math.cos(math.radians(max(abs(min_lat), abs(max_lat))))
    d_lon = math.degrees(radius_m / (EARTH_RADIUS_METERS * cos_lat))
    min_lon, max_lon = lon - d_lon, lon + d_lon
    if min_lon < -180 or max_lon > 180:  # noqa: PLR2004
        return None
    return (min_lat, max_lat, min_lon, max_lon)
