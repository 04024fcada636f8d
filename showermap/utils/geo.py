"""Geographic utility functions for the location pipeline."""

import math
from typing import Any


EARTH_RADIUS_KM = 6371.0


def is_valid_coordinates(lat: float, lng: float) -> bool:
    """True for finite coordinates inside WGS84 bounds."""
    return (
        math.isfinite(lat) and math.isfinite(lng)
        and abs(lat) <= 90 and abs(lng) <= 180
    )


def haversine_km(lat1: float, lng1: float, lat2: float, lng2: float) -> float:
    """Great-circle distance between two points, in kilometers.

    Args:
        lat1, lng1: First point in degrees
        lat2, lng2: Second point in degrees

    Returns:
        Distance in kilometers on a sphere of radius 6371 km
    """
    phi1, phi2 = math.radians(lat1), math.radians(lat2)
    d_phi = phi2 - phi1
    d_lambda = math.radians(lng2 - lng1)

    h = math.sin(d_phi / 2) ** 2 + math.cos(phi1) * math.cos(phi2) * math.sin(d_lambda / 2) ** 2
    return 2 * EARTH_RADIUS_KM * math.asin(min(1.0, math.sqrt(h)))


def normalize_coordinates(lat: Any, lng: Any) -> tuple[float | None, float | None]:
    """Parse and validate a coordinate pair.

    Scraped files carry coordinates as numbers or strings and write 0 for
    "unknown", so a zero on either axis counts as missing. Both values are
    returned or neither is.

    Returns:
        (lat, lng) as floats, or (None, None)
    """
    try:
        lat, lng = float(lat), float(lng)
    except (TypeError, ValueError):
        return None, None

    if lat == 0 or lng == 0 or not is_valid_coordinates(lat, lng):
        return None, None
    return lat, lng


def record_distance_km(a, b) -> float | None:
    """Distance between two records, or None when either lacks coordinates."""
    if not a.has_coordinates or not b.has_coordinates:
        return None
    return haversine_km(a.lat, a.lng, b.lat, b.lng)


def within_km(a, b, max_km: float) -> bool:
    """True when both records have coordinates and lie within max_km."""
    distance = record_distance_km(a, b)
    return distance is not None and distance <= max_km
