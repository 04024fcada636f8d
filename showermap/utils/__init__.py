"""Utility modules for the location pipeline."""

from showermap.utils.geo import (
    haversine_km,
    is_valid_coordinates,
    normalize_coordinates,
    record_distance_km,
    within_km,
)
from showermap.utils.http import (
    HTTPError,
    NetworkFailure,
    RateLimitError,
    RequestThrottle,
    build_retrying,
    fetch_json,
)
from showermap.utils.logging import setup_logging
from showermap.utils.text import (
    clean_address,
    extract_city_state_from_address,
    format_phone_number,
    levenshtein_distance,
    normalize_address,
    normalize_business_name,
    normalize_business_name_advanced,
    normalize_phone_number,
    similarity,
)

__all__ = [
    # HTTP utilities
    "fetch_json",
    "build_retrying",
    "RequestThrottle",
    "NetworkFailure",
    "HTTPError",
    "RateLimitError",
    # Logging
    "setup_logging",
    # Geographic utilities
    "is_valid_coordinates",
    "haversine_km",
    "normalize_coordinates",
    "record_distance_km",
    "within_km",
    # Text utilities
    "normalize_address",
    "normalize_business_name",
    "normalize_business_name_advanced",
    "normalize_phone_number",
    "format_phone_number",
    "clean_address",
    "extract_city_state_from_address",
    "levenshtein_distance",
    "similarity",
]
