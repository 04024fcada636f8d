"""Confidence score for a single geocoder search result."""

from typing import Any

IMPORTANCE_WEIGHT = 0.4
HOUSE_NUMBER_BONUS = 0.2
ROAD_BONUS = 0.2
LOCALITY_BONUS = 0.15
PRECISE_TYPE_BONUS = 0.15
VENUE_CLASS_BONUS = 0.1
GENERIC_MATCH_PENALTY = 0.2

PRECISE_TYPES = {"house", "building", "commercial"}
VENUE_CLASSES = {"amenity", "leisure", "shop"}


def _address_part(result: dict, *names: str) -> str:
    """First non-empty address component, from addressdetails or the top level."""
    details = result.get("address")
    if not isinstance(details, dict):
        details = {}
    for name in names:
        value = details.get(name) or result.get(name)
        if value:
            return str(value).strip().lower()
    return ""


def _mentioned(token: str, query: str) -> bool:
    return bool(token) and token in query


def calculate_confidence(result: dict[str, Any], query: str) -> float:
    """
    Score how well a search result matches the address that was searched.

    Starts from 0.4 x the provider's importance, adds bonuses for address
    components (house number, road, city/town/village) that appear in the
    query and for precise place types, and penalizes administrative
    boundaries. Components the result does not carry never score.

    Args:
        result: One search result (Nominatim JSON shape)
        query: The address string that was searched

    Returns:
        Confidence clamped to [0, 1]
    """
    try:
        importance = float(result.get("importance") or 0)
    except (TypeError, ValueError):
        importance = 0.0

    confidence = importance * IMPORTANCE_WEIGHT

    query_lower = (query or "").lower()
    if _mentioned(_address_part(result, "house_number", "housenumber"), query_lower):
        confidence += HOUSE_NUMBER_BONUS
    if _mentioned(_address_part(result, "road"), query_lower):
        confidence += ROAD_BONUS
    if _mentioned(_address_part(result, "city", "town", "village"), query_lower):
        confidence += LOCALITY_BONUS

    place_type = result.get("type") or ""
    place_class = result.get("class") or ""
    if place_type in PRECISE_TYPES:
        confidence += PRECISE_TYPE_BONUS
    elif place_class in VENUE_CLASSES:
        confidence += VENUE_CLASS_BONUS

    if place_type == "administrative" or place_class == "boundary":
        confidence -= GENERIC_MATCH_PENALTY

    return max(0.0, min(1.0, confidence))
