"""
Geocoding components.

Backfills and corrects record coordinates through a rate-limited external
geocoder, scoring every result before it is accepted.
"""

from showermap.geocoding.candidates import build_address_candidates, clean_street
from showermap.geocoding.client import NominatimClient
from showermap.geocoding.confidence import calculate_confidence
from showermap.geocoding.geocoder import (
    CandidateAttempt,
    CandidateState,
    GeocodeOutcome,
    Geocoder,
    GeocodingStats,
)

__all__ = [
    "build_address_candidates",
    "clean_street",
    "calculate_confidence",
    "NominatimClient",
    "Geocoder",
    "GeocodeOutcome",
    "GeocodingStats",
    "CandidateAttempt",
    "CandidateState",
]
