"""
Deduplication pipeline components.

These modules identify records from different scrapes that describe the
same facility and merge them into one canonical record, counting every
merge by reason and region.
"""

from showermap.deduplication.merge import merge
from showermap.deduplication.phases import (
    PHASES,
    address_phase,
    deduplicate,
    exact_coordinate_phase,
    fuzzy_title_phase,
    normalized_name_phase,
    phone_phase,
    proximity_phase,
    run_phase,
)
from showermap.deduplication.stats import DUPLICATE_REASONS, DedupStats

__all__ = [
    "DUPLICATE_REASONS",
    "DedupStats",
    "merge",
    "run_phase",
    "exact_coordinate_phase",
    "address_phase",
    "fuzzy_title_phase",
    "phone_phase",
    "proximity_phase",
    "normalized_name_phase",
    "PHASES",
    "deduplicate",
]
