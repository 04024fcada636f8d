"""
Six-phase duplicate detection over the working record set.

Every phase is the same loop (bucket by key, compare against earlier
candidates, merge the first that passes the gate) run by run_phase with a
different key function and gate. Phases run in a fixed order because a
merge in one phase changes what the next phase sees.
"""

from collections.abc import Callable, Hashable, Sequence

from loguru import logger

from showermap.config import settings
from showermap.deduplication.merge import merge
from showermap.deduplication.stats import DedupStats
from showermap.models import LocationRecord
from showermap.regions import resolve_region
from showermap.utils.geo import within_km
from showermap.utils.text import (
    normalize_address,
    normalize_business_name,
    normalize_business_name_advanced,
    normalize_phone_number,
    similarity,
)

KeyFn = Callable[[LocationRecord], Hashable | None]
GateFn = Callable[[LocationRecord, LocationRecord], bool]
MergeFn = Callable[[LocationRecord, LocationRecord, str], LocationRecord]

COORDINATE_DECIMALS = 4             # ~11 m grid
MIN_ADDRESS_KEY_LENGTH = 10         # normalized address must be longer than this
MIN_NAME_KEY_LENGTH = 3
FUZZY_TITLE_MAX_KM = 50
FUZZY_TITLE_MIN_SIMILARITY = 0.85
PHONE_MATCH_MAX_KM = 100
PROXIMITY_MAX_KM = 0.1
PROXIMITY_MIN_SIMILARITY = 0.6
NORMALIZED_NAME_MAX_KM = 25

# Key for pairwise phases where every eligible record is a candidate for every other
_ALL = "*"


def run_phase(
    records: Sequence[LocationRecord],
    key_fn: KeyFn,
    gate_fn: GateFn,
    merge_fn: MergeFn,
    reason: str,
    stats: DedupStats,
    once_per_pass: bool = False,
) -> tuple[list[LocationRecord], DedupStats]:
    """
    Run one deduplication pass.

    Records are visited in order. A record whose key is None is passed through
    untouched. Otherwise it is compared with the earlier surviving candidates
    sharing its key and merged into the first one gate_fn accepts; the merged
    record takes the candidate's place and the record itself drops out.

    Args:
        records: Working set from the previous phase
        key_fn: Bucket key for a record, None to exclude it from this phase
        gate_fn: Whether two same-bucket records should merge
        merge_fn: Builds the canonical record from (candidate, record, reason)
        reason: Merge reason recorded on the result and in stats
        stats: Counters so far
        once_per_pass: Retire both sides of a merge for the rest of the pass
            (greedy visited-set scan); otherwise the merged record keeps
            absorbing later matches

    Returns:
        Tuple of (new working set, updated stats)
    """
    working: list[LocationRecord | None] = list(records)
    candidates: dict[Hashable, list[int]] = {}

    for index, record in enumerate(records):
        key = key_fn(record)
        if key is None:
            continue

        bucket = candidates.setdefault(key, [])
        for position in bucket:
            existing = working[position]
            if not gate_fn(existing, record):
                continue

            merged = merge_fn(existing, record, reason)
            logger.debug(f"Merging '{existing.title}' + '{record.title}' ({reason})")

            working[position] = merged
            working[index] = None
            stats = stats.record(reason, resolve_region(merged.state, merged.address))

            if once_per_pass:
                bucket.remove(position)
            break
        else:
            bucket.append(index)

    return [record for record in working if record is not None], stats


# =============================================================================
# Phase 1: exact coordinates
# =============================================================================

def _coordinate_key(record: LocationRecord) -> str | None:
    if not record.has_coordinates:
        return None
    return f"{record.lat:.{COORDINATE_DECIMALS}f}_{record.lng:.{COORDINATE_DECIMALS}f}"


def exact_coordinate_phase(records, stats):
    """Merge records whose coordinates agree to 4 decimal places."""
    return run_phase(
        records, _coordinate_key, lambda a, b: True, merge, "exact_coordinates", stats,
    )


# =============================================================================
# Phase 2: normalized address
# =============================================================================

def _address_key(record: LocationRecord) -> str | None:
    normalized = normalize_address(record.address)
    if len(normalized) <= MIN_ADDRESS_KEY_LENGTH:
        return None
    return normalized


def address_phase(records, stats):
    """Merge records with the same normalized address. Works without coordinates."""
    return run_phase(
        records, _address_key, lambda a, b: True, merge, "address_match", stats,
    )


# =============================================================================
# Phase 3: fuzzy title within 50 km
# =============================================================================

def _named_with_coordinates(record: LocationRecord) -> str | None:
    if not record.has_coordinates:
        return None
    if len(normalize_business_name(record.title)) < MIN_NAME_KEY_LENGTH:
        return None
    return _ALL


def _fuzzy_title_gate(a: LocationRecord, b: LocationRecord) -> bool:
    if not within_km(a, b, FUZZY_TITLE_MAX_KM):
        return False
    score = similarity(normalize_business_name(a.title), normalize_business_name(b.title))
    return score > FUZZY_TITLE_MIN_SIMILARITY


def fuzzy_title_phase(records, stats):
    """Merge nearby records with near-identical business names."""
    return run_phase(
        records, _named_with_coordinates, _fuzzy_title_gate, merge, "fuzzy_title", stats,
        once_per_pass=True,
    )


# =============================================================================
# Phase 4: phone number within 100 km
# =============================================================================

def _phone_key(record: LocationRecord) -> str | None:
    return normalize_phone_number(record.phone)


def phone_phase(records, stats):
    """Merge records sharing a phone number within 100 km of each other."""
    return run_phase(
        records,
        _phone_key,
        lambda a, b: within_km(a, b, PHONE_MATCH_MAX_KM),
        merge,
        "phone_match",
        stats,
    )


# =============================================================================
# Phase 5: tight proximity cluster (100 m)
# =============================================================================

def _with_coordinates(record: LocationRecord) -> str | None:
    return _ALL if record.has_coordinates else None


def _same_category(a: LocationRecord, b: LocationRecord) -> bool:
    return bool(a.category) and a.category.casefold() == b.category.casefold()


def _proximity_gate(a: LocationRecord, b: LocationRecord) -> bool:
    if not within_km(a, b, PROXIMITY_MAX_KM):
        return False
    score = similarity(normalize_business_name(a.title), normalize_business_name(b.title))
    return score > PROXIMITY_MIN_SIMILARITY or _same_category(a, b)


def proximity_phase(records, stats):
    """Merge records within 100 m that look alike by name or category."""
    return run_phase(
        records, _with_coordinates, _proximity_gate, merge, "proximity", stats,
        once_per_pass=True,
    )


# =============================================================================
# Phase 6: canonical chain name in the same city
# =============================================================================

def _chain_key(record: LocationRecord) -> str | None:
    name = normalize_business_name_advanced(record.title)
    if len(name) < MIN_NAME_KEY_LENGTH:
        return None
    return f"{name}_{record.city.lower()}"


def normalized_name_phase(records, stats):
    """Merge chain-name variants in one city within 25 km."""
    return run_phase(
        records,
        _chain_key,
        lambda a, b: within_km(a, b, NORMALIZED_NAME_MAX_KM),
        merge,
        "normalized_name",
        stats,
    )


PHASES = (
    ("Exact coordinate matching", exact_coordinate_phase),
    ("Address-based matching", address_phase),
    ("Fuzzy title matching", fuzzy_title_phase),
    ("Phone number matching", phone_phase),
    ("Proximity clustering", proximity_phase),
    ("Business name normalization", normalized_name_phase),
)


def deduplicate(
    records: Sequence[LocationRecord],
    stats: DedupStats | None = None,
    max_rounds: int | None = None,
) -> tuple[list[LocationRecord], DedupStats]:
    """
    Run all six phases in order, repeating until a round merges nothing.

    Repeating to a fixpoint means running deduplicate on its own output
    returns it unchanged.

    Args:
        records: Records to deduplicate
        stats: Counters to continue from (defaults to empty)
        max_rounds: Upper bound on full rounds (defaults to settings)

    Returns:
        Tuple of (unique records, stats)
    """
    stats = stats or DedupStats()
    max_rounds = max_rounds or settings.dedup.max_rounds
    working = list(records)

    logger.info(f"Removing duplicates from {len(working):,} locations...")

    for round_number in range(1, max_rounds + 1):
        round_start = stats.duplicate_count

        for label, phase in PHASES:
            before = stats.duplicate_count
            working, stats = phase(working, stats)
            found = stats.duplicate_count - before
            if found:
                logger.info(f"  Round {round_number} - {label}: {found:,} duplicates")

        if stats.duplicate_count == round_start:
            break
    else:
        logger.warning(f"Deduplication still merging after {max_rounds} rounds")

    logger.info(
        f"Removed {stats.duplicate_count:,} duplicates, {len(working):,} unique locations remaining"
    )
    return working, stats
