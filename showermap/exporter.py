"""
Region exporter for the ShowerMap location pipeline.

Writes the deduplicated canonical records as static JSON files that the
site's page rendering reads directly.

Output files:
- <output>/<STATE>.json   - All locations of one region with summary counters
- <output>/index.json     - Totals, duplicate-reason histogram and region list

Each region file is written as soon as it is built, so an interrupted run
loses at most the region in progress.
"""

import json
from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List

from loguru import logger

from showermap.deduplication.stats import DedupStats, empty_breakdown
from showermap.models import LocationRecord
from showermap.regions import UNKNOWN_REGION, get_region_name, resolve_region
from showermap.utils.text import clean_address, extract_city_state_from_address, format_phone_number

INDEX_FILENAME = "index.json"
GEOCODING_SUMMARY_FILENAME = "geocoding-summary.json"
FAILED_GEOCODES_FILENAME = "failed-geocodes.json"

# Run-level files that share a directory with the region files
RUN_ARTIFACTS = {INDEX_FILENAME, GEOCODING_SUMMARY_FILENAME, FAILED_GEOCODES_FILENAME}


def utc_timestamp() -> str:
    return datetime.now(timezone.utc).isoformat()


def atomic_write_json(dest_path: Path, data: Any, indent: int = 2) -> Path:
    """
    Save a region file, index or geocoding report without ever leaving a
    half-written file where the site would read it.

    The JSON goes to a sibling "<name>.tmp", is read back once, and then
    replaces dest_path. If anything fails the .tmp is removed, the previous
    file stays as it was, and the error propagates. A geocoding run that
    dies mid-region therefore keeps every region it already finished.

    Args:
        dest_path: File to create or replace (parents are created)
        data: JSON-serializable value; non-JSON values are written via str()
        indent: Indent width, None for a single line

    Returns:
        dest_path
    """
    dest_path = Path(dest_path)
    dest_path.parent.mkdir(parents=True, exist_ok=True)

    temp_path = dest_path.with_suffix(dest_path.suffix + ".tmp")

    try:
        with open(temp_path, "w", encoding="utf-8") as f:
            json.dump(data, f, default=str, ensure_ascii=False, indent=indent)

        with open(temp_path, encoding="utf-8") as f:
            json.load(f)

        temp_path.replace(dest_path)
        return dest_path

    except Exception:
        if temp_path.exists():
            temp_path.unlink()
        raise


def region_files(directory: Path) -> List[Path]:
    """Region files in an output directory, sorted by name."""
    return sorted(p for p in Path(directory).glob("*.json") if p.name not in RUN_ARTIFACTS)


def finalize_record(record: LocationRecord) -> LocationRecord:
    """
    Clean a canonical record for publishing.

    Formats the phone number, tidies the address and fills a missing region
    or city (from the address when possible, "Unknown" otherwise).
    """
    address = clean_address(record.address) or ""
    city = record.city or extract_city_state_from_address(address)[0] or UNKNOWN_REGION

    return replace(
        record,
        address=address,
        phone=format_phone_number(record.phone) or record.phone,
        city=city,
        state=resolve_region(record.state, address),
    )


@dataclass
class RegionGroup:
    """All finalized locations of one region plus the counters its file carries."""
    state: str
    locations: List[LocationRecord] = field(default_factory=list)

    @property
    def state_name(self) -> str:
        return get_region_name(self.state)

    @property
    def filename(self) -> str:
        return f"{self.state}.json"

    @property
    def cities(self) -> List[str]:
        return sorted({loc.city for loc in self.locations if loc.city and loc.city != UNKNOWN_REGION})

    @property
    def categories(self) -> List[str]:
        seen: Dict[str, None] = {}
        for loc in self.locations:
            for category in loc.categories:
                seen.setdefault(category, None)
        return list(seen)

    @property
    def total_reviews(self) -> int:
        return sum(loc.review_count for loc in self.locations)

    @property
    def locations_with_phone(self) -> int:
        return sum(1 for loc in self.locations if loc.phone)

    def to_dict(self, stats: DedupStats, generated: str) -> dict:
        return {
            "state": self.state,
            "stateName": self.state_name,
            "locations": [loc.to_dict() for loc in self.locations],
            "locationCount": len(self.locations),
            "cities": self.cities,
            "categories": self.categories,
            "totalReviews": self.total_reviews,
            "locationsWithPhone": self.locations_with_phone,
            "duplicateBreakdown": stats.region_breakdown(self.state),
            "lastUpdated": generated,
        }

    def summary(self) -> dict:
        return {
            "state": self.state,
            "stateName": self.state_name,
            "locationCount": len(self.locations),
            "cityCount": len(self.cities),
            "reviewCount": self.total_reviews,
            "locationsWithPhone": self.locations_with_phone,
            "categories": self.categories,
            "filename": self.filename,
        }


def group_by_region(records) -> Dict[str, RegionGroup]:
    """
    Finalize records and partition them by region.

    Regions come out sorted by code; locations inside a region are sorted
    by city, then title.
    """
    groups: Dict[str, RegionGroup] = {}
    for record in records:
        record = finalize_record(record)
        groups.setdefault(record.state, RegionGroup(state=record.state)).locations.append(record)

    for group in groups.values():
        group.locations.sort(key=lambda loc: (loc.city.lower(), loc.title.lower()))

    return dict(sorted(groups.items()))


class RegionExporter:
    """Writes region files and the global index."""

    def __init__(self, output_dir: Path):
        self.output_dir = Path(output_dir)

    def write_region(self, group: RegionGroup, stats: DedupStats, generated: str | None = None) -> Path:
        """Write one region file and return its path."""
        path = atomic_write_json(self.output_dir / group.filename, group.to_dict(stats, generated or utc_timestamp()))
        logger.info(f"  Saved {group.filename} ({len(group.locations):,} locations)")
        return path

    def write_index(self, groups: Dict[str, RegionGroup], stats: DedupStats, generated: str | None = None) -> Path:
        """Write index.json with totals and the duplicate-reason histogram."""
        breakdown = empty_breakdown()
        breakdown.update({k: v for k, v in stats.by_reason.items() if k in breakdown})

        index = {
            "generated": generated or utc_timestamp(),
            "totalLocations": sum(len(g.locations) for g in groups.values()),
            "totalRegions": len(groups),
            "duplicatesRemoved": stats.duplicate_count,
            "totalWithPhone": sum(g.locations_with_phone for g in groups.values()),
            "duplicateBreakdown": breakdown,
            "regions": [group.summary() for group in groups.values()],
        }

        path = atomic_write_json(self.output_dir / INDEX_FILENAME, index)
        logger.info(f"  Saved {INDEX_FILENAME}")
        return path

    def export(self, records, stats: DedupStats) -> Dict[str, RegionGroup]:
        """
        Group records by region and write every region file, then the index.

        Args:
            records: Deduplicated canonical records
            stats: Duplicate counters from deduplication

        Returns:
            Region code -> RegionGroup as written
        """
        logger.info(f"Exporting to {self.output_dir}...")
        generated = utc_timestamp()

        groups = group_by_region(records)
        for group in groups.values():
            self.write_region(group, stats, generated)

        self.write_index(groups, stats, generated)
        logger.info(f"Exported {len(groups)} regions")
        return groups
