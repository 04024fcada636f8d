"""
Manual coordinate corrections.

Loads a CSV of known-good coordinates (address,lat,lng) and applies them to
records whose address matches, keeping the replaced coordinates on the
record for audit.
"""

import csv
from dataclasses import dataclass, replace
from pathlib import Path
from typing import Dict, List, Optional

from loguru import logger

from showermap.exporter import atomic_write_json, region_files, utc_timestamp
from showermap.loader import MalformedInputFile, read_location_file
from showermap.models import CoordinateUpdate, LocationRecord
from showermap.utils.geo import normalize_coordinates
from showermap.utils.text import normalize_address, similarity

UPDATE_SOURCE = "csv_coordinate_correction"
MIN_CONTAINMENT_LENGTH = 10
MIN_CONTAINMENT_SIMILARITY = 0.8


def normalize_segments(address: Optional[str]) -> str:
    """Normalize each comma-separated part of an address, keeping the commas."""
    if not address:
        return ""
    parts = (normalize_address(part) for part in address.split(","))
    return ",".join(part for part in parts if part)


@dataclass(frozen=True)
class Correction:
    address: str
    lat: float
    lng: float


class CoordinateCorrections:
    """Lookup of corrected coordinates by normalized address."""

    def __init__(self, corrections: Optional[Dict[str, Correction]] = None):
        self._by_address: Dict[str, Correction] = dict(corrections or {})

    def __len__(self) -> int:
        return len(self._by_address)

    def add(self, address: str, lat, lng) -> bool:
        """Add one correction; rows with unusable coordinates are ignored."""
        lat, lng = normalize_coordinates(lat, lng)
        key = normalize_segments(address)
        if lat is None or not key:
            return False
        self._by_address[key] = Correction(address=address.strip(), lat=lat, lng=lng)
        return True

    @classmethod
    def from_csv(cls, path: Path) -> "CoordinateCorrections":
        """
        Load corrections from a CSV file.

        The first row is a header; every following row is address, lat, lng.
        Addresses containing commas must be quoted.
        """
        corrections = cls()
        skipped = 0

        with open(path, newline="", encoding="utf-8") as f:
            reader = csv.reader(f)
            next(reader, None)
            for row in reader:
                if len(row) < 3 or not corrections.add(row[0], row[1].strip(), row[2].strip()):
                    skipped += 1

        logger.info(f"Loaded {len(corrections)} coordinate corrections from {Path(path).name}")
        if skipped:
            logger.warning(f"  Ignored {skipped} rows without an address and valid coordinates")
        return corrections

    def find(self, address: Optional[str]) -> Optional[Correction]:
        """
        Find the correction for an address.

        Tries an exact normalized match, then identical street and city
        segments, then one address containing the other with a similarity
        above 0.8.
        """
        normalized = normalize_segments(address)
        if not normalized:
            return None

        if normalized in self._by_address:
            return self._by_address[normalized]

        parts = normalized.split(",")
        street = parts[0]
        city = parts[1] if len(parts) > 1 else ""

        for key, correction in self._by_address.items():
            key_parts = key.split(",")
            key_street = key_parts[0]
            key_city = key_parts[1] if len(key_parts) > 1 else ""

            if street and city and street == key_street and city == key_city:
                return correction

            if len(normalized) > MIN_CONTAINMENT_LENGTH and len(key) > MIN_CONTAINMENT_LENGTH:
                contained = normalized in key or key in normalized
                if contained and similarity(normalized, key) > MIN_CONTAINMENT_SIMILARITY:
                    return correction

        return None

    def apply_to(self, record: LocationRecord) -> Optional[LocationRecord]:
        """Corrected copy of a record, or None when no correction matches."""
        correction = self.find(record.address)
        if correction is None:
            return None

        logger.debug(
            f"  MATCH: {record.title} ({record.lat}, {record.lng}) -> ({correction.lat}, {correction.lng})"
        )
        return replace(
            record,
            lat=correction.lat,
            lng=correction.lng,
            coordinate_update=CoordinateUpdate(
                updated_at=utc_timestamp(),
                original_lat=record.lat,
                original_lng=record.lng,
                matched_address=correction.address,
                update_source=UPDATE_SOURCE,
            ),
        )

    def apply(self, records: List[LocationRecord]) -> tuple[List[LocationRecord], int]:
        """
        Apply corrections to a list of records.

        Returns:
            Tuple of (records in the same order, number of records updated)
        """
        updated = 0
        output = []
        for record in records:
            corrected = self.apply_to(record)
            if corrected is not None:
                updated += 1
                record = corrected
            output.append(record)
        return output, updated

    def apply_to_region_file(self, path: Path) -> int:
        """
        Apply corrections to a region file in place.

        The file is rewritten only when at least one location changed.

        Returns:
            Number of locations updated
        """
        data = read_location_file(path)
        records = [LocationRecord.from_dict(e) for e in data["locations"] if isinstance(e, dict)]
        records, updated = self.apply(records)

        if updated:
            data["locations"] = [record.to_dict() for record in records]
            data["coordinateUpdateSummary"] = {
                "updatedAt": utc_timestamp(),
                "locationsUpdated": updated,
                "updateSource": UPDATE_SOURCE,
            }
            atomic_write_json(path, data)
            logger.info(f"  Updated {updated} locations in {Path(path).name}")

        return updated

    def apply_to_directory(self, regions_dir: Path) -> Dict[str, int]:
        """Apply corrections to every region file in a directory; returns updates per file."""
        results: Dict[str, int] = {}
        for path in region_files(regions_dir):
            try:
                results[path.name] = self.apply_to_region_file(path)
            except MalformedInputFile as e:
                logger.warning(f"Skipping {e}")
        return results
