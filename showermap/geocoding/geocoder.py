"""
Batch geocoder for region files.

Replaces record coordinates with fresh geocoded ones, trying each address
candidate of a record in priority order. The original coordinates are
kept on every record for audit, and a record is never given a result
whose confidence is below the acceptance threshold.

Output files (next to the geocoded region files):
- geocoding-summary.json  - Overall counters for the run
- failed-geocodes.json    - Records no candidate could be geocoded for
"""

from dataclasses import dataclass, field, replace
from enum import Enum
from pathlib import Path
from typing import List, Optional

from loguru import logger

from showermap.config import settings
from showermap.exporter import (
    FAILED_GEOCODES_FILENAME,
    GEOCODING_SUMMARY_FILENAME,
    atomic_write_json,
    region_files,
    utc_timestamp,
)
from showermap.geocoding.candidates import build_address_candidates
from showermap.geocoding.client import NominatimClient
from showermap.geocoding.confidence import calculate_confidence
from showermap.loader import MalformedInputFile, read_location_file
from showermap.models import GeocodeInfo, LocationRecord
from showermap.utils.geo import normalize_coordinates
from showermap.utils.http import NetworkFailure


class CandidateState(str, Enum):
    """Lifecycle of one address candidate."""
    NOT_TRIED = "not_tried"
    ATTEMPTED = "attempted"
    RETRYING = "retrying"
    SUCCEEDED = "succeeded"
    EXHAUSTED_RETRIES = "exhausted_retries"
    NO_MATCH = "no_match"              # provider answered with no usable result
    LOW_CONFIDENCE = "low_confidence"  # answered, but below the acceptance threshold
    SKIPPED = "skipped"


@dataclass
class CandidateAttempt:
    address: str
    state: CandidateState = CandidateState.NOT_TRIED
    attempts: int = 0
    confidence: Optional[float] = None
    error: Optional[str] = None

    def on_attempt(self, attempt_number: int) -> None:
        self.attempts = attempt_number
        self.state = CandidateState.ATTEMPTED if attempt_number == 1 else CandidateState.RETRYING


@dataclass
class GeocodeOutcome:
    record: LocationRecord
    candidates: List[CandidateAttempt] = field(default_factory=list)

    @property
    def status(self) -> str:
        return self.record.geocode.status if self.record.geocode else "failed"


@dataclass
class GeocodingStats:
    """Counters for one region or a whole run."""
    processed: int = 0
    success: int = 0
    failed: int = 0
    skipped: int = 0

    def add(self, status: str) -> None:
        self.processed += 1
        if status == "success":
            self.success += 1
        elif status == "no_address":
            self.skipped += 1
        else:
            self.failed += 1

    def merge(self, other: "GeocodingStats") -> None:
        self.processed += other.processed
        self.success += other.success
        self.failed += other.failed
        self.skipped += other.skipped

    @property
    def success_rate(self) -> str:
        if not self.processed:
            return "0.0%"
        return f"{self.success / self.processed * 100:.1f}%"

    def to_dict(self) -> dict:
        return {
            "processedCount": self.processed,
            "successCount": self.success,
            "failedCount": self.failed,
            "skippedCount": self.skipped,
            "successRate": self.success_rate,
        }


class Geocoder:
    """
    Drives address candidates of each record through the search client.

    Usage:
        with NominatimClient() as client:
            geocoder = Geocoder(client)
            summary = geocoder.geocode_directory(Path("regions"), Path("regions-geocoded"))
    """

    def __init__(self, client: NominatimClient, min_confidence: Optional[float] = None):
        self.client = client
        self.min_confidence = (
            settings.geocoder.min_confidence if min_confidence is None else min_confidence
        )

    def _try_candidate(self, attempt: CandidateAttempt) -> Optional[tuple[float, float, dict]]:
        try:
            result = self.client.search(attempt.address, on_attempt=attempt.on_attempt)
        except NetworkFailure as e:
            attempt.state = CandidateState.EXHAUSTED_RETRIES
            attempt.error = str(e)
            logger.warning(f"  Giving up on '{attempt.address}' after {attempt.attempts} attempts: {e}")
            return None

        lat, lng = normalize_coordinates(
            (result or {}).get("lat"), (result or {}).get("lon")
        )
        if lat is None:
            attempt.state = CandidateState.NO_MATCH
            return None

        attempt.confidence = calculate_confidence(result, attempt.address)
        if attempt.confidence < self.min_confidence:
            attempt.state = CandidateState.LOW_CONFIDENCE
            logger.debug(
                f"  Low confidence {attempt.confidence:.3f} for '{attempt.address}', trying next"
            )
            return None

        attempt.state = CandidateState.SUCCEEDED
        return lat, lng, result

    def geocode_record(self, record: LocationRecord) -> GeocodeOutcome:
        """
        Geocode one record.

        Candidates are tried in order until one yields a result with enough
        confidence. A record without candidates is tagged no_address; a
        record whose candidates all fail keeps its coordinates and is tagged
        failed with every attempted address attached.

        Args:
            record: Record to geocode

        Returns:
            GeocodeOutcome with the updated record and per-candidate attempts
        """
        addresses = build_address_candidates(record)

        if not addresses:
            logger.info(f"  SKIP: No usable address for '{record.title}'")
            info = GeocodeInfo(
                status="no_address",
                original_lat=record.lat,
                original_lng=record.lng,
            )
            skipped = CandidateAttempt(address="", state=CandidateState.SKIPPED)
            return GeocodeOutcome(replace(record, geocode=info), [skipped])

        attempts = [CandidateAttempt(address=address) for address in addresses]
        for attempt in attempts:
            found = self._try_candidate(attempt)
            if found is None:
                continue

            lat, lng, result = found
            info = GeocodeInfo(
                status="success",
                confidence=attempt.confidence,
                address=attempt.address,
                display_name=result.get("display_name"),
                osm_type=result.get("osm_type"),
                place_type=result.get("type"),
                original_lat=record.lat,
                original_lng=record.lng,
                geocoded_at=utc_timestamp(),
            )
            logger.debug(f"  SUCCESS: {record.title} -> {lat}, {lng} ({attempt.confidence:.3f})")
            return GeocodeOutcome(replace(record, lat=lat, lng=lng, geocode=info), attempts)

        logger.warning(f"  FAILED: Could not geocode any address variant of '{record.title}'")
        info = GeocodeInfo(
            status="failed",
            original_lat=record.lat,
            original_lng=record.lng,
            attempted_addresses=tuple(addresses),
        )
        return GeocodeOutcome(replace(record, geocode=info), attempts)

    def geocode_records(
        self,
        records: List[LocationRecord],
        only_missing: bool = False,
    ) -> tuple[List[LocationRecord], GeocodingStats]:
        """
        Geocode a list of records, preserving order.

        Args:
            records: Records to process
            only_missing: Leave records that already have coordinates untouched

        Returns:
            Tuple of (records, stats)
        """
        stats = GeocodingStats()
        output = []

        for record in records:
            if only_missing and record.has_coordinates:
                output.append(record)
                continue

            outcome = self.geocode_record(record)
            stats.add(outcome.status)
            output.append(outcome.record)

            if stats.processed % 25 == 0:
                logger.info(
                    f"  Progress: {stats.processed} geocoded "
                    f"(success {stats.success}, failed {stats.failed}, skipped {stats.skipped})"
                )

        return output, stats

    def geocode_region(
        self,
        input_path: Path,
        output_path: Path,
        only_missing: bool = False,
    ) -> tuple[GeocodingStats, List[dict]]:
        """
        Geocode one region file and write the result immediately.

        Args:
            input_path: Region JSON file with a "locations" array
            output_path: Where to write the geocoded region file
            only_missing: Only geocode records without coordinates

        Returns:
            Tuple of (stats, failed-record entries)
        """
        data = read_location_file(input_path)

        region = data.get("state") or Path(input_path).stem
        records = [
            LocationRecord.from_dict(entry)
            for entry in data["locations"]
            if isinstance(entry, dict)
        ]
        logger.info(f"=== Geocoding {region}: {len(records):,} locations ===")

        geocoded, stats = self.geocode_records(records, only_missing=only_missing)

        output = {
            **data,
            "locations": [record.to_dict() for record in geocoded],
            "geocodingStats": {
                "totalLocations": len(records),
                **stats.to_dict(),
                "processedAt": utc_timestamp(),
            },
        }
        atomic_write_json(output_path, output)
        logger.info(
            f"=== {region} complete: {stats.success}/{stats.processed} geocoded "
            f"({stats.success_rate}), saved to {output_path} ==="
        )

        failed = [
            {
                "state": region,
                "title": record.title,
                "address": record.address,
                "attemptedAddresses": list(record.geocode.attempted_addresses),
            }
            for record in geocoded
            if record.geocode and record.geocode.status == "failed"
        ]
        return stats, failed

    def geocode_directory(
        self,
        input_dir: Path,
        output_dir: Path,
        region: Optional[str] = None,
        only_missing: bool = False,
    ) -> dict:
        """
        Geocode every region file in a directory.

        Each region is written as soon as it finishes. The run summary and
        the failed-record list are written to output_dir at the end.

        Args:
            input_dir: Directory of region files
            output_dir: Directory to write geocoded region files to
            region: Only process this region code
            only_missing: Only geocode records without coordinates

        Returns:
            Summary dict as written to geocoding-summary.json
        """
        input_dir = Path(input_dir)
        output_dir = Path(output_dir)

        if region:
            paths = [input_dir / f"{region.upper()}.json"]
        else:
            paths = region_files(input_dir)

        started = utc_timestamp()
        totals = GeocodingStats()
        failed: List[dict] = []
        processed_regions = 0

        for path in paths:
            if not path.exists():
                logger.warning(f"File not found: {path}")
                continue

            try:
                stats, region_failed = self.geocode_region(path, output_dir / path.name, only_missing)
            except MalformedInputFile as e:
                logger.warning(f"Skipping {e}")
                continue

            totals.merge(stats)
            failed.extend(region_failed)
            processed_regions += 1

        summary = {
            "totalRegions": len(paths),
            "processedRegions": processed_regions,
            "totalLocations": totals.processed,
            "totalSuccess": totals.success,
            "totalFailed": totals.failed,
            "totalSkipped": totals.skipped,
            "overallSuccessRate": totals.success_rate,
            "startTime": started,
            "endTime": utc_timestamp(),
        }

        atomic_write_json(output_dir / GEOCODING_SUMMARY_FILENAME, summary)
        atomic_write_json(output_dir / FAILED_GEOCODES_FILENAME, failed)

        logger.info(
            f"Geocoding complete: {totals.success:,} success, {totals.failed:,} failed, "
            f"{totals.skipped:,} skipped ({totals.success_rate})"
        )
        return summary
