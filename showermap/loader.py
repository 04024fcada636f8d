"""
Input loader for scraped location files.

Reads every file matching the input pattern (city_*.json by default) from
a directory into LocationRecords. Each file holds a "locations" array plus
optional file-level "city" and "state" metadata describing the scrape.

A malformed file is skipped with a warning; it never stops the run.
"""

import json
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterator, List, Optional

from loguru import logger

from showermap.config import settings
from showermap.models import LocationRecord
from showermap.utils.text import clean_address, extract_city_state_from_address


class MalformedInputFile(Exception):
    """Input file is not valid JSON or has no "locations" array."""

    def __init__(self, path: Path, reason: str):
        super().__init__(f"{Path(path).name}: {reason}")
        self.path = Path(path)
        self.reason = reason


@dataclass
class LoadResult:
    records: List[LocationRecord] = field(default_factory=list)
    files_loaded: int = 0
    skipped_files: List[str] = field(default_factory=list)


# Scrapes keyed by a search point store its coordinates in the city field
_COORDINATE_LIKE_RE = re.compile(r"^-?\d")


def read_location_file(path: Path) -> dict:
    """
    Read and validate one location file.

    Args:
        path: JSON file path

    Returns:
        Parsed file content with a list under "locations"

    Raises:
        MalformedInputFile: If the file is unreadable, not JSON, or lacks
            a "locations" array
    """
    path = Path(path)
    try:
        with open(path, encoding="utf-8") as f:
            data = json.load(f)
    except (OSError, UnicodeDecodeError, json.JSONDecodeError) as e:
        raise MalformedInputFile(path, str(e)) from e

    if not isinstance(data, dict):
        raise MalformedInputFile(path, "top-level value is not an object")
    if not isinstance(data.get("locations"), list):
        raise MalformedInputFile(path, 'missing or invalid "locations" array')

    return data


def _region_code(value: Optional[str]) -> str:
    value = (value or "").strip()
    return value.upper() if len(value) == 2 else value


def _file_city_state(data: dict) -> tuple[str, str]:
    """City and state describing a file, recovered from the first address when the city is coordinates."""
    city = str(data.get("city") or "").strip()
    state = str(data.get("state") or "").strip()

    if city and _COORDINATE_LIKE_RE.match(city):
        first = next((loc for loc in data["locations"] if isinstance(loc, dict)), None)
        if first and first.get("address"):
            extracted_city, extracted_state = extract_city_state_from_address(first["address"])
            city = extracted_city or ""
            state = extracted_state or state
            logger.debug(f"  Extracted file location: {city}, {state}")
        else:
            city = ""

    return city, state


def _needs_city_from_address(city: str) -> bool:
    return not city or "Truck stop" in city or bool(re.match(r"^\d", city))


def records_from_file(data: dict, source: str) -> Iterator[LocationRecord]:
    """
    Convert a validated file's locations into records.

    File-level city/state fill records that lack them; record cities that
    are empty or obviously wrong are re-extracted from the address first.
    A state still missing after that is parsed from the address.
    """
    file_city, file_state = _file_city_state(data)

    for entry in data["locations"]:
        if not isinstance(entry, dict):
            continue

        entry = dict(entry)
        city = str(entry.get("city") or "").strip()
        state = str(entry.get("state") or "").strip()

        if _needs_city_from_address(city):
            extracted_city, extracted_state = extract_city_state_from_address(entry.get("address"))
            city = extracted_city or file_city
            state = state or extracted_state or ""

        state = state or file_state
        if not state:
            state = extract_city_state_from_address(clean_address(entry.get("address")))[1] or ""

        entry["city"] = city
        entry["state"] = _region_code(state)

        yield LocationRecord.from_dict(entry, source=source)


def load_directory(input_dir: Optional[Path] = None, pattern: Optional[str] = None) -> LoadResult:
    """
    Load every matching file in a directory, in name order.

    Args:
        input_dir: Directory to read (defaults to settings)
        pattern: Filename glob (defaults to settings)

    Returns:
        LoadResult with all records and per-file bookkeeping
    """
    input_dir = Path(input_dir or settings.pipeline.data_input_dir)
    pattern = pattern or settings.pipeline.input_pattern

    files = sorted(input_dir.glob(pattern))
    logger.info(f"Found {len(files)} files matching {pattern} in {input_dir}")

    result = LoadResult()
    for path in files:
        try:
            data = read_location_file(path)
        except MalformedInputFile as e:
            logger.warning(f"Skipping {e}")
            result.skipped_files.append(path.name)
            continue

        records = list(records_from_file(data, source=path.name))
        result.records.extend(records)
        result.files_loaded += 1
        logger.debug(f"  Added {len(records)} locations from {path.name}")

    logger.info(
        f"Loaded {len(result.records):,} locations from {result.files_loaded} files"
        + (f" ({len(result.skipped_files)} skipped)" if result.skipped_files else "")
    )
    return result
