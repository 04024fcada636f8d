"""Address strings to try against the geocoder, most specific first."""

import re

from showermap.models import LocationRecord

MIN_CANDIDATE_LENGTH = 5    # candidates must be longer than this
MIN_STREET_LENGTH = 3

# Scraped street fields sometimes carry the listing's rating text: '123 Main St 4.5(210) Truck stop'
_RATING_SUFFIX_RE = re.compile(r"\s+\d+\.\d+\(\d+\).*$")


def clean_street(street: str | None) -> str:
    """Drop quoted business descriptions and trailing rating text from a street field."""
    street = street or ""
    if '"' in street:
        street = street.split('"')[0].strip()
    return _RATING_SUFFIX_RE.sub("", street).strip()


def build_address_candidates(record: LocationRecord) -> list[str]:
    """
    Build the ordered list of search strings for a record.

    Order: the full address (when it contains a comma), street + city +
    state, title + city + state, street + zip, then city + state as a last
    resort. Duplicates and strings of 5 characters or fewer are dropped.

    Args:
        record: Record to geocode; record.state is used as the region code

    Returns:
        Candidate address strings, possibly empty
    """
    street = clean_street(record.street)
    usable_street = len(street) > MIN_STREET_LENGTH
    state = record.state

    options = []
    if record.address and "," in record.address:
        options.append(record.address)
    if usable_street and record.city:
        options.append(f"{street}, {record.city}, {state}")
    if record.title and record.city:
        options.append(f"{record.title}, {record.city}, {state}")
    if usable_street and record.zip:
        options.append(f"{street}, {record.zip}")
    if record.city:
        options.append(f"{record.city}, {state}")

    candidates = []
    for option in options:
        if len(option) > MIN_CANDIDATE_LENGTH and option not in candidates:
            candidates.append(option)
    return candidates
