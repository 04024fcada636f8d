"""Region codes and display names used for grouping output files."""

from showermap.utils.text import clean_address, extract_city_state_from_address

US_STATES = {
    "AL": "Alabama", "AK": "Alaska", "AZ": "Arizona", "AR": "Arkansas",
    "CA": "California", "CO": "Colorado", "CT": "Connecticut", "DE": "Delaware",
    "FL": "Florida", "GA": "Georgia", "HI": "Hawaii", "ID": "Idaho",
    "IL": "Illinois", "IN": "Indiana", "IA": "Iowa", "KS": "Kansas",
    "KY": "Kentucky", "LA": "Louisiana", "ME": "Maine", "MD": "Maryland",
    "MA": "Massachusetts", "MI": "Michigan", "MN": "Minnesota", "MS": "Mississippi",
    "MO": "Missouri", "MT": "Montana", "NE": "Nebraska", "NV": "Nevada",
    "NH": "New Hampshire", "NJ": "New Jersey", "NM": "New Mexico", "NY": "New York",
    "NC": "North Carolina", "ND": "North Dakota", "OH": "Ohio", "OK": "Oklahoma",
    "OR": "Oregon", "PA": "Pennsylvania", "RI": "Rhode Island", "SC": "South Carolina",
    "SD": "South Dakota", "TN": "Tennessee", "TX": "Texas", "UT": "Utah",
    "VT": "Vermont", "VA": "Virginia", "WA": "Washington", "WV": "West Virginia",
    "WI": "Wisconsin", "WY": "Wyoming", "DC": "District of Columbia",
}

CA_PROVINCES = {
    "AB": "Alberta", "BC": "British Columbia", "MB": "Manitoba", "NB": "New Brunswick",
    "NL": "Newfoundland and Labrador", "NS": "Nova Scotia", "NT": "Northwest Territories",
    "NU": "Nunavut", "ON": "Ontario", "PE": "Prince Edward Island", "QC": "Quebec",
    "SK": "Saskatchewan", "YT": "Yukon",
}

REGION_NAMES = {**US_STATES, **CA_PROVINCES}

UNKNOWN_REGION = "Unknown"


def get_region_name(code: str | None) -> str:
    """Full region name for a code, falling back to the code itself."""
    if not code:
        return UNKNOWN_REGION
    return REGION_NAMES.get(code.upper(), code)


def resolve_region(state: str | None, address: str | None = None) -> str:
    """
    Region code a record is filed under.

    The record's own state wins, then the state parsed from its address,
    then "Unknown". Dedup counters and region files both key on this, so
    a merge is counted in the file its merged record is written to.
    """
    state = (state or "").strip()
    if not state:
        state = extract_city_state_from_address(clean_address(address))[1] or ""
    if not state:
        return UNKNOWN_REGION
    return state.upper() if len(state) == 2 else state
