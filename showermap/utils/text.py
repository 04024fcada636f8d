"""Text processing and string similarity functions for the location pipeline."""

import re
import unicodedata

from rapidfuzz.distance import Levenshtein

# Street-suffix synonyms folded to their USPS abbreviation
STREET_SUFFIXES = {
    "street": "st",
    "str": "st",
    "avenue": "ave",
    "av": "ave",
    "road": "rd",
    "drive": "dr",
    "boulevard": "blvd",
    "lane": "ln",
    "court": "ct",
    "circle": "cir",
    "place": "pl",
    "parkway": "pkwy",
    "highway": "hwy",
    "terrace": "ter",
    "trail": "trl",
    "square": "sq",
    "expressway": "expy",
    "freeway": "fwy",
}

DIRECTIONALS = {
    "north", "south", "east", "west",
    "n", "s", "e", "w",
    "northeast", "northwest", "southeast", "southwest",
    "ne", "nw", "se", "sw",
}

UNIT_MARKERS = {"#", "suite", "ste", "unit", "apt", "apartment"}

LEGAL_SUFFIXES = {"llc", "inc", "corp", "corporation", "company", "co", "ltd", "limited"}

NAME_FILLER_WORDS = {"the", "and"}
ADVANCED_FILLER_WORDS = {"the", "and", "of", "at", "in", "on"}

# Chain rebrands and naming variants -> canonical chain name.
# Matched longest pattern first so specific variants win over shorter ones.
CHAIN_SYNONYMS = {
    "loves travel stop": "loves",
    "loves travel stops": "loves",
    "loves travel center": "loves",
    "loves country store": "loves",
    "loves truck stop": "loves",
    "flying j travel plaza": "flying j",
    "flying j travel center": "flying j",
    "pilot travel center": "pilot",
    "pilot travel centers": "pilot",
    "travelcenters of america": "ta",
    "travel centers of america": "ta",
    "travel america": "ta",
    "ta travel center": "ta",
    "ta truck stop": "ta",
    "petro stopping center": "petro",
    "petro stopping centers": "petro",
    "petro travel plaza": "petro",
}

_CHAIN_PATTERNS = [
    (re.compile(rf"\b{re.escape(pattern)}\b"), canonical)
    for pattern, canonical in sorted(CHAIN_SYNONYMS.items(), key=lambda item: len(item[0]), reverse=True)
]

_UNIT_NUMBER_RE = re.compile(r"^[a-z]?\d+[a-z]?$")
_STORE_NUMBER_RE = re.compile(r"(?:#|\bno\b\.?|\bnumber\b|\bstore\b|\blocation\b)\s*#?\s*\d+\b")
_TRAILING_NUMBER_RE = re.compile(r"(?:\s+\d+)+$")


def _fold(text: str) -> str:
    """Lowercase and strip diacritical marks."""
    text = unicodedata.normalize("NFKD", text)
    text = "".join(c for c in text if not unicodedata.combining(c))
    return text.lower()


def normalize_address(address: str | None) -> str:
    """Normalize an address for exact-key comparison.

    - Lowercases and strips diacritics and punctuation
    - Folds street-suffix synonyms (street -> st, avenue -> ave, ...)
    - Drops directional tokens (north, s, ne, ...)
    - Drops unit designators and the number that follows them
    - Collapses whitespace and commas

    The result only contains tokens that survive every rule, so applying it
    twice gives the same string.

    Args:
        address: Raw address text

    Returns:
        Normalized address, or empty string if input is empty/None
    """
    if not address:
        return ""

    text = _fold(address).replace("#", " # ")
    text = re.sub(r"[^a-z0-9#\s]", " ", text)

    tokens = []
    after_unit = False
    for token in text.split():
        if token in UNIT_MARKERS:
            after_unit = True
            continue
        if after_unit and _UNIT_NUMBER_RE.match(token):
            after_unit = False
            continue
        after_unit = False
        if token in DIRECTIONALS:
            continue
        tokens.append(STREET_SUFFIXES.get(token, token))

    return " ".join(tokens)


def normalize_business_name(name: str | None) -> str:
    """Normalize a business name for fuzzy comparison.

    Strips punctuation, legal suffixes (llc, inc, corp...) and filler words.

    Args:
        name: Business name

    Returns:
        Normalized name, or empty string if input is empty/None
    """
    if not name:
        return ""

    text = re.sub(r"[^a-z0-9\s]", "", _fold(name))
    tokens = [
        token for token in text.split()
        if token not in LEGAL_SUFFIXES and token not in NAME_FILLER_WORDS
    ]
    return " ".join(tokens)


def normalize_business_name_advanced(name: str | None) -> str:
    """Normalize a business name and fold known chain variants.

    On top of normalize_business_name this removes store numbers
    ("#123", "No. 12", trailing numbers) and maps chain variants such as
    "Love's Country Store" or "Loves Travel Stop" to one canonical name.

    Args:
        name: Business name

    Returns:
        Canonical name, or empty string if input is empty/None
    """
    if not name:
        return ""

    text = re.sub(r"['’`]", "", _fold(name))
    text = _STORE_NUMBER_RE.sub(" ", text)
    text = re.sub(r"[^a-z0-9\s]", " ", text)
    text = " ".join(token for token in text.split() if token not in LEGAL_SUFFIXES)
    text = _TRAILING_NUMBER_RE.sub("", text).strip()

    for pattern, canonical in _CHAIN_PATTERNS:
        if pattern.search(text):
            return canonical

    return " ".join(token for token in text.split() if token not in ADVANCED_FILLER_WORDS)


def normalize_phone_number(phone: str | None) -> str | None:
    """Reduce a US/Canada phone number to its 10 digits.

    Returns:
        10-digit string, or None when the number is not a valid 10-digit number
    """
    if not phone:
        return None

    digits = re.sub(r"\D", "", str(phone))

    if len(digits) == 11 and digits.startswith("1"):
        digits = digits[1:]

    return digits if len(digits) == 10 else None


def format_phone_number(phone: str | None) -> str | None:
    """Format a phone number for display.

    10 digits become "(XXX) XXX-XXXX", 7 digits "XXX-XXXX", 11-15 digits are
    kept as international "+digits". Anything else is dropped.
    """
    if not phone:
        return None

    digits = re.sub(r"\D", "", str(phone))

    if len(digits) == 11 and digits.startswith("1"):
        digits = digits[1:]

    if len(digits) == 10:
        return f"({digits[:3]}) {digits[3:6]}-{digits[6:]}"
    if len(digits) == 7:
        return f"{digits[:3]}-{digits[3:]}"
    if 10 < len(digits) <= 15:
        return "+" + digits

    return None


def clean_address(address: str | None) -> str | None:
    """Clean an address for output.

    Args:
        address: Raw address text

    Returns:
        Cleaned address, or None if nothing is left
    """
    if not address:
        return None

    text = re.sub(r"\s+", " ", address).strip()

    # Country suffix is implied by the region file
    text = re.sub(r",?\s*(United States|USA|U\.S\.A\.|US)$", "", text, flags=re.IGNORECASE).strip()
    text = re.sub(r",$", "", text).strip()

    text = re.sub(
        r",\s*([a-z]{2})\s+(\d{5})",
        lambda m: f", {m.group(1).upper()} {m.group(2)}",
        text,
        flags=re.IGNORECASE,
    )

    text = re.sub(r"[\"“”'‘’`´]", "", text)
    text = re.sub(r"[–—]", "-", text)
    text = text.replace("&", "and")
    text = text.replace("#", "")
    text = text.replace(".", "")
    text = re.sub(r"[()\[\]{}]", "", text)
    text = re.sub(r"[!@$%^*+=<>?;:~|\\]", "", text)
    text = re.sub(r"\s+,", ",", text)
    text = re.sub(r",+", ",", text)
    text = re.sub(r"\s+", " ", text).strip()
    text = re.sub(r"^,\s*", "", text)
    text = re.sub(r",\s*$", "", text)

    return text or None


def extract_city_state_from_address(address: str | None) -> tuple[str | None, str | None]:
    """Pull (city, state) out of a US-style address.

    Handles "..., City, ST 12345[, United States]" and "..., City, ST".

    Returns:
        Tuple of (city, state) or (None, None) if no pattern matches
    """
    if not address:
        return None, None

    match = re.match(
        r"^(?:.*?,\s*)?([^,]+),\s*([A-Z]{2})\s+\d{5}(?:-\d{4})?(?:,\s*United States)?$",
        address,
    )
    if match:
        return match.group(1).strip(), match.group(2).strip()

    match = re.search(r"([^,]+),\s*([A-Z]{2})(?:,\s*United States)?$", address)
    if match:
        return match.group(1).strip(), match.group(2).strip()

    return None, None


def levenshtein_distance(a: str | None, b: str | None) -> int:
    """Edit distance between two strings (insert, delete, substitute)."""
    return Levenshtein.distance(a or "", b or "")


def similarity(a: str | None, b: str | None) -> float:
    """Levenshtein similarity in [0, 1], i.e. (longest - distance) / longest.

    Two empty strings are identical (1.0); an empty and a non-empty string
    share nothing (0.0).
    """
    a = a or ""
    b = b or ""

    if not a and not b:
        return 1.0
    if not a or not b:
        return 0.0

    return Levenshtein.normalized_similarity(a, b)
