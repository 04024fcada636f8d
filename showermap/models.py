"""
Record types for the location pipeline.

LocationRecord is the one entity every stage passes around. Records are
immutable: ingestion creates them, merges and geocoding derive new ones
with dataclasses.replace.
"""

from dataclasses import dataclass, field
from typing import Any

from showermap.utils.geo import normalize_coordinates


def _to_float(value: Any) -> float | None:
    if value is None or value == "":
        return None
    try:
        return float(value)
    except (TypeError, ValueError):
        return None


def _to_int(value: Any) -> int:
    try:
        return int(value or 0)
    except (TypeError, ValueError):
        return 0


def _split_values(value: Any) -> list[str]:
    """Accept a list or a comma-separated string; anything else is ignored."""
    if isinstance(value, str):
        return [part.strip() for part in value.split(",") if part.strip()]
    if not isinstance(value, (list, tuple)):
        return []
    return [str(part).strip() for part in value if part and str(part).strip()]


def unique_casefold(values) -> tuple[str, ...]:
    """Deduplicate case-insensitively, keeping the first-seen casing."""
    seen = set()
    result = []
    for value in values:
        key = value.casefold()
        if key not in seen:
            seen.add(key)
            result.append(value)
    return tuple(result)


@dataclass(frozen=True)
class Review:
    """A single user review attached to a location."""
    reviewer_name: str = ""
    review_text: str = ""
    rating: float | None = None
    date: str | None = None
    extra: dict[str, Any] = field(default_factory=dict)

    @property
    def key(self) -> str:
        """Composite identity: reviewer name + first 50 characters of text."""
        return f"{self.reviewer_name}_{self.review_text[:50]}"

    @classmethod
    def from_dict(cls, data: dict) -> "Review":
        known = {"reviewerName", "reviewText", "rating", "date"}
        return cls(
            reviewer_name=str(data.get("reviewerName") or ""),
            review_text=str(data.get("reviewText") or ""),
            rating=_to_float(data.get("rating")),
            date=data.get("date"),
            extra={k: v for k, v in data.items() if k not in known},
        )

    def to_dict(self) -> dict:
        result = {
            "reviewerName": self.reviewer_name,
            "reviewText": self.review_text,
        }
        if self.rating is not None:
            result["rating"] = self.rating
        if self.date:
            result["date"] = self.date
        result.update(self.extra)
        return result


def merge_reviews(existing, new) -> tuple[Review, ...]:
    """Union of two review lists by composite key, first occurrence wins."""
    merged: dict[str, Review] = {}
    for review in list(existing) + list(new):
        merged.setdefault(review.key, review)
    return tuple(merged.values())


@dataclass(frozen=True)
class GeocodeInfo:
    """Outcome of geocoding a record, kept for audit."""
    status: str                              # success | failed | no_address
    confidence: float | None = None
    address: str | None = None               # candidate that produced the result
    display_name: str | None = None
    osm_type: str | None = None
    place_type: str | None = None
    original_lat: float | None = None
    original_lng: float | None = None
    attempted_addresses: tuple[str, ...] = ()
    geocoded_at: str | None = None

    @classmethod
    def from_dict(cls, data: dict) -> "GeocodeInfo | None":
        status = data.get("geocodeStatus")
        if not status:
            return None
        return cls(
            status=status,
            confidence=_to_float(data.get("geocodeConfidence")),
            address=data.get("geocodeAddress"),
            display_name=data.get("geocodeDisplayName"),
            osm_type=data.get("geocodeOsmType"),
            place_type=data.get("geocodePlaceType"),
            original_lat=_to_float(data.get("originalLat")),
            original_lng=_to_float(data.get("originalLng")),
            attempted_addresses=tuple(data.get("attemptedAddresses") or ()),
            geocoded_at=data.get("geocodedAt"),
        )

    def to_dict(self) -> dict:
        result = {
            "geocodeStatus": self.status,
            "originalLat": self.original_lat,
            "originalLng": self.original_lng,
        }
        if self.status == "success":
            result.update({
                "geocodeConfidence": self.confidence,
                "geocodeAddress": self.address,
                "geocodeDisplayName": self.display_name,
                "geocodeOsmType": self.osm_type,
                "geocodePlaceType": self.place_type,
                "geocodedAt": self.geocoded_at,
            })
        if self.attempted_addresses:
            result["attemptedAddresses"] = list(self.attempted_addresses)
        return result


@dataclass(frozen=True)
class CoordinateUpdate:
    """Record of a manual coordinate correction."""
    updated_at: str
    original_lat: float | None
    original_lng: float | None
    matched_address: str
    update_source: str = "csv_coordinate_correction"

    @classmethod
    def from_dict(cls, data: dict | None) -> "CoordinateUpdate | None":
        if not data:
            return None
        return cls(
            updated_at=data.get("updatedAt", ""),
            original_lat=_to_float(data.get("originalLat")),
            original_lng=_to_float(data.get("originalLng")),
            matched_address=data.get("matchedAddress", ""),
            update_source=data.get("updateSource", "csv_coordinate_correction"),
        )

    def to_dict(self) -> dict:
        return {
            "updatedAt": self.updated_at,
            "originalLat": self.original_lat,
            "originalLng": self.original_lng,
            "matchedAddress": self.matched_address,
            "updateSource": self.update_source,
        }


# JSON keys the model reads itself; everything else is carried through untouched
_KNOWN_KEYS = {
    "title", "address", "street", "city", "state", "country", "zip",
    "lat", "lng", "lon", "latitude", "longitude", "phone",
    "category", "categories", "amenities", "cost", "access",
    "rating", "reviewCount", "reviews", "showerReviews", "showerReviewCount",
    "provenance", "_mergedFrom", "mergeReason", "_mergeReason",
    "geocodeStatus", "geocodeConfidence", "geocodeAddress", "geocodeDisplayName",
    "geocodeOsmType", "geocodePlaceType", "originalLat", "originalLng",
    "attemptedAddresses", "geocodedAt", "coordinateUpdate",
    "sourceFile", "_index",
}


@dataclass(frozen=True)
class LocationRecord:
    """
    A shower-capable venue as scraped or imported from one source, or the
    canonical record that several such rows were merged into.
    """
    title: str = ""
    address: str = ""
    street: str = ""
    city: str = ""
    state: str = ""
    country: str = ""
    zip: str = ""

    # WGS84; both set or both None
    lat: float | None = None
    lng: float | None = None

    phone: str = ""
    categories: tuple[str, ...] = ()
    amenities: tuple[str, ...] = ()
    cost: str = ""
    access: str = ""

    rating: float | None = None
    review_count: int = 0
    reviews: tuple[Review, ...] = ()

    provenance: tuple[str, ...] = ()
    merge_reason: str | None = None

    geocode: GeocodeInfo | None = None
    coordinate_update: CoordinateUpdate | None = None

    # Passthrough fields (hours, website, ...) the pipeline never inspects
    attributes: dict[str, Any] = field(default_factory=dict)

    def __post_init__(self):
        lat, lng = normalize_coordinates(self.lat, self.lng)
        object.__setattr__(self, "lat", lat)
        object.__setattr__(self, "lng", lng)
        object.__setattr__(self, "categories", unique_casefold(self.categories))
        object.__setattr__(self, "amenities", unique_casefold(self.amenities))
        object.__setattr__(self, "reviews", merge_reviews(self.reviews, ()))
        object.__setattr__(self, "provenance", tuple(self.provenance))
        if self.reviews and self.review_count < len(self.reviews):
            object.__setattr__(self, "review_count", len(self.reviews))

    @property
    def has_coordinates(self) -> bool:
        return self.lat is not None and self.lng is not None

    @property
    def category(self) -> str:
        """Categories as the comma-joined string the site renders."""
        return ", ".join(self.categories)

    @classmethod
    def from_dict(cls, data: dict, source: str | None = None) -> "LocationRecord":
        """
        Build a record from the JSON location schema.

        Args:
            data: One entry of a file's "locations" array
            source: Source identifier used as provenance when the entry has none

        Returns:
            LocationRecord
        """
        reviews_raw = data.get("reviews") or data.get("showerReviews") or []
        reviews = tuple(Review.from_dict(r) for r in reviews_raw if isinstance(r, dict))

        provenance = data.get("provenance") or data.get("_mergedFrom")
        if isinstance(provenance, str):
            provenance = [provenance]
        if not provenance:
            origin = source or data.get("sourceFile")
            provenance = [origin] if origin else []

        lat = data.get("lat", data.get("latitude"))
        lng = data.get("lng", data.get("lon", data.get("longitude")))

        return cls(
            title=str(data.get("title") or "").strip(),
            address=str(data.get("address") or "").strip(),
            street=str(data.get("street") or "").strip(),
            city=str(data.get("city") or "").strip(),
            state=str(data.get("state") or "").strip(),
            country=str(data.get("country") or "").strip(),
            zip=str(data.get("zip") or "").strip(),
            lat=lat,
            lng=lng,
            phone=str(data.get("phone") or "").strip(),
            categories=tuple(_split_values(data.get("categories")) + _split_values(data.get("category"))),
            amenities=tuple(_split_values(data.get("amenities"))),
            cost=str(data.get("cost") or ""),
            access=str(data.get("access") or ""),
            rating=_to_float(data.get("rating")),
            review_count=_to_int(data.get("reviewCount", data.get("showerReviewCount"))),
            reviews=reviews,
            provenance=tuple(str(p) for p in provenance),
            merge_reason=data.get("mergeReason") or data.get("_mergeReason"),
            geocode=GeocodeInfo.from_dict(data),
            coordinate_update=CoordinateUpdate.from_dict(data.get("coordinateUpdate")),
            attributes={k: v for k, v in data.items() if k not in _KNOWN_KEYS},
        )

    def to_dict(self) -> dict:
        """Serialize to the canonical JSON location schema."""
        result = {
            "title": self.title,
            "address": self.address,
            "street": self.street,
            "city": self.city,
            "state": self.state,
            "country": self.country,
            "zip": self.zip,
            "lat": self.lat,
            "lng": self.lng,
            "phone": self.phone,
            "category": self.category,
            "categories": list(self.categories),
            "amenities": list(self.amenities),
            "cost": self.cost,
            "access": self.access,
            "rating": self.rating,
            "reviewCount": self.review_count,
            "reviews": [review.to_dict() for review in self.reviews],
            "provenance": list(self.provenance),
        }
        if self.merge_reason:
            result["mergeReason"] = self.merge_reason
        if self.geocode:
            result.update(self.geocode.to_dict())
        if self.coordinate_update:
            result["coordinateUpdate"] = self.coordinate_update.to_dict()

        for key, value in self.attributes.items():
            result.setdefault(key, value)

        return result
