"""Combine two matched location records into one canonical record."""

from dataclasses import replace

from showermap.models import LocationRecord, merge_reviews, unique_casefold

# Plain text fields that keep the first record's value and only fill gaps
_FILL_IF_MISSING = ("phone", "street", "city", "state", "country", "zip", "cost", "access")


def _longer(first: str, second: str) -> str:
    """The longer of two values; ties and empty seconds keep the first."""
    if not first or (second and len(second) > len(first)):
        return second
    return first


def _coordinate_text(value: float | None) -> str:
    return "" if value is None else str(value)


def merge(a: LocationRecord, b: LocationRecord, reason: str) -> LocationRecord:
    """
    Merge two records describing the same facility.

    Field precedence:
    - title, address: the longer non-empty value
    - phone and other plain fields: a's value, filled from b when missing
    - coordinates: b's pair when a has none or b's latitude text is longer
      (string length of the number, not numeric precision)
    - reviews: union by reviewer + first 50 characters; count = union size
    - rating: the higher value
    - categories, amenities: case-insensitive union
    - provenance: a's entries followed by b's, nothing dropped

    Args:
        a: Record already in the working set
        b: Record being folded into it
        reason: Phase tag stored as merge_reason

    Returns:
        New LocationRecord; a and b are left untouched
    """
    fills = {
        name: getattr(a, name) or getattr(b, name)
        for name in _FILL_IF_MISSING
    }

    lat, lng = a.lat, a.lng
    coordinate_source, other = a, b
    if b.has_coordinates and (
        not a.has_coordinates or len(_coordinate_text(b.lat)) > len(_coordinate_text(a.lat))
    ):
        lat, lng = b.lat, b.lng
        coordinate_source, other = b, a

    reviews = merge_reviews(a.reviews, b.reviews)
    review_count = len(reviews) if reviews else max(a.review_count, b.review_count)

    ratings = [r for r in (a.rating, b.rating) if r is not None]

    return replace(
        a,
        title=_longer(a.title, b.title),
        address=_longer(a.address, b.address),
        lat=lat,
        lng=lng,
        reviews=reviews,
        review_count=review_count,
        rating=max(ratings) if ratings else None,
        categories=unique_casefold(a.categories + b.categories),
        amenities=unique_casefold(a.amenities + b.amenities),
        provenance=a.provenance + b.provenance,
        merge_reason=reason,
        geocode=coordinate_source.geocode or other.geocode,
        coordinate_update=coordinate_source.coordinate_update or other.coordinate_update,
        attributes={**b.attributes, **a.attributes},
        **fills,
    )
