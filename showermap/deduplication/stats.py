"""Duplicate counters threaded through the deduplication phases."""

from dataclasses import dataclass, field, replace

# Merge reasons in phase order; also the keys of every duplicate breakdown
DUPLICATE_REASONS = (
    "exact_coordinates",
    "address_match",
    "fuzzy_title",
    "phone_match",
    "proximity",
    "normalized_name",
)


def empty_breakdown() -> dict[str, int]:
    return {reason: 0 for reason in DUPLICATE_REASONS}


@dataclass(frozen=True)
class DedupStats:
    """
    Immutable duplicate counters.

    Each phase takes a DedupStats and returns a new one, so a phase can be
    run and checked in isolation.
    """
    duplicate_count: int = 0
    by_reason: dict[str, int] = field(default_factory=empty_breakdown)
    by_region: dict[str, dict[str, int]] = field(default_factory=dict)

    def record(self, reason: str, region: str | None = None) -> "DedupStats":
        """Return new stats with one more merge for reason (and region)."""
        if reason not in DUPLICATE_REASONS:
            raise ValueError(f"Unknown merge reason: {reason}")

        by_reason = {**self.by_reason, reason: self.by_reason.get(reason, 0) + 1}

        by_region = dict(self.by_region)
        if region:
            counters = {**by_region.get(region, empty_breakdown())}
            counters[reason] += 1
            by_region[region] = counters

        return replace(
            self,
            duplicate_count=self.duplicate_count + 1,
            by_reason=by_reason,
            by_region=by_region,
        )

    def region_breakdown(self, region: str) -> dict[str, int]:
        """Per-reason counters for one region, all reasons present."""
        return {**empty_breakdown(), **self.by_region.get(region, {})}

    def to_dict(self) -> dict:
        return {
            "duplicatesRemoved": self.duplicate_count,
            "duplicateBreakdown": {**empty_breakdown(), **self.by_reason},
        }
