# SPDX-License-Identifier: MIT
"""Tests for the phase runner, the six deduplication phases and the full pipeline."""

from showermap.deduplication import (
    DedupStats,
    address_phase,
    deduplicate,
    exact_coordinate_phase,
    fuzzy_title_phase,
    merge,
    normalized_name_phase,
    phone_phase,
    proximity_phase,
    run_phase,
)


def _always(a, b):
    return True


class TestRunPhase:
    """Test the parameterized phase runner."""

    def test_records_without_key_pass_through(self, make_record):
        records = [make_record(title="A"), make_record(title="B")]
        result, stats = run_phase(records, lambda r: None, _always, merge, "proximity", DedupStats())
        assert result == records
        assert stats.duplicate_count == 0

    def test_merged_record_takes_first_position(self, make_record):
        records = [make_record(title="A"), make_record(title="Other"), make_record(title="Aa")]
        key = {"A": 1, "Aa": 1, "Other": 2}
        result, stats = run_phase(records, lambda r: key[r.title], _always, merge, "proximity", DedupStats())

        assert [r.title for r in result] == ["Aa", "Other"]
        assert result[0].provenance == ("A.json", "Aa.json")
        assert stats.duplicate_count == 1

    def test_first_passing_candidate_wins(self, make_record):
        """Greedy matching merges into the earliest candidate whose gate passes."""
        def gate(a, b):
            return b.title == "X3" and "X2" in a.provenance[0]

        records = [make_record(title="X1"), make_record(title="X2"), make_record(title="X3")]
        result, _ = run_phase(records, lambda r: "k", gate, merge, "proximity", DedupStats())

        assert [r.provenance for r in result] == [("X1.json",), ("X2.json", "X3.json")]

    def test_merged_record_keeps_absorbing(self, make_record):
        records = [make_record(title=t) for t in ("A", "B", "C")]
        result, stats = run_phase(records, lambda r: "k", _always, merge, "phone_match", DedupStats())

        assert len(result) == 1
        assert result[0].provenance == ("A.json", "B.json", "C.json")
        assert stats.by_reason["phone_match"] == 2

    def test_once_per_pass_retires_merged_records(self, make_record):
        """With once_per_pass a merged pair is not compared again in the same pass."""
        records = [make_record(title=t) for t in ("A", "B", "C")]
        result, stats = run_phase(
            records, lambda r: "k", _always, merge, "proximity", DedupStats(), once_per_pass=True,
        )

        assert [r.provenance for r in result] == [("A.json", "B.json"), ("C.json",)]
        assert stats.duplicate_count == 1

    def test_stats_threaded_not_mutated(self, make_record):
        records = [make_record(title="A", state="TX"), make_record(title="B", state="TX")]
        initial = DedupStats()
        _, stats = run_phase(records, lambda r: "k", _always, merge, "proximity", initial)

        assert initial.duplicate_count == 0
        assert stats.region_breakdown("TX")["proximity"] == 1


class TestExactCoordinatePhase:
    """Test phase 1."""

    def test_rounded_coordinates_merge(self, make_record):
        a = make_record(title="Love's Travel Stop #123", lat=35.12341, lng=-90.56781)
        b = make_record(title="Totally Different Name", lat=35.12344, lng=-90.56779)
        result, stats = exact_coordinate_phase([a, b], DedupStats())

        assert len(result) == 1
        assert result[0].provenance == a.provenance + b.provenance
        assert result[0].merge_reason == "exact_coordinates"
        assert stats.by_reason["exact_coordinates"] == 1

    def test_different_cells_stay_apart(self, make_record):
        a = make_record(title="A", lat=35.1234, lng=-90.5678)
        b = make_record(title="B", lat=35.1334, lng=-90.5678)
        result, _ = exact_coordinate_phase([a, b], DedupStats())
        assert len(result) == 2

    def test_records_without_coordinates_ignored(self, make_record):
        result, _ = exact_coordinate_phase([make_record(title="A"), make_record(title="B")], DedupStats())
        assert len(result) == 2


class TestAddressPhase:
    """Test phase 2."""

    def test_suffix_variants_merge_without_coordinates(self, make_record):
        a = make_record(title="Flying J Travel Plaza", address="100 Main St, Springfield, IL")
        b = make_record(title="Flying J", address="100 Main Street, Springfield, IL")
        result, stats = address_phase([a, b], DedupStats())

        assert len(result) == 1
        assert result[0].title == "Flying J Travel Plaza"
        assert result[0].merge_reason == "address_match"
        assert stats.by_reason["address_match"] == 1

    def test_merge_counted_under_state_from_address(self, make_record):
        """Records without a state are counted under the state in their address."""
        a = make_record(title="Pilot", city="Springfield", address="100 Main St, Springfield, IL 62701")
        b = make_record(title="Pilot", city="Springfield", address="100 Main Street, Springfield, il 62701")
        _, stats = address_phase([a, b], DedupStats())

        assert stats.region_breakdown("IL")["address_match"] == 1
        assert "Unknown" not in stats.by_region

    def test_short_addresses_never_match(self, make_record):
        """Normalized addresses of 10 characters or fewer are not keys."""
        a = make_record(title="A", address="1 A St")
        b = make_record(title="B", address="1 A Street")
        result, _ = address_phase([a, b], DedupStats())
        assert len(result) == 2


class TestFuzzyTitlePhase:
    """Test phase 3."""

    def test_similar_names_nearby_merge(self, make_record):
        a = make_record(title="Pilot Travel Center", lat=35.00, lng=-101.80)
        b = make_record(title="Pilot Travel Centre", lat=35.18, lng=-101.80)
        result, stats = fuzzy_title_phase([a, b], DedupStats())

        assert len(result) == 1
        assert stats.by_reason["fuzzy_title"] == 1

    def test_similar_names_far_apart_stay(self, make_record):
        a = make_record(title="Pilot Travel Center", lat=35.0, lng=-101.8)
        b = make_record(title="Pilot Travel Center", lat=36.0, lng=-101.8)
        result, _ = fuzzy_title_phase([a, b], DedupStats())
        assert len(result) == 2

    def test_dissimilar_names_stay(self, make_record):
        a = make_record(title="Pilot Travel Center", lat=35.0, lng=-101.8)
        b = make_record(title="Blue Beacon Truck Wash", lat=35.001, lng=-101.8)
        result, _ = fuzzy_title_phase([a, b], DedupStats())
        assert len(result) == 2


class TestPhonePhase:
    """Test phase 4."""

    def test_same_phone_within_range_merges(self, make_record):
        a = make_record(title="Fuel Stop", phone="(555) 123-4567", lat=35.0, lng=-90.0)
        b = make_record(title="Diner", phone="1-555-123-4567", lat=35.5, lng=-90.0)
        result, stats = phone_phase([a, b], DedupStats())

        assert len(result) == 1
        assert stats.by_reason["phone_match"] == 1

    def test_same_phone_too_far_stays(self, make_record):
        """A shared corporate number 200 km apart is not a duplicate."""
        a = make_record(title="A", phone="555-123-4567", lat=35.0, lng=-90.0)
        b = make_record(title="B", phone="555-123-4567", lat=36.8, lng=-90.0)
        result, _ = phone_phase([a, b], DedupStats())
        assert len(result) == 2

    def test_phone_without_coordinates_stays(self, make_record):
        a = make_record(title="A", phone="555-123-4567")
        b = make_record(title="B", phone="555-123-4567")
        result, _ = phone_phase([a, b], DedupStats())
        assert len(result) == 2


class TestProximityPhase:
    """Test phase 5."""

    def test_same_category_within_100m_merges(self, make_record):
        a = make_record(title="Joe's Gym", categories=("Gym",), lat=40.0, lng=-75.0)
        b = make_record(title="Downtown Athletic Club", categories=("gym",), lat=40.0003, lng=-75.0)
        result, stats = proximity_phase([a, b], DedupStats())

        assert len(result) == 1
        assert stats.by_reason["proximity"] == 1

    def test_similar_names_within_100m_merge(self, make_record):
        a = make_record(title="Blue Beacon", lat=40.0, lng=-75.0)
        b = make_record(title="Blue Beacon Wash", lat=40.0003, lng=-75.0)
        result, _ = proximity_phase([a, b], DedupStats())
        assert len(result) == 1

    def test_unrelated_neighbors_stay(self, make_record):
        a = make_record(title="Joe's Gym", categories=("Gym",), lat=40.0, lng=-75.0)
        b = make_record(title="Corner Laundromat", categories=("Laundry",), lat=40.0003, lng=-75.0)
        result, _ = proximity_phase([a, b], DedupStats())
        assert len(result) == 2

    def test_same_category_beyond_100m_stays(self, make_record):
        a = make_record(title="Joe's Gym", categories=("Gym",), lat=40.0, lng=-75.0)
        b = make_record(title="Other Gym Place", categories=("Gym",), lat=40.002, lng=-75.0)
        result, _ = proximity_phase([a, b], DedupStats())
        assert len(result) == 2


class TestNormalizedNamePhase:
    """Test phase 6."""

    def test_chain_variants_in_same_city_merge(self, make_record):
        a = make_record(title="Love's Country Store", city="Amarillo", lat=35.20, lng=-101.80)
        b = make_record(title="Loves Travel Stop #456", city="Amarillo", lat=35.29, lng=-101.80)
        result, stats = normalized_name_phase([a, b], DedupStats())

        assert len(result) == 1
        assert stats.by_reason["normalized_name"] == 1

    def test_different_cities_stay(self, make_record):
        a = make_record(title="Love's Country Store", city="Amarillo", lat=35.20, lng=-101.80)
        b = make_record(title="Loves Travel Stop", city="Canyon", lat=35.29, lng=-101.80)
        result, _ = normalized_name_phase([a, b], DedupStats())
        assert len(result) == 2

    def test_same_city_beyond_25km_stays(self, make_record):
        a = make_record(title="Love's Country Store", city="Amarillo", lat=35.0, lng=-101.8)
        b = make_record(title="Loves Travel Stop", city="Amarillo", lat=35.5, lng=-101.8)
        result, _ = normalized_name_phase([a, b], DedupStats())
        assert len(result) == 2


class TestDeduplicate:
    """Test the full six-phase pipeline."""

    def test_loves_example_collapses_to_one_record(self, make_record):
        a = make_record(title="Love's Travel Stop #123", lat=35.1234, lng=-90.5678)
        b = make_record(title="Loves Travel Stop 123", lat=35.1235, lng=-90.5677)
        result, stats = deduplicate([a, b])

        assert len(result) == 1
        assert set(result[0].provenance) == set(a.provenance) | set(b.provenance)
        assert stats.duplicate_count == 1

    def test_flying_j_example_merges_in_address_phase(self, make_record):
        a = make_record(title="Flying J Travel Plaza", address="100 Main St, Springfield, IL")
        b = make_record(title="Flying J", address="100 Main Street, Springfield, IL")
        result, stats = deduplicate([a, b])

        assert len(result) == 1
        assert stats.by_reason["address_match"] == 1

    def test_empty_record_stays_singleton(self, make_record):
        """A record with empty title and address never matches by address or name."""
        blank_one = make_record(title="", address="", provenance=("one.json",))
        blank_two = make_record(title="", address="", provenance=("two.json",))
        other = make_record(title="Pilot Travel Center", address="100 Main St, Springfield, IL")
        result, stats = deduplicate([blank_one, blank_two, other])

        assert len(result) == 3
        assert stats.duplicate_count == 0

    def test_idempotent(self, make_record):
        """Running the pipeline over its own output changes nothing."""
        records = [
            make_record(title="Love's Travel Stop #123", city="Memphis", lat=35.1234, lng=-90.5678),
            make_record(title="Loves Travel Stop 123", city="Memphis", lat=35.1235, lng=-90.5677),
            make_record(title="Flying J Travel Plaza", address="100 Main St, Springfield, IL"),
            make_record(title="Flying J", address="100 Main Street, Springfield, IL", phone="217-555-0100"),
            make_record(title="Pilot", phone="(217) 555-0100", lat=39.78, lng=-89.65),
            make_record(title="Joe's Gym", categories=("Gym",), lat=40.0, lng=-75.0),
            make_record(title="Athletic Club", categories=("Gym",), lat=40.0003, lng=-75.0),
            make_record(title="Athletic Club Annex", categories=("Gym",), lat=40.0006, lng=-75.0),
            make_record(title="", address=""),
        ]
        once, stats = deduplicate(records)
        twice, stats_again = deduplicate(once)

        assert twice == once
        assert stats_again.duplicate_count == 0
        assert stats.duplicate_count == len(records) - len(once)

    def test_stats_continue_from_given_value(self, make_record):
        start = DedupStats().record("proximity")
        a = make_record(title="A", lat=35.12341, lng=-90.56781)
        b = make_record(title="B", lat=35.12344, lng=-90.56779)
        _, stats = deduplicate([a, b], stats=start)

        assert stats.duplicate_count == 2
        assert stats.by_reason["exact_coordinates"] == 1

    def test_no_records(self):
        result, stats = deduplicate([])
        assert result == []
        assert stats.duplicate_count == 0
