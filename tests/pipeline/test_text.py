# SPDX-License-Identifier: MIT
"""Tests for text normalization and string similarity."""

import pytest

from showermap.utils.text import (
    clean_address,
    extract_city_state_from_address,
    format_phone_number,
    levenshtein_distance,
    normalize_address,
    normalize_business_name,
    normalize_business_name_advanced,
    normalize_phone_number,
    similarity,
)


class TestNormalizeAddress:
    """Test address normalization."""

    def test_folds_street_suffixes(self):
        """Street and Avenue should fold to st and ave."""
        assert normalize_address("100 Main Street, Springfield, IL") == "100 main st springfield il"
        assert normalize_address("22 Oak Avenue") == "22 oak ave"

    def test_suffix_variants_share_a_key(self):
        """Spelled-out and abbreviated suffixes should normalize identically."""
        assert normalize_address("100 Main Street, Springfield, IL") == normalize_address("100 Main St., Springfield, IL")

    def test_strips_directionals(self):
        """Directional tokens should be dropped."""
        assert normalize_address("123 North Main St") == "123 main st"
        assert normalize_address("9 SW Elm Rd") == "9 elm rd"

    def test_strips_unit_designators_and_number(self):
        """Suite, apt and # should be dropped together with their number."""
        assert normalize_address("123 Main Street Suite 200") == "123 main st"
        assert normalize_address("456 Oak Avenue #12") == "456 oak ave"
        assert normalize_address("7 Pine Ln Apt 3B, Austin") == "7 pine ln austin"

    def test_collapses_whitespace_and_commas(self):
        """Commas and runs of whitespace should collapse to single spaces."""
        assert normalize_address("  1  Rail  Rd ,,  Dallas ,TX ") == "1 rail rd dallas tx"

    @pytest.mark.parametrize("address", [
        "123 North Main Street Suite 200, Springfield, IL 62701",
        "456 Oak Avenue #12",
        "Exit 42, I-40 East, Amarillo",
        "Café Boulevard, Montréal",
    ])
    def test_idempotent(self, address):
        """Normalizing twice should equal normalizing once."""
        once = normalize_address(address)
        assert normalize_address(once) == once

    def test_empty_input(self):
        """None and empty string should give an empty string."""
        assert normalize_address(None) == ""
        assert normalize_address("") == ""


class TestNormalizeBusinessName:
    """Test business name normalization."""

    def test_strips_punctuation_and_legal_suffixes(self):
        """Legal suffixes and filler words should be removed."""
        assert normalize_business_name("The Pilot Company, LLC") == "pilot"
        assert normalize_business_name("Joe's Gym & Spa Inc.") == "joes gym spa"

    def test_empty_input(self):
        """None and empty string should give a falsy result without raising."""
        assert normalize_business_name(None) == ""
        assert normalize_business_name("") == ""

    def test_store_numbers_are_kept(self):
        """The basic variant does not strip store numbers."""
        assert normalize_business_name("Love's Travel Stop #123") == "loves travel stop 123"


class TestNormalizeBusinessNameAdvanced:
    """Test chain-aware name normalization."""

    @pytest.mark.parametrize("name", [
        "Love's Travel Stop #123",
        "Loves Country Store",
        "LOVE'S TRAVEL STOP No. 612",
        "Love's Travel Stops & Country Stores",
    ])
    def test_folds_loves_variants(self, name):
        """Every Love's variant should fold to one canonical name."""
        assert normalize_business_name_advanced(name) == "loves"

    def test_longest_pattern_wins(self):
        """A specific chain phrase should win over a shorter one it contains."""
        assert normalize_business_name_advanced("Flying J Travel Plaza #612") == "flying j"
        assert normalize_business_name_advanced("TravelCenters of America 221") == "ta"

    def test_strips_store_numbers_for_unknown_names(self):
        """Store numbers should be removed even when no chain matches."""
        assert normalize_business_name_advanced("Joe's Diner No. 5") == "joes diner"
        assert normalize_business_name_advanced("Big Rig Wash Store 14") == "big rig wash"
        assert normalize_business_name_advanced("Truck Plaza 77") == "truck plaza"

    def test_empty_input(self):
        assert normalize_business_name_advanced(None) == ""


class TestPhoneNumbers:
    """Test phone normalization and formatting."""

    @pytest.mark.parametrize("phone", ["(555) 123-4567", "555.123.4567", "+1 555 123 4567", "1-555-123-4567"])
    def test_normalizes_to_ten_digits(self, phone):
        assert normalize_phone_number(phone) == "5551234567"

    @pytest.mark.parametrize("phone", [None, "", "123-4567", "+44 20 7946 0958 12"])
    def test_rejects_non_ten_digit_numbers(self, phone):
        assert normalize_phone_number(phone) is None

    def test_format_phone_number(self):
        """Phone numbers should format for display."""
        assert format_phone_number("5551234567") == "(555) 123-4567"
        assert format_phone_number("+1 (555) 123-4567") == "(555) 123-4567"
        assert format_phone_number("123 4567") == "123-4567"
        assert format_phone_number("44 20 7946 0958") == "+442079460958"
        assert format_phone_number("12") is None


class TestCleanAddress:
    """Test output address cleanup."""

    def test_strips_country_and_punctuation(self):
        """Country suffix and stray punctuation should be removed."""
        cleaned = clean_address("123 Main St., Springfield, il 62701, United States")
        assert cleaned == "123 Main St, Springfield, IL 62701"

    def test_empty_input(self):
        assert clean_address(None) is None
        assert clean_address("  ") is None


class TestExtractCityState:
    """Test city/state extraction from addresses."""

    def test_with_zip(self):
        assert extract_city_state_from_address("100 Main St, Springfield, IL 62701") == ("Springfield", "IL")

    def test_without_zip(self):
        assert extract_city_state_from_address("100 Main St, Austin, TX") == ("Austin", "TX")

    def test_no_match(self):
        assert extract_city_state_from_address("Somewhere on Route 66") == (None, None)
        assert extract_city_state_from_address(None) == (None, None)


class TestSimilarity:
    """Test Levenshtein distance and similarity."""

    def test_levenshtein_distance(self):
        assert levenshtein_distance("kitten", "sitting") == 3
        assert levenshtein_distance("", "abc") == 3
        assert levenshtein_distance("same", "same") == 0
        assert levenshtein_distance(None, "ab") == 2

    @pytest.mark.parametrize("a,b", [
        ("pilot travel center", "pilot travel centre"),
        ("loves travel stop 123", "loves travel stop"),
        ("blue beacon", "blue beacon wash"),
        ("joes gym", "athletic club"),
    ])
    def test_similarity_is_normalized_distance(self, a, b):
        """Similarity should equal (longest - distance) / longest."""
        longest = max(len(a), len(b))
        expected = (longest - levenshtein_distance(a, b)) / longest
        assert similarity(a, b) == pytest.approx(expected)

    def test_similarity_value(self):
        """Similarity should be (max_len - distance) / max_len."""
        assert similarity("kitten", "sitting") == pytest.approx(4 / 7)

    @pytest.mark.parametrize("value", ["a", "pilot travel center", "loves"])
    def test_identical_strings(self, value):
        assert similarity(value, value) == 1.0

    @pytest.mark.parametrize("a,b", [("pilot", "pilots"), ("", "abc"), ("flying j", "flying jay"), ("a", "z")])
    def test_symmetric(self, a, b):
        assert similarity(a, b) == similarity(b, a)

    def test_empty_strings(self):
        """Empty/empty is 1.0; empty/non-empty is 0.0."""
        assert similarity("", "") == 1.0
        assert similarity(None, None) == 1.0
        assert similarity("", "abc") == 0.0
        assert similarity("abc", None) == 0.0

    def test_range(self):
        assert 0.0 <= similarity("abc", "xyz") <= 1.0
        assert similarity("abc", "xyz") == 0.0
