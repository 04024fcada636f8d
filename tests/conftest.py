# SPDX-License-Identifier: MIT
"""Pytest configuration and fixtures for ShowerMap pipeline tests."""

import json
import os
from pathlib import Path

import httpx
import pytest

# Keep loguru on its default sink during tests
os.environ.setdefault("DISABLE_LOGGING", "1")

from showermap.models import LocationRecord, Review  # noqa: E402


@pytest.fixture
def make_record():
    """Factory for LocationRecords with a default provenance."""
    def _make(**fields) -> LocationRecord:
        fields.setdefault("provenance", (f"{fields.get('title') or 'record'}.json",))
        return LocationRecord(**fields)
    return _make


@pytest.fixture
def sample_review() -> Review:
    return Review(reviewer_name="Dana", review_text="Clean showers, hot water, quick turnover.", rating=5)


@pytest.fixture
def sample_location_data() -> dict:
    """One location entry as scraped."""
    return {
        "title": "Pilot Travel Center #412",
        "address": "100 Main Street, Springfield, IL 62701",
        "street": "100 Main Street",
        "city": "Springfield",
        "state": "IL",
        "lat": 39.7817,
        "lng": -89.6501,
        "phone": "+1 217-555-0142",
        "category": "Truck stop",
        "reviewCount": 2,
        "showerReviews": [
            {"reviewerName": "Dana", "reviewText": "Clean showers, hot water."},
            {"reviewerName": "Sam", "reviewText": "Long wait on weekends."},
        ],
        "hours": "24 hours",
    }


@pytest.fixture
def write_json(tmp_path: Path):
    """Write a JSON document under tmp_path and return its path."""
    def _write(name: str, data) -> Path:
        path = tmp_path / name
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(json.dumps(data), encoding="utf-8")
        return path
    return _write


@pytest.fixture
def mock_http():
    """Build an httpx.Client whose requests go to a handler, recording each request."""
    def _build(handler):
        requests = []

        def _record(request: httpx.Request) -> httpx.Response:
            requests.append(request)
            return handler(request)

        client = httpx.Client(transport=httpx.MockTransport(_record))
        return client, requests
    return _build


@pytest.fixture
def geocode_result() -> dict:
    """A good provider match for 100 Main Street, Springfield."""
    return {
        "lat": "39.78172",
        "lon": "-89.65015",
        "importance": 0.6,
        "class": "amenity",
        "type": "fuel",
        "osm_type": "node",
        "display_name": "Pilot, 100, Main Street, Springfield, Illinois, 62701, United States",
        "address": {"house_number": "100", "road": "Main Street", "city": "Springfield"},
    }
