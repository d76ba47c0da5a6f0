"""Global pytest fixtures & helpers.

Adds project root to path and provides reusable fixtures for geometry,
client and sync tests to avoid duplication across files.
"""
from __future__ import annotations

import json
import os
import sys

import pytest

ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
if ROOT not in sys.path:
    sys.path.insert(0, ROOT)

from manhattan_runs.geometry import BoundaryPolygon
from manhattan_runs.models import StravaCredentials


class FakeResp:
    """Minimal stand-in for ``requests.Response``."""

    def __init__(self, status_code=200, data=None, text=None):
        self.status_code = status_code
        self._data = data
        self._text = text

    def json(self):
        if isinstance(self._data, Exception):  # force JSON error
            raise self._data
        return self._data

    @property
    def text(self):
        if self._text is not None:
            return self._text
        try:
            return json.dumps(self._data)
        except (TypeError, ValueError):
            return str(self._data)


# --- Factory helpers -------------------------------------------------
def make_summary(activity_id, *, start_latlng=(40.78, -73.97), sport_type="Run"):
    return {
        "id": activity_id,
        "name": f"Run {activity_id}",
        "start_date": "2025-03-01T12:00:00Z",
        "distance": 5000.0,
        "moving_time": 1500,
        "start_latlng": list(start_latlng) if start_latlng else [],
        "type": sport_type,
        "sport_type": sport_type,
    }


def make_detail(activity_id, polyline):
    return {
        "id": activity_id,
        "name": f"Run {activity_id}",
        "start_date": "2025-03-01T12:00:00Z",
        "distance": 5000.0,
        "moving_time": 1500,
        "map": {"id": f"a{activity_id}", "polyline": polyline},
    }


# --- Fixtures --------------------------------------------------------
@pytest.fixture
def credentials():
    return StravaCredentials(
        client_id="cid",
        client_secret="csec",
        refresh_token="refresh123",
        access_token="access123",
    )


@pytest.fixture
def square():
    return BoundaryPolygon(ring=((0.0, 0.0), (0.0, 10.0), (10.0, 10.0), (10.0, 0.0)))


@pytest.fixture
def square_geojson():
    return {
        "type": "Polygon",
        "coordinates": [[[0, 0], [0, 10], [10, 10], [10, 0], [0, 0]]],
    }
