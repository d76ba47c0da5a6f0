"""Tests for the map renderer and GeoJSON overlay."""

from __future__ import annotations

import json
from pathlib import Path
from typing import List

import folium
import pytest

from manhattan_runs.config import BOUNDARY_LINE_COLOR, RUN_LINE_COLOR
from manhattan_runs.geometry import BoundaryPolygon
from manhattan_runs.models import ManhattanRun
from manhattan_runs.render import (
    build_runs_map,
    run_feature,
    runs_to_feature_collection,
    write_geojson,
)
from manhattan_runs.utils import format_distance_km, format_time


@pytest.fixture
def runs() -> List[ManhattanRun]:
    return [
        ManhattanRun(
            id=1,
            name="Central Park loop",
            date="2025-03-01T12:00:00Z",
            distance=9700.0,
            moving_time=3125,
            coordinates=[(-73.9712, 40.7831), (-73.9650, 40.7900), (-73.9580, 40.8000)],
            snapped=True,
            confidence=0.91,
        ),
        ManhattanRun(
            id=2,
            name="Hudson River",
            date="2025-03-05T07:30:00Z",
            distance=5000.0,
            moving_time=1500,
            coordinates=[(-74.0120, 40.7050), (-74.0100, 40.7200)],
        ),
    ]


def _polylines(fmap: folium.Map) -> List[folium.PolyLine]:
    return [child for child in fmap._children.values() if isinstance(child, folium.PolyLine)]


def test_build_runs_map_draws_one_line_per_run(runs: List[ManhattanRun], tmp_path: Path) -> None:
    output = tmp_path / "map.html"

    fmap = build_runs_map(runs + [runs[0]], output_html_path=output)

    lines = _polylines(fmap)
    assert len(lines) == 2
    for line in lines:
        assert line.options.get("color") == RUN_LINE_COLOR
    # folium stores locations as (lat, lng)
    assert lines[0].locations[0] == pytest.approx([40.7831, -73.9712])
    assert output.exists()
    assert "Central Park loop" in output.read_text(encoding="utf-8")


def test_build_runs_map_outlines_boundary(runs: List[ManhattanRun], square: BoundaryPolygon) -> None:
    fmap = build_runs_map(runs, boundary=square)

    polygons = [
        child
        for child in fmap._children.values()
        if isinstance(child, folium.Polygon)
    ]
    assert len(polygons) == 1
    assert polygons[0].options.get("color") == BOUNDARY_LINE_COLOR


def test_build_runs_map_skips_runs_without_a_line() -> None:
    single_point = ManhattanRun(
        id=3, name="GPS glitch", date="", distance=0.0, moving_time=0, coordinates=[(-73.97, 40.78)]
    )

    fmap = build_runs_map([single_point])

    assert _polylines(fmap) == []


def test_run_feature_is_geojson_linestring(runs: List[ManhattanRun]) -> None:
    feature = run_feature(runs[0])

    assert feature["id"] == "run-1"
    assert feature["geometry"]["type"] == "LineString"
    assert feature["geometry"]["coordinates"][0] == [-73.9712, 40.7831]
    assert feature["properties"]["snapped"] is True


def test_feature_collection_dedupes_ids(runs: List[ManhattanRun]) -> None:
    collection = runs_to_feature_collection(runs + runs)

    assert [f["id"] for f in collection["features"]] == ["run-1", "run-2"]


def test_write_geojson(runs: List[ManhattanRun], tmp_path: Path) -> None:
    path = write_geojson(tmp_path / "runs.geojson", runs)

    data = json.loads(path.read_text(encoding="utf-8"))
    assert data["type"] == "FeatureCollection"
    assert len(data["features"]) == 2


def test_format_helpers() -> None:
    assert format_time(3125) == "52m 5s"
    assert format_time(3725) == "1h 2m 5s"
    assert format_distance_km(9700.0) == "9.70 km"
