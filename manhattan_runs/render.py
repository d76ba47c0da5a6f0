"""Render persisted runs as line overlays on an interactive map."""

from __future__ import annotations

import html
import json
import logging
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence, Union

import folium  # Using folium to build an interactive Leaflet map.
import numpy as np

from .config import (
    BOUNDARY_LINE_COLOR,
    MAP_DEFAULT_CENTER,
    MAP_DEFAULT_ZOOM,
    MAP_TILES,
    RUN_LINE_COLOR,
    RUN_LINE_OPACITY,
    RUN_LINE_WEIGHT,
)
from .geometry import BoundaryPolygon
from .models import Coordinate, ManhattanRun
from .utils import format_distance_km, format_time

LOGGER = logging.getLogger(__name__)

PathLike = Union[str, Path]


def run_feature(run: ManhattanRun) -> Dict[str, Any]:
    """Return a GeoJSON LineString feature for ``run``."""

    return {
        "type": "Feature",
        "id": f"run-{run.id}",
        "properties": {
            "name": run.name,
            "date": run.date,
            "distance": run.distance,
            "moving_time": run.moving_time,
            "snapped": run.snapped,
            "confidence": run.confidence,
        },
        "geometry": {
            "type": "LineString",
            "coordinates": [[lng, lat] for lng, lat in run.coordinates],
        },
    }


def runs_to_feature_collection(runs: Sequence[ManhattanRun]) -> Dict[str, Any]:
    """Return one feature per run; duplicate ids keep the first occurrence."""

    seen: set[int] = set()
    features: List[Dict[str, Any]] = []
    for run in runs:
        if run.id in seen:
            continue
        seen.add(run.id)
        features.append(run_feature(run))
    return {"type": "FeatureCollection", "features": features}


def write_geojson(path: PathLike, runs: Sequence[ManhattanRun]) -> Path:
    target = Path(path)
    target.parent.mkdir(parents=True, exist_ok=True)
    with target.open("w", encoding="utf-8") as handle:
        json.dump(runs_to_feature_collection(runs), handle, ensure_ascii=False, indent=2)
    LOGGER.info("Wrote GeoJSON overlay to %s", target)
    return target


def _to_latlon(coords: Sequence[Coordinate]) -> List[tuple[float, float]]:
    return [(lat, lng) for lng, lat in coords]


def _bounds(coord_sets: Sequence[Sequence[Coordinate]]) -> Optional[List[List[float]]]:
    populated = [np.asarray(coords, dtype=float) for coords in coord_sets if coords]
    if not populated:
        return None
    stacked = np.vstack(populated)
    min_lng, min_lat = stacked.min(axis=0)
    max_lng, max_lat = stacked.max(axis=0)
    return [[float(min_lat), float(min_lng)], [float(max_lat), float(max_lng)]]


def _popup_html(run: ManhattanRun) -> str:
    lines = [
        f"<b>{html.escape(run.name or 'Run')}</b>",
        html.escape(run.date),
        format_distance_km(run.distance),
        format_time(run.moving_time),
    ]
    if run.snapped:
        lines.append(f"Snapped to roads ({run.confidence:.0%})")
    return "<br>".join(lines)


def build_runs_map(
    runs: Sequence[ManhattanRun],
    *,
    boundary: Optional[BoundaryPolygon] = None,
    output_html_path: Optional[PathLike] = None,
) -> folium.Map:
    """Create a folium map with one line per run and optional boundary outline."""

    fmap = folium.Map(
        location=list(MAP_DEFAULT_CENTER),
        zoom_start=MAP_DEFAULT_ZOOM,
        tiles=MAP_TILES,
        control_scale=True,
    )

    if boundary is not None and len(boundary.ring) >= 3:
        folium.Polygon(
            locations=_to_latlon(boundary.ring),
            color=BOUNDARY_LINE_COLOR,
            weight=2,
            fill=False,
            tooltip=boundary.name or "Boundary",
        ).add_to(fmap)

    drawn = 0
    seen: set[int] = set()
    for run in runs:
        if run.id in seen or len(run.coordinates) < 2:
            continue
        seen.add(run.id)
        folium.PolyLine(
            locations=_to_latlon(run.coordinates),
            color=RUN_LINE_COLOR,
            weight=RUN_LINE_WEIGHT,
            opacity=RUN_LINE_OPACITY,
            line_join="round",
            line_cap="round",
            tooltip=run.name or f"Run {run.id}",
            popup=folium.Popup(_popup_html(run), max_width=250),
        ).add_to(fmap)
        drawn += 1

    bounds = _bounds([run.coordinates for run in runs])
    if bounds is None and boundary is not None:
        bounds = _bounds([boundary.ring])
    if bounds is not None:
        fmap.fit_bounds(bounds)

    LOGGER.info("Rendered %d runs on map", drawn)
    if output_html_path is not None:
        target = Path(output_html_path)
        target.parent.mkdir(parents=True, exist_ok=True)
        fmap.save(str(target))
        LOGGER.info("Saved map to %s", target)
    return fmap


__all__ = [
    "run_feature",
    "runs_to_feature_collection",
    "write_geojson",
    "build_runs_map",
]
