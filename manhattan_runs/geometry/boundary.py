"""Region boundary loading and point-in-polygon testing."""

from __future__ import annotations

from dataclasses import dataclass
import json
import logging
from pathlib import Path
from typing import Any, Mapping, Optional, Sequence, Tuple, Union

from shapely.errors import GEOSException
from shapely.geometry import MultiPolygon, Polygon, shape

from ..errors import BoundaryFormatError
from ..models import Coordinate

LOGGER = logging.getLogger(__name__)

PathLike = Union[str, Path]


@dataclass(frozen=True)
class BoundaryPolygon:
    """Exterior ring of the region of interest in ``(lng, lat)`` order.

    The ring may or may not repeat its first point at the end; the ray
    casting treats both forms identically.
    """

    ring: Tuple[Coordinate, ...]
    name: Optional[str] = None

    def __len__(self) -> int:
        return len(self.ring)


RingLike = Union[BoundaryPolygon, Sequence[Sequence[float]]]


def _ring_of(polygon: RingLike) -> Sequence[Sequence[float]]:
    if isinstance(polygon, BoundaryPolygon):
        return polygon.ring
    return polygon


def contains(point: Sequence[float], polygon: RingLike) -> bool:
    """Return True when ``point`` lies inside ``polygon`` by the even-odd rule.

    A horizontal ray is cast from the point and ``inside`` toggles for every
    edge it crosses. Points exactly on an edge or vertex get whatever verdict
    the strict comparisons produce; the result is deterministic.
    """

    x, y = point[0], point[1]
    ring = _ring_of(polygon)
    count = len(ring)
    inside = False
    j = count - 1
    for i in range(count):
        xi, yi = ring[i][0], ring[i][1]
        xj, yj = ring[j][0], ring[j][1]
        # The guard implies yi != yj, so the interpolation never divides by zero.
        if (yi > y) != (yj > y) and x < (xj - xi) * (y - yi) / (yj - yi) + xi:
            inside = not inside
        j = i
    return inside


def _select_geometry(data: Any) -> Mapping[str, Any]:
    if not isinstance(data, Mapping):
        raise BoundaryFormatError("Boundary file must contain a GeoJSON object")
    kind = data.get("type")
    if kind == "FeatureCollection":
        features = data.get("features")
        if not isinstance(features, list) or not features:
            raise BoundaryFormatError("Boundary FeatureCollection has no features")
        if len(features) > 1:
            LOGGER.info(
                "Boundary has %d features; using the first one", len(features)
            )
        return _select_geometry(features[0])
    if kind == "Feature":
        geometry = data.get("geometry")
        if not isinstance(geometry, Mapping):
            raise BoundaryFormatError("Boundary feature has no geometry")
        return geometry
    return data


def boundary_from_geojson(data: Any, *, name: Optional[str] = None) -> BoundaryPolygon:
    """Build a :class:`BoundaryPolygon` from parsed GeoJSON."""

    if name is None and isinstance(data, Mapping):
        props = data.get("properties")
        if data.get("type") == "FeatureCollection":
            features = data.get("features") or []
            if features and isinstance(features[0], Mapping):
                props = features[0].get("properties")
        if isinstance(props, Mapping) and props.get("name"):
            name = str(props["name"])

    geometry_data = _select_geometry(data)
    try:
        geometry = shape(geometry_data)
    except (GEOSException, ValueError, TypeError, KeyError, AttributeError) as exc:
        raise BoundaryFormatError(f"Invalid boundary geometry: {exc}") from exc

    if isinstance(geometry, MultiPolygon):
        if geometry.is_empty:
            raise BoundaryFormatError("Boundary MultiPolygon is empty")
        LOGGER.info(
            "Boundary is a MultiPolygon with %d parts; using the first polygon",
            len(geometry.geoms),
        )
        geometry = geometry.geoms[0]
    if not isinstance(geometry, Polygon):
        raise BoundaryFormatError(
            f"Boundary geometry must be a Polygon or MultiPolygon, got {geometry.geom_type}"
        )
    if geometry.is_empty:
        raise BoundaryFormatError("Boundary polygon is empty")
    ring = tuple((float(pt[0]), float(pt[1])) for pt in geometry.exterior.coords)
    return BoundaryPolygon(ring=ring, name=name)


def load_boundary(path: PathLike) -> BoundaryPolygon:
    """Load the region boundary from a GeoJSON file.

    Raises:
        FileNotFoundError: If ``path`` does not exist.
        BoundaryFormatError: If the file is not JSON or holds no usable polygon.
    """

    boundary_path = Path(path)
    with boundary_path.open("r", encoding="utf-8") as handle:
        try:
            data = json.load(handle)
        except json.JSONDecodeError as exc:
            raise BoundaryFormatError(
                f"Boundary file {boundary_path} is not valid JSON: {exc}"
            ) from exc
    boundary = boundary_from_geojson(data)
    LOGGER.info(
        "Loaded boundary %s from %s (%d vertices)",
        boundary.name or "<unnamed>",
        boundary_path,
        len(boundary.ring),
    )
    return boundary


__all__ = [
    "BoundaryPolygon",
    "contains",
    "boundary_from_geojson",
    "load_boundary",
]
