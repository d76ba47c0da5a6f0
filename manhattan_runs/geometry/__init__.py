"""Geometry helpers: polyline codec, boundary containment and route filtering."""

from .boundary import BoundaryPolygon, boundary_from_geojson, contains, load_boundary
from .polyline import decode_polyline, encode_polyline
from .route_filter import is_in_region

__all__ = [
    "BoundaryPolygon",
    "boundary_from_geojson",
    "contains",
    "load_boundary",
    "decode_polyline",
    "encode_polyline",
    "is_in_region",
]
