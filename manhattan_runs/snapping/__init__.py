"""Road snapping through an external map matching service."""

from .client import MapboxMatchingClient, Matching
from .snapper import MapMatchingService, RoadSnapper, downsample, snap_coordinates

__all__ = [
    "MapboxMatchingClient",
    "Matching",
    "MapMatchingService",
    "RoadSnapper",
    "downsample",
    "snap_coordinates",
]
