"""Sync Strava runs that pass through a region and render them on a map."""

from .errors import (
    BoundaryFormatError,
    ConfigError,
    MapMatchingError,
    PolylineDecodeError,
    StravaAPIError,
)
from .main import main
from .models import ManhattanRun, MatchResult, StravaCredentials

__all__ = [
    "main",
    "ManhattanRun",
    "MatchResult",
    "StravaCredentials",
    "BoundaryFormatError",
    "ConfigError",
    "MapMatchingError",
    "PolylineDecodeError",
    "StravaAPIError",
]
