"""Central error types used across the application."""

from __future__ import annotations


class ConfigError(RuntimeError):
    """Raised when required settings (client credentials, tokens) are missing."""


class BoundaryFormatError(ValueError):
    """Raised when the boundary file is not a usable polygon geometry."""


class PolylineDecodeError(ValueError):
    """Raised when an encoded polyline is truncated or contains invalid characters."""


class StravaAPIError(RuntimeError):
    """Base error for Strava API failures."""


class StravaPermissionError(StravaAPIError):
    """Raised when the API reports insufficient scopes or authentication issues."""


class StravaResourceNotFoundError(StravaAPIError):
    """Raised when an activity does not exist."""


class ActivityFormatError(StravaAPIError):
    """Raised when an activity payload does not have the expected shape."""


class MapMatchingError(RuntimeError):
    """Raised when the map matching service fails or returns an unusable payload."""


__all__ = [
    "ConfigError",
    "BoundaryFormatError",
    "PolylineDecodeError",
    "StravaAPIError",
    "StravaPermissionError",
    "StravaResourceNotFoundError",
    "ActivityFormatError",
    "MapMatchingError",
]
