"""Central configuration for the Manhattan runs sync tool.

All values are constants imported by the rest of the package. Adjust as needed
for your environment. Secrets are read from environment variables (optionally
via a local `.env`).
"""

from __future__ import annotations

import os

from dotenv import load_dotenv


def _env_float(key: str, default: float) -> float:
    value = os.getenv(key)
    if value is None:
        return default
    try:
        return float(value)
    except ValueError:
        return default


def _env_int(key: str, default: int) -> int:
    value = os.getenv(key)
    if value is None:
        return default
    try:
        return int(value)
    except ValueError:
        return default


def _env_bool(key: str, default: bool) -> bool:
    value = os.getenv(key)
    if value is None:
        return default
    normalized = value.strip().lower()
    if normalized in {"1", "true", "yes", "on"}:
        return True
    if normalized in {"0", "false", "no", "off"}:
        return False
    return default


# Secrets normally come from a local .env next to the boundary file.
load_dotenv()


# ---------------------------------------------------------------------------
# Input/Output
# ---------------------------------------------------------------------------
# Paths can be absolute or relative.
BOUNDARY_FILE = os.getenv("BOUNDARY_FILE", "manhattan-boundary.json")
OUTPUT_FILE = os.getenv("RUNS_OUTPUT_FILE", "manhattan-runs.json")
MAP_OUTPUT_FILE = os.getenv("MAP_OUTPUT_FILE", "manhattan-runs.html")


# ---------------------------------------------------------------------------
# Strava settings
# ---------------------------------------------------------------------------
# Base Strava API URLs.
STRAVA_BASE_URL = "https://www.strava.com/api/v3"
STRAVA_OAUTH_URL = "https://www.strava.com/oauth/token"
STRAVA_AUTHORIZE_URL = "https://www.strava.com/oauth/authorize"

# Client credentials pulled from the environment. Do not hardcode secrets.
CLIENT_ID = os.getenv("STRAVA_CLIENT_ID", "")
CLIENT_SECRET = os.getenv("STRAVA_CLIENT_SECRET", "")
REFRESH_TOKEN = os.getenv("STRAVA_REFRESH_TOKEN", "")


# ---------------------------------------------------------------------------
# Sync behaviour
# ---------------------------------------------------------------------------
# Trailing window (days before now) of activities to list.
SYNC_WINDOW_DAYS = _env_int("SYNC_WINDOW_DAYS", 90)

# Activity type requested from Strava and re-checked client side.
ACTIVITY_TYPE = os.getenv("SYNC_ACTIVITY_TYPE", "Run")

# Page size used when listing activities (Strava caps this at 200).
ACTIVITY_PAGE_SIZE = _env_int("ACTIVITY_PAGE_SIZE", 100)

# Optional cap on listed pages. 0 or negative means no cap.
ACTIVITY_MAX_PAGES: int | None = _env_int("ACTIVITY_MAX_PAGES", 0)
if ACTIVITY_MAX_PAGES is not None and ACTIVITY_MAX_PAGES <= 0:
    ACTIVITY_MAX_PAGES = None


# ---------------------------------------------------------------------------
# Map matching (road snapping)
# ---------------------------------------------------------------------------
# Snapping is skipped entirely when no token is configured.
MAPBOX_ACCESS_TOKEN = os.getenv("MAPBOX_ACCESS_TOKEN", "")
MAPBOX_MATCHING_URL = "https://api.mapbox.com/matching/v5/mapbox"

# Global switch; a configured token is still required.
SNAP_TO_ROADS_ENABLED = _env_bool("SNAP_TO_ROADS_ENABLED", True)

# Mapbox routing profile used for matching (walking suits runs).
MAP_MATCHING_PROFILE = os.getenv("MAP_MATCHING_PROFILE", "walking")

# The Map Matching API accepts at most 100 coordinates per request.
MAP_MATCHING_MAX_POINTS = _env_int("MAP_MATCHING_MAX_POINTS", 100)

# Search radius (metres) submitted for every coordinate.
MAP_MATCHING_RADIUS_M = _env_float("MAP_MATCHING_RADIUS_M", 25.0)

# A match must score strictly above this confidence to replace the raw trace.
MAP_MATCHING_MIN_CONFIDENCE = _env_float("MAP_MATCHING_MIN_CONFIDENCE", 0.5)


# ---------------------------------------------------------------------------
# HTTP behaviour
# ---------------------------------------------------------------------------
# Request timeout in seconds.
REQUEST_TIMEOUT = _env_int("REQUEST_TIMEOUT", 15)

# STRAVA_MAX_RETRIES covers network failures, 5xx, or bad payloads.
STRAVA_MAX_RETRIES = _env_int("STRAVA_MAX_RETRIES", 3)
# STRAVA_BACKOFF_MAX_SECONDS caps the exponential backoff per attempt.
STRAVA_BACKOFF_MAX_SECONDS = _env_float("STRAVA_BACKOFF_MAX_SECONDS", 4.0)


# ---------------------------------------------------------------------------
# Map rendering
# ---------------------------------------------------------------------------
# Fallback map centre (lat, lon) when there is nothing to fit.
MAP_DEFAULT_CENTER = (40.7831, -73.9712)
MAP_DEFAULT_ZOOM = 12
MAP_TILES = os.getenv("MAP_TILES", "cartodbpositron")

# Strava orange, matching the run overlay styling of the web page.
RUN_LINE_COLOR = "#FC4C02"
RUN_LINE_WEIGHT = 3
RUN_LINE_OPACITY = 0.7
BOUNDARY_LINE_COLOR = "#3b3b3b"
