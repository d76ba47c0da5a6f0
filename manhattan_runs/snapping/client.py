"""Mapbox Map Matching API client."""

from __future__ import annotations

from dataclasses import dataclass
import logging
from typing import Any, List, Mapping, Sequence

import requests

from ..config import (
    MAP_MATCHING_PROFILE,
    MAPBOX_MATCHING_URL,
    REQUEST_TIMEOUT,
)
from ..errors import MapMatchingError
from ..models import Coordinate
from ..strava_client.session import create_default_session

LOGGER = logging.getLogger(__name__)

# Codes meaning "the trace could not be matched", not a failure of the call.
_NO_MATCH_CODES = frozenset({"NoMatch", "NoSegment"})


@dataclass(slots=True)
class Matching:
    """One matched sub-path returned by the service."""

    coordinates: List[Coordinate]
    confidence: float


def _format_coordinates(points: Sequence[Sequence[float]]) -> str:
    return ";".join(f"{pt[0]:.6f},{pt[1]:.6f}" for pt in points)


def _parse_matching(raw: Any) -> Matching:
    if not isinstance(raw, Mapping):
        raise MapMatchingError("Matching entry is not an object")
    geometry = raw.get("geometry")
    if not isinstance(geometry, Mapping):
        raise MapMatchingError("Matching has no GeoJSON geometry")
    coords = geometry.get("coordinates")
    if not isinstance(coords, list):
        raise MapMatchingError("Matching geometry has no coordinate list")
    try:
        points = [(float(pt[0]), float(pt[1])) for pt in coords]
        confidence = float(raw.get("confidence", 0.0))
    except (TypeError, ValueError, IndexError) as exc:
        raise MapMatchingError(f"Malformed matching payload: {exc}") from exc
    return Matching(coordinates=points, confidence=confidence)


class MapboxMatchingClient:
    """Submit coordinate traces to the Mapbox Map Matching API."""

    def __init__(
        self,
        access_token: str,
        *,
        profile: str = MAP_MATCHING_PROFILE,
        base_url: str = MAPBOX_MATCHING_URL,
        session: requests.Session | None = None,
        timeout: int = REQUEST_TIMEOUT,
    ) -> None:
        if not access_token:
            raise ValueError("Mapbox access token is required")
        self._access_token = access_token
        self._profile = profile
        self._base_url = base_url.rstrip("/")
        self._session = session or create_default_session()
        self._timeout = timeout

    def match(
        self,
        points: Sequence[Sequence[float]],
        radiuses: Sequence[float],
    ) -> List[Matching]:
        """Match ``points`` (lng, lat) against the road network.

        Returns an empty list when the service finds no match.

        Raises:
            MapMatchingError: On transport errors, HTTP errors, or payloads
                that cannot be interpreted.
        """

        if len(points) != len(radiuses):
            raise ValueError("points and radiuses must have the same length")
        url = f"{self._base_url}/{self._profile}/{_format_coordinates(points)}"
        params = {
            "access_token": self._access_token,
            "geometries": "geojson",
            "overview": "full",
            "radiuses": ";".join(f"{radius:g}" for radius in radiuses),
            "tidy": "true",
            "gaps": "split",
        }
        LOGGER.debug("Map matching %d points profile=%s", len(points), self._profile)
        try:
            resp = self._session.get(url, params=params, timeout=self._timeout)
        except requests.RequestException as exc:
            raise MapMatchingError(
                f"Map matching transport error: {exc.__class__.__name__}"
            ) from exc

        try:
            data = resp.json()
        except ValueError:
            data = None

        code = data.get("code") if isinstance(data, Mapping) else None
        if code in _NO_MATCH_CODES:
            LOGGER.debug("Map matching returned %s", code)
            return []
        if resp.status_code >= 400:
            message = data.get("message") if isinstance(data, Mapping) else None
            raise MapMatchingError(
                f"Map matching failed status={resp.status_code}"
                + (f" code={code}" if code else "")
                + (f" message={message}" if message else "")
            )
        if not isinstance(data, Mapping):
            raise MapMatchingError("Map matching returned a non-JSON or non-object body")
        if code != "Ok":
            raise MapMatchingError(f"Map matching returned code={code}")
        matchings = data.get("matchings")
        if matchings is None:
            return []
        if not isinstance(matchings, list):
            raise MapMatchingError("Map matching 'matchings' is not a list")
        return [_parse_matching(raw) for raw in matchings]


__all__ = ["Matching", "MapboxMatchingClient"]
