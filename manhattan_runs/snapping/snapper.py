"""Snap raw GPS traces to the road network with graceful fallback."""

from __future__ import annotations

import logging
import math
import statistics
from typing import List, Optional, Protocol, Sequence

from ..config import (
    MAP_MATCHING_MAX_POINTS,
    MAP_MATCHING_MIN_CONFIDENCE,
    MAP_MATCHING_RADIUS_M,
)
from ..models import Coordinate, MatchResult
from .client import MapboxMatchingClient, Matching

LOGGER = logging.getLogger(__name__)


class MapMatchingService(Protocol):
    def match(
        self,
        points: Sequence[Sequence[float]],
        radiuses: Sequence[float],
    ) -> List[Matching]: ...


def downsample(coords: Sequence[Coordinate], max_points: int) -> List[Coordinate]:
    """Keep every ``ceil(n / max_points)``-th point, preserving order."""

    count = len(coords)
    if count == 0:
        return []
    stride = max(1, math.ceil(count / max(1, max_points)))
    return list(coords[::stride])


def _fallback(coords: Sequence[Coordinate]) -> MatchResult:
    return MatchResult(matched=False, coordinates=list(coords), confidence=0.0)


class RoadSnapper:
    """Reconcile a coordinate sequence with a map matching service.

    Every failure mode (no token, too few points, no match, low confidence,
    service or payload errors) yields the original coordinates with
    ``matched=False``; :meth:`snap` never raises.
    """

    def __init__(
        self,
        access_token: Optional[str],
        *,
        client: Optional[MapMatchingService] = None,
        max_points: int = MAP_MATCHING_MAX_POINTS,
        radius_m: float = MAP_MATCHING_RADIUS_M,
        min_confidence: float = MAP_MATCHING_MIN_CONFIDENCE,
    ) -> None:
        self._client: Optional[MapMatchingService] = None
        if access_token:
            self._client = client or MapboxMatchingClient(access_token)
        self._max_points = max(2, max_points)
        self._radius_m = radius_m
        self._min_confidence = min_confidence

    @property
    def enabled(self) -> bool:
        return self._client is not None

    def snap(self, coords: Sequence[Coordinate]) -> MatchResult:
        if self._client is None:
            return _fallback(coords)
        sampled = downsample(coords, self._max_points)
        if len(sampled) < 2:
            LOGGER.debug("Not snapping trace with %d points", len(sampled))
            return _fallback(coords)

        radiuses = [self._radius_m] * len(sampled)
        try:
            matchings = self._client.match(sampled, radiuses)
        except Exception as exc:
            LOGGER.warning(
                "Map matching failed for %d points; using raw coordinates: %s",
                len(sampled),
                exc,
            )
            return _fallback(coords)

        if not matchings:
            LOGGER.info("No map matching for %d points; using raw coordinates", len(sampled))
            return _fallback(coords)

        segments: Optional[int] = None
        if len(matchings) == 1:
            confidence = matchings[0].confidence
            snapped = list(matchings[0].coordinates)
        else:
            segments = len(matchings)
            confidence = statistics.fmean(m.confidence for m in matchings)
            snapped = [pt for m in matchings for pt in m.coordinates]

        if confidence > self._min_confidence and snapped:
            LOGGER.info(
                "Snapped %d points to %d road points confidence=%.2f segments=%s",
                len(sampled),
                len(snapped),
                confidence,
                segments or 1,
            )
            return MatchResult(
                matched=True,
                coordinates=snapped,
                confidence=confidence,
                segments=segments,
            )
        LOGGER.info(
            "Map matching confidence %.2f not above %.2f; using raw coordinates",
            confidence,
            self._min_confidence,
        )
        return _fallback(coords)


def snap_coordinates(
    coords: Sequence[Coordinate],
    access_token: Optional[str],
    *,
    client: Optional[MapMatchingService] = None,
) -> MatchResult:
    """One-shot form of :meth:`RoadSnapper.snap`."""

    return RoadSnapper(access_token, client=client).snap(coords)


__all__ = ["MapMatchingService", "RoadSnapper", "downsample", "snap_coordinates"]
