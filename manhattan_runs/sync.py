"""Sync pipeline: fetch runs, keep those crossing the boundary, persist them.

The run is linear: load the boundary, refresh the access token, list recent
activities, then for each activity fetch its detail, decode the polyline,
optionally snap it to roads and test containment. Accepted runs overwrite the
output file. Boundary, token and listing failures abort the run; anything that
goes wrong for a single activity is logged and skipped.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
import logging
from pathlib import Path
from typing import Callable, List, Optional, Protocol

import requests

from .config import (
    ACTIVITY_MAX_PAGES,
    ACTIVITY_TYPE,
    BOUNDARY_FILE,
    MAPBOX_ACCESS_TOKEN,
    OUTPUT_FILE,
    SNAP_TO_ROADS_ENABLED,
    SYNC_WINDOW_DAYS,
)
from .errors import PolylineDecodeError, StravaAPIError
from .geometry import BoundaryPolygon, decode_polyline, is_in_region, load_boundary
from .models import (
    ActivityDetail,
    ActivitySummary,
    ManhattanRun,
    MatchResult,
    StravaCredentials,
)
from .snapping import RoadSnapper
from .storage import save_runs
from .strava_client import ActivitiesAPI, ensure_access_token


class ActivityProvider(Protocol):
    def list_activities(
        self,
        credentials: StravaCredentials,
        after: datetime,
        *,
        activity_type: Optional[str] = ...,
        max_pages: Optional[int] = ...,
    ) -> List[ActivitySummary]: ...

    def get_activity_detail(
        self, credentials: StravaCredentials, activity_id: int
    ) -> ActivityDetail: ...


class Snapper(Protocol):
    @property
    def enabled(self) -> bool: ...

    def snap(self, coords: List[tuple[float, float]]) -> MatchResult: ...


@dataclass(slots=True)
class SyncOptions:
    boundary_path: str | Path = BOUNDARY_FILE
    output_path: str | Path = OUTPUT_FILE
    window_days: int = SYNC_WINDOW_DAYS
    activity_type: Optional[str] = ACTIVITY_TYPE
    max_pages: Optional[int] = ACTIVITY_MAX_PAGES
    snap_to_roads: bool = SNAP_TO_ROADS_ENABLED


@dataclass(slots=True)
class SyncSummary:
    listed: int = 0
    skipped_no_location: int = 0
    skipped_no_polyline: int = 0
    outside_region: int = 0
    failed: int = 0
    accepted: int = 0
    snapped: int = 0
    output_path: Optional[Path] = None
    failed_ids: List[int] = field(default_factory=list)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class SyncOrchestrator:
    def __init__(
        self,
        credentials: StravaCredentials,
        options: SyncOptions | None = None,
        *,
        activities_api: ActivityProvider | None = None,
        snapper: Snapper | None = None,
        boundary: BoundaryPolygon | None = None,
        clock: Callable[[], datetime] = _utcnow,
        logger: logging.Logger | None = None,
    ) -> None:
        self.credentials = credentials
        self.options = options or SyncOptions()
        self._activities = activities_api or ActivitiesAPI()
        if snapper is None:
            token = MAPBOX_ACCESS_TOKEN if self.options.snap_to_roads else None
            snapper = RoadSnapper(token)
        self._snapper = snapper
        self._boundary = boundary
        self._clock = clock
        self._log = logger or logging.getLogger(self.__class__.__name__)

    def window_start(self) -> datetime:
        return self._clock() - timedelta(days=self.options.window_days)

    def run(self) -> SyncSummary:
        """Execute one full sync and return its counters.

        Raises:
            FileNotFoundError, BoundaryFormatError: Boundary cannot be loaded.
            TokenError: The access token cannot be obtained.
            StravaAPIError: The activity listing fails or is not a list.
        """

        boundary = self._boundary or load_boundary(self.options.boundary_path)
        ensure_access_token(self.credentials)

        after = self.window_start()
        self._log.info(
            "Listing %s activities since %s (%d day window)",
            self.options.activity_type or "all",
            after.date().isoformat(),
            self.options.window_days,
        )
        summaries = self._activities.list_activities(
            self.credentials,
            after,
            activity_type=self.options.activity_type,
            max_pages=self.options.max_pages,
        )
        summary = SyncSummary(listed=len(summaries))
        if self._snapper.enabled:
            self._log.info("Road snapping enabled")
        else:
            self._log.info("Road snapping disabled; keeping raw GPS coordinates")

        runs: List[ManhattanRun] = []
        for activity in summaries:
            if not activity.has_start_location:
                summary.skipped_no_location += 1
                continue
            try:
                run = self._process_activity(activity, boundary, summary)
            except (StravaAPIError, PolylineDecodeError, requests.RequestException) as exc:
                summary.failed += 1
                summary.failed_ids.append(activity.id)
                self._log.warning("Skipping activity=%s: %s", activity.id, exc)
                continue
            except Exception as exc:
                summary.failed += 1
                summary.failed_ids.append(activity.id)
                self._log.error(
                    "Activity %s failed due to unexpected error: %s",
                    activity.id,
                    exc,
                    exc_info=True,
                )
                continue
            if run is None:
                continue
            runs.append(run)
            summary.accepted += 1
            if run.snapped:
                summary.snapped += 1
            self._log.info("Added run in region: %s (%s)", run.name, run.date)

        summary.output_path = save_runs(self.options.output_path, runs)
        self._log.info(
            "Sync complete: listed=%d accepted=%d snapped=%d no_location=%d "
            "no_polyline=%d outside=%d failed=%d",
            summary.listed,
            summary.accepted,
            summary.snapped,
            summary.skipped_no_location,
            summary.skipped_no_polyline,
            summary.outside_region,
            summary.failed,
        )
        if summary.failed_ids:
            self._log.warning(
                "Suppressed %d activity errors (ids: %s)",
                summary.failed,
                ", ".join(str(i) for i in summary.failed_ids),
            )
        return summary

    def _process_activity(
        self,
        activity: ActivitySummary,
        boundary: BoundaryPolygon,
        summary: SyncSummary,
    ) -> Optional[ManhattanRun]:
        detail = self._activities.get_activity_detail(self.credentials, activity.id)
        if not detail.polyline:
            summary.skipped_no_polyline += 1
            self._log.debug("Activity %s has no polyline", activity.id)
            return None

        coordinates = decode_polyline(detail.polyline)
        match = self._snapper.snap(coordinates)
        if not is_in_region(match.coordinates, boundary):
            summary.outside_region += 1
            return None
        return ManhattanRun(
            id=detail.id,
            name=detail.name,
            date=detail.start_date,
            distance=detail.distance,
            moving_time=detail.moving_time,
            coordinates=match.coordinates,
            snapped=match.matched,
            confidence=match.confidence,
        )


__all__ = [
    "ActivityProvider",
    "SyncOptions",
    "SyncOrchestrator",
    "SyncSummary",
]
