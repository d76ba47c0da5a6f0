"""Activity listing and detail fetchers."""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

import requests

from ..activity_types import activity_type_matches, normalize_activity_types
from ..config import ACTIVITY_PAGE_SIZE, ACTIVITY_TYPE, STRAVA_BASE_URL
from ..errors import ActivityFormatError
from ..models import ActivityDetail, ActivitySummary, StravaCredentials
from .pagination import collect_pages
from .resources import ResourceAPI

LOGGER = logging.getLogger(__name__)


def _to_epoch(value: datetime) -> int:
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return int(value.timestamp())


class ActivitiesAPI:
    def __init__(
        self,
        *,
        session: requests.Session | None = None,
        resources: ResourceAPI | None = None,
        page_size: int = ACTIVITY_PAGE_SIZE,
    ) -> None:
        self._resources = resources or ResourceAPI(session=session)
        self._page_size = max(1, page_size)

    def list_activities(
        self,
        credentials: StravaCredentials,
        after: datetime,
        *,
        activity_type: Optional[str] = ACTIVITY_TYPE,
        max_pages: Optional[int] = None,
    ) -> List[ActivitySummary]:
        """List the athlete's activities that started after ``after``.

        Malformed entries are skipped with a warning; request failures and
        non-list pages propagate as :class:`StravaAPIError`.
        """

        url = f"{STRAVA_BASE_URL}/athlete/activities"
        base_params: Dict[str, Any] = {
            "after": _to_epoch(after),
            "per_page": self._page_size,
        }
        if activity_type:
            base_params["type"] = activity_type

        def fetch_page(page: int) -> Any:
            params = dict(base_params)
            params["page"] = page
            return self._resources.fetch_json(credentials, url, params, "activities")

        raw = collect_pages(
            fetch_page,
            per_page=self._page_size,
            context_label="activities",
            max_pages=max_pages,
        )
        allowed = normalize_activity_types([activity_type] if activity_type else None)
        summaries: List[ActivitySummary] = []
        for payload in raw:
            try:
                summary = ActivitySummary.from_payload(payload)
            except ActivityFormatError as exc:
                LOGGER.warning("Skipping malformed activity summary: %s", exc)
                continue
            if not activity_type_matches(payload, allowed):
                LOGGER.debug(
                    "Skipping activity=%s type=%s", summary.id, summary.sport_type or summary.type
                )
                continue
            summaries.append(summary)
        LOGGER.info(
            "Listed %d activities (%d after type filter) since %s",
            len(raw),
            len(summaries),
            after.isoformat(),
        )
        return summaries

    def get_activity_detail(
        self, credentials: StravaCredentials, activity_id: int
    ) -> ActivityDetail:
        """Fetch the full activity including ``map.polyline``.

        Raises:
            StravaAPIError: On request failure or a payload that is not an
                activity object.
        """

        url = f"{STRAVA_BASE_URL}/activities/{activity_id}"
        payload = self._resources.fetch_json(
            credentials, url, None, f"activity_detail id={activity_id}"
        )
        return ActivityDetail.from_payload(payload)
