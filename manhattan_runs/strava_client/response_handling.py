"""Turn Strava HTTP statuses into retry decisions and typed errors."""

from __future__ import annotations

import logging
from typing import NamedTuple, Optional

import requests

from ..errors import (
    StravaAPIError,
    StravaPermissionError,
    StravaResourceNotFoundError,
)
from ..utils import describe_response_error

LOGGER = logging.getLogger(__name__)

OK = "ok"
RETRY = "retry"
RAISE = "raise"


class StatusDecision(NamedTuple):
    action: str
    error: Optional[StravaAPIError] = None


def classify_response_status(
    response: requests.Response,
    context: str,
    *,
    can_retry: bool,
) -> StatusDecision:
    """Decide what ``fetch_json`` should do with ``response``.

    401/403 map to :class:`StravaPermissionError`, 404 to
    :class:`StravaResourceNotFoundError`. 5xx is retried while attempts
    remain; anything else at or above 400 is a plain :class:`StravaAPIError`.
    """

    status = response.status_code
    if status < 400:
        return StatusDecision(OK)

    detail = describe_response_error(response)
    suffix = f" | {detail}" if detail else ""
    if status in (401, 403):
        LOGGER.warning("%s rejected (status %s)%s", context, status, suffix)
        return StatusDecision(
            RAISE, StravaPermissionError(f"{context} forbidden (status {status}){suffix}")
        )
    if status == 404:
        LOGGER.info("%s not found%s", context, suffix)
        return StatusDecision(RAISE, StravaResourceNotFoundError(f"{context} not found{suffix}"))
    if status >= 500 and can_retry:
        LOGGER.warning("%s server error %s%s; will retry", context, status, suffix)
        return StatusDecision(RETRY)

    LOGGER.error("%s failed (status %s)%s", context, status, suffix)
    return StatusDecision(
        RAISE, StravaAPIError(f"{context} request failed (status {status}){suffix}")
    )


__all__ = ["StatusDecision", "classify_response_status", "OK", "RETRY", "RAISE"]
