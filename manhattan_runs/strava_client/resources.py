"""Authenticated Strava JSON fetcher with bounded retries."""

from __future__ import annotations

import logging
import time
from typing import Any, Mapping, Optional

import requests

from ..config import REQUEST_TIMEOUT, STRAVA_BACKOFF_MAX_SECONDS, STRAVA_MAX_RETRIES
from ..errors import StravaAPIError
from ..models import StravaCredentials
from .base import auth_headers, ensure_access_token
from .response_handling import RAISE, RETRY, classify_response_status
from .session import get_default_session

LOGGER = logging.getLogger(__name__)


def _delay_for(attempt: int) -> float:
    """Backoff before retry number ``attempt``: 1s, 2s, 4s ... capped."""

    return min(float(2 ** (attempt - 1)), STRAVA_BACKOFF_MAX_SECONDS)


class ResourceAPI:
    """GET Strava resources as JSON on behalf of one athlete."""

    def __init__(
        self,
        *,
        session: requests.Session | None = None,
        timeout: int = REQUEST_TIMEOUT,
        max_retries: int = STRAVA_MAX_RETRIES,
    ) -> None:
        self._session = session or get_default_session()
        self._timeout = timeout
        self._max_attempts = max(1, max_retries)

    def fetch_json(
        self,
        credentials: StravaCredentials,
        url: str,
        params: Optional[Mapping[str, Any]],
        context: str,
    ) -> Any:
        """GET ``url`` and return the decoded JSON body.

        Network errors, 5xx responses and non-JSON bodies are retried with
        exponential backoff. The first 401 drops the access token so the
        next attempt refreshes it; that attempt is not counted.

        Raises:
            StravaAPIError: When attempts run out or the status is not
                retryable (subclasses for 401/403 and 404).
            TokenError: When the token refresh itself fails.
        """

        attempt = 1
        refreshed = False
        while True:
            last_attempt = attempt >= self._max_attempts
            ensure_access_token(credentials)
            try:
                response = self._session.get(
                    url,
                    headers=auth_headers(credentials),
                    params=params,
                    timeout=self._timeout,
                )
            except requests.RequestException as exc:
                if last_attempt:
                    raise StravaAPIError(
                        f"{context} network error: {exc.__class__.__name__}"
                    ) from exc
                self._pause(context, attempt, f"network error {exc.__class__.__name__}")
                attempt += 1
                continue

            if response.status_code == 401 and not refreshed:
                LOGGER.info("%s returned 401; refreshing access token", context)
                credentials.access_token = None
                refreshed = True
                continue

            decision = classify_response_status(response, context, can_retry=not last_attempt)
            if decision.action == RAISE and decision.error is not None:
                raise decision.error
            if decision.action == RETRY:
                self._pause(context, attempt, f"status {response.status_code}")
                attempt += 1
                continue

            try:
                return response.json()
            except ValueError as exc:
                if last_attempt:
                    raise StravaAPIError(f"{context} returned a non-JSON body") from exc
                self._pause(context, attempt, "non-JSON body")
                attempt += 1

    @staticmethod
    def _pause(context: str, attempt: int, reason: str) -> None:
        delay = _delay_for(attempt)
        LOGGER.warning(
            "%s attempt=%s failed (%s); retrying in %.1fs", context, attempt, reason, delay
        )
        time.sleep(delay)
