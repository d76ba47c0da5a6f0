"""Strava credential handling: configuration lookup and token refresh.

Strava access tokens live for six hours. Each sync trades the long-lived
refresh token for a fresh access token; Strava may rotate the refresh token
in the same response, which callers must persist themselves.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Optional, Tuple

import requests
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry

from .config import CLIENT_ID, CLIENT_SECRET, REFRESH_TOKEN, REQUEST_TIMEOUT, STRAVA_OAUTH_URL
from .errors import ConfigError
from .models import StravaCredentials
from .utils import describe_response_error

LOGGER = logging.getLogger(__name__)

TokenGrant = Tuple[str, Optional[str], Optional[int]]


def _token_session() -> requests.Session:
    # The token endpoint is POST only; retry it on gateway errors as well.
    retry = Retry(
        total=3,
        backoff_factor=1.0,
        status_forcelist=[500, 502, 503, 504],
        allowed_methods=["POST"],
    )
    session = requests.Session()
    adapter = HTTPAdapter(max_retries=retry)
    session.mount("https://", adapter)
    session.mount("http://", adapter)
    return session


_session = _token_session()


class TokenError(Exception):
    """Raised when a refresh token cannot be exchanged for an access token."""


def mask_tail(value: str | None, visible: int = 4) -> str:
    """Return ``****`` followed by the last ``visible`` characters of ``value``."""

    if not value:
        return ""
    return "****" + value[-visible:]


def credentials_from_env() -> StravaCredentials:
    """Build credentials from configuration, failing when any part is missing."""

    settings = {
        "STRAVA_CLIENT_ID": CLIENT_ID,
        "STRAVA_CLIENT_SECRET": CLIENT_SECRET,
        "STRAVA_REFRESH_TOKEN": REFRESH_TOKEN,
    }
    missing = [name for name, value in settings.items() if not value]
    if missing:
        raise ConfigError(f"Missing Strava settings: {', '.join(missing)}")
    return StravaCredentials(
        client_id=CLIENT_ID,
        client_secret=CLIENT_SECRET,
        refresh_token=REFRESH_TOKEN,
    )


def _post_refresh(credentials: StravaCredentials) -> Dict[str, Any]:
    form = {
        "client_id": credentials.client_id,
        "client_secret": credentials.client_secret,
        "grant_type": "refresh_token",
        "refresh_token": credentials.refresh_token,
    }
    try:
        resp = _session.post(STRAVA_OAUTH_URL, data=form, timeout=REQUEST_TIMEOUT)
    except requests.exceptions.RequestException as exc:
        LOGGER.error("Token request transport error: %s", exc.__class__.__name__)
        raise TokenError("Transport failure during token refresh") from exc

    if resp.status_code >= 400:
        detail = describe_response_error(resp)
        LOGGER.error(
            "Token refresh rejected status=%s%s",
            resp.status_code,
            f" detail={detail}" if detail else "",
        )
        raise TokenError(f"Token refresh failed with status {resp.status_code}")

    try:
        body = resp.json()
    except ValueError as exc:
        raise TokenError("Token response is not valid JSON") from exc
    if not isinstance(body, dict):
        raise TokenError(f"Token response is a {type(body).__name__}, expected an object")
    return body


def get_access_token(credentials: StravaCredentials) -> TokenGrant:
    """Exchange ``credentials.refresh_token`` for a new access token.

    Returns:
        ``(access_token, refresh_token, expires_at)``. The refresh token and
        expiry are None when Strava omits them.

    Raises:
        TokenError: Missing credentials, transport failure, an HTTP error or
            a response without an access token.
    """

    if not credentials.client_id or not credentials.client_secret:
        raise TokenError("STRAVA_CLIENT_ID / STRAVA_CLIENT_SECRET are not configured")
    if not credentials.refresh_token:
        raise TokenError("Missing refresh token")

    LOGGER.info("Refreshing Strava token refresh_token=%s", mask_tail(credentials.refresh_token))
    body = _post_refresh(credentials)

    access_token = body.get("access_token")
    if not access_token:
        raise TokenError("No access_token in token response")
    refresh_token = body.get("refresh_token") or None
    expires_at = body.get("expires_at")
    LOGGER.debug(
        "Token refreshed expires_at=%s rotated=%s",
        expires_at,
        bool(refresh_token and refresh_token != credentials.refresh_token),
    )
    return (
        str(access_token),
        refresh_token,
        int(expires_at) if isinstance(expires_at, (int, float)) else None,
    )
