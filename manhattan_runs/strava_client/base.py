"""Shared Strava client helpers (auth, headers)."""

from __future__ import annotations

import logging
import time
from typing import Dict

from ..auth import get_access_token, mask_tail
from ..models import StravaCredentials

LOGGER = logging.getLogger(__name__)

# Refresh slightly before Strava's reported expiry.
_EXPIRY_MARGIN_SECONDS = 60


def _token_expired(credentials: StravaCredentials) -> bool:
    if credentials.expires_at is None:
        return False
    return credentials.expires_at - _EXPIRY_MARGIN_SECONDS <= time.time()


def ensure_access_token(credentials: StravaCredentials) -> str:
    """Ensure ``credentials`` carries a usable access token, refreshing when needed.

    Raises:
        TokenError: If the refresh fails.
    """

    if credentials.access_token and not _token_expired(credentials):
        return credentials.access_token

    access_token, new_refresh_token, expires_at = get_access_token(credentials)
    credentials.access_token = access_token
    credentials.expires_at = expires_at
    if new_refresh_token and new_refresh_token != credentials.refresh_token:
        credentials.refresh_token = new_refresh_token
        credentials.refresh_token_rotated = True
        LOGGER.warning(
            "Strava rotated the refresh token (now %s); update STRAVA_REFRESH_TOKEN",
            mask_tail(new_refresh_token),
        )
    return access_token


def auth_headers(credentials: StravaCredentials) -> Dict[str, str]:
    """Return bearer auth headers (token assumed valid)."""

    token = credentials.access_token or ""
    return {"Authorization": f"Bearer {token}"}
