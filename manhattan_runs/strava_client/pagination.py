"""Shared pagination helpers for Strava API list endpoints."""

from __future__ import annotations

import logging
from typing import Any, Callable, Dict, List, Optional, TypeAlias

from ..errors import StravaAPIError

JSONList: TypeAlias = List[Dict[str, Any]]

LOGGER = logging.getLogger(__name__)


def collect_pages(
    fetch_page: Callable[[int], Any],
    *,
    per_page: int,
    context_label: str,
    max_pages: Optional[int] = None,
) -> JSONList:
    """Call ``fetch_page`` for pages 1..N until a short or empty page.

    Raises:
        StravaAPIError: If any page is not a JSON list (Strava reports errors
            as objects, which must not be mistaken for an empty result).
    """

    items: JSONList = []
    page = 1
    while True:
        data = fetch_page(page)
        if not isinstance(data, list):
            LOGGER.error(
                "Unexpected JSON shape (not list) for %s page=%s type=%s",
                context_label,
                page,
                type(data).__name__,
            )
            raise StravaAPIError(
                f"{context_label} page {page} returned {type(data).__name__}, expected list"
            )
        items.extend(data)
        LOGGER.debug("%s page=%s items=%s", context_label, page, len(data))
        if len(data) < per_page:
            break
        if max_pages is not None and page >= max_pages:
            LOGGER.info("%s stopped at max_pages=%s", context_label, max_pages)
            break
        page += 1
    return items
