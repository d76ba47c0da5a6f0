"""Utilities for classifying Strava activity types."""

from __future__ import annotations

from typing import Any, Iterable, Mapping

__all__ = ["normalize_activity_type", "normalize_activity_types", "activity_type_matches"]


def normalize_activity_type(value: Any) -> str | None:
    """Return a lowercase activity type string or ``None`` when missing.

    The Strava API can return either ``type`` or ``sport_type`` values, often
    with inconsistent casing, so comparisons go through this helper.
    """

    if value is None:
        return None
    normalized = str(value).strip().lower()
    return normalized or None


def normalize_activity_types(values: Iterable[Any] | None) -> set[str]:
    if not values:
        return set()
    return {
        normalized
        for normalized in (normalize_activity_type(value) for value in values)
        if normalized
    }


def activity_type_matches(activity: Mapping[str, Any], allowed: set[str]) -> bool:
    """Return ``True`` when ``activity`` is one of the ``allowed`` types.

    Either the ``sport_type`` or the legacy ``type`` field may match. An empty
    ``allowed`` set disables filtering. Payloads carrying neither field are
    kept, since the server-side filter already applied.
    """

    if not allowed:
        return True
    seen_any = False
    for key in ("sport_type", "type"):
        normalized = normalize_activity_type(activity.get(key))
        if normalized is None:
            continue
        seen_any = True
        if normalized in allowed:
            return True
    return not seen_any
