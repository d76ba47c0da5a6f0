"""Decide whether a route passes through the region of interest."""

from __future__ import annotations

from typing import Iterable, Sequence

from .boundary import RingLike, contains


def is_in_region(coords: Iterable[Sequence[float]], polygon: RingLike) -> bool:
    """Return True if any point of ``coords`` lies inside ``polygon``.

    Stops at the first contained point. Empty routes are never in region.
    """

    return any(contains(point, polygon) for point in coords)


__all__ = ["is_in_region"]
