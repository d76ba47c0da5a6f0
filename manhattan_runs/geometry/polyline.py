"""Encoded polyline support (precision 1e5).

Strava returns route geometry as a Google encoded polyline with latitude
first; coordinates are exposed here in GeoJSON ``(longitude, latitude)``
order.
"""

from __future__ import annotations

from typing import List, Sequence

import polyline

from ..errors import PolylineDecodeError
from ..models import Coordinate

PRECISION = 5


def _invalid_char_offset(encoded: str) -> int | None:
    return next(
        (i for i, ch in enumerate(encoded) if not 0 <= ord(ch) - 63 <= 0x3F), None
    )


def decode_polyline(encoded: str) -> List[Coordinate]:
    """Decode an encoded polyline into ``(lng, lat)`` tuples.

    Raises:
        PolylineDecodeError: If the string ends mid-value, ends after a
            latitude without its longitude, or contains characters outside
            the polyline alphabet.
    """

    if not encoded:
        return []
    offset = _invalid_char_offset(encoded)
    if offset is not None:
        raise PolylineDecodeError(
            f"Invalid polyline character {encoded[offset]!r} at offset {offset}"
        )
    try:
        decoded = polyline.decode(encoded, PRECISION, geojson=True)
    except (IndexError, ValueError, TypeError) as exc:
        raise PolylineDecodeError(
            f"Unable to decode polyline of length {len(encoded)}: truncated input"
        ) from exc
    return [(float(lng), float(lat)) for lng, lat in decoded]


def encode_polyline(coordinates: Sequence[Sequence[float]]) -> str:
    """Encode ``(lng, lat)`` coordinates into a polyline string."""

    return polyline.encode(
        [(float(lng), float(lat)) for lng, lat in coordinates],
        PRECISION,
        geojson=True,
    )


__all__ = ["decode_polyline", "encode_polyline", "PRECISION"]
