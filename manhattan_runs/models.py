from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional, Sequence, Tuple

from .errors import ActivityFormatError

# (longitude, latitude) in degrees, GeoJSON order.
Coordinate = Tuple[float, float]


@dataclass
class StravaCredentials:
    client_id: str
    client_secret: str
    refresh_token: str
    access_token: str | None = None
    expires_at: int | None = None
    # Set when Strava hands back a different refresh token than the one configured
    refresh_token_rotated: bool = False


def _activity_id(payload: Mapping[str, Any], context: str) -> int:
    raw = payload.get("id")
    if isinstance(raw, bool) or raw is None:
        raise ActivityFormatError(f"{context} payload has no usable id")
    try:
        return int(raw)
    except (TypeError, ValueError) as exc:
        raise ActivityFormatError(f"{context} payload has non-numeric id {raw!r}") from exc


def _as_float(value: Any) -> float:
    try:
        return float(value)
    except (TypeError, ValueError):
        return 0.0


def _as_int(value: Any) -> int:
    try:
        return int(value)
    except (TypeError, ValueError):
        return 0


def _start_latlng(value: Any) -> Optional[Tuple[float, float]]:
    # Manual and indoor activities report [] or null.
    if not isinstance(value, (list, tuple)) or len(value) != 2:
        return None
    try:
        return float(value[0]), float(value[1])
    except (TypeError, ValueError):
        return None


@dataclass
class ActivitySummary:
    id: int
    name: str
    start_date: str
    distance: float
    moving_time: int
    start_latlng: Optional[Tuple[float, float]] = None
    type: Optional[str] = None
    sport_type: Optional[str] = None

    @property
    def has_start_location(self) -> bool:
        return self.start_latlng is not None

    @classmethod
    def from_payload(cls, payload: Any) -> "ActivitySummary":
        if not isinstance(payload, Mapping):
            raise ActivityFormatError(
                f"activity summary is not an object (got {type(payload).__name__})"
            )
        return cls(
            id=_activity_id(payload, "activity summary"),
            name=str(payload.get("name") or ""),
            start_date=str(payload.get("start_date") or ""),
            distance=_as_float(payload.get("distance")),
            moving_time=_as_int(payload.get("moving_time")),
            start_latlng=_start_latlng(payload.get("start_latlng")),
            type=payload.get("type"),
            sport_type=payload.get("sport_type"),
        )


@dataclass
class ActivityDetail:
    id: int
    name: str
    start_date: str
    distance: float
    moving_time: int
    polyline: Optional[str] = None

    @classmethod
    def from_payload(cls, payload: Any) -> "ActivityDetail":
        if not isinstance(payload, Mapping):
            raise ActivityFormatError(
                f"activity detail is not an object (got {type(payload).__name__})"
            )
        map_info = payload.get("map")
        polyline = None
        if isinstance(map_info, Mapping):
            raw = map_info.get("polyline")
            if isinstance(raw, str) and raw:
                polyline = raw
        return cls(
            id=_activity_id(payload, "activity detail"),
            name=str(payload.get("name") or ""),
            start_date=str(payload.get("start_date") or ""),
            distance=_as_float(payload.get("distance")),
            moving_time=_as_int(payload.get("moving_time")),
            polyline=polyline,
        )


@dataclass
class MatchResult:
    """Outcome of snapping one coordinate sequence to the road network."""

    matched: bool
    coordinates: List[Coordinate]
    confidence: float = 0.0
    segments: Optional[int] = None


@dataclass
class ManhattanRun:
    id: int
    name: str
    date: str
    distance: float
    moving_time: int
    coordinates: List[Coordinate] = field(default_factory=list)
    snapped: bool = False
    confidence: float = 0.0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "date": self.date,
            "distance": self.distance,
            "moving_time": self.moving_time,
            "coordinates": [[lng, lat] for lng, lat in self.coordinates],
            "snapped": self.snapped,
            "confidence": self.confidence,
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "ManhattanRun":
        coords: Sequence[Sequence[float]] = data.get("coordinates") or []
        return cls(
            id=int(data["id"]),
            name=str(data.get("name") or ""),
            date=str(data.get("date") or ""),
            distance=_as_float(data.get("distance")),
            moving_time=_as_int(data.get("moving_time")),
            coordinates=[(float(pt[0]), float(pt[1])) for pt in coords],
            snapped=bool(data.get("snapped", False)),
            confidence=_as_float(data.get("confidence")),
        )
