"""General utility helpers shared across modules."""

from __future__ import annotations

from typing import Any, List, Optional

_ERROR_TEXT_LIMIT = 200


def format_time(seconds: int) -> str:
    """Format seconds into a ``Xh Ym Zs`` / ``Ym Zs`` string."""

    hours, rem = divmod(max(int(seconds), 0), 3600)
    mins, sec = divmod(rem, 60)
    if hours:
        return f"{hours}h {mins}m {sec}s"
    return f"{mins}m {sec}s"


def format_distance_km(metres: float) -> str:
    """Format a distance in metres as kilometres with two decimals."""

    return f"{metres / 1000.0:.2f} km"


def describe_response_error(resp: Any) -> Optional[str]:
    """Summarise a Strava error body for logs and exception messages.

    Strava reports failures as ``{"message": ..., "errors": [{"resource",
    "field", "code"}]}``; that becomes ``"message | resource/field:code"``.
    Bodies that are not JSON fall back to their (truncated) text.
    """

    if resp is None:
        return None
    try:
        data = resp.json()
    except ValueError:
        text = getattr(resp, "text", "")
        if not isinstance(text, str) or not text.strip():
            return None
        text = text.strip()
        if len(text) > _ERROR_TEXT_LIMIT:
            return text[: _ERROR_TEXT_LIMIT - 3] + "..."
        return text
    if not isinstance(data, dict):
        return None

    parts: List[str] = []
    if data.get("message"):
        parts.append(str(data["message"]))
    errors = data.get("errors")
    for err in errors if isinstance(errors, list) else ():
        if not isinstance(err, dict) or not err.get("code"):
            continue
        where = "/".join(str(p) for p in (err.get("resource"), err.get("field")) if p)
        parts.append(f"{where}:{err['code']}" if where else str(err["code"]))
    return " | ".join(parts) or None
