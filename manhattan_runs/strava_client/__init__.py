"""Modular Strava client components (session, auth headers, fetchers)."""

from .activities import ActivitiesAPI  # noqa: F401
from .base import auth_headers, ensure_access_token  # noqa: F401
from .resources import ResourceAPI  # noqa: F401
from .session import create_default_session, get_default_session  # noqa: F401
