"""Tests for the authenticated Strava JSON fetcher."""

from __future__ import annotations

from typing import Any, List

import pytest
import requests

from conftest import FakeResp
from manhattan_runs.errors import (
    StravaAPIError,
    StravaPermissionError,
    StravaResourceNotFoundError,
)
from manhattan_runs.models import StravaCredentials
from manhattan_runs.strava_client import ResourceAPI, auth_headers, ensure_access_token
from manhattan_runs.strava_client import base as client_base
from manhattan_runs.strava_client import resources as resources_module
from manhattan_runs.utils import describe_response_error


class ScriptedSession:
    """Return (or raise) the scripted responses in order."""

    def __init__(self, responses: List[Any]) -> None:
        self._responses = list(responses)
        self.headers_seen: List[dict] = []

    def get(self, url, headers=None, params=None, timeout=None):
        self.headers_seen.append(dict(headers or {}))
        item = self._responses.pop(0)
        if isinstance(item, Exception):
            raise item
        return item


@pytest.fixture(autouse=True)
def no_sleep(monkeypatch: pytest.MonkeyPatch) -> List[float]:
    delays: List[float] = []
    monkeypatch.setattr(resources_module.time, "sleep", delays.append)
    return delays


def test_fetch_json_success_sends_bearer(credentials: StravaCredentials) -> None:
    session = ScriptedSession([FakeResp(200, data={"id": 1})])
    api = ResourceAPI(session=session)  # type: ignore[arg-type]

    assert api.fetch_json(credentials, "https://x/activities/1", None, "ctx") == {"id": 1}
    assert session.headers_seen[0]["Authorization"] == "Bearer access123"


def test_fetch_json_retries_server_errors(
    credentials: StravaCredentials, no_sleep: List[float]
) -> None:
    session = ScriptedSession(
        [
            FakeResp(503, data={"message": "busy"}),
            requests.ConnectionError("reset"),
            FakeResp(200, data=[1, 2]),
        ]
    )
    api = ResourceAPI(session=session, max_retries=3)  # type: ignore[arg-type]

    assert api.fetch_json(credentials, "https://x", {"page": 1}, "ctx") == [1, 2]
    assert no_sleep == [1.0, 2.0]


def test_fetch_json_raises_after_exhausting_retries(credentials: StravaCredentials) -> None:
    session = ScriptedSession([FakeResp(500, data={}), FakeResp(502, data={})])
    api = ResourceAPI(session=session, max_retries=2)  # type: ignore[arg-type]

    with pytest.raises(StravaAPIError):
        api.fetch_json(credentials, "https://x", None, "ctx")


def test_fetch_json_network_failure_exhausted(credentials: StravaCredentials) -> None:
    session = ScriptedSession([requests.Timeout("t1"), requests.Timeout("t2")])
    api = ResourceAPI(session=session, max_retries=2)  # type: ignore[arg-type]

    with pytest.raises(StravaAPIError):
        api.fetch_json(credentials, "https://x", None, "ctx")


def test_fetch_json_non_json_body_raises(credentials: StravaCredentials) -> None:
    session = ScriptedSession([FakeResp(200, data=ValueError("html"), text="<html>")])
    api = ResourceAPI(session=session, max_retries=1)  # type: ignore[arg-type]

    with pytest.raises(StravaAPIError):
        api.fetch_json(credentials, "https://x", None, "ctx")


def test_fetch_json_404_raises_not_found(credentials: StravaCredentials) -> None:
    session = ScriptedSession([FakeResp(404, data={"message": "Record Not Found"})])
    api = ResourceAPI(session=session)  # type: ignore[arg-type]

    with pytest.raises(StravaResourceNotFoundError):
        api.fetch_json(credentials, "https://x", None, "ctx")


def test_fetch_json_401_refreshes_once(
    monkeypatch: pytest.MonkeyPatch, credentials: StravaCredentials
) -> None:
    refreshed: List[str] = []

    def fake_get_access_token(creds):
        refreshed.append(creds.refresh_token)
        return "fresh", None, None

    monkeypatch.setattr(client_base, "get_access_token", fake_get_access_token)
    session = ScriptedSession([FakeResp(401, data={}), FakeResp(200, data={"ok": True})])
    api = ResourceAPI(session=session)  # type: ignore[arg-type]

    assert api.fetch_json(credentials, "https://x", None, "ctx") == {"ok": True}
    assert refreshed == ["refresh123"]
    assert session.headers_seen[1]["Authorization"] == "Bearer fresh"


def test_fetch_json_repeated_401_raises_permission_error(
    monkeypatch: pytest.MonkeyPatch, credentials: StravaCredentials
) -> None:
    monkeypatch.setattr(client_base, "get_access_token", lambda creds: ("fresh", None, None))
    session = ScriptedSession([FakeResp(401, data={}), FakeResp(401, data={})])
    api = ResourceAPI(session=session)  # type: ignore[arg-type]

    with pytest.raises(StravaPermissionError):
        api.fetch_json(credentials, "https://x", None, "ctx")


def test_ensure_access_token_records_rotation(monkeypatch: pytest.MonkeyPatch) -> None:
    creds = StravaCredentials(client_id="cid", client_secret="csec", refresh_token="old")
    monkeypatch.setattr(
        client_base, "get_access_token", lambda c: ("AAA", "new", 4_000_000_000)
    )

    assert ensure_access_token(creds) == "AAA"
    assert creds.refresh_token == "new"
    assert creds.refresh_token_rotated is True
    assert creds.expires_at == 4_000_000_000
    assert auth_headers(creds) == {"Authorization": "Bearer AAA"}


def test_ensure_access_token_refreshes_when_expired(
    monkeypatch: pytest.MonkeyPatch, credentials: StravaCredentials
) -> None:
    credentials.expires_at = 1
    monkeypatch.setattr(client_base, "get_access_token", lambda c: ("BBB", None, None))

    assert ensure_access_token(credentials) == "BBB"
    assert credentials.refresh_token_rotated is False


def test_describe_response_error_combines_message_and_codes() -> None:
    resp = FakeResp(
        400,
        data={
            "message": "Bad Request",
            "errors": [{"resource": "Activity", "field": "id", "code": "invalid"}],
        },
    )
    assert describe_response_error(resp) == "Bad Request | Activity/id:invalid"


def test_describe_response_error_falls_back_to_text() -> None:
    resp = FakeResp(502, data=ValueError("html"), text="  <html>Bad Gateway</html>  ")
    assert describe_response_error(resp) == "<html>Bad Gateway</html>"
    assert describe_response_error(FakeResp(500, data=ValueError("x"), text="")) is None
