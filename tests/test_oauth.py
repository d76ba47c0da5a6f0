"""Unit tests for the Strava OAuth helper."""

import urllib.parse

import pytest
import requests

from conftest import FakeResp
from manhattan_runs import oauth
from manhattan_runs.auth import TokenError


def _patch_post(monkeypatch, fake_post):
    monkeypatch.setattr(oauth, "token_session", type("S", (), {"post": staticmethod(fake_post)})())


def test_build_auth_url_requests_activity_scope() -> None:
    url = oauth.build_auth_url("state123", client_id="42")
    query = urllib.parse.parse_qs(urllib.parse.urlparse(url).query)

    assert query["state"] == ["state123"]
    assert query["client_id"] == ["42"]
    assert query["scope"] == ["read,activity:read_all"]
    assert query["redirect_uri"] == [oauth.REDIRECT_URI]


def test_callback_rejects_unexpected_state() -> None:
    flow = oauth.OAuthFlow(state="expected")
    client = oauth.create_app(flow).test_client()

    response = client.get("/callback", query_string={"state": "wrong", "code": "c"})

    assert response.status_code == 400
    assert flow.code is None
    assert not flow.done.is_set()


def test_callback_records_code_for_expected_state() -> None:
    flow = oauth.OAuthFlow(state="expected")
    client = oauth.create_app(flow).test_client()

    response = client.get("/callback", query_string={"state": "expected", "code": "abc"})

    assert response.status_code == 200
    assert flow.code == "abc"
    assert flow.done.is_set()


def test_callback_handles_denied_authorisation() -> None:
    flow = oauth.OAuthFlow(state="expected")
    client = oauth.create_app(flow).test_client()

    response = client.get(
        "/callback", query_string={"state": "expected", "error": "access_denied"}
    )

    assert response.status_code == 200
    assert flow.code is None
    assert flow.error == "access_denied"
    assert flow.done.is_set()


def test_exchange_code_success(monkeypatch) -> None:
    def fake_post(url, data=None, timeout=None):
        assert data["grant_type"] == "authorization_code"
        assert data["code"] == "abc"
        return FakeResp(
            200, data={"access_token": "AAA", "refresh_token": "RRR", "expires_at": 1700000000}
        )

    _patch_post(monkeypatch, fake_post)

    tokens = oauth.exchange_code("abc", client_id="cid", client_secret="csec")

    assert tokens["refresh_token"] == "RRR"


@pytest.mark.parametrize(
    "response",
    [
        FakeResp(400, data={"message": "Bad Request", "errors": [{"field": "code", "code": "invalid"}]}),
        FakeResp(200, data={"access_token": "AAA"}),
        FakeResp(200, data=ValueError("not json"), text="oops"),
    ],
)
def test_exchange_code_failures_raise(monkeypatch, response) -> None:
    _patch_post(monkeypatch, lambda url, data=None, timeout=None: response)

    with pytest.raises(TokenError):
        oauth.exchange_code("abc", client_id="cid", client_secret="csec")


def test_exchange_code_transport_error(monkeypatch) -> None:
    def fake_post(url, data=None, timeout=None):
        raise requests.ConnectionError("down")

    _patch_post(monkeypatch, fake_post)

    with pytest.raises(TokenError):
        oauth.exchange_code("abc", client_id="cid", client_secret="csec")


def test_run_flow_requires_client_credentials(monkeypatch) -> None:
    monkeypatch.setattr(oauth, "CLIENT_ID", "")
    assert oauth.run_flow() == 1


def test_report_tokens_masks_by_default(caplog, capsys) -> None:
    with caplog.at_level("INFO"):
        oauth.report_tokens(
            {"access_token": "access-secret", "refresh_token": "refresh-secret", "expires_at": 1},
            show_secrets=False,
        )

    assert "refresh-secret" not in caplog.text
    assert "****cret" in caplog.text
    assert capsys.readouterr().out == ""
