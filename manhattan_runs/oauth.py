"""Local helper that obtains the Strava refresh token used by ``sync``.

Run ``python -m manhattan_runs.oauth``, approve access in the browser, then
copy the refresh token into ``STRAVA_REFRESH_TOKEN``. The sync needs the
``activity:read_all`` scope so private runs are listed too.
"""

from __future__ import annotations

import argparse
import logging
import secrets
import socket
import threading
import time
import urllib.parse
import webbrowser
from typing import Any, Dict, Optional, Sequence

from flask import Flask, abort, request
import requests
from werkzeug.serving import BaseWSGIServer, make_server

from .auth import TokenError, _session as token_session, mask_tail
from .config import (
    CLIENT_ID,
    CLIENT_SECRET,
    REQUEST_TIMEOUT,
    STRAVA_AUTHORIZE_URL,
    STRAVA_OAUTH_URL,
)
from .utils import describe_response_error

LOGGER = logging.getLogger(__name__)

CALLBACK_HOST = "localhost"
CALLBACK_PORT = 5000
# Strava only redirects to the callback domain registered for the app.
REDIRECT_URI = f"http://{CALLBACK_HOST}:{CALLBACK_PORT}/callback"
SCOPE = "read,activity:read_all"


class OAuthFlow:
    """State shared between the browser callback and the waiting CLI."""

    def __init__(self, state: Optional[str] = None) -> None:
        self.state = state or secrets.token_urlsafe(16)
        self.code: Optional[str] = None
        self.error: Optional[str] = None
        self.done = threading.Event()
        self._server: Optional[BaseWSGIServer] = None
        self._thread: Optional[threading.Thread] = None

    def deliver(self, *, code: Optional[str], error: Optional[str]) -> None:
        self.code = code
        self.error = error
        self.done.set()

    def start_server(self, app: Flask, host: str = CALLBACK_HOST, port: int = CALLBACK_PORT) -> None:
        self._server = make_server(host, port, app)
        self._thread = threading.Thread(target=self._server.serve_forever, daemon=True)
        self._thread.start()

    def stop_server(self) -> None:
        if self._server is not None:
            self._server.shutdown()
        if self._thread is not None:
            self._thread.join(timeout=5)
        self._server = None
        self._thread = None


def create_app(flow: OAuthFlow) -> Flask:
    """Build the callback app bound to ``flow``."""

    app = Flask(__name__)

    @app.route("/callback")
    def callback():
        if request.args.get("state") != flow.state:
            LOGGER.error("OAuth callback state mismatch; ignoring request")
            abort(400, description="Invalid state")
        error = request.args.get("error")
        if error:
            LOGGER.error("Strava reported an authorisation error: %s", error)
            flow.deliver(code=None, error=error)
            return "Authorisation was not granted. You can close this window."
        flow.deliver(code=request.args.get("code"), error=None)
        LOGGER.info("Authorisation code received")
        return "Authorisation received. You can close this window."

    return app


def build_auth_url(state: str, client_id: str = CLIENT_ID) -> str:
    query = urllib.parse.urlencode(
        {
            "client_id": client_id,
            "response_type": "code",
            "redirect_uri": REDIRECT_URI,
            "scope": SCOPE,
            "approval_prompt": "force",
            "state": state,
        }
    )
    return f"{STRAVA_AUTHORIZE_URL}?{query}"


def wait_for_port(port: int, host: str = CALLBACK_HOST, timeout: float = 10.0) -> bool:
    """Return True once ``host:port`` accepts TCP connections within ``timeout``."""

    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        try:
            with socket.create_connection((host, port), timeout=1):
                return True
        except OSError:
            time.sleep(0.1)
    return False


def exchange_code(
    code: str,
    client_id: str = CLIENT_ID,
    client_secret: str = CLIENT_SECRET,
) -> Dict[str, Any]:
    """Trade an authorisation code for the athlete's tokens.

    Raises:
        TokenError: On transport failure, an HTTP error, or a response
            missing any of ``access_token``, ``refresh_token``, ``expires_at``.
    """

    if not code:
        raise TokenError("No authorisation code to exchange")
    form = {
        "client_id": client_id,
        "client_secret": client_secret,
        "code": code,
        "grant_type": "authorization_code",
    }
    try:
        resp = token_session.post(STRAVA_OAUTH_URL, data=form, timeout=REQUEST_TIMEOUT)
    except requests.RequestException as exc:
        raise TokenError(f"Code exchange transport error: {exc.__class__.__name__}") from exc
    if resp.status_code >= 400:
        detail = describe_response_error(resp)
        raise TokenError(
            f"Code exchange failed with status {resp.status_code}"
            + (f": {detail}" if detail else "")
        )
    try:
        tokens = resp.json()
    except ValueError as exc:
        raise TokenError("Code exchange returned invalid JSON") from exc
    required = ("access_token", "refresh_token", "expires_at")
    if not isinstance(tokens, dict) or any(key not in tokens for key in required):
        raise TokenError("Code exchange response is missing token fields")
    return tokens


def report_tokens(tokens: Dict[str, Any], *, show_secrets: bool) -> None:
    refresh_token = str(tokens.get("refresh_token") or "")
    if show_secrets:
        LOGGER.warning("Printing raw Strava tokens. Handle with care!")
        print(f"STRAVA_REFRESH_TOKEN={refresh_token}")
        print(f"access_token={tokens.get('access_token')}")
    else:
        LOGGER.info(
            "Token exchange succeeded refresh_token=%s access_token=%s expires_at=%s",
            mask_tail(refresh_token),
            mask_tail(str(tokens.get("access_token") or "")),
            tokens.get("expires_at"),
        )
        LOGGER.info("Re-run with --print-tokens to print the refresh token for .env")


def run_flow(*, show_secrets: bool = False, wait_timeout: int = 120) -> int:
    """Run the browser flow end to end. Returns a process exit code."""

    if not CLIENT_ID or not CLIENT_SECRET:
        LOGGER.error("STRAVA_CLIENT_ID and STRAVA_CLIENT_SECRET must be set")
        return 1

    flow = OAuthFlow()
    flow.start_server(create_app(flow))
    try:
        if not wait_for_port(CALLBACK_PORT):
            LOGGER.error("Callback server did not start on port %s", CALLBACK_PORT)
            return 1
        LOGGER.info("Opening browser for Strava authorisation")
        webbrowser.open(build_auth_url(flow.state))
        if not flow.done.wait(timeout=wait_timeout):
            LOGGER.error("Timed out after %ss waiting for authorisation", wait_timeout)
            return 1
    finally:
        flow.stop_server()

    if flow.error or not flow.code:
        LOGGER.error("Authorisation was not granted (%s)", flow.error or "no code")
        return 1
    try:
        tokens = exchange_code(flow.code)
    except TokenError as exc:
        LOGGER.error("%s", exc)
        return 1
    report_tokens(tokens, show_secrets=show_secrets)
    return 0


def main(argv: Optional[Sequence[str]] = None) -> int:
    if not logging.getLogger().hasHandlers():
        logging.basicConfig(
            level=logging.INFO,
            format="[%(asctime)s] %(levelname)s %(name)s: %(message)s",
        )
    parser = argparse.ArgumentParser(description="Obtain a Strava refresh token")
    parser.add_argument(
        "--print-tokens",
        action="store_true",
        help="Print the raw refresh/access tokens instead of masked values",
    )
    parser.add_argument(
        "--timeout",
        type=int,
        default=120,
        help="Seconds to wait for browser authorisation",
    )
    args = parser.parse_args(argv)
    return run_flow(show_secrets=args.print_tokens, wait_timeout=args.timeout)


if __name__ == "__main__":  # pragma: no cover - CLI helper
    raise SystemExit(main())
