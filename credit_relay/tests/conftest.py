# tests/conftest.py
import hashlib
import hmac
import json

import pytest
import requests
from fastapi.testclient import TestClient

from credit_relay.config import Settings
from credit_relay.main import create_app
from credit_relay.services.relay import UpstreamRelay

PROXY_SECRET = "proxy-secret"
API_SECRET = "api-secret"
CREDIT_URL = "http://credit.test/api/creditCheck/"
DEMO_URL = "http://demo.test/todos/1"


def make_response(status: int = 200, body=None, text: str | None = None) -> requests.Response:
    r = requests.Response()
    r.status_code = status
    if text is None:
        text = json.dumps(body if body is not None else {})
        r.headers["Content-Type"] = "application/json"
    else:
        r.headers["Content-Type"] = "text/plain"
    r._content = text.encode("utf-8")
    r.encoding = "utf-8"
    r.url = "http://upstream.test/"
    return r


class StubSession:
    """Stands in for requests.Session: records calls, replays queued outcomes."""

    def __init__(self):
        self.calls = []
        self._queue = []

    def queue_json(self, body, status: int = 200):
        self._queue.append(make_response(status, body=body))

    def queue_text(self, text: str, status: int):
        self._queue.append(make_response(status, text=text))

    def queue_error(self, exc: Exception):
        self._queue.append(exc)

    def request(self, method, url, **kwargs):
        self.calls.append({"method": method, "url": url, **kwargs})
        if not self._queue:
            raise AssertionError(f"unexpected upstream call: {method} {url}")
        outcome = self._queue.pop(0)
        if isinstance(outcome, Exception):
            raise outcome
        return outcome


@pytest.fixture
def settings() -> Settings:
    return Settings(
        _env_file=None,
        SHOPIFY_API_KEY="test-key",
        SHOPIFY_API_SECRET=API_SECRET,
        SHOPIFY_PROXY_SECRET=PROXY_SECRET,
        SHOPIFY_REDIRECT_URI=None,
        SHOPIFY_SCOPES="write_discounts,read_discounts",
        SHOPIFY_API_VERSION="2024-01",
        CREDIT_CHECK_URL=CREDIT_URL,
        PROXY_DEMO_URL=DEMO_URL,
        UPSTREAM_TIMEOUT_SECONDS=5.0,
        APP_BASE_URL="https://relay.test",
        LOG_LEVEL="WARNING",
    )


@pytest.fixture
def upstream() -> StubSession:
    return StubSession()


@pytest.fixture
def relay(settings, upstream) -> UpstreamRelay:
    return UpstreamRelay(settings, session=upstream)


@pytest.fixture
def client(settings, upstream) -> TestClient:
    return TestClient(create_app(settings, session=upstream))


@pytest.fixture
def sign_proxy():
    """Signs query params the way Shopify's App Proxy does."""
    def _sign(params: dict, secret: str = PROXY_SECRET) -> dict:
        message = "".join(f"{k}={v}" for k, v in sorted(params.items()))
        digest = hmac.new(secret.encode("utf-8"), message.encode("utf-8"), hashlib.sha256).hexdigest()
        return {**params, "signature": digest}
    return _sign


@pytest.fixture
def sign_oauth():
    def _sign(params: dict, secret: str = API_SECRET) -> dict:
        message = "&".join(f"{k}={v}" for k, v in sorted(params.items()))
        digest = hmac.new(secret.encode("utf-8"), message.encode("utf-8"), hashlib.sha256).hexdigest()
        return {**params, "hmac": digest}
    return _sign
