import httpx
import pytest
from fastapi.testclient import TestClient

from app.limiter import rate_limiter
from app.main import app
from app.services.upstream import UpstreamService

UPSTREAM_URL = "https://upstream.test"

UPLOAD_DATA = {
    "id": "abc123",
    "title": "photo.png",
    "url": "https://i.example.test/abc123.png",
    "display_url": "https://i.example.test/abc123",
    "size": "2048",
    "timestamp": "1760000000",
    "expiration": "0",
}

DONE_STATUS = {
    "batchId": "batch_123",
    "total": 3,
    "completed": 2,
    "failed": 1,
    "percent": 100,
    "items": [
        {"id": "a", "url": "https://i.example.test/a.png", "done": True},
        {"id": "b", "url": "https://i.example.test/b.png", "done": True},
        {"id": "c", "error": "Unsupported image", "done": True},
    ],
}


def respond(status_code: int, **kwargs):
    """Route handler that builds a fresh response for every request."""
    return lambda request: httpx.Response(status_code, **kwargs)


class FakeUpstream:
    """Routes requests by (method, path) and records everything it receives."""

    def __init__(self):
        self.requests: list[httpx.Request] = []
        self.routes = {
            ("POST", "/upload"): respond(200, json={"success": True, "data": UPLOAD_DATA}),
            ("POST", "/bulk-upload"): respond(200, json={"batchId": "batch_123"}),
            ("GET", "/bulk-status/batch_123"): respond(200, json=DONE_STATUS),
        }

    def __call__(self, request: httpx.Request) -> httpx.Response:
        request.read()
        self.requests.append(request)
        route = self.routes.get((request.method, request.url.path))
        if route is None:
            return httpx.Response(404, text="not found")
        return route(request)

    def service(self, api_key: str = "test-key") -> UpstreamService:
        return UpstreamService(base_url=UPSTREAM_URL, api_key=api_key, transport=httpx.MockTransport(self))

    @property
    def last(self) -> httpx.Request:
        return self.requests[-1]


PROXY_SECRET = "proxy-secret"


@pytest.fixture(autouse=True)
def session_layer_secret(monkeypatch):
    """Configure the secret the session layer sends with identity headers."""
    monkeypatch.setattr("app.config.settings.IDENTITY_PROXY_SECRET", PROXY_SECRET)


@pytest.fixture(autouse=True)
def reset_rate_limits():
    rate_limiter.reset()
    yield
    rate_limiter.reset()


@pytest.fixture
def fake_upstream():
    return FakeUpstream()


@pytest.fixture
def upstream(monkeypatch, fake_upstream):
    """Point every route at the fake upstream."""
    service = fake_upstream.service()
    monkeypatch.setattr("app.routes.upload.upstream_service", service)
    monkeypatch.setattr("app.routes.bulk.upstream_service", service)
    return fake_upstream


@pytest.fixture
def client():
    return TestClient(app)


ANONYMOUS = {}
USER = {"X-Auth-Email": "user@example.com", "X-Auth-Proxy-Secret": PROXY_SECRET}
PRO = {"X-Auth-Email": "pro@example.com", "X-Auth-Pro": "true", "X-Auth-Proxy-Secret": PROXY_SECRET}
