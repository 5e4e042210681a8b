"""
Pytest configuration and fixtures for testing
"""
import json
from typing import Any, Callable, Dict, List, Optional, Tuple, Union

import httpx
import pytest
from fastapi.testclient import TestClient

from main import app
from services.ords_client import OrdsClient, get_ords_client
from services.storage_service import get_storage_service
from utils.rate_limit import reset_rate_limits

ORDS_BASE_URL = "http://ords.test/ords/vams"
ORDS_BASE_PATH = "/ords/vams"
TEST_TOKEN = "tok-123"

Route = Union[Dict[str, Any], Callable[[httpx.Request], httpx.Response]]


class OrdsStub:
    """
    In-memory stand-in for the ORDS module behind an httpx.MockTransport.

    Routes are registered per (method, path relative to the module base).
    Every request is recorded in `calls`.
    """

    def __init__(self):
        self.routes: Dict[Tuple[str, str], Route] = {}
        self.calls: List[httpx.Request] = []
        self.error: Optional[Exception] = None

    def add(
        self,
        method: str,
        path: str,
        status: int = 200,
        json_body: Any = None,
        text: Optional[str] = None,
        handler: Optional[Callable[[httpx.Request], httpx.Response]] = None
    ):
        if handler is not None:
            self.routes[(method, path)] = handler
        else:
            self.routes[(method, path)] = {"status": status, "json": json_body, "text": text}

    def fail_with(self, error: Exception):
        self.error = error

    def handle(self, request: httpx.Request) -> httpx.Response:
        self.calls.append(request)
        if self.error is not None:
            raise self.error
        path = request.url.path[len(ORDS_BASE_PATH):]
        route = self.routes.get((request.method, path))
        if route is None:
            return httpx.Response(404, json={"message": f"no route for {request.method} {path}"})
        if callable(route):
            return route(request)
        if route["text"] is not None:
            return httpx.Response(route["status"], text=route["text"])
        return httpx.Response(route["status"], json=route["json"])

    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handle)


def request_body(request: httpx.Request) -> Any:
    return json.loads(request.content) if request.content else None


class FakeStorage:
    """Storage service replacement that keeps uploads in memory"""

    bucket = "test-bucket"

    def __init__(self):
        self.uploads: List[Dict[str, Any]] = []

    async def upload(self, content: bytes, filename: str, content_type: str, directory: str) -> str:
        self.uploads.append({
            "filename": filename,
            "content_type": content_type,
            "directory": directory,
            "size": len(content),
        })
        return f"https://storage.googleapis.com/{self.bucket}/{directory}/{filename}"


@pytest.fixture(autouse=True)
def _reset_app_state():
    reset_rate_limits()
    yield
    app.dependency_overrides.clear()
    reset_rate_limits()


@pytest.fixture
def ords():
    """ORDS stub wired into the app through get_ords_client"""
    stub = OrdsStub()
    app.dependency_overrides[get_ords_client] = lambda: OrdsClient(ORDS_BASE_URL, transport=stub.transport())
    return stub


@pytest.fixture
def storage():
    fake = FakeStorage()
    app.dependency_overrides[get_storage_service] = lambda: fake
    return fake


@pytest.fixture
def client():
    """FastAPI TestClient without a session"""
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def auth_client(client):
    """TestClient carrying the three session cookies"""
    client.cookies.set("vams_token", TEST_TOKEN)
    client.cookies.set("vams_user", "%7B%22US_NOMBRE%22%3A%20%22ana%22%2C%20%22RL_IDROL_FK%22%3A%201%7D")
    client.cookies.set("vams_authenticated", "true")
    return client


def assert_session_cleared(response):
    """Every session cookie is expired by the response"""
    set_cookies = [header.lower() for header in response.headers.get_list("set-cookie")]
    for name in ("vams_token", "vams_user", "vams_authenticated"):
        matching = [header for header in set_cookies if header.startswith(f"{name}=")]
        assert matching, f"{name} was not cleared"
        assert "max-age=0" in matching[0]
