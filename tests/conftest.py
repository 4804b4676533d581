"""Pytest configuration and fixtures."""

import os
import tempfile

import httpx
import pytest

# Set test environment before the application modules read their config
_db_dir = tempfile.mkdtemp(prefix="mcp_workspace_test_")
os.environ.setdefault("DATABASE_URL", f"sqlite:///{os.path.join(_db_dir, 'test.db')}")
os.environ.setdefault("APP_ENV", "test")
os.environ.setdefault("DEBUG", "false")

from mcp_workspace.adapters.http_executor import HttpExecutor  # noqa: E402
from mcp_workspace.infra.database import init_db  # noqa: E402


@pytest.fixture(scope="session", autouse=True)
def database():
    """Create the workspaces table once per test session."""
    init_db()
    yield


@pytest.fixture
def recorded_requests():
    """Requests seen by the mock upstream, in order."""
    return []


@pytest.fixture
def make_executor(recorded_requests):
    """Build an HttpExecutor whose upstream is a handler function."""
    def factory(handler, timeout: float = 5.0) -> HttpExecutor:
        def recording_handler(request: httpx.Request) -> httpx.Response:
            recorded_requests.append(request)
            return handler(request)
        return HttpExecutor(timeout=timeout, transport=httpx.MockTransport(recording_handler))
    return factory


@pytest.fixture
def json_upstream():
    """Handler answering every request with a small JSON document."""
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json={"id": "42", "name": "widget"})
    return handler
