"""Integration tests for the interactive tool test endpoint."""

import uuid
from unittest.mock import patch

import httpx
import pytest
from fastapi.testclient import TestClient

from mcp_workspace.main import app

client = TestClient(app)


@pytest.fixture
def workspace_id():
    return str(uuid.uuid4())


def tool_payload(**overrides):
    payload = {
        "id": "tool-1",
        "name": "get_item",
        "method": "GET",
        "url": "https://api.example.com/items",
        "params": [{"enabled": True, "key": "key", "value": "456"}],
        "headers": [{"enabled": True, "key": "Authorization", "value": "static"}],
        "cookies": [],
        "bodyType": "none",
        "bodyContent": "",
        "bodyUrlEncoded": [],
        "inputSchema": "",
    }
    payload.update(overrides)
    return payload


class TestProxyTest:
    """Test POST /api/workspace/{wid}/proxy/test."""

    def test_success_returns_execution_result(self, workspace_id, make_executor, recorded_requests):
        def handler(request):
            return httpx.Response(201, text="created", headers={"Set-Cookie": "sid=1"})

        with patch("mcp_workspace.api.routers.proxy.http_executor", make_executor(handler)):
            response = client.post(f"/api/workspace/{workspace_id}/proxy/test", json=tool_payload())

        assert response.status_code == 200
        data = response.json()
        assert data["status"] == 201
        assert data["statusText"] == "Created"
        assert data["body"] == "created"
        assert data["size"] == "7 B"
        assert data["cookies"] == [{"key": "sid", "value": "1"}]
        assert isinstance(data["time"], int)

        sent = recorded_requests[0]
        assert str(sent.url) == "https://api.example.com/items?key=456"
        assert sent.headers["Authorization"] == "static"

    def test_templates_are_sent_verbatim(self, workspace_id, make_executor, recorded_requests, json_upstream):
        payload = tool_payload(headers=[{"enabled": True, "key": "X-Token", "value": "{{token}}"}])

        with patch("mcp_workspace.api.routers.proxy.http_executor", make_executor(json_upstream)):
            client.post(f"/api/workspace/{workspace_id}/proxy/test", json=payload)

        assert recorded_requests[0].headers["X-Token"] == "{{token}}"

    def test_malformed_url_returns_degraded_result(self, workspace_id, make_executor, recorded_requests, json_upstream):
        with patch("mcp_workspace.api.routers.proxy.http_executor", make_executor(json_upstream)):
            response = client.post(
                f"/api/workspace/{workspace_id}/proxy/test",
                json=tool_payload(url="not a url"),
            )

        assert response.status_code == 502
        assert response.json() == {
            "status": 0,
            "statusText": "Invalid URL: not a url",
            "time": 0,
            "size": "0 B",
            "headers": {},
            "cookies": [],
            "body": "",
        }
        assert recorded_requests == []

    def test_network_failure_returns_degraded_result(self, workspace_id, make_executor):
        def handler(request):
            raise httpx.ConnectError("connection refused", request=request)

        with patch("mcp_workspace.api.routers.proxy.http_executor", make_executor(handler)):
            response = client.post(f"/api/workspace/{workspace_id}/proxy/test", json=tool_payload())

        assert response.status_code == 502
        assert response.json()["status"] == 0
        assert response.json()["statusText"] == "connection refused"

    def test_missing_url(self, workspace_id):
        response = client.post(f"/api/workspace/{workspace_id}/proxy/test", json=tool_payload(url=""))
        assert response.status_code == 400
        assert response.json() == {"error": "URL is required"}
