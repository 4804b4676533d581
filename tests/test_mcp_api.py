"""Integration tests for the per-service MCP endpoint."""

import json
import uuid
from unittest.mock import patch

import httpx
import pytest
from fastapi.testclient import TestClient

from mcp_workspace.main import app
from mcp_workspace.services import workspace_store

client = TestClient(app)

ITEM_SCHEMA = {"type": "object", "properties": {"id": {"type": "string"}}, "required": ["id"]}


@pytest.fixture
def workspace():
    """Save a workspace with one service and return its MCP URL."""
    workspace_id = str(uuid.uuid4())
    workspace_store.save_services(workspace_id, [{
        "id": "svc-1",
        "name": "catalog",
        "version": "2.1.0",
        "description": "Item catalog",
        "tools": [
            {
                "id": "tool-get",
                "name": "get_item",
                "description": "Fetch one item",
                "method": "GET",
                "url": "https://api.example.com/items/{{id}}",
                "params": [],
                "headers": [{"enabled": True, "key": "Authorization", "value": "static"}],
                "cookies": [],
                "bodyType": "none",
                "bodyContent": "",
                "bodyUrlEncoded": [],
                "inputSchema": json.dumps(ITEM_SCHEMA),
            }
        ],
    }])
    return f"/workspace/{workspace_store.workspace_hash(workspace_id)}/mcp/svc-1"


def rpc(method, params=None, request_id=1):
    message = {"jsonrpc": "2.0", "id": request_id, "method": method}
    if params is not None:
        message["params"] = params
    return message


class TestMCPEndpoint:
    """Test JSON-RPC dispatch for a stored service."""

    def test_initialize(self, workspace):
        response = client.post(workspace, json=rpc("initialize", {"protocolVersion": "2025-03-26"}))

        assert response.status_code == 200
        result = response.json()["result"]
        assert result["protocolVersion"] == "2025-03-26"
        assert result["serverInfo"] == {"name": "catalog", "version": "2.1.0"}
        assert "tools" in result["capabilities"]
        assert result["instructions"] == "Item catalog"

    def test_initialized_notification(self, workspace):
        response = client.post(workspace, json={"jsonrpc": "2.0", "method": "notifications/initialized"})
        assert response.status_code == 202

    def test_ping(self, workspace):
        assert client.post(workspace, json=rpc("ping")).json() == {"jsonrpc": "2.0", "id": 1, "result": {}}

    def test_tools_list(self, workspace):
        response = client.post(workspace, json=rpc("tools/list"))

        tools = response.json()["result"]["tools"]
        assert tools == [{"name": "get_item", "description": "Fetch one item", "inputSchema": ITEM_SCHEMA}]

    def test_tools_call(self, workspace, make_executor, recorded_requests, json_upstream):
        with patch("mcp_workspace.api.routers.mcp.http_executor", make_executor(json_upstream)):
            response = client.post(
                workspace,
                json=rpc("tools/call", {"name": "get_item", "arguments": {"id": "42"}}),
                headers={"Authorization": "Bearer caller", "Mcp-Session-Id": "s-1"},
            )

        result = response.json()["result"]
        assert result == {
            "content": [{"type": "text", "text": json.dumps({"id": "42", "name": "widget"}, indent=2)}],
        }

        sent = recorded_requests[0]
        assert str(sent.url) == "https://api.example.com/items/42"
        # Caller header overrides the stored one, transport headers are not forwarded
        assert sent.headers["Authorization"] == "Bearer caller"
        assert "mcp-session-id" not in sent.headers

    def test_tools_call_upstream_failure(self, workspace, make_executor):
        def handler(request):
            raise httpx.ConnectError("connection refused", request=request)

        with patch("mcp_workspace.api.routers.mcp.http_executor", make_executor(handler)):
            response = client.post(workspace, json=rpc("tools/call", {"name": "get_item", "arguments": {"id": "1"}}))

        assert response.status_code == 200
        result = response.json()["result"]
        assert result["isError"] is True
        assert result["content"][0]["text"] == "Error: connection refused"

    def test_tools_call_unknown_tool(self, workspace):
        response = client.post(workspace, json=rpc("tools/call", {"name": "nope", "arguments": {}}))

        body = response.json()
        assert "result" not in body
        assert body["error"]["code"] == -32602
        assert body["error"]["message"] == 'Tool "nope" not found'

    def test_unknown_method(self, workspace):
        assert client.post(workspace, json=rpc("resources/list")).json()["error"]["code"] == -32601

    def test_batch(self, workspace):
        response = client.post(workspace, json=[
            rpc("ping", request_id="a"),
            {"jsonrpc": "2.0", "method": "notifications/initialized"},
            rpc("tools/list", request_id="b"),
        ])
        assert [item["id"] for item in response.json()] == ["a", "b"]

    def test_parse_error(self, workspace):
        response = client.post(workspace, content=b"{nope", headers={"Content-Type": "application/json"})
        assert response.status_code == 400
        assert response.json()["error"]["code"] == -32700

    def test_invalid_request(self, workspace):
        response = client.post(workspace, json={"jsonrpc": "2.0", "id": 3})
        assert response.json()["error"]["code"] == -32600

    def test_unknown_service(self, workspace):
        url = workspace.rsplit("/", 1)[0] + "/svc-404"
        response = client.post(url, json=rpc("tools/list"))

        assert response.status_code == 404
        assert response.json() == {"error": 'Service "svc-404" not found'}

    def test_unknown_workspace(self):
        response = client.post(f"/workspace/{'0' * 32}/mcp/svc-1", json=rpc("tools/list"))
        assert response.status_code == 404


class TestMCPStoredData:
    """Test the endpoint against stored documents the editor did not fully fill in."""

    def save(self, tools):
        workspace_id = str(uuid.uuid4())
        workspace_store.save_services(workspace_id, [{"id": "svc", "name": "loose", "tools": tools}])
        return f"/workspace/{workspace_store.workspace_hash(workspace_id)}/mcp/svc"

    def test_null_fields_keep_the_service(self):
        url = self.save([{
            "id": "t1",
            "name": "list_items",
            "description": None,
            "url": "https://api.example.com/items",
            "headers": [{"enabled": True, "key": "X-Trace", "value": None}],
            "bodyType": "graphql",
            "bodyContent": None,
            "inputSchema": None,
            "outputSchema": None,
        }])

        response = client.post(url, json=rpc("tools/list"))

        assert response.status_code == 200
        assert response.json()["result"]["tools"] == [{"name": "list_items", "inputSchema": {"type": "object"}}]

    def test_malformed_tool_is_skipped(self):
        url = self.save([
            "not a tool",
            {"id": "t2", "name": "ok", "url": "https://api.example.com/ok", "params": "oops"},
        ])

        tools = client.post(url, json=rpc("tools/list")).json()["result"]["tools"]
        assert [tool["name"] for tool in tools] == ["ok"]

    def test_unresolvable_schema_reference(self, make_executor, recorded_requests, json_upstream):
        schema = {"type": "object", "properties": {"id": {"$ref": "https://example.com/s.json"}}}
        url = self.save([{
            "id": "t3",
            "name": "get_item",
            "url": "https://api.example.com/items/{{id}}",
            "inputSchema": json.dumps(schema),
        }])

        with patch("mcp_workspace.api.routers.mcp.http_executor", make_executor(json_upstream)):
            response = client.post(url, json=rpc("tools/call", {"name": "get_item", "arguments": {"id": "7"}}))

        assert response.status_code == 200
        result = response.json()["result"]
        assert "isError" not in result
        assert str(recorded_requests[0].url) == "https://api.example.com/items/7"
