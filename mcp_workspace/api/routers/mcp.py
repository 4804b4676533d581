"""MCP endpoint: one stateless JSON-RPC 2.0 server per stored service.

Each request loads the service, builds its capabilities and answers
initialize / ping / tools/list / tools/call. Nothing is kept between requests.
"""

import json
import logging
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Request, Response
from fastapi.responses import JSONResponse
from pydantic import ValidationError

from mcp_workspace.adapters.http_executor import http_executor
from mcp_workspace.api.models import JSONRPCRequest, JSONRPCResponse
from mcp_workspace.infra.validation import validate_workspace_hash
from mcp_workspace.models.tool import ServiceDefinition
from mcp_workspace.services import workspace_store
from mcp_workspace.services.capability_bridge import (
    Capability,
    build_capabilities,
    filter_transport_headers,
    find_capability,
)

logger = logging.getLogger(__name__)

router = APIRouter(tags=["MCP"])

LATEST_PROTOCOL_VERSION = "2025-06-18"

# JSON-RPC 2.0 error codes
PARSE_ERROR = -32700
INVALID_REQUEST = -32600
METHOD_NOT_FOUND = -32601
INVALID_PARAMS = -32602


def _error(request_id: Optional[Any], code: int, message: str) -> JSONRPCResponse:
    return JSONRPCResponse(id=request_id, error={"code": code, "message": message})


def _service_not_found(service_id: str) -> JSONResponse:
    return JSONResponse(status_code=404, content={"error": f'Service "{service_id}" not found'})


class ServiceSession:
    """Dispatches JSON-RPC messages for one service within one HTTP request."""

    def __init__(self, service: ServiceDefinition, capabilities: List[Capability]):
        self.service = service
        self.capabilities = capabilities

    async def handle(self, message: Any) -> Optional[JSONRPCResponse]:
        """Handle one message; notifications return None."""
        raw_id = message.get("id") if isinstance(message, dict) else None
        try:
            request = JSONRPCRequest.model_validate(message)
        except ValidationError:
            return _error(raw_id if isinstance(raw_id, (str, int)) else None, INVALID_REQUEST, "Invalid Request")

        if request.id is None:
            # Notifications (notifications/initialized, cancellations) need no answer
            logger.debug(f"Ignoring notification {request.method}")
            return None

        params = request.params or {}
        if request.method == "initialize":
            return JSONRPCResponse(id=request.id, result=self._initialize(params))
        if request.method == "ping":
            return JSONRPCResponse(id=request.id, result={})
        if request.method == "tools/list":
            return JSONRPCResponse(
                id=request.id,
                result={"tools": [capability.describe() for capability in self.capabilities]},
            )
        if request.method == "tools/call":
            return await self._call_tool(request.id, params)
        return _error(request.id, METHOD_NOT_FOUND, f"Method not found: {request.method}")

    def _initialize(self, params: Dict[str, Any]) -> Dict[str, Any]:
        result: Dict[str, Any] = {
            "protocolVersion": params.get("protocolVersion") or LATEST_PROTOCOL_VERSION,
            "capabilities": {"tools": {"listChanged": False}},
            "serverInfo": {
                "name": self.service.name or self.service.id,
                "version": self.service.version or "1.0.0",
            },
        }
        if self.service.description:
            result["instructions"] = self.service.description
        return result

    async def _call_tool(self, request_id: Any, params: Dict[str, Any]) -> JSONRPCResponse:
        name = params.get("name")
        if not isinstance(name, str) or not name:
            return _error(request_id, INVALID_PARAMS, "Missing tool name")

        capability = find_capability(self.capabilities, name)
        if capability is None:
            return _error(request_id, INVALID_PARAMS, f'Tool "{name}" not found')

        arguments = params.get("arguments") or {}
        if not isinstance(arguments, dict):
            return _error(request_id, INVALID_PARAMS, "Tool arguments must be an object")

        return JSONRPCResponse(id=request_id, result=await capability.invoke(arguments))


@router.post("/workspace/{wid_hash}/mcp/{service_id}")
async def mcp_endpoint(wid_hash: str, service_id: str, request: Request):
    """
    Streamable HTTP endpoint (JSON responses, stateless) for one service.

    Client headers, minus transport and protocol headers, are forwarded to
    every upstream call and override the tool's configured headers.
    """
    try:
        validate_workspace_hash(wid_hash)
    except ValueError:
        return _service_not_found(service_id)

    service = workspace_store.find_service(wid_hash, service_id)
    if service is None:
        return _service_not_found(service_id)

    try:
        body = json.loads(await request.body())
    except (json.JSONDecodeError, UnicodeDecodeError):
        return JSONResponse(
            status_code=400,
            content=_error(None, PARSE_ERROR, "Parse error").to_payload(),
        )

    client_headers = filter_transport_headers(dict(request.headers))
    session = ServiceSession(service, build_capabilities(service, client_headers, http_executor))

    if isinstance(body, list):
        if not body:
            return JSONResponse(
                status_code=400,
                content=_error(None, INVALID_REQUEST, "Invalid Request").to_payload(),
            )
        responses = [response for response in [await session.handle(item) for item in body] if response]
        if not responses:
            return Response(status_code=202)
        return JSONResponse(content=[response.to_payload() for response in responses])

    response = await session.handle(body)
    if response is None:
        return Response(status_code=202)
    return JSONResponse(content=response.to_payload())
