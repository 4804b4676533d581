"""Interactive tool test API router."""

import logging

from fastapi import APIRouter, HTTPException
from fastapi.responses import JSONResponse

from mcp_workspace.adapters.http_executor import http_executor
from mcp_workspace.infra.error_handler import classify_error, describe_error
from mcp_workspace.infra.validation import validate_workspace_id
from mcp_workspace.models.request import ExecutionResult
from mcp_workspace.models.tool import ToolDefinition
from mcp_workspace.services.request_compiler import compile_request

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/workspace/{wid}/proxy", tags=["Proxy"])


@router.post("/test", response_model=ExecutionResult, response_model_by_alias=True)
async def test_tool(wid: str, tool: ToolDefinition):
    """
    Execute a tool exactly as configured, without template substitution.

    Any execution failure (invalid URL, network error, timeout) is returned as
    a degraded result with status 0 and the error message as statusText.
    """
    try:
        validate_workspace_id(wid)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))

    if not tool.url:
        return JSONResponse(status_code=400, content={"error": "URL is required"})

    descriptor = compile_request(tool)
    try:
        return await http_executor.execute(tool.method, descriptor)
    except Exception as e:
        message = describe_error(e, default="Proxy request failed")
        logger.warning(f"Proxy test failed: {message}", extra={"error_category": classify_error(e).value})
        return JSONResponse(
            status_code=502,
            content=ExecutionResult.degraded(message).model_dump(by_alias=True),
        )
