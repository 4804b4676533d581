"""Workspace services API router."""

from fastapi import APIRouter, HTTPException

from mcp_workspace.api.models import SaveServicesRequest, ValidateToolResponse
from mcp_workspace.infra.validation import validate_workspace_hash, validate_workspace_id
from mcp_workspace.models.tool import ToolDefinition
from mcp_workspace.services import workspace_store
from mcp_workspace.services.request_compiler import validate_tool

router = APIRouter(prefix="/api/workspace/{wid}/mcp-services", tags=["Services"])


def _check_workspace_id(wid: str) -> None:
    try:
        validate_workspace_id(wid)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))


@router.get("")
async def list_services(wid: str):
    """
    Get all services stored for a workspace.

    Returns the stored document as saved by the editor. Unknown workspaces and
    unreadable documents both return an empty list.
    """
    _check_workspace_id(wid)
    return workspace_store.load_raw_services(wid)


@router.put("/batch")
async def save_services(wid: str, request: SaveServicesRequest):
    """
    Replace all services of a workspace.

    **Example Request:**
    ```json
    {
        "services": [{"id": "svc-1", "name": "weather", "version": "1.0.0", "tools": []}],
        "widHash": "5d41402abc4b2a76b9719d911017c592"
    }
    ```
    """
    _check_workspace_id(wid)
    if request.wid_hash:
        try:
            validate_workspace_hash(request.wid_hash)
        except ValueError as e:
            raise HTTPException(status_code=400, detail=str(e))

    return workspace_store.save_services(wid, request.services, request.wid_hash)


@router.post("/validate", response_model=ValidateToolResponse, response_model_by_alias=True)
async def validate_tool_definition(wid: str, tool: ToolDefinition):
    """
    Check that every {{variable}} a tool references is declared in its input schema.

    The editor blocks saving while `missingVariables` is non-empty.
    """
    _check_workspace_id(wid)
    missing = validate_tool(tool)
    return ValidateToolResponse(valid=not missing, missing_variables=missing)
