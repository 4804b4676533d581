"""API request/response models."""

from typing import Any, Dict, List, Optional, Union
from pydantic import BaseModel, Field


# ============================================================================
# Services Models
# ============================================================================

class SaveServicesRequest(BaseModel):
    """Full replacement of a workspace's services."""
    services: List[Dict[str, Any]] = Field(default_factory=list, description="Services in editor format")
    wid_hash: Optional[str] = Field(
        None,
        alias="widHash",
        description="MD5 of the workspace id; computed server side when omitted",
        examples=["5d41402abc4b2a76b9719d911017c592"],
    )

    model_config = {"populate_by_name": True}


class ValidateToolResponse(BaseModel):
    """Template variables referenced by a tool but missing from its input schema."""
    valid: bool
    missing_variables: List[str] = Field(default_factory=list, alias="missingVariables")

    model_config = {"populate_by_name": True}


# ============================================================================
# MCP (JSON-RPC 2.0) Models
# ============================================================================

class JSONRPCRequest(BaseModel):
    """JSON-RPC 2.0 request or notification."""
    jsonrpc: str = "2.0"
    method: str
    params: Optional[Dict[str, Any]] = None
    id: Optional[Union[str, int]] = None


class JSONRPCResponse(BaseModel):
    """JSON-RPC 2.0 response."""
    jsonrpc: str = "2.0"
    id: Optional[Union[str, int]] = None
    result: Optional[Any] = None
    error: Optional[Dict[str, Any]] = None

    def to_payload(self) -> Dict[str, Any]:
        """Wire form: exactly one of result/error is present."""
        payload: Dict[str, Any] = {"jsonrpc": self.jsonrpc, "id": self.id}
        if self.error is not None:
            payload["error"] = self.error
        else:
            payload["result"] = self.result if self.result is not None else {}
        return payload
