"""Compiled request descriptor and normalized execution result."""

from typing import Dict, List, Optional, Union
from pydantic import BaseModel, Field

from .tool import BodyType


Record = Dict[str, str]


class RequestBody(BaseModel):
    """Body type plus payload: raw string for JSON, mapping for form encoding."""
    type: BodyType = BodyType.NONE
    payload: Optional[Union[str, Record]] = None


class RequestDescriptor(BaseModel):
    """Compiler output. Absent mappings are None, never empty."""
    url: str
    params: Optional[Record] = None
    headers: Optional[Record] = None
    cookies: Optional[Record] = None
    body: RequestBody = Field(default_factory=RequestBody)


class ResponseCookie(BaseModel):
    key: str
    value: str


class ExecutionResult(BaseModel):
    """Normalized HTTP outcome, serialized in the proxy wire shape."""
    status: int
    status_text: str = Field(..., alias="statusText")
    time: int = Field(..., description="Elapsed wall clock time in milliseconds")
    size: str = Field(..., description="Formatted body size", examples=["2 KB"])
    headers: Record = Field(default_factory=dict)
    cookies: List[ResponseCookie] = Field(default_factory=list)
    body: str = ""

    model_config = {"populate_by_name": True}

    @classmethod
    def degraded(cls, message: str) -> "ExecutionResult":
        """Placeholder result shown when the request could not be executed."""
        return cls(status=0, status_text=message, time=0, size="0 B", headers={}, cookies=[], body="")
