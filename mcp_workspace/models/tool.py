"""Declarative tool and service definitions as stored by the editor."""

import logging
from enum import Enum
from typing import Any, List, Optional, Type
from pydantic import BaseModel, Field, ValidationError, field_validator

logger = logging.getLogger(__name__)


class BodyType(str, Enum):
    """Request body kinds. form-data and binary are stored but never sent."""
    NONE = "none"
    RAW_JSON = "raw-json"
    X_WWW_FORM_URLENCODED = "x-www-form-urlencoded"
    FORM_DATA = "form-data"
    BINARY = "binary"


def _as_text(value: Any) -> Any:
    """Stored documents may hold null or bare numbers where the editor writes strings."""
    if value is None:
        return ""
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return str(value)
    return value


def _valid_entries(model: Type[BaseModel], value: Any, label: str) -> List[Any]:
    """Validate list entries one by one, dropping those that do not fit the model."""
    if value is None:
        return []
    if not isinstance(value, list):
        logger.warning(f"Ignoring {label}: expected a list, got {type(value).__name__}")
        return []
    entries = []
    for index, raw in enumerate(value):
        try:
            entries.append(model.model_validate(raw))
        except ValidationError as e:
            logger.warning(f"Skipping malformed {label} entry at index {index}: {e.error_count()} error(s)")
    return entries


class KeyValueItem(BaseModel):
    """One togglable name/value entry (param, header, cookie, form field)."""
    id: Optional[str] = Field(None, description="Editor row id")
    enabled: bool = Field(default=True, description="Disabled rows are never sent")
    key: str = Field(default="", description="Entry name")
    value: str = Field(default="", description="Entry value, may contain {{variables}}")
    description: Optional[str] = None

    @field_validator("key", "value", mode="before")
    @classmethod
    def _coerce_text(cls, value: Any) -> Any:
        return _as_text(value)

    @field_validator("enabled", mode="before")
    @classmethod
    def _null_is_disabled(cls, value: Any) -> Any:
        return False if value is None else value


class ToolDefinition(BaseModel):
    """One HTTP-callable capability."""
    id: str = Field(default="", description="Tool id, unique within its service")
    name: str = Field(default="", description="Capability name exposed over MCP")
    description: str = Field(default="", description="Capability description exposed over MCP")
    method: str = Field(default="GET", description="HTTP method", examples=["GET"])
    url: str = Field(default="", description="Request URL template", examples=["https://api.example.com/items/{{id}}"])
    params: List[KeyValueItem] = Field(default_factory=list)
    headers: List[KeyValueItem] = Field(default_factory=list)
    cookies: List[KeyValueItem] = Field(default_factory=list)
    body_type: BodyType = Field(default=BodyType.NONE, alias="bodyType")
    body_content: str = Field(default="", alias="bodyContent", description="Raw JSON body template")
    body_form_data: List[KeyValueItem] = Field(default_factory=list, alias="bodyFormData")
    body_url_encoded: List[KeyValueItem] = Field(default_factory=list, alias="bodyUrlEncoded")
    input_schema: str = Field(default="", alias="inputSchema", description="JSON Schema text for the arguments")
    output_schema: str = Field(default="", alias="outputSchema", description="Informational only")

    model_config = {"populate_by_name": True}

    @field_validator(
        "id", "name", "description", "method", "url", "body_content", "input_schema", "output_schema",
        mode="before",
    )
    @classmethod
    def _coerce_text(cls, value: Any) -> Any:
        return _as_text(value)

    @field_validator("params", "headers", "cookies", "body_form_data", "body_url_encoded", mode="before")
    @classmethod
    def _drop_malformed_items(cls, value: Any) -> List[Any]:
        return _valid_entries(KeyValueItem, value, "key-value")

    @field_validator("body_type", mode="before")
    @classmethod
    def _unknown_body_type_is_none(cls, value: Any) -> Any:
        if isinstance(value, BodyType):
            return value
        try:
            return BodyType(value)
        except ValueError:
            logger.warning(f"Unknown body type {value!r}, no body will be sent")
            return BodyType.NONE


class ServiceDefinition(BaseModel):
    """A named, versioned group of tools."""
    id: str
    name: str = ""
    version: str = "1.0.0"
    description: str = ""
    expanded: bool = Field(default=False, description="Editor tree state")
    tools: List[ToolDefinition] = Field(default_factory=list)

    @field_validator("name", "description", mode="before")
    @classmethod
    def _coerce_text(cls, value: Any) -> Any:
        return _as_text(value)

    @field_validator("version", mode="before")
    @classmethod
    def _default_version(cls, value: Any) -> Any:
        return "1.0.0" if value is None else _as_text(value)

    @field_validator("expanded", mode="before")
    @classmethod
    def _null_is_collapsed(cls, value: Any) -> Any:
        return False if value is None else value

    @field_validator("tools", mode="before")
    @classmethod
    def _drop_malformed_tools(cls, value: Any) -> List[Any]:
        return _valid_entries(ToolDefinition, value, "tool")

    def get_tool(self, tool_id: str) -> Optional[ToolDefinition]:
        """Return the tool with the given id, if any."""
        for tool in self.tools:
            if tool.id == tool_id:
                return tool
        return None
