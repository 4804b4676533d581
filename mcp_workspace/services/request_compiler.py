"""Compile a stored tool definition into an unsubstituted request descriptor."""

from typing import Dict, List, Mapping, Optional, Union

from mcp_workspace.models.request import RequestBody, RequestDescriptor
from mcp_workspace.models.tool import BodyType, ToolDefinition
from mcp_workspace.services.key_value import kv_to_record
from mcp_workspace.services.schema_contract import parse_input_schema
from mcp_workspace.services.template_engine import validate_variables


def select_body_payload(tool: ToolDefinition) -> Optional[Union[str, Dict[str, str]]]:
    """Raw JSON text, projected form fields, or None for every other body type."""
    if tool.body_type == BodyType.RAW_JSON and tool.body_content:
        return tool.body_content
    if tool.body_type == BodyType.X_WWW_FORM_URLENCODED:
        return kv_to_record(tool.body_url_encoded)
    return None


def merge_headers(
    tool_headers: Optional[Mapping[str, str]],
    external_headers: Optional[Mapping[str, str]],
) -> Optional[Dict[str, str]]:
    """
    Overlay external headers on the tool's headers.

    External headers win on collision so a live caller can override static
    configuration, e.g. supply a fresh bearer token.
    """
    merged: Dict[str, str] = dict(tool_headers or {})
    merged.update(external_headers or {})
    return merged or None


def compile_request(
    tool: ToolDefinition,
    external_headers: Optional[Mapping[str, str]] = None,
) -> RequestDescriptor:
    """
    Build the request descriptor for a tool.

    The URL and all values are left unsubstituted; run the result through
    template_engine.substitute_payload before execution.

    Args:
        tool: Stored tool definition
        external_headers: Headers supplied by the invoking transport (None for
            the interactive test entry point)

    Returns:
        RequestDescriptor with absent mappings set to None
    """
    return RequestDescriptor(
        url=tool.url,
        params=kv_to_record(tool.params),
        headers=merge_headers(kv_to_record(tool.headers), external_headers),
        cookies=kv_to_record(tool.cookies),
        body=RequestBody(type=tool.body_type, payload=select_body_payload(tool)),
    )


def validate_tool(tool: ToolDefinition) -> List[str]:
    """
    Return template variables the tool references but its input schema does not declare.

    Used by the editor to block saving a misconfigured tool. An empty list means valid.
    """
    descriptor = compile_request(tool)
    return validate_variables(descriptor, parse_input_schema(tool.input_schema))
