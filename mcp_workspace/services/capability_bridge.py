"""Bridge stored tool definitions into invocable MCP capabilities."""

import json
import logging
import time
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Dict, List, Mapping, Optional

from mcp_workspace.adapters.http_executor import HttpExecutor, http_executor
from mcp_workspace.infra.error_handler import ArgumentValidationError, classify_error, describe_error
from mcp_workspace.infra.metrics import tool_call_duration, tool_calls_total
from mcp_workspace.models.request import ExecutionResult
from mcp_workspace.models.tool import ServiceDefinition, ToolDefinition
from mcp_workspace.services.request_compiler import compile_request
from mcp_workspace.services.schema_contract import ArgumentContract, contract_from_text
from mcp_workspace.services.template_engine import substitute_payload

logger = logging.getLogger(__name__)

# Headers that should NOT be forwarded from the MCP client to the upstream API
EXCLUDED_HEADERS = frozenset({
    "host",
    "content-length",
    "content-type",
    "accept",
    "accept-encoding",
    "accept-language",
    "connection",
    "mcp-session-id",
    "mcp-protocol-version",
    "cf-connecting-ip",
    "cf-ipcountry",
    "cf-ray",
    "cf-visitor",
    "x-forwarded-for",
    "x-forwarded-proto",
    "x-real-ip",
    # Hop-by-hop (RFC 9110 section 7.6.1) and proxy-added headers
    "keep-alive",
    "proxy-connection",
    "te",
    "trailer",
    "transfer-encoding",
    "upgrade",
    "forwarded",
    "via",
    "x-forwarded-host",
    "x-forwarded-port",
})

ToolResult = Dict[str, Any]
InvokeFn = Callable[[Optional[Mapping[str, Any]]], Awaitable[ToolResult]]


def filter_transport_headers(headers: Mapping[str, str]) -> Dict[str, str]:
    """Drop transport and protocol plumbing headers before they reach a tool."""
    return {key: value for key, value in headers.items() if key.lower() not in EXCLUDED_HEADERS}


def text_result(text: str, is_error: bool = False) -> ToolResult:
    """Build an MCP tools/call result envelope with a single text block."""
    result: ToolResult = {"content": [{"type": "text", "text": text}]}
    if is_error:
        result["isError"] = True
    return result


def format_response_body(body: str) -> str:
    """Pretty-print JSON bodies with a 2-space indent; anything else passes through."""
    try:
        parsed = json.loads(body)
    except (json.JSONDecodeError, TypeError):
        return body
    return json.dumps(parsed, indent=2, ensure_ascii=False)


@dataclass(frozen=True)
class Capability:
    """Runtime-invocable form of one tool."""
    name: str
    description: str
    contract: ArgumentContract
    invoke: InvokeFn = field(repr=False)
    tool_id: str = ""

    @property
    def input_schema(self) -> Dict[str, Any]:
        return self.contract.advertised_schema

    def describe(self) -> Dict[str, Any]:
        """Entry for a tools/list response."""
        entry: Dict[str, Any] = {"name": self.name, "inputSchema": self.input_schema}
        if self.description:
            entry["description"] = self.description
        return entry


def _make_invoke(
    tool: ToolDefinition,
    contract: ArgumentContract,
    external_headers: Mapping[str, str],
    executor: HttpExecutor,
    capability_name: str,
) -> InvokeFn:
    """Invocation closure over a single tool; holds no shared mutable state."""
    headers = dict(external_headers)

    async def invoke(arguments: Optional[Mapping[str, Any]] = None) -> ToolResult:
        values = dict(arguments or {})
        start_time = time.time()

        try:
            errors = contract.validate(values)
            if errors:
                tool_calls_total.labels(tool_name=capability_name, status="invalid_arguments").inc()
                return text_result(f"Error: {ArgumentValidationError(errors).message}", is_error=True)

            descriptor = substitute_payload(compile_request(tool, headers), values)
            result: ExecutionResult = await executor.execute(tool.method, descriptor)
        except Exception as e:
            message = describe_error(e)
            logger.warning(
                f"Tool {capability_name} failed: {message}",
                extra={"tool_id": tool.id, "error_category": classify_error(e).value},
            )
            tool_calls_total.labels(tool_name=capability_name, status="error").inc()
            return text_result(f"Error: {message}", is_error=True)

        tool_calls_total.labels(tool_name=capability_name, status="success").inc()
        tool_call_duration.labels(tool_name=capability_name).observe(time.time() - start_time)
        return text_result(format_response_body(result.body))

    return invoke


def build_capability(
    tool: ToolDefinition,
    external_headers: Optional[Mapping[str, str]] = None,
    executor: Optional[HttpExecutor] = None,
) -> Capability:
    """
    Convert one tool into a capability.

    Args:
        tool: Stored tool definition
        external_headers: Transport headers, already filtered, merged over tool headers
        executor: HTTP executor (defaults to the shared one)

    Returns:
        Capability named after the tool (falling back to its id)
    """
    name = tool.name or tool.id
    contract = contract_from_text(tool.input_schema)
    return Capability(
        name=name,
        description=tool.description,
        contract=contract,
        invoke=_make_invoke(tool, contract, external_headers or {}, executor or http_executor, name),
        tool_id=tool.id,
    )


def build_capabilities(
    service: ServiceDefinition,
    external_headers: Optional[Mapping[str, str]] = None,
    executor: Optional[HttpExecutor] = None,
) -> List[Capability]:
    """One capability per tool of the service, in stored order."""
    return [build_capability(tool, external_headers, executor) for tool in service.tools]


def get_capability(
    service: ServiceDefinition,
    tool_id: str,
    external_headers: Optional[Mapping[str, str]] = None,
    executor: Optional[HttpExecutor] = None,
) -> Optional[Capability]:
    """Capability for the tool with the given id, or None when the service has no such tool."""
    tool = service.get_tool(tool_id)
    if tool is None:
        return None
    return build_capability(tool, external_headers, executor)


def find_capability(capabilities: List[Capability], name: str) -> Optional[Capability]:
    """Resolve a tools/call name; names take precedence over tool ids."""
    for capability in capabilities:
        if capability.name == name:
            return capability
    for capability in capabilities:
        if capability.tool_id == name:
            return capability
    return None
