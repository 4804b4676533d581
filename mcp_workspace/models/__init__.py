
from .tool import BodyType, KeyValueItem, ToolDefinition, ServiceDefinition
from .request import RequestBody, RequestDescriptor, ResponseCookie, ExecutionResult

__all__ = [
    "BodyType",
    "KeyValueItem",
    "ToolDefinition",
    "ServiceDefinition",
    "RequestBody",
    "RequestDescriptor",
    "ResponseCookie",
    "ExecutionResult",
]

