"""Error taxonomy for tool compilation and execution."""

from typing import List, Optional
from enum import Enum

import httpx


class ErrorCategory(str, Enum):
    """Categories of errors for better handling."""
    VALIDATION = "validation"  # Arguments rejected by the input schema
    COMPILE = "compile"  # Request cannot be built (invalid URL)
    NETWORK = "network"  # Connection issues, DNS, TLS
    TIMEOUT = "timeout"  # Upstream did not answer in time
    UNKNOWN = "unknown"  # Unknown errors


class ToolBridgeError(Exception):
    """Base exception carrying a human-readable message and a category."""
    def __init__(self, message: str, category: ErrorCategory = ErrorCategory.UNKNOWN):
        self.message = message
        self.category = category
        super().__init__(message)


class ArgumentValidationError(ToolBridgeError):
    """Caller-supplied arguments do not satisfy the tool's input schema."""
    def __init__(self, errors: List[str]):
        self.errors = list(errors)
        super().__init__(f"Invalid arguments: {'; '.join(self.errors)}", ErrorCategory.VALIDATION)


class InvalidURLError(ToolBridgeError):
    """Request URL could not be parsed. Raised before any network activity."""
    def __init__(self, url: str):
        self.url = url
        super().__init__(f"Invalid URL: {url}", ErrorCategory.COMPILE)


class UpstreamRequestError(ToolBridgeError):
    """Network-level failure talking to the upstream API."""
    def __init__(self, message: str, category: ErrorCategory = ErrorCategory.NETWORK):
        super().__init__(message, category)


class UpstreamTimeoutError(UpstreamRequestError):
    """Upstream call exceeded the configured timeout."""
    def __init__(self, timeout: Optional[float] = None):
        self.timeout = timeout
        if timeout is not None:
            message = f"Request timed out after {timeout:g} seconds"
        else:
            message = "Request timed out"
        super().__init__(message, ErrorCategory.TIMEOUT)


def classify_error(error: Exception) -> ErrorCategory:
    """
    Classify an error into a category.

    Args:
        error: The exception to classify

    Returns:
        ErrorCategory for the exception
    """
    if isinstance(error, ToolBridgeError):
        return error.category

    if isinstance(error, httpx.TimeoutException):
        return ErrorCategory.TIMEOUT

    if isinstance(error, (httpx.HTTPError, ConnectionError, OSError)):
        return ErrorCategory.NETWORK

    return ErrorCategory.UNKNOWN


def describe_error(error: Exception, default: str = "Request failed") -> str:
    """Human-readable message for an exception, never empty."""
    if isinstance(error, ToolBridgeError):
        return error.message
    message = str(error).strip()
    return message or f"{default} ({type(error).__name__})"
