"""HTTP executor for compiled tool requests."""

import logging
import time
from typing import Dict, List, Optional

import httpx

from mcp_workspace.infra.error_handler import (
    InvalidURLError,
    UpstreamRequestError,
    UpstreamTimeoutError,
    describe_error,
)
from mcp_workspace.infra.metrics import upstream_call_duration, upstream_calls_total
from mcp_workspace.infra.timeout import UPSTREAM_CALL_TIMEOUT
from mcp_workspace.models.request import ExecutionResult, RequestDescriptor, ResponseCookie
from mcp_workspace.models.tool import BodyType

logger = logging.getLogger(__name__)

SIZE_UNITS = ["B", "KB", "MB", "GB"]


def format_bytes(size: int) -> str:
    """
    Format a byte count with 1024-based units.

    Picks the largest unit in which the value is at least 1, rounds to two
    decimals and drops trailing zeros: 0 -> "0 B", 2048 -> "2 KB", 1536 -> "1.5 KB".
    """
    if size <= 0:
        return "0 B"
    value = float(size)
    unit = 0
    while value >= 1024 and unit < len(SIZE_UNITS) - 1:
        value /= 1024
        unit += 1
    text = f"{value:.2f}".rstrip("0").rstrip(".")
    return f"{text} {SIZE_UNITS[unit]}"


def parse_set_cookie(header: Optional[str]) -> List[ResponseCookie]:
    """
    Split a (possibly folded) Set-Cookie header into key/value pairs.

    Segments are separated on commas, so a cookie whose value or Expires
    attribute contains a comma is split apart; segments without "=" are dropped.
    """
    cookies: List[ResponseCookie] = []
    if not header:
        return cookies
    for part in header.split(","):
        trimmed = part.strip()
        eq_idx = trimmed.find("=")
        if eq_idx <= 0:
            continue
        key = trimmed[:eq_idx]
        semi_idx = trimmed.find(";", eq_idx)
        value = trimmed[eq_idx + 1:semi_idx] if semi_idx > 0 else trimmed[eq_idx + 1:]
        cookies.append(ResponseCookie(key=key, value=value))
    return cookies


def build_url(raw_url: str, params: Optional[Dict[str, str]]) -> httpx.URL:
    """
    Parse the request URL and apply configured query params.

    Params replace any same-named parameter already present in the URL.

    Raises:
        InvalidURLError: If the URL is not an absolute http(s) URL
    """
    try:
        url = httpx.URL(raw_url)
    except (httpx.InvalidURL, TypeError, ValueError):
        raise InvalidURLError(raw_url)
    if url.scheme not in ("http", "https") or not url.host:
        raise InvalidURLError(raw_url)

    for key, value in (params or {}).items():
        url = url.copy_set_param(key, value)
    return url


def build_headers(headers: Optional[Dict[str, str]], cookies: Optional[Dict[str, str]]) -> httpx.Headers:
    """Request headers; the cookies mapping replaces any configured Cookie header."""
    result = httpx.Headers()
    for key, value in (headers or {}).items():
        result[key] = value
    if cookies:
        result["Cookie"] = "; ".join(f"{key}={value}" for key, value in cookies.items())
    return result


class HttpExecutor:
    """Executes exactly one upstream HTTP call per compiled request.

    Stateless: every call opens its own client, so concurrent executions never
    share connections or mutable state.
    """

    def __init__(
        self,
        timeout: float = UPSTREAM_CALL_TIMEOUT,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """
        Args:
            timeout: Upstream timeout in seconds (connect, read, write and pool)
            transport: Optional transport override, e.g. httpx.MockTransport in tests
        """
        self.timeout = timeout
        self._transport = transport

    async def execute(self, method: str, descriptor: RequestDescriptor) -> ExecutionResult:
        """
        Execute a fully substituted request.

        Args:
            method: HTTP method (blank means GET)
            descriptor: Request descriptor with all template variables resolved

        Returns:
            ExecutionResult; non-2xx statuses are returned, not raised

        Raises:
            InvalidURLError: If the URL cannot be parsed (no network call is made)
            UpstreamTimeoutError: If the upstream does not answer within the timeout
            UpstreamRequestError: If the network call fails
        """
        method = (method or "GET").strip().upper() or "GET"

        try:
            url = build_url(descriptor.url, descriptor.params)
        except InvalidURLError:
            upstream_calls_total.labels(method=method, outcome="invalid_url").inc()
            raise

        headers = build_headers(descriptor.headers, descriptor.cookies)

        content: Optional[str] = None
        data: Optional[Dict[str, str]] = None
        payload = descriptor.body.payload
        if descriptor.body.type != BodyType.NONE and payload is not None:
            if descriptor.body.type == BodyType.RAW_JSON and isinstance(payload, str):
                headers["Content-Type"] = "application/json"
                content = payload
            elif descriptor.body.type == BodyType.X_WWW_FORM_URLENCODED and isinstance(payload, dict):
                headers["Content-Type"] = "application/x-www-form-urlencoded"
                data = payload
            # form-data and binary bodies are not supported

        start_time = time.time()
        try:
            async with httpx.AsyncClient(
                timeout=self.timeout,
                transport=self._transport,
                follow_redirects=True,
            ) as client:
                response = await client.request(
                    method,
                    url,
                    headers=headers,
                    content=content,
                    data=data,
                )
                body_text = response.text
        except httpx.TimeoutException as e:
            upstream_calls_total.labels(method=method, outcome="timeout").inc()
            logger.warning(f"Upstream {method} {url.host} timed out: {e!r}")
            raise UpstreamTimeoutError(self.timeout)
        except httpx.HTTPError as e:
            upstream_calls_total.labels(method=method, outcome="network_error").inc()
            logger.warning(f"Upstream {method} {url.host} failed: {e!r}")
            raise UpstreamRequestError(describe_error(e, default="Network request failed"))

        elapsed = time.time() - start_time
        upstream_calls_total.labels(method=method, outcome="success").inc()
        upstream_call_duration.labels(method=method).observe(elapsed)

        return ExecutionResult(
            status=response.status_code,
            status_text=response.reason_phrase,
            time=int(elapsed * 1000),
            size=format_bytes(len(body_text.encode("utf-8"))),
            headers={key: value for key, value in response.headers.items()},
            cookies=parse_set_cookie(response.headers.get("set-cookie")),
            body=body_text,
        )


http_executor = HttpExecutor()
