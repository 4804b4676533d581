"""Prometheus metrics export."""

from prometheus_client import Counter, Histogram, generate_latest, CONTENT_TYPE_LATEST
from fastapi import Response

# Request metrics
request_count = Counter(
    "http_requests_total",
    "Total HTTP requests",
    ["method", "endpoint", "status"],
)

request_duration = Histogram(
    "http_request_duration_seconds",
    "HTTP request duration in seconds",
    ["method", "endpoint"],
)

# Upstream metrics (one per call issued by the execution engine)
upstream_calls_total = Counter(
    "upstream_calls_total",
    "Total upstream HTTP calls",
    ["method", "outcome"],  # outcome: success | invalid_url | timeout | network_error
)

upstream_call_duration = Histogram(
    "upstream_call_duration_seconds",
    "Upstream HTTP call duration in seconds",
    ["method"],
)

# Capability metrics
tool_calls_total = Counter(
    "tool_calls_total",
    "Total capability invocations",
    ["tool_name", "status"],  # status: success | error | invalid_arguments
)

tool_call_duration = Histogram(
    "tool_call_duration_seconds",
    "Capability invocation duration in seconds",
    ["tool_name"],
)


def get_metrics_response() -> Response:
    """Get Prometheus metrics response."""
    return Response(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)
