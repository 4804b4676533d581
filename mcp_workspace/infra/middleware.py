"""Request middleware for tracking, CORS, and other cross-cutting concerns."""

import uuid
import time
from typing import Callable
from fastapi import Request, Response
from fastapi.middleware.cors import CORSMiddleware
from starlette.middleware.base import BaseHTTPMiddleware

from mcp_workspace.infra.metrics import request_count, request_duration


class RequestIDMiddleware(BaseHTTPMiddleware):
    """Middleware to add request ID to all requests."""

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        request_id = request.headers.get("X-Request-ID") or str(uuid.uuid4())
        request.state.request_id = request_id

        response = await call_next(request)

        response.headers["X-Request-ID"] = request_id
        return response


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Middleware to log request/response details."""

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        import logging
        logger = logging.getLogger("mcp_workspace.request")

        request_id = getattr(request.state, "request_id", "unknown")

        start_time = time.time()
        logger.info(
            "Request started",
            extra={
                "request_id": request_id,
                "method": request.method,
                "path": request.url.path,
                "client": request.client.host if request.client else None,
            }
        )

        try:
            response = await call_next(request)
            elapsed = time.time() - start_time
            duration_ms = int(elapsed * 1000)

            logger.info(
                "Request completed",
                extra={
                    "request_id": request_id,
                    "method": request.method,
                    "path": request.url.path,
                    "status_code": response.status_code,
                    "duration_ms": duration_ms,
                }
            )

            # Route template keeps workspace ids out of metric labels
            route = request.scope.get("route")
            endpoint = getattr(route, "path", "unmatched")
            request_count.labels(
                method=request.method, endpoint=endpoint, status=str(response.status_code)
            ).inc()
            request_duration.labels(method=request.method, endpoint=endpoint).observe(elapsed)

            response.headers["X-Response-Time-Ms"] = str(duration_ms)
            return response
        except Exception as e:
            duration_ms = int((time.time() - start_time) * 1000)
            logger.error(
                "Request failed",
                extra={
                    "request_id": request_id,
                    "method": request.method,
                    "path": request.url.path,
                    "error": str(e),
                    "duration_ms": duration_ms,
                },
                exc_info=True,
            )
            raise


def setup_cors(app):
    """Setup CORS middleware."""
    from mcp_workspace.infra.config import config

    if config.CORS_ORIGINS:
        allowed_origins = list(config.CORS_ORIGINS)
    else:
        # MCP clients and the editor are served from arbitrary origins
        allowed_origins = ["*"]

    app.add_middleware(
        CORSMiddleware,
        allow_origins=allowed_origins,
        allow_credentials=allowed_origins != ["*"],
        allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
        allow_headers=["*"],
        expose_headers=["X-Request-ID", "X-Response-Time-Ms", "mcp-session-id"],
    )
