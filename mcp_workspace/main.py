"""FastAPI application: workspace storage, tool testing proxy and MCP endpoints."""

import uuid
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from mcp_workspace.infra.config import config
from mcp_workspace.infra.logging import app_logger
from mcp_workspace.infra.database import engine, init_db
from mcp_workspace.infra.middleware import RequestIDMiddleware, RequestLoggingMiddleware, setup_cors
from mcp_workspace.infra.timeout import TimeoutMiddleware, REQUEST_TIMEOUT
from mcp_workspace.api.routers import health, services, proxy, mcp


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Lifespan context manager for startup and shutdown."""
    app_logger.info("Application starting up", extra={"app_env": config.APP_ENV})
    init_db()

    yield

    app_logger.info("Application shutting down")
    engine.dispose()


app = FastAPI(
    title="MCP Workspace API",
    description="""
    Describe REST endpoints declaratively and expose them as MCP tools.

    ## Features

    - **Services**: Store a workspace's services and tools as one document
    - **Proxy**: Test a tool configuration against the real upstream API
    - **MCP**: Every service is served as a stateless MCP server at
      `/workspace/{widHash}/mcp/{serviceId}`; `{{variables}}` in a tool's
      URL, params, headers, cookies and body are filled from the call arguments
    """,
    version="1.0.0",
    lifespan=lifespan,
    openapi_tags=[
        {"name": "Services", "description": "Load and save workspace services"},
        {"name": "Proxy", "description": "Execute a tool configuration interactively"},
        {"name": "MCP", "description": "Model Context Protocol endpoints, one per service"},
        {"name": "Health", "description": "Health check and monitoring endpoints"},
    ],
)

app.add_middleware(RequestIDMiddleware)
app.add_middleware(RequestLoggingMiddleware)
app.add_middleware(TimeoutMiddleware, timeout=REQUEST_TIMEOUT)
setup_cors(app)

app.include_router(health.router)
app.include_router(services.router)
app.include_router(proxy.router)
app.include_router(mcp.router)


@app.middleware("http")
async def request_size_limit_middleware(request: Request, call_next):
    """Enforce request size limits."""
    content_length = request.headers.get("content-length")
    if content_length and content_length.isdigit() and int(content_length) > config.MAX_REQUEST_SIZE:
        return JSONResponse(
            status_code=413,
            content={"detail": f"Request too large. Maximum size: {config.MAX_REQUEST_SIZE} bytes"},
        )
    return await call_next(request)


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """Handle request validation errors."""
    return JSONResponse(
        status_code=422,
        content={"detail": jsonable_encoder(exc.errors())},
    )


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    """Handle HTTP exceptions."""
    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": exc.detail},
    )


@app.exception_handler(Exception)
async def general_exception_handler(request: Request, exc: Exception):
    """Handle all other exceptions."""
    error_id = str(uuid.uuid4())
    app_logger.error(f"Unhandled exception: {exc}", exc_info=True, extra={"error_id": error_id})
    return JSONResponse(
        status_code=500,
        content={"detail": f"Internal server error. Error ID: {error_id}"},
    )


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        app,
        host="0.0.0.0",
        port=8000,
        timeout_keep_alive=30,
        timeout_graceful_shutdown=30,
    )
