"""Iconforge - FastAPI Application.

This module is the single entry point for the web service.  It defines the
FastAPI ``app`` instance, the REST routes, the error boundary, and the
``main()`` CLI function that launches the uvicorn server.

Architecture
------------
The service is stateless:

- **Configuration** is read once from the environment
  (:mod:`iconforge.core.config`).
- **The Replicate client** is created in the lifespan handler and shared by
  all requests through ``app.state.controller``; its connection pool is
  closed on shutdown.
- **Errors** raised anywhere below the routes are serialised once, here, by
  the exception handlers.

Endpoints
---------
========  ==========================  ======================================
Method    Path                        Purpose
========  ==========================  ======================================
GET       ``/health``                 Liveness probe
GET       ``/api/health``             Liveness probe (frontend path)
GET       ``/api/styles``             Available icon styles
POST      ``/api/generate-icons``     Generate a set of four icons
========  ==========================  ======================================

Usage
-----
CLI (installed entry point)::

    iconforge

Direct invocation::

    python -m iconforge.api.main
"""

from __future__ import annotations

import json
import logging
import sys
import time
from collections.abc import AsyncIterator, Awaitable, Callable
from contextlib import asynccontextmanager
from datetime import datetime, timezone

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, Response
from starlette.exceptions import HTTPException as StarletteHTTPException

from iconforge import __version__
from iconforge.api.controller import IconController
from iconforge.api.models import (
    ErrorResponse,
    GenerateIconsRequest,
    GenerateIconsResponse,
    HealthResponse,
    StyleInfo,
    StylesResponse,
)
from iconforge.core.config import config, configure_logging
from iconforge.core.errors import AppError, ErrorKind, to_error_response, validation_error
from iconforge.core.replicate_client import TOKEN_ENV_VAR, ReplicateClient
from iconforge.core.styles import list_styles

logger = logging.getLogger(__name__)

_STARTED_AT = time.monotonic()


# ---------------------------------------------------------------------------
# Application lifecycle - Replicate client setup and teardown.
# ---------------------------------------------------------------------------


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Manage application startup and shutdown lifecycle.

    On startup:
        Creates the :class:`ReplicateClient` and the :class:`IconController`
        and stores the controller on ``app.state``.  A missing API token
        aborts startup.

    On shutdown:
        Closes the client's HTTP connection pool.

    Args:
        app: The FastAPI application instance.

    Yields:
        Control back to the application for the duration of its lifetime.
    """
    client = ReplicateClient(
        config.replicate_api_token,
        base_url=config.replicate_base_url,
        timeout=config.replicate_timeout_seconds,
    )
    app.state.controller = IconController(client)
    logger.info(
        "Server initialized (environment=%s, log level=%s)", config.environment, config.log_level
    )

    yield

    await client.aclose()
    logger.info("Replicate client closed on shutdown.")


# ---------------------------------------------------------------------------
# FastAPI application instance.
# ---------------------------------------------------------------------------
app = FastAPI(
    title="Iconforge",
    description="Generates sets of four themed icons through the Replicate API.",
    version=__version__,
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=config.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.middleware("http")
async def log_requests(request: Request, call_next: Callable[[Request], Awaitable[Response]]) -> Response:
    """Log every request on arrival and on completion with its duration."""
    start = time.perf_counter()
    logger.info(
        "Incoming request: %s %s from %s (%s)",
        request.method,
        request.url.path,
        request.client.host if request.client else "-",
        request.headers.get("user-agent", "-"),
    )

    response = await call_next(request)

    duration_ms = (time.perf_counter() - start) * 1000
    level = logging.WARNING if response.status_code >= 400 else logging.INFO
    logger.log(
        level,
        "Request completed: %s %s -> %d in %.0fms",
        request.method,
        request.url.path,
        response.status_code,
        duration_ms,
    )
    return response


# ---------------------------------------------------------------------------
# Error boundary.
# ---------------------------------------------------------------------------


def _error_response(request: Request, exc: BaseException) -> JSONResponse:
    """Log *exc* and render it as an :class:`ErrorResponse` body."""
    status_code, body = to_error_response(exc, include_stack=config.include_stack_traces)
    if isinstance(exc, AppError):
        logger.error(
            "AppError (%s): %s [status=%d %s %s] context=%s",
            exc.kind.value,
            exc.message,
            status_code,
            request.method,
            request.url.path,
            exc.context,
        )
    else:
        logger.error(
            "Unexpected error: %s [%s %s]",
            exc,
            request.method,
            request.url.path,
            exc_info=exc,
        )
    return JSONResponse(status_code=status_code, content=body)


@app.exception_handler(AppError)
async def handle_app_error(request: Request, exc: AppError) -> JSONResponse:
    return _error_response(request, exc)


@app.exception_handler(StarletteHTTPException)
async def handle_http_exception(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    """Render routing errors (unknown path, wrong method) in the service's error shape."""
    if exc.status_code == 404:
        error = AppError(
            ErrorKind.NOT_FOUND, f"Route {request.method} {request.url.path} not found"
        )
    else:
        error = AppError(ErrorKind.SERVER, str(exc.detail), status_code=exc.status_code)
    return _error_response(request, error)


@app.exception_handler(Exception)
async def handle_unexpected_error(request: Request, exc: Exception) -> JSONResponse:
    return _error_response(request, exc)


# ---------------------------------------------------------------------------
# Routes.
# ---------------------------------------------------------------------------


def _health() -> HealthResponse:
    return HealthResponse(
        status="ok",
        timestamp=datetime.now(timezone.utc).isoformat(),
        uptime=time.monotonic() - _STARTED_AT,
    )


@app.get("/health", response_model=HealthResponse)
async def health() -> HealthResponse:
    """Return liveness information."""
    return _health()


@app.get("/api/health", response_model=HealthResponse)
async def api_health() -> HealthResponse:
    """Return liveness information under the ``/api`` prefix."""
    return _health()


@app.get("/api/styles", response_model=StylesResponse)
async def get_styles() -> StylesResponse:
    """Return every icon style accepted by ``styleId``, in catalog order."""
    return StylesResponse(
        styles=[
            StyleInfo(id=style.id, label=style.label, description=style.description)
            for style in list_styles()
        ]
    )


@app.post(
    "/api/generate-icons",
    response_model=GenerateIconsResponse,
    responses={
        400: {"model": ErrorResponse, "description": "Invalid request body"},
        404: {"model": ErrorResponse, "description": "Unknown style"},
        500: {"model": ErrorResponse, "description": "Unexpected failure"},
        502: {"model": ErrorResponse, "description": "Upstream generation failed"},
    },
    openapi_extra={
        "requestBody": {
            "required": True,
            "content": {
                "application/json": {"schema": GenerateIconsRequest.model_json_schema(by_alias=True)}
            },
        }
    },
)
async def generate_icons(request: Request) -> GenerateIconsResponse:
    """Generate a set of four icons for a theme and style.

    The raw body is handed to :class:`IconController`, which validates it,
    resolves the style, builds four prompts and dispatches them concurrently.

    Returns:
        Four image URLs in variant order.

    Raises:
        AppError: 400 for invalid input, 404 for an unknown style, 502 (or
            the upstream status) if generation fails.
    """
    raw = await request.body()
    try:
        body = json.loads(raw) if raw else {}
    except ValueError as e:
        raise validation_error("Request body must be valid JSON", "body", None) from e

    controller: IconController = request.app.state.controller
    return await controller.generate_icons(body)


# ---------------------------------------------------------------------------
# CLI entry point.
# ---------------------------------------------------------------------------


def main() -> None:
    """Launch the uvicorn ASGI server.

    Reads host, port and log level from :data:`~iconforge.core.config.config`
    (``ICONFORGE_SERVER_HOST``, ``ICONFORGE_SERVER_PORT``,
    ``ICONFORGE_LOG_LEVEL``).  Defaults to ``0.0.0.0:4000``.

    Exits with status 1 if no Replicate API token is configured.

    This function is registered as the ``iconforge`` console script in
    ``pyproject.toml``.
    """
    import os

    import uvicorn

    configure_logging(config.log_level)

    if not (config.replicate_api_token or os.environ.get(TOKEN_ENV_VAR)):
        logger.error("Missing %s environment variable", TOKEN_ENV_VAR)
        logger.error("Please set %s before starting the server", TOKEN_ENV_VAR)
        sys.exit(1)

    logger.info("Starting server on %s:%d", config.server_host, config.server_port)
    uvicorn.run(
        "iconforge.api.main:app",
        host=config.server_host,
        port=config.server_port,
        reload=False,
    )


if __name__ == "__main__":
    main()
