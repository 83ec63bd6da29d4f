"""Middleware for request logging, error handling, request IDs, and mode tagging.

Middleware stack (executed in reverse registration order):
    1. RequestIDMiddleware     → Assigns unique X-Request-ID to every request
    2. LoggingMiddleware       → Logs method, path, status, and duration
    3. ModeHeaderMiddleware    → Adds X-DevPulse-Mode header (LIVE|MOCK|DEMO)
    4. SecurityHeadersMiddleware → Browser hardening headers
    5. ErrorHandlerMiddleware  → Catches unhandled exceptions → JSON error response

The X-DevPulse-Mode header lets the frontend mode banner and the devtools
network panel show whether a response came from GitHub or a synthetic
dataset.

Called by: main.py (``register_middleware()``)
Depends on: core/context.py (via app.state)
"""

from __future__ import annotations

import time
import uuid

import structlog
from fastapi import FastAPI, Request, Response
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware

from devpulse.core.errors import StorageError

logger = structlog.get_logger()

MODE_HEADER = "X-DevPulse-Mode"


class RequestIDMiddleware(BaseHTTPMiddleware):
    """Tag each request with an id that the ``request_completed`` event repeats.

    A caller-supplied ``X-Request-ID`` is kept so a client can match its own
    network entries to backend log lines; otherwise a fresh UUID is used.
    """

    async def dispatch(self, request: Request, call_next):  # noqa: ANN001
        request_id = request.headers.get("X-Request-ID", str(uuid.uuid4()))
        request.state.request_id = request_id

        response = await call_next(request)
        response.headers["X-Request-ID"] = request_id
        return response


class LoggingMiddleware(BaseHTTPMiddleware):
    """Emit one ``request_completed`` structlog event per HTTP request.

    Hosting calls made while handling the request are recorded separately in
    the call log by the interceptor.
    """

    async def dispatch(self, request: Request, call_next):  # noqa: ANN001
        start = time.perf_counter()

        response: Response = await call_next(request)

        duration_ms = round((time.perf_counter() - start) * 1000, 2)
        request_id = getattr(request.state, "request_id", "unknown")

        logger.info(
            "request_completed",
            method=request.method,
            path=request.url.path,
            status=response.status_code,
            duration_ms=duration_ms,
            request_id=request_id,
        )
        return response


class ModeHeaderMiddleware(BaseHTTPMiddleware):
    """Add the active application mode as ``X-DevPulse-Mode`` on every response.

    The mode is read after the handler runs, so a PUT /app-mode response
    already carries the new mode.
    """

    async def dispatch(self, request: Request, call_next):  # noqa: ANN001
        response = await call_next(request)
        context = getattr(request.app.state, "context", None)
        if context is None:
            return response
        try:
            config = await context.modes.get_mode()
        except StorageError as exc:
            logger.warning("mode_header_unavailable", error=str(exc))
            return response
        response.headers[MODE_HEADER] = config.mode.value
        return response


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    """Add standard security hardening headers to every response."""

    async def dispatch(self, request: Request, call_next):  # noqa: ANN001
        response = await call_next(request)
        response.headers["X-Content-Type-Options"] = "nosniff"
        response.headers["X-Frame-Options"] = "DENY"
        response.headers["Referrer-Policy"] = "strict-origin-when-cross-origin"
        response.headers["Permissions-Policy"] = "camera=(), microphone=(), geolocation=()"
        return response


class ErrorHandlerMiddleware(BaseHTTPMiddleware):
    """Catch unhandled exceptions and return consistent JSON error responses.

    Domain errors never reach this point; main.py maps them to their status
    codes. Anything arriving here is a bug: log the traceback, return a
    sanitized 500.
    """

    async def dispatch(self, request: Request, call_next):  # noqa: ANN001
        try:
            return await call_next(request)
        except Exception as exc:
            request_id = getattr(request.state, "request_id", "unknown")
            logger.exception(
                "unhandled_error",
                error=str(exc),
                request_id=request_id,
                path=request.url.path,
            )
            return JSONResponse(
                status_code=500,
                content={
                    "detail": {
                        "code": "INTERNAL_ERROR",
                        "message": "DevPulse hit an unexpected error. Please try again shortly.",
                    }
                },
            )


def register_middleware(app: FastAPI) -> None:
    """Register all middleware in the correct order.

    Starlette middleware is executed in reverse registration order,
    so we register in this order:
        1. ErrorHandler    (registered first → innermost, closest to the routes)
        2. SecurityHeaders (injects hardening headers)
        3. ModeHeader      (injects X-DevPulse-Mode header)
        4. Logging         (logs request details)
        5. RequestID       (registered last → outermost, runs first)
    """
    app.add_middleware(ErrorHandlerMiddleware)
    app.add_middleware(SecurityHeadersMiddleware)
    app.add_middleware(ModeHeaderMiddleware)
    app.add_middleware(LoggingMiddleware)
    app.add_middleware(RequestIDMiddleware)
