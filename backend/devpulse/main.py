"""FastAPI application factory.

Builds the FastAPI app with middleware, routes, exception handlers and the
lifespan that assembles the SimulationContext. Every route is mounted in
every mode; the RequestInterceptor decides per call whether data comes
from GitHub (LIVE) or a synthetic dataset (MOCK/DEMO), so switching modes
at runtime needs no restart.

Called by: Uvicorn (``uvicorn devpulse.main:app``)
Depends on: config.py, core/environment.py, core/context.py, routes/*, middleware.py
"""

from __future__ import annotations

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

import structlog
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from devpulse.api.middleware import register_middleware
from devpulse.config import Settings, get_settings
from devpulse.core.context import SimulationContext, build_context
from devpulse.core.environment import APP_VERSION, validate_environment
from devpulse.core.errors import DevPulseError, RateLimitExceeded, ValidationError

_settings = get_settings()
_log_level = getattr(logging, _settings.log_level.upper(), logging.INFO)

logging.basicConfig(level=_log_level, format="%(levelname)s %(name)s: %(message)s")

structlog.configure(
    processors=[
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.dev.ConsoleRenderer() if not _settings.is_production
        else structlog.processors.JSONRenderer(),
    ],
    wrapper_class=structlog.make_filtering_bound_logger(_log_level),
    context_class=dict,
    logger_factory=structlog.PrintLoggerFactory(),
    cache_logger_on_first_use=True,
)

logger = structlog.get_logger()


def _make_lifespan(context: SimulationContext | None):
    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
        """Application startup and shutdown events.

        Validates the environment, builds (or adopts) the SimulationContext
        and prepares its storage. Tests pass a ready context over memory
        storage to ``create_app``.
        """
        settings = get_settings() if context is None else context.settings
        validate_environment(settings)

        ctx = context or build_context(settings)
        await ctx.startup()
        app.state.context = ctx

        config = await ctx.modes.get_mode()
        logger.info(
            "app_startup",
            env=settings.app_env,
            mode=config.mode.value,
            dataset_id=config.dataset_id,
            storage=ctx.storage.name,
        )
        try:
            yield
        finally:
            await ctx.aclose()
            app.state.context = None
            logger.info("app_shutdown")

    return lifespan


# ─── Exception Handlers ───────────────────────────────────────────────────────


async def devpulse_error_handler(request: Request, exc: DevPulseError) -> JSONResponse:
    """Render a domain error as ``{"detail": {"code", "message"}}`` with its status."""
    detail: dict = exc.to_detail()
    headers = None
    if isinstance(exc, ValidationError) and exc.problems:
        detail["problems"] = exc.problems
    if isinstance(exc, RateLimitExceeded) and exc.retry_after is not None:
        headers = {"Retry-After": str(exc.retry_after)}

    log = logger.warning if exc.status_code < 500 else logger.error
    log(
        "request_failed",
        code=exc.code,
        status=exc.status_code,
        path=request.url.path,
        request_id=getattr(request.state, "request_id", "unknown"),
    )
    return JSONResponse(status_code=exc.status_code, content={"detail": detail}, headers=headers)


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(DevPulseError, devpulse_error_handler)


# ─── Routes ───────────────────────────────────────────────────────────────────


def _register_routes(app: FastAPI) -> None:
    from devpulse.api.routes import admin, analytics, github, health, identities

    app.include_router(health.router)
    app.include_router(admin.router)
    app.include_router(identities.router)
    app.include_router(github.router)
    app.include_router(analytics.router)


def create_app(
    settings: Settings | None = None,
    context: SimulationContext | None = None,
) -> FastAPI:
    """Build and configure the FastAPI application.

    Args:
        settings: Overrides ``get_settings()`` (CORS, docs toggles).
        context: Pre-built SimulationContext; built from settings at startup
            when omitted.

    Returns:
        Configured FastAPI application instance.
    """
    settings = settings or (context.settings if context is not None else get_settings())

    app = FastAPI(
        title="DevPulse",
        description="Developer productivity analytics over GitHub or synthetic data",
        version=APP_VERSION,
        lifespan=_make_lifespan(context),
        docs_url="/docs" if not settings.is_production else None,
        redoc_url="/redoc" if not settings.is_production else None,
    )

    # CORS
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.allowed_origins_list,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    register_middleware(app)
    register_exception_handlers(app)
    _register_routes(app)

    # Routes that run before the lifespan (e.g. ASGITransport without
    # lifespan support) see this and answer 503 via deps.get_context.
    app.state.context = context
    return app


app = create_app()
