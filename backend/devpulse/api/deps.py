"""Dependency injection for API routes.

Provides FastAPI dependencies for the simulation context
built in ``main.lifespan``, the per-browser session key used for identity
selection, and the identity hosting calls are made on behalf of.

Called by: All route modules via type aliases (Context, SessionKey, etc.)
Depends on: core/context.py
"""

from __future__ import annotations

import logging
from typing import Annotated

from fastapi import Cookie, Depends, Header, HTTPException, Request, status

from devpulse.core.context import SimulationContext
from devpulse.core.protocols import RequestIdentity

logger = logging.getLogger(__name__)

SESSION_COOKIE = "devpulse_session"
SESSION_HEADER = "X-DevPulse-Session"
ANONYMOUS_SESSION = "anonymous"

# ─── Simulation Context ────────────────────────────────────────────────────────


def get_context(request: Request) -> SimulationContext:
    """Return the SimulationContext the lifespan attached to ``app.state``."""
    context = getattr(request.app.state, "context", None)
    if context is None:
        logger.error("Simulation context requested before startup completed")
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail={"code": "NOT_READY", "message": "DevPulse is still starting up."},
        )
    return context


Context = Annotated[SimulationContext, Depends(get_context)]

# ─── Session ───────────────────────────────────────────────────────────────────


def get_session_key(
    session_cookie: Annotated[str | None, Cookie(alias=SESSION_COOKIE)] = None,
    session_header: Annotated[str | None, Header(alias=SESSION_HEADER)] = None,
) -> str:
    """Opaque key scoping identity selection to one browser.

    The header wins over the cookie so API clients and tests can pin a session.
    """
    return session_header or session_cookie or ANONYMOUS_SESSION


SessionKey = Annotated[str, Depends(get_session_key)]


async def get_request_identity(
    context: Context,
    session_key: SessionKey,
    authorization: Annotated[str | None, Header()] = None,
) -> RequestIdentity:
    """Who hosting calls are made on behalf of.

    LIVE: the bearer token from the Authorization header (falls back to
    GITHUB_TOKEN inside the client when absent).
    MOCK/DEMO: the session's currently selected synthetic identity.
    """
    config = await context.modes.get_mode()
    if config.mode.is_synthetic:
        identity = await context.identity_simulation(session_key).current()
        return RequestIdentity(id=identity.id, login=identity.handle)

    token = None
    if authorization and authorization.startswith("Bearer "):
        token = authorization.split(" ", 1)[1]
    return RequestIdentity(id=0, login="", access_token=token)


CurrentIdentity = Annotated[RequestIdentity, Depends(get_request_identity)]
