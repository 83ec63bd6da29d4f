"""identities.py — Synthetic identity selection and mock sign-in.

In MOCK/DEMO mode the frontend lets a user "become" any catalog persona.
The selection is scoped to the browser session key (cookie or header) and
drives which repositories ``/api/v1/github/repositories`` returns.

Called by: Frontend identity switcher and the NextAuth mock provider
Depends on: deps.py (Context, SessionKey), mock/identity_simulation.py
"""

from __future__ import annotations

import secrets

import structlog
from fastapi import APIRouter, HTTPException, Response

from devpulse.api.deps import ANONYMOUS_SESSION, SESSION_COOKIE, Context, SessionKey
from devpulse.core.errors import ValidationError
from devpulse.models.schemas import IdentityListing, IdentitySelect, Session, SyntheticIdentity

router = APIRouter(prefix="/api/v1", tags=["identities"])
logger = structlog.get_logger()


async def _require_synthetic(context: Context) -> None:
    config = await context.modes.get_mode()
    if not config.mode.is_synthetic:
        raise HTTPException(
            status_code=409,
            detail={
                "code": "MODE_CONFLICT",
                "message": "Synthetic identities are only available in MOCK or DEMO mode.",
            },
        )


@router.get("/identities", response_model=list[IdentityListing])
async def list_identities(context: Context, session_key: SessionKey) -> list[IdentityListing]:
    """Every selectable identity, with ``current`` set on this session's selection."""
    return await context.identity_simulation(session_key).list_identities()


@router.put("/identities/current", response_model=SyntheticIdentity)
async def select_identity(
    body: IdentitySelect,
    context: Context,
    session_key: SessionKey,
    response: Response,
) -> SyntheticIdentity:
    """Make ``identity_id`` the current identity for this session.

    A browser without a session cookie gets one here.

    Raises:
        ValidationError: 422 if the id is not in the catalog; the previous
            selection is kept.
    """
    await _require_synthetic(context)

    if session_key == ANONYMOUS_SESSION:
        session_key = secrets.token_urlsafe(16)
        response.set_cookie(SESSION_COOKIE, session_key, httponly=True, samesite="lax")

    identity = await context.identity_simulation(session_key).set_current(body.identity_id)
    if identity is None:
        raise ValidationError(f"Unknown identity id {body.identity_id}.")
    logger.info("identity_selected", identity_id=identity.id, handle=identity.handle)
    return identity


@router.post("/auth/mock", response_model=Session)
async def create_mock_session(context: Context, session_key: SessionKey) -> Session:
    """Sign in as the current synthetic identity without an OAuth handshake.

    Raises:
        HTTPException: 409 in LIVE mode.
    """
    await _require_synthetic(context)
    session = await context.identity_simulation(session_key).create_session()
    logger.info("mock_session_created", username=session.user.username)
    return session
