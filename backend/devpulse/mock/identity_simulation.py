"""identity_simulation.py — Synthetic sign-in for MOCK/DEMO mode.

Each browser session keeps a pointer to one catalog identity. The pointer is
stored under the caller's session key (Redis in production, in-process in
tests) and expires with the session. Sessions built here have the same shape
the OAuth provider produces, so downstream code never branches on mode.

Called by: api/routes/identities.py
Depends on: identities.py, protocols.py (IdentityPointerStore)
"""

from __future__ import annotations

import logging
import secrets
from collections.abc import Iterable
from datetime import UTC, datetime, timedelta

from devpulse.core.protocols import IdentityPointerStore
from devpulse.mock.identities import get_catalog
from devpulse.models.schemas import IdentityListing, Session, SessionUser, SyntheticIdentity

logger = logging.getLogger(__name__)

_ADMIN_ROLES = {"MANAGER", "ADMIN"}
_LEAD_ROLES = {"TEAM_LEAD", "LEAD"}


def session_role(identity: SyntheticIdentity) -> str:
    """Map a catalog role onto the application's permission roles."""
    role = identity.role.upper().replace("-", "_")
    if role in _ADMIN_ROLES:
        return "ADMINISTRATOR"
    if role in _LEAD_ROLES:
        return "TEAM_LEAD"
    return "DEVELOPER"


class IdentitySimulation:
    """Current-identity selection for one session.

    Args:
        session_key: Opaque per-browser key (cookie value).
        pointers: Store holding the session's selected identity id.
        catalog: Identities that may be selected.
        session_ttl: Lifetime of sessions built by ``create_session``.
    """

    def __init__(
        self,
        session_key: str,
        pointers: IdentityPointerStore,
        catalog: Iterable[SyntheticIdentity] | None = None,
        session_ttl: timedelta = timedelta(hours=24),
    ) -> None:
        self.session_key = session_key
        self._pointers = pointers
        self._catalog = list(catalog) if catalog is not None else get_catalog()
        self._by_id = {identity.id: identity for identity in self._catalog}
        self._session_ttl = session_ttl

    async def list_identities(self) -> list[IdentityListing]:
        current = await self.current()
        return [
            IdentityListing(**identity.model_dump(), current=identity.id == current.id)
            for identity in self._catalog
        ]

    async def current(self) -> SyntheticIdentity:
        """The selected identity, falling back to the first catalog entry."""
        identity_id = await self._pointers.get(self.session_key)
        if identity_id is not None and identity_id in self._by_id:
            return self._by_id[identity_id]
        return self._catalog[0]

    async def set_current(self, identity_id: int) -> SyntheticIdentity | None:
        """Select ``identity_id`` for this session.

        Returns:
            The selected identity, or None (and no change) if the id is
            not in the catalog.
        """
        identity = self._by_id.get(identity_id)
        if identity is None:
            logger.info("Ignoring selection of unknown identity %s", identity_id)
            return None
        await self._pointers.set(self.session_key, identity.id)
        return identity

    async def clear(self) -> None:
        await self._pointers.clear(self.session_key)

    async def create_session(self) -> Session:
        """Build an authenticated session for the current identity."""
        identity = await self.current()
        return Session(
            user=SessionUser(
                id=str(identity.id),
                name=identity.display_name,
                email=identity.email,
                image=identity.avatar_ref,
                username=identity.handle,
                role=session_role(identity),
            ),
            expires=datetime.now(UTC) + self._session_ttl,
            access_token=f"mock_{secrets.token_hex(16)}",
        )
