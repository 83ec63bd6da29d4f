"""Protocols — abstract interfaces for the hosting client and storage backends.

The interception layer only ever talks to a ``HostingClient``. Which concrete
implementation it gets (live GitHub or synthetic dataset) is decided by the
client factory in ``registry.py`` from the active ``ApplicationMode``.

Storage is split the same way: the Mode Controller, Dataset Store and
Identity Simulation depend on the protocols below, never on SQLAlchemy or
Redis directly.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import UTC, datetime
from typing import TYPE_CHECKING, Any, Protocol, runtime_checkable

from devpulse.models.schemas import Commit, Dataset, Issue, PullRequest, Repository

if TYPE_CHECKING:
    from devpulse.core.modes import ModeConfiguration

# ─── Data Structures ──────────────────────────────────────────────────────────


@dataclass(frozen=True)
class TimeWindow:
    """Inclusive ``[since, until]`` range; ``None`` leaves that side open."""

    since: datetime | None = None
    until: datetime | None = None

    def as_utc(self) -> TimeWindow:
        """Same window with naive bounds read as UTC."""

        def _aware(moment: datetime | None) -> datetime | None:
            if moment is not None and moment.tzinfo is None:
                return moment.replace(tzinfo=UTC)
            return moment

        return TimeWindow(since=_aware(self.since), until=_aware(self.until))

    def contains(self, moment: datetime) -> bool:
        if self.since is not None and moment < self.since:
            return False
        if self.until is not None and moment > self.until:
            return False
        return True


@dataclass(frozen=True)
class RequestIdentity:
    """Who a hosting call is made on behalf of.

    ``access_token`` is only used by the live client; synthetic clients
    match on ``id``.
    """

    id: int
    login: str
    access_token: str | None = None


# ─── Hosting Client ───────────────────────────────────────────────────────────


@runtime_checkable
class HostingClient(Protocol):
    """The fixed hosting-API surface consumed by the rest of DevPulse.

    Implementations: GitHubHostingClient (LIVE), SyntheticHostingClient (MOCK/DEMO).
    """

    async def get_repositories(self, identity: RequestIdentity) -> list[Repository]:
        """Repositories visible to the identity."""
        ...

    async def get_commits(self, repo: str, window: TimeWindow | None = None) -> list[Commit]:
        """Commits in ``repo`` (``owner/name``) authored inside the window."""
        ...

    async def get_pull_requests(
        self, repo: str, window: TimeWindow | None = None
    ) -> list[PullRequest]:
        """Pull requests in ``repo`` created inside the window, reviews included."""
        ...

    async def get_issues(self, repo: str, window: TimeWindow | None = None) -> list[Issue]:
        """Issues (not pull requests) in ``repo`` created inside the window."""
        ...


# ─── Storage Backends ─────────────────────────────────────────────────────────


@runtime_checkable
class ModeStore(Protocol):
    """Persists the single active mode record. ``save`` replaces it wholesale."""

    async def load(self) -> ModeConfiguration | None:
        ...

    async def save(self, config: ModeConfiguration) -> None:
        ...


@runtime_checkable
class DatasetBackend(Protocol):
    """Persists named datasets. Every write replaces a whole dataset."""

    async def get(self, name: str) -> Dataset | None:
        ...

    async def insert_if_absent(self, dataset: Dataset) -> Dataset:
        """Store ``dataset`` unless the name exists; return whichever is stored."""
        ...

    async def replace(self, dataset: Dataset) -> None:
        """Atomically drop any dataset with the same name and store this one."""
        ...

    async def delete(self, name: str) -> bool:
        ...

    async def list_names(self) -> list[str]:
        """Names ordered by creation time, oldest first."""
        ...


@runtime_checkable
class IdentityPointerStore(Protocol):
    """Session-scoped pointer to the current synthetic identity."""

    async def get(self, session_key: str) -> int | None:
        ...

    async def set(self, session_key: str, identity_id: int) -> None:
        ...

    async def clear(self, session_key: str) -> None:
        ...


@runtime_checkable
class StorageProvider(Protocol):
    """The three stores above, built together from one STORAGE_PROVIDER setting.

    Implementations: DatabaseStorage (Postgres + Redis), MemoryStorage.
    """

    name: str
    modes: ModeStore
    datasets: DatasetBackend
    identity_pointers: IdentityPointerStore

    async def startup(self) -> None:
        """Create tables / open connections."""
        ...

    async def ping(self) -> bool:
        ...

    async def aclose(self) -> Any:
        ...
