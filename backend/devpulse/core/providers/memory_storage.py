"""memory_storage.py — In-process storage for tests and frontend development.

Implements the ModeStore, DatasetBackend and IdentityPointerStore protocols
with plain dicts. Everything is lost on restart.

Called by: registry.py when STORAGE_PROVIDER=memory
Depends on: protocols.py
"""

from __future__ import annotations

import logging
import time

from devpulse.config import Settings
from devpulse.core.modes import ModeConfiguration
from devpulse.core.registry import register_provider
from devpulse.models.schemas import Dataset

logger = logging.getLogger(__name__)


class MemoryModeStore:
    def __init__(self) -> None:
        self._record: ModeConfiguration | None = None

    async def load(self) -> ModeConfiguration | None:
        return self._record

    async def save(self, config: ModeConfiguration) -> None:
        self._record = config


class MemoryDatasetBackend:
    """Datasets keyed by name; dict insertion order is creation order."""

    def __init__(self) -> None:
        self._datasets: dict[str, Dataset] = {}

    async def get(self, name: str) -> Dataset | None:
        return self._datasets.get(name)

    async def insert_if_absent(self, dataset: Dataset) -> Dataset:
        return self._datasets.setdefault(dataset.name, dataset)

    async def replace(self, dataset: Dataset) -> None:
        # pop first so a replaced name moves to the end of the ordering
        self._datasets.pop(dataset.name, None)
        self._datasets[dataset.name] = dataset

    async def delete(self, name: str) -> bool:
        return self._datasets.pop(name, None) is not None

    async def list_names(self) -> list[str]:
        return list(self._datasets)


class MemoryIdentityPointerStore:
    def __init__(self, ttl_seconds: int) -> None:
        self._ttl = ttl_seconds
        # session_key -> (identity_id, expires_at monotonic)
        self._pointers: dict[str, tuple[int, float]] = {}

    async def get(self, session_key: str) -> int | None:
        entry = self._pointers.get(session_key)
        if entry is None:
            return None
        identity_id, expires_at = entry
        if time.monotonic() >= expires_at:
            del self._pointers[session_key]
            return None
        return identity_id

    async def set(self, session_key: str, identity_id: int) -> None:
        self._pointers[session_key] = (identity_id, time.monotonic() + self._ttl)

    async def clear(self, session_key: str) -> None:
        self._pointers.pop(session_key, None)


class MemoryStorage:
    """All three stores in RAM.

    Usage:
        Set STORAGE_PROVIDER=memory. Tests build it directly.
    """

    name = "memory"

    def __init__(self, settings: Settings) -> None:
        self.modes = MemoryModeStore()
        self.datasets = MemoryDatasetBackend()
        self.identity_pointers = MemoryIdentityPointerStore(settings.identity_session_ttl_seconds)
        logger.info("🎭 MemoryStorage initialized, state is lost on restart")

    async def startup(self) -> None:
        return None

    async def ping(self) -> bool:
        return True

    async def aclose(self) -> None:
        return None


register_provider("storage", "memory", MemoryStorage)
