"""Provider registry — resolves hosting clients and storage from config.

The registry is the single place where provider implementations are wired.

    hosting  → keyed on ApplicationMode. LIVE builds the GitHub client once
               and reuses it; MOCK/DEMO build a synthetic client over the
               dataset they are given, per call.
    storage  → keyed on STORAGE_PROVIDER ("database" or "memory").

Adding a new provider = one ``register_provider`` call in a module under
providers/ plus an import in ``_ensure_providers_loaded``.

Usage:
    registry = ProviderRegistry(settings)
    storage = registry.get_storage()
    client = registry.get_client(ApplicationMode.MOCK, dataset)
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from typing import Any

from devpulse.config import Settings
from devpulse.core.modes import ApplicationMode
from devpulse.core.protocols import HostingClient, StorageProvider
from devpulse.models.schemas import Dataset

logger = logging.getLogger(__name__)

# ─── Provider Factory Map ──────────────────────────────────────────────────────

HostingFactory = Callable[[Settings, Dataset | None], HostingClient]

_HOSTING_FACTORIES: dict[str, HostingFactory] = {}
_STORAGE_FACTORIES: dict[str, Callable[[Settings], StorageProvider]] = {}


def register_provider(category: str, name: str, factory: Callable[..., Any]) -> None:
    """Register a provider implementation.

    Called by provider modules on import, or manually in tests.

    Args:
        category: 'hosting' or 'storage'.
        name: ApplicationMode value for hosting, STORAGE_PROVIDER value for storage.
        factory: Class or callable building the provider.
    """
    registry_map: dict[str, dict[str, Any]] = {
        "hosting": _HOSTING_FACTORIES,
        "storage": _STORAGE_FACTORIES,
    }

    target = registry_map.get(category)
    if target is None:
        raise ValueError(f"Unknown provider category: {category}")

    target[name] = factory
    logger.debug("Registered %s provider: %s", category, name)


class ProviderRegistry:
    """Resolves providers for one application and caches the reusable ones."""

    def __init__(self, settings: Settings) -> None:
        self._settings = settings
        self._live_client: HostingClient | None = None
        self._ensure_providers_loaded()

    @staticmethod
    def _ensure_providers_loaded() -> None:
        """Import provider modules to trigger registration."""
        from devpulse.core.providers import (  # noqa: F401
            github_client,
            memory_storage,
            sql_storage,
            synthetic_client,
        )

    def get_storage(self, override: str | None = None) -> StorageProvider:
        """Build the configured storage provider. Called once at startup."""
        name = override or self._settings.storage_provider
        factory = _STORAGE_FACTORIES.get(name)
        if factory is None:
            raise ValueError(
                f"Unknown storage provider: '{name}'. Available: {list(_STORAGE_FACTORIES)}"
            )
        storage = factory(self._settings)
        logger.info("Initialized storage provider: %s", name)
        return storage

    def get_client(self, mode: ApplicationMode, dataset: Dataset | None = None) -> HostingClient:
        """Return the hosting client for ``mode``.

        Raises:
            ValueError: No client registered for the mode, or a synthetic
                mode was requested without a dataset.
        """
        if mode is ApplicationMode.LIVE and self._live_client is not None:
            return self._live_client

        factory = _HOSTING_FACTORIES.get(mode.value)
        if factory is None:
            raise ValueError(
                f"No hosting client for mode '{mode}'. Available: {list(_HOSTING_FACTORIES)}"
            )
        client = factory(self._settings, dataset)
        if mode is ApplicationMode.LIVE:
            self._live_client = client
            logger.info("Initialized live GitHub client")
        return client

    def set_live_client(self, client: HostingClient) -> None:
        """Replace the cached LIVE client (tests inject a mock transport this way)."""
        self._live_client = client

    async def aclose(self) -> None:
        if self._live_client is not None and hasattr(self._live_client, "aclose"):
            await self._live_client.aclose()
        self._live_client = None
