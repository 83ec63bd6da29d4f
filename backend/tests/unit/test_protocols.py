"""Tests for provider protocol compliance and registry selection."""

from __future__ import annotations

import pytest

from devpulse.core.modes import ApplicationMode
from devpulse.core.protocols import (
    DatasetBackend,
    HostingClient,
    IdentityPointerStore,
    ModeStore,
    StorageProvider,
)
from devpulse.core.registry import ProviderRegistry, register_provider
from devpulse.mock.generator import SyntheticDataGenerator


def test_github_client_implements_protocol() -> None:
    """Live GitHub client should satisfy HostingClient protocol."""
    from devpulse.core.providers.github_client import GitHubHostingClient

    assert issubclass(GitHubHostingClient, HostingClient)


def test_synthetic_client_implements_protocol() -> None:
    """Synthetic client should satisfy HostingClient protocol."""
    from devpulse.core.providers.synthetic_client import SyntheticHostingClient

    assert issubclass(SyntheticHostingClient, HostingClient)


def test_sql_stores_implement_protocols() -> None:
    from devpulse.core.providers.redis_identity import RedisIdentityPointerStore
    from devpulse.core.providers.sql_storage import SqlDatasetBackend, SqlModeStore

    assert issubclass(SqlModeStore, ModeStore)
    assert issubclass(SqlDatasetBackend, DatasetBackend)
    assert issubclass(RedisIdentityPointerStore, IdentityPointerStore)


def test_memory_storage_implements_protocols(settings) -> None:
    from devpulse.core.providers.memory_storage import MemoryStorage

    storage = MemoryStorage(settings)

    assert isinstance(storage, StorageProvider)
    assert isinstance(storage.modes, ModeStore)
    assert isinstance(storage.datasets, DatasetBackend)
    assert isinstance(storage.identity_pointers, IdentityPointerStore)


# ─── Registry ─────────────────────────────────────────────────────────────────


def test_registry_builds_memory_storage(settings) -> None:
    storage = ProviderRegistry(settings).get_storage()

    assert storage.name == "memory"


def test_registry_rejects_unknown_storage(settings) -> None:
    with pytest.raises(ValueError, match="Unknown storage provider"):
        ProviderRegistry(settings).get_storage("cassandra")


def test_register_provider_rejects_unknown_category() -> None:
    with pytest.raises(ValueError, match="Unknown provider category"):
        register_provider("cache", "redis", object)


@pytest.mark.anyio
async def test_live_client_is_cached(settings) -> None:
    registry = ProviderRegistry(settings)

    first = registry.get_client(ApplicationMode.LIVE)
    second = registry.get_client(ApplicationMode.LIVE)

    assert first is second
    await registry.aclose()


def test_synthetic_client_built_per_dataset(settings, small_params) -> None:
    registry = ProviderRegistry(settings)
    dataset = SyntheticDataGenerator().generate(small_params, "default")

    client = registry.get_client(ApplicationMode.DEMO, dataset)

    assert isinstance(client, HostingClient)
    assert registry.get_client(ApplicationMode.MOCK, dataset) is not client


def test_synthetic_client_requires_dataset(settings) -> None:
    with pytest.raises(ValueError, match="requires a dataset"):
        ProviderRegistry(settings).get_client(ApplicationMode.MOCK)
