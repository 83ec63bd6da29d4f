"""Global pytest fixtures.

Every fixture runs over MemoryStorage so no Postgres or Redis is needed.
Synthetic defaults are kept small to keep dataset generation fast.
"""

from __future__ import annotations

import random

import pytest
from httpx import ASGITransport, AsyncClient

from devpulse.config import Settings
from devpulse.core.context import SimulationContext, build_context
from devpulse.core.fault_injection import FaultInjector
from devpulse.core.providers.memory_storage import MemoryStorage
from devpulse.main import create_app
from devpulse.models.schemas import GenerationParameters


@pytest.fixture
def anyio_backend():
    return "asyncio"


@pytest.fixture
def settings() -> Settings:
    """Memory-backed settings with small synthetic defaults."""
    return Settings(
        _env_file=None,
        app_mode="LIVE",
        storage_provider="memory",
        github_token="test-token",
        default_repository_count=2,
        default_users_per_repository=2,
        default_time_range_days=14,
        default_activity_level="medium",
        call_log_size=50,
    )


@pytest.fixture
def small_params() -> GenerationParameters:
    return GenerationParameters(
        repository_count=2,
        users_per_repository=3,
        time_range_days=14,
        activity_level="medium",
        seed=1234,
    )


@pytest.fixture
def context(settings: Settings) -> SimulationContext:
    """A SimulationContext over MemoryStorage with a seeded fault injector."""
    return build_context(
        settings,
        storage=MemoryStorage(settings),
        fault_injector=FaultInjector(random.Random(7)),
    )


@pytest.fixture
async def client(context: SimulationContext):
    """Async client against an app sharing ``context``.

    ASGITransport does not run the lifespan; ``create_app`` attaches the
    context to ``app.state`` directly.
    """
    app = create_app(context=context)
    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as ac:
        yield ac
