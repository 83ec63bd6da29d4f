"""context.py — The simulation context: every component, wired once.

There is no module-level mode singleton. ``build_context`` assembles the
storage provider, Mode Controller, Dataset Store, call log and Request
Interceptor into one object that ``main.py`` hangs on ``app.state`` and
routes reach through ``deps.get_context``. Tests build their own context
over ``MemoryStorage``.

Called by: main.py (lifespan), api/deps.py, tests
Depends on: registry.py, modes.py, interception.py, mock/datasets.py
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import timedelta

from devpulse.config import Settings
from devpulse.core.fault_injection import FaultInjector
from devpulse.core.interception import CallLog, RequestInterceptor
from devpulse.core.modes import ModeController
from devpulse.core.protocols import StorageProvider
from devpulse.core.registry import ProviderRegistry
from devpulse.mock.datasets import DatasetStore
from devpulse.mock.generator import SyntheticDataGenerator
from devpulse.mock.identity_simulation import IdentitySimulation
from devpulse.models.schemas import GenerationParameters

logger = logging.getLogger(__name__)


def default_generation_parameters(settings: Settings) -> GenerationParameters:
    return GenerationParameters(
        repository_count=settings.default_repository_count,
        users_per_repository=settings.default_users_per_repository,
        time_range_days=settings.default_time_range_days,
        activity_level=settings.default_activity_level,
    )


@dataclass
class SimulationContext:
    settings: Settings
    registry: ProviderRegistry
    storage: StorageProvider
    modes: ModeController
    datasets: DatasetStore
    call_log: CallLog
    interceptor: RequestInterceptor
    fault_injector: FaultInjector = field(default_factory=FaultInjector)

    def identity_simulation(self, session_key: str) -> IdentitySimulation:
        """Identity selection scoped to one browser session."""
        return IdentitySimulation(
            session_key,
            self.storage.identity_pointers,
            session_ttl=timedelta(seconds=self.settings.identity_session_ttl_seconds),
        )

    async def startup(self) -> None:
        await self.storage.startup()

    async def aclose(self) -> None:
        await self.registry.aclose()
        await self.storage.aclose()


def build_context(
    settings: Settings,
    storage: StorageProvider | None = None,
    fault_injector: FaultInjector | None = None,
    generator: SyntheticDataGenerator | None = None,
) -> SimulationContext:
    """Assemble a SimulationContext from settings.

    Args:
        settings: Application settings.
        storage: Pre-built storage provider. Defaults to STORAGE_PROVIDER.
        fault_injector: Injector with a seeded RNG (tests).
        generator: Generator override (tests use a wrapped one to count calls).
    """
    registry = ProviderRegistry(settings)
    storage = storage or registry.get_storage()
    injector = fault_injector or FaultInjector()

    modes = ModeController(storage.modes, settings)
    datasets = DatasetStore(
        storage.datasets,
        generator or SyntheticDataGenerator(),
        default_generation_parameters(settings),
    )
    call_log = CallLog(maxlen=settings.call_log_size)
    interceptor = RequestInterceptor(modes, datasets, registry, call_log, injector)

    logger.info("Simulation context built with %s storage", storage.name)
    return SimulationContext(
        settings=settings,
        registry=registry,
        storage=storage,
        modes=modes,
        datasets=datasets,
        call_log=call_log,
        interceptor=interceptor,
        fault_injector=injector,
    )
