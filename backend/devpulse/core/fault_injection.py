"""fault_injection.py — Probabilistic upstream failure and latency simulation.

When error simulation is enabled in MOCK/DEMO mode, each dispatched call
waits a simulated upstream latency, then draws once against ``probability``.
A failing draw raises one of the same exception classes the live GitHub
client raises, so callers exercise their real error handling paths.

Draws hold no shared state beyond the RNG, which is safe to call from
multiple tasks and threads.

Called by: interception.py
Depends on: errors.py
"""

from __future__ import annotations

import random
from dataclasses import dataclass
from enum import StrEnum
from typing import TYPE_CHECKING

from devpulse.core.errors import (
    AuthenticationError,
    NetworkError,
    NotFound,
    RateLimitExceeded,
    ServerError,
    UpstreamError,
)

if TYPE_CHECKING:
    from devpulse.core.modes import ErrorSimulation


class FaultKind(StrEnum):
    RATE_LIMIT_EXCEEDED = "RATE_LIMIT_EXCEEDED"
    NETWORK_ERROR = "NETWORK_ERROR"
    AUTHENTICATION_ERROR = "AUTHENTICATION_ERROR"
    NOT_FOUND = "NOT_FOUND"
    SERVER_ERROR = "SERVER_ERROR"


# Each kind maps to the class the live client raises for that failure.
_FAULT_BUILDERS: dict[FaultKind, type[UpstreamError]] = {
    FaultKind.RATE_LIMIT_EXCEEDED: RateLimitExceeded,
    FaultKind.NETWORK_ERROR: NetworkError,
    FaultKind.AUTHENTICATION_ERROR: AuthenticationError,
    FaultKind.NOT_FOUND: NotFound,
    FaultKind.SERVER_ERROR: ServerError,
}

_ALL_KINDS: tuple[FaultKind, ...] = tuple(FaultKind)


@dataclass(frozen=True)
class FaultInjectionConfig:
    enabled: bool = False
    probability: float = 0.0
    allowed_kinds: frozenset[FaultKind] = frozenset()
    min_delay_ms: int = 0
    max_delay_ms: int = 0

    @classmethod
    def from_error_simulation(cls, simulation: ErrorSimulation) -> FaultInjectionConfig:
        return cls(
            enabled=simulation.enabled,
            probability=simulation.rate,
            allowed_kinds=frozenset(simulation.kinds),
            min_delay_ms=simulation.min_delay_ms,
            max_delay_ms=simulation.max_delay_ms,
        )


class FaultInjector:
    """Decides whether a call fails and with what.

    Args:
        rng: Source of randomness. Tests pass a seeded ``random.Random``.
    """

    def __init__(self, rng: random.Random | None = None) -> None:
        self._rng = rng or random.Random()

    def should_fail(self, config: FaultInjectionConfig) -> bool:
        if not config.enabled or config.probability <= 0.0:
            return False
        return self._rng.random() < config.probability

    def pick_fault_kind(self, config: FaultInjectionConfig) -> FaultKind:
        # Sorted so a seeded RNG yields the same choice regardless of set order.
        candidates = sorted(config.allowed_kinds) if config.allowed_kinds else list(_ALL_KINDS)
        return self._rng.choice(candidates)

    def pick_delay(self, config: FaultInjectionConfig) -> float:
        """Simulated upstream latency in seconds; 0.0 when disabled."""
        if not config.enabled or config.max_delay_ms <= 0:
            return 0.0
        low = min(config.min_delay_ms, config.max_delay_ms)
        return self._rng.uniform(low, config.max_delay_ms) / 1000


def build_fault(kind: FaultKind) -> UpstreamError:
    """Build the exception the live client raises for this failure kind."""
    error_cls = _FAULT_BUILDERS[kind]
    if error_cls is RateLimitExceeded:
        return RateLimitExceeded(retry_after=60)
    return error_cls()

