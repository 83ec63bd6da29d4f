"""modes.py — Application mode state machine.

Three modes, every transition allowed in both directions:

    LIVE → real GitHub API, real OAuth sessions
    MOCK → synthetic dataset, synthetic identities, optional fault injection
    DEMO → same engine as MOCK, curated dataset for presentations

The ``ModeController`` is the only writer of the ``ModeConfiguration``
record. Each switch builds a complete replacement record and hands it to the
``ModeStore`` in one write, so readers only ever see records produced by a
finished ``switch_mode`` call.

Called by: interception.py, api/routes/admin.py, api/middleware.py
Depends on: protocols.py (ModeStore), errors.py, fault_injection.py (FaultKind)
"""

from __future__ import annotations

import asyncio
from collections.abc import Callable, Iterable
from dataclasses import dataclass, field, replace
from datetime import UTC, datetime
from enum import StrEnum
from typing import Any

import structlog

from devpulse.config import Settings
from devpulse.core.errors import StorageError, ValidationError
from devpulse.core.fault_injection import FaultKind
from devpulse.core.protocols import ModeStore
from devpulse.models.schemas import validate_dataset_name

logger = structlog.get_logger()

DEFAULT_DATASET_ID = "default"


class ApplicationMode(StrEnum):
    LIVE = "LIVE"
    MOCK = "MOCK"
    DEMO = "DEMO"

    @property
    def is_synthetic(self) -> bool:
        return self is not ApplicationMode.LIVE


# ─── Records ──────────────────────────────────────────────────────────────────


@dataclass(frozen=True)
class ErrorSimulation:
    """Fault and latency simulation applied to MOCK/DEMO hosting calls.

    When enabled, every call first waits a uniform draw from
    ``[min_delay_ms, max_delay_ms]`` (no wait while ``max_delay_ms`` is 0),
    then fails with probability ``rate``.
    """

    enabled: bool = False
    rate: float = 0.0
    kinds: frozenset[FaultKind] = frozenset()
    min_delay_ms: int = 0
    max_delay_ms: int = 0


@dataclass(frozen=True)
class ModeConfiguration:
    """Immutable snapshot of the active mode. Replaced, never edited."""

    mode: ApplicationMode = ApplicationMode.LIVE
    dataset_id: str | None = None
    error_simulation: ErrorSimulation = field(default_factory=ErrorSimulation)
    enabled_features: frozenset[str] = frozenset()
    updated_at: datetime | None = None

    def same_settings(self, other: ModeConfiguration) -> bool:
        """Equality ignoring ``updated_at``."""
        return replace(self, updated_at=None) == replace(other, updated_at=None)

    def to_dict(self) -> dict[str, Any]:
        return {
            "mode": self.mode.value,
            "dataset_id": self.dataset_id,
            "error_simulation": {
                "enabled": self.error_simulation.enabled,
                "rate": self.error_simulation.rate,
                "kinds": sorted(k.value for k in self.error_simulation.kinds),
                "min_delay_ms": self.error_simulation.min_delay_ms,
                "max_delay_ms": self.error_simulation.max_delay_ms,
            },
            "enabled_features": sorted(self.enabled_features),
            "updated_at": self.updated_at.isoformat() if self.updated_at else None,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> ModeConfiguration:
        sim = data.get("error_simulation") or {}
        updated_at = data.get("updated_at")
        return cls(
            mode=ApplicationMode(data["mode"]),
            dataset_id=data.get("dataset_id"),
            error_simulation=ErrorSimulation(
                enabled=bool(sim.get("enabled", False)),
                rate=float(sim.get("rate", 0.0)),
                kinds=frozenset(FaultKind(k) for k in sim.get("kinds", [])),
                min_delay_ms=int(sim.get("min_delay_ms", 0)),
                max_delay_ms=int(sim.get("max_delay_ms", 0)),
            ),
            enabled_features=frozenset(data.get("enabled_features") or []),
            updated_at=datetime.fromisoformat(updated_at) if updated_at else None,
        )


@dataclass(frozen=True)
class SwitchOptions:
    """Optional parts of a switch. Anything omitted takes its default value."""

    dataset_id: str | None = None
    error_simulation: ErrorSimulation | None = None
    enabled_features: Iterable[str] | None = None


@dataclass(frozen=True)
class ModeChange:
    previous: ModeConfiguration
    current: ModeConfiguration


ModeListener = Callable[[ModeChange], None]


# ─── Validation ───────────────────────────────────────────────────────────────


def parse_mode(value: ApplicationMode | str) -> ApplicationMode:
    if isinstance(value, ApplicationMode):
        return value
    try:
        return ApplicationMode(str(value).upper())
    except ValueError:
        raise ValidationError(
            f"Invalid mode '{value}'. Must be one of: {[m.value for m in ApplicationMode]}"
        ) from None


def parse_fault_kinds(values: Iterable[str | FaultKind]) -> frozenset[FaultKind]:
    kinds = set()
    for value in values:
        try:
            kinds.add(FaultKind(str(value).upper()))
        except ValueError:
            raise ValidationError(
                f"Unknown fault kind '{value}'. Must be one of: {[k.value for k in FaultKind]}"
            ) from None
    return frozenset(kinds)


def build_configuration(
    mode: ApplicationMode | str,
    options: SwitchOptions | None = None,
) -> ModeConfiguration:
    """Validate a switch request and build the full replacement record.

    Raises:
        ValidationError: Unknown mode, blank or malformed dataset id, rate
            outside [0, 1], or an inverted delay range.
    """
    new_mode = parse_mode(mode)
    options = options or SwitchOptions()

    dataset_id: str | None = None
    if new_mode.is_synthetic:
        if options.dataset_id is not None and not options.dataset_id.strip():
            raise ValidationError("dataset_id must not be blank.")
        dataset_id = validate_dataset_name((options.dataset_id or DEFAULT_DATASET_ID).strip())

    simulation = options.error_simulation or ErrorSimulation()
    if not 0.0 <= simulation.rate <= 1.0:
        raise ValidationError(f"error_simulation.rate must be within [0, 1], got {simulation.rate}.")
    if not 0 <= simulation.min_delay_ms <= simulation.max_delay_ms:
        raise ValidationError(
            "error_simulation delays must satisfy 0 <= min_delay_ms <= max_delay_ms, "
            f"got {simulation.min_delay_ms}..{simulation.max_delay_ms}."
        )
    simulation = replace(simulation, kinds=parse_fault_kinds(simulation.kinds))

    features = frozenset(f.strip() for f in (options.enabled_features or []) if f.strip())

    return ModeConfiguration(
        mode=new_mode,
        dataset_id=dataset_id,
        error_simulation=simulation,
        enabled_features=features,
    )


def defaults_from_settings(settings: Settings) -> ModeConfiguration:
    """Cold-start configuration derived from the environment.

    An invalid APP_MODE is caught by ``validate_environment()`` at startup;
    here it degrades to LIVE.
    """
    try:
        mode = parse_mode(settings.app_mode)
    except ValidationError:
        logger.warning("invalid_app_mode_ignored", app_mode=settings.app_mode)
        mode = ApplicationMode.LIVE

    try:
        kinds = parse_fault_kinds(settings.error_simulation_kinds_list)
    except ValidationError:
        logger.warning("invalid_fault_kinds_ignored", kinds=settings.error_simulation_kinds)
        kinds = frozenset()

    return ModeConfiguration(
        mode=mode,
        dataset_id=(settings.default_dataset or DEFAULT_DATASET_ID) if mode.is_synthetic else None,
        error_simulation=ErrorSimulation(
            enabled=settings.error_simulation_enabled,
            rate=min(1.0, max(0.0, settings.error_simulation_rate)),
            kinds=kinds,
            min_delay_ms=max(0, settings.error_simulation_min_delay_ms),
            max_delay_ms=max(0, settings.error_simulation_max_delay_ms),
        ),
        enabled_features=settings.enabled_features_set,
    )


# ─── Controller ───────────────────────────────────────────────────────────────


class ModeController:
    """Owns the active ``ModeConfiguration`` and broadcasts transitions.

    All switches go through one asyncio lock, so two concurrent switches are
    applied one after the other and never interleave their reads and writes.
    """

    def __init__(self, store: ModeStore, settings: Settings) -> None:
        self._store = store
        self._settings = settings
        self._lock = asyncio.Lock()
        self._listeners: list[ModeListener] = []

    async def get_mode(self) -> ModeConfiguration:
        """Return the persisted configuration, or the environment defaults."""
        stored = await self._store.load()
        if stored is not None:
            return stored
        return defaults_from_settings(self._settings)

    async def is_feature_enabled(self, feature_id: str) -> bool:
        config = await self.get_mode()
        return feature_id in config.enabled_features

    async def switch_mode(
        self,
        new_mode: ApplicationMode | str,
        options: SwitchOptions | None = None,
    ) -> bool:
        """Atomically replace the active configuration.

        Args:
            new_mode: Target mode.
            options: Dataset id, error simulation and enabled features.

        Returns:
            True on success (including the no-op case), False when the store
            failed to read or persist; the previous configuration is then
            unchanged.

        Raises:
            ValidationError: Invalid mode or options. Nothing is written.
        """
        candidate = build_configuration(new_mode, options)

        async with self._lock:
            try:
                previous = await self.get_mode()
            except StorageError as exc:
                logger.error("mode_switch_failed", mode=candidate.mode.value, error=str(exc))
                return False
            if previous.same_settings(candidate):
                logger.debug("mode_switch_noop", mode=candidate.mode.value)
                return True

            current = replace(candidate, updated_at=datetime.now(UTC))
            try:
                await self._store.save(current)
            except StorageError as exc:
                logger.error("mode_switch_failed", mode=current.mode.value, error=str(exc))
                return False

            logger.info(
                "mode_switched",
                previous=previous.mode.value,
                mode=current.mode.value,
                dataset_id=current.dataset_id,
                faults_enabled=current.error_simulation.enabled,
                fault_rate=current.error_simulation.rate,
            )
            self._notify(ModeChange(previous=previous, current=current))
        return True

    def subscribe(self, listener: ModeListener) -> Callable[[], None]:
        """Register a listener for completed switches. Returns an unsubscribe callable."""
        self._listeners.append(listener)

        def _unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return _unsubscribe

    def _notify(self, change: ModeChange) -> None:
        for listener in list(self._listeners):
            try:
                listener(change)
            except Exception:
                logger.exception("mode_listener_failed", listener=repr(listener))
