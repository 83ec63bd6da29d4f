"""interception.py — Single entry point for hosting-API reads.

Consumers call ``RequestInterceptor.dispatch`` instead of a concrete client.
Per call it:

    1. reads the active ModeConfiguration,
    2. LIVE      → forwards to the GitHub client untouched,
       MOCK/DEMO → waits the simulated latency and draws against the fault
                   injector first (a fault is raised before any dataset
                   access), then loads the active dataset and serves the
                   slice from a synthetic client,
    3. appends a CallRecord to the CallLog ring buffer.

Callers can't tell LIVE from MOCK/DEMO by return type or error class.

Called by: api/routes/github.py, api/routes/analytics.py
Depends on: modes.py, fault_injection.py, registry.py, mock/datasets.py
"""

from __future__ import annotations

import asyncio
import time
from collections import deque
from collections.abc import Callable
from dataclasses import dataclass
from datetime import UTC, datetime
from enum import StrEnum
from typing import TYPE_CHECKING, Any

import structlog

from devpulse.core.errors import DevPulseError, UpstreamError, ValidationError
from devpulse.core.fault_injection import FaultInjectionConfig, FaultInjector, build_fault
from devpulse.core.modes import DEFAULT_DATASET_ID, ModeConfiguration, ModeController
from devpulse.core.protocols import HostingClient, RequestIdentity, TimeWindow
from devpulse.core.registry import ProviderRegistry

if TYPE_CHECKING:
    from devpulse.mock.datasets import DatasetStore

logger = structlog.get_logger()


class Operation(StrEnum):
    GET_REPOSITORIES = "get_repositories"
    GET_COMMITS = "get_commits"
    GET_PULL_REQUESTS = "get_pull_requests"
    GET_ISSUES = "get_issues"


# ─── Call Log ─────────────────────────────────────────────────────────────────


@dataclass(frozen=True)
class CallRecord:
    timestamp: datetime
    operation: str
    mode: str
    dataset_id: str | None
    outcome: str  # "ok" | "fault" | "error"
    error_code: str | None
    duration_ms: float

    def to_dict(self) -> dict[str, Any]:
        return {
            "timestamp": self.timestamp.isoformat(),
            "operation": self.operation,
            "mode": self.mode,
            "dataset_id": self.dataset_id,
            "outcome": self.outcome,
            "error_code": self.error_code,
            "duration_ms": round(self.duration_ms, 2),
        }


CallListener = Callable[[CallRecord], None]


class CallLog:
    """Bounded ring buffer of recent dispatches, oldest dropped first."""

    def __init__(self, maxlen: int = 200) -> None:
        self._records: deque[CallRecord] = deque(maxlen=maxlen)
        self._listeners: list[CallListener] = []

    def append(self, record: CallRecord) -> None:
        self._records.append(record)
        for listener in list(self._listeners):
            try:
                listener(record)
            except Exception:
                logger.exception("call_log_listener_failed", listener=repr(listener))

    def snapshot(self, limit: int | None = None) -> list[CallRecord]:
        """Most recent first."""
        records = list(reversed(self._records))
        return records[:limit] if limit is not None else records

    def subscribe(self, listener: CallListener) -> Callable[[], None]:
        self._listeners.append(listener)

        def _unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return _unsubscribe

    def clear(self) -> None:
        self._records.clear()

    def __len__(self) -> int:
        return len(self._records)


# ─── Interceptor ──────────────────────────────────────────────────────────────


class RequestInterceptor:
    """Routes hosting reads to the live or synthetic client for the active mode."""

    def __init__(
        self,
        modes: ModeController,
        datasets: DatasetStore,
        registry: ProviderRegistry,
        call_log: CallLog,
        fault_injector: FaultInjector | None = None,
    ) -> None:
        self._modes = modes
        self._datasets = datasets
        self._registry = registry
        self._call_log = call_log
        self._faults = fault_injector or FaultInjector()

    async def dispatch(
        self, operation: Operation | str, args: dict[str, Any] | None = None
    ) -> Any:
        """Run one hosting operation in the active mode.

        Args:
            operation: One of ``Operation``.
            args: ``{"identity": RequestIdentity}`` for get_repositories,
                ``{"repo": "owner/name", "window": TimeWindow | None}`` otherwise.

        Raises:
            ValidationError: Unknown operation or malformed arguments.
            UpstreamError: From the live client or injected by fault simulation.
        """
        op = _parse_operation(operation)
        args = _validate_args(op, args or {})

        config = await self._modes.get_mode()
        started = time.perf_counter()
        outcome, error_code = "error", None
        try:
            fault = await self._simulate_upstream(config)
            if fault is not None:
                outcome, error_code = "fault", fault.code
                raise fault
            client = await self._client_for(config)
            result = await _invoke(client, op, args)
            outcome = "ok"
            return result
        except DevPulseError as exc:
            error_code = exc.code
            raise
        finally:
            self._call_log.append(
                CallRecord(
                    timestamp=datetime.now(UTC),
                    operation=op.value,
                    mode=config.mode.value,
                    dataset_id=config.dataset_id,
                    outcome=outcome,
                    error_code=error_code,
                    duration_ms=(time.perf_counter() - started) * 1000,
                )
            )

    async def _simulate_upstream(self, config: ModeConfiguration) -> UpstreamError | None:
        """Wait the simulated latency, then return a simulated failure, if any.

        Neither is applied in LIVE mode.
        """
        if not config.mode.is_synthetic:
            return None
        fault_config = FaultInjectionConfig.from_error_simulation(config.error_simulation)
        delay = self._faults.pick_delay(fault_config)
        if delay > 0:
            await asyncio.sleep(delay)
        if not self._faults.should_fail(fault_config):
            return None
        kind = self._faults.pick_fault_kind(fault_config)
        logger.info("fault_injected", kind=kind.value, mode=config.mode.value)
        return build_fault(kind)

    async def _client_for(self, config: ModeConfiguration) -> HostingClient:
        if not config.mode.is_synthetic:
            return self._registry.get_client(config.mode)
        dataset = await self._datasets.get_or_create(config.dataset_id or DEFAULT_DATASET_ID)
        return self._registry.get_client(config.mode, dataset)


def _parse_operation(operation: Operation | str) -> Operation:
    try:
        return Operation(operation)
    except ValueError:
        raise ValidationError(
            f"Unknown operation '{operation}'. Must be one of: {[o.value for o in Operation]}"
        ) from None


def _validate_args(op: Operation, args: dict[str, Any]) -> dict[str, Any]:
    if op is Operation.GET_REPOSITORIES:
        identity = args.get("identity")
        if not isinstance(identity, RequestIdentity):
            raise ValidationError("get_repositories requires an 'identity' argument.")
        return {"identity": identity}

    repo = args.get("repo")
    if not isinstance(repo, str) or repo.count("/") != 1 or not all(repo.split("/")):
        raise ValidationError(f"{op.value} requires 'repo' in 'owner/name' form.")
    window = args.get("window")
    if window is not None:
        if not isinstance(window, TimeWindow):
            raise ValidationError(f"{op.value} 'window' must be a TimeWindow.")
        # Dataset timestamps are aware; naive bounds are read as UTC in every mode.
        window = window.as_utc()
        if window.since and window.until and window.since > window.until:
            raise ValidationError("'since' must not be after 'until'.")
    return {"repo": repo, "window": window}


async def _invoke(client: HostingClient, op: Operation, args: dict[str, Any]) -> Any:
    if op is Operation.GET_REPOSITORIES:
        return await client.get_repositories(args["identity"])
    if op is Operation.GET_COMMITS:
        return await client.get_commits(args["repo"], args["window"])
    if op is Operation.GET_PULL_REQUESTS:
        return await client.get_pull_requests(args["repo"], args["window"])
    return await client.get_issues(args["repo"], args["window"])
