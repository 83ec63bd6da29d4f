"""admin.py — Application mode, dataset management, and the debug call log.

Admin endpoints for switching LIVE/MOCK/DEMO at runtime, generating,
resetting, importing and exporting synthetic datasets, and inspecting the
most recent hosting calls.

Called by: Frontend admin page (/dashboard/admin)
Depends on: deps.py (Context), core/modes.py, mock/datasets.py
"""

from __future__ import annotations

import structlog
from fastapi import APIRouter, Query, Request, Response

from devpulse.api.deps import Context
from devpulse.core.errors import DatasetNotFoundError, StorageError
from devpulse.core.modes import ErrorSimulation, ModeConfiguration, SwitchOptions
from devpulse.models.schemas import (
    AppModeRead,
    AppModeUpdate,
    DatasetSummary,
    DatasetUpsert,
    ErrorSimulationBody,
)

router = APIRouter(prefix="/api/v1/admin", tags=["admin"])
logger = structlog.get_logger()


def _mode_read(config: ModeConfiguration) -> AppModeRead:
    simulation = config.error_simulation
    return AppModeRead(
        mode=config.mode.value,
        dataset_id=config.dataset_id,
        error_simulation=ErrorSimulationBody(
            enabled=simulation.enabled,
            rate=simulation.rate,
            kinds=sorted(kind.value for kind in simulation.kinds),
            min_delay_ms=simulation.min_delay_ms,
            max_delay_ms=simulation.max_delay_ms,
        ),
        enabled_features=sorted(config.enabled_features),
        updated_at=config.updated_at,
    )


# ─── Application Mode ─────────────────────────────────────────────────────────


@router.get("/app-mode", response_model=AppModeRead)
async def get_app_mode(context: Context) -> AppModeRead:
    """Return the active mode configuration.

    Returns:
        The persisted configuration, or the environment defaults before
        the first switch (``updated_at`` is null in that case).
    """
    return _mode_read(await context.modes.get_mode())


@router.put("/app-mode", response_model=AppModeRead)
async def update_app_mode(body: AppModeUpdate, context: Context) -> AppModeRead:
    """Switch the application mode.

    The whole record is replaced: options left out of the body take their
    defaults rather than the previous values. Omitted ``enabled_features``
    fall back to ENABLED_FEATURES.

    Raises:
        ValidationError: 422 for an unknown fault kind, a malformed dataset
            id, or an inverted delay range.
        StorageError: 503 when the new mode could not be persisted; the
            previous mode stays active.
    """
    simulation = None
    if body.error_simulation is not None:
        simulation = ErrorSimulation(
            enabled=body.error_simulation.enabled,
            rate=body.error_simulation.rate,
            kinds=frozenset(body.error_simulation.kinds),
            min_delay_ms=body.error_simulation.min_delay_ms,
            max_delay_ms=body.error_simulation.max_delay_ms,
        )
    features = (
        body.enabled_features
        if body.enabled_features is not None
        else context.settings.enabled_features_set
    )

    switched = await context.modes.switch_mode(
        body.mode,
        SwitchOptions(
            dataset_id=body.dataset_id,
            error_simulation=simulation,
            enabled_features=features,
        ),
    )
    if not switched:
        raise StorageError("The mode change could not be saved. The previous mode is still active.")
    return _mode_read(await context.modes.get_mode())


# ─── Datasets ─────────────────────────────────────────────────────────────────


@router.get("/datasets")
async def list_datasets(context: Context) -> list[str]:
    """Dataset names in creation order."""
    return await context.datasets.list()


@router.get("/datasets/{name}", response_model=DatasetSummary)
async def get_dataset(name: str, context: Context) -> DatasetSummary:
    """Counts and generation parameters for one dataset.

    Raises:
        DatasetNotFoundError: 404 if no dataset is stored under ``name``.
    """
    dataset = await context.datasets.get(name)
    if dataset is None:
        raise DatasetNotFoundError(f"Dataset '{name}' does not exist.")
    return DatasetSummary.from_dataset(dataset)


@router.put("/datasets/{name}", response_model=DatasetSummary)
async def upsert_dataset(
    name: str,
    context: Context,
    body: DatasetUpsert | None = None,
) -> DatasetSummary:
    """Generate ``name`` from scratch, replacing any existing dataset.

    Without a body the configured default parameters are used.
    """
    params = body.to_parameters() if body is not None else None
    dataset = await context.datasets.upsert_dataset(name, params)
    return DatasetSummary.from_dataset(dataset)


@router.delete("/datasets/{name}", status_code=204)
async def delete_dataset(name: str, context: Context) -> Response:
    if not await context.datasets.delete(name):
        raise DatasetNotFoundError(f"Dataset '{name}' does not exist.")
    return Response(status_code=204)


@router.get("/datasets/{name}/export")
async def export_dataset(name: str, context: Context) -> Response:
    """Download the full dataset as a JSON document."""
    blob = await context.datasets.export(name)
    return Response(
        content=blob,
        media_type="application/json",
        headers={"Content-Disposition": f'attachment; filename="{name}.json"'},
    )


@router.post("/datasets/{name}/import", response_model=DatasetSummary)
async def import_dataset(name: str, request: Request, context: Context) -> DatasetSummary:
    """Store a previously exported document under ``name``.

    The raw request body is the document. It is validated in full before
    anything is replaced.

    Raises:
        ValidationError: 422 with the list of problems found.
    """
    blob = await request.body()
    dataset = await context.datasets.import_(name, blob)
    return DatasetSummary.from_dataset(dataset)


# ─── Debug Call Log ───────────────────────────────────────────────────────────


@router.get("/calls")
async def list_calls(
    context: Context,
    limit: int = Query(default=50, ge=1, le=1000),
) -> list[dict]:
    """Most recent hosting calls, newest first."""
    return [record.to_dict() for record in context.call_log.snapshot(limit)]


@router.delete("/calls", status_code=204)
async def clear_calls(context: Context) -> Response:
    context.call_log.clear()
    logger.info("call_log_cleared")
    return Response(status_code=204)
