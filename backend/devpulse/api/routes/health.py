"""Health check and environment endpoints."""

from __future__ import annotations

import structlog
from fastapi import APIRouter

from devpulse.api.deps import Context
from devpulse.core.environment import APP_VERSION, get_environment_info, to_dict
from devpulse.core.errors import StorageError
from devpulse.models.schemas import HealthResponse

logger = structlog.get_logger()
router = APIRouter(tags=["health"])


@router.get("/health", response_model=HealthResponse)
async def health_check(context: Context) -> HealthResponse:
    """Service health check with storage connectivity and the active mode."""
    storage_status = "connected" if await context.storage.ping() else "disconnected"
    if storage_status != "connected":
        logger.error("health_check_storage_failed", provider=context.storage.name)

    try:
        mode = (await context.modes.get_mode()).mode.value
    except StorageError as exc:
        logger.error("health_check_mode_failed", error=str(exc))
        mode = "UNKNOWN"

    return HealthResponse(
        status="healthy" if storage_status == "connected" else "degraded",
        storage=storage_status,
        mode=mode,
        version=APP_VERSION,
    )


@router.get("/api/v1/environment")
async def get_environment(context: Context) -> dict:
    """Active mode plus the feature flags the frontend uses to render its mode badge."""
    config = await context.modes.get_mode()
    return to_dict(get_environment_info(config.mode.value, context.settings))
