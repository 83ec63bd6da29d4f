"""environment.py — Startup validation and environment metadata.

APP_MODE here is only the cold-start default for the mode record; the
Mode Controller owns the live value. This module checks that the
configured defaults are usable before the app accepts traffic.

Provider requirements:
    LIVE     → GITHUB_TOKEN (or a per-user OAuth token on every request)
    MOCK     → (none)
    DEMO     → (none)
    database → DATABASE_URL, REDIS_URL
    memory   → (none, state lost on restart)

Called by: main.py (startup), routes/health.py
Depends on: config.py (Settings)
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any
from urllib.parse import urlparse

from devpulse.config import Settings, get_settings
from devpulse.core.errors import ValidationError
from devpulse.core.modes import ApplicationMode
from devpulse.models.schemas import validate_dataset_name

logger = logging.getLogger(__name__)

# ─── Valid Values ─────────────────────────────────────────────────────────────

VALID_MODES = frozenset(mode.value for mode in ApplicationMode)
VALID_STORAGE_PROVIDERS = frozenset({"database", "memory"})
VALID_ACTIVITY_LEVELS = frozenset({"low", "medium", "high"})

APP_VERSION = "0.1.0"


# ─── Environment Info ─────────────────────────────────────────────────────────


@dataclass(frozen=True)
class EnvironmentInfo:
    """Immutable snapshot of the runtime environment.

    ``mode`` is the active mode from the controller, not APP_MODE.
    """

    mode: str             # "LIVE" | "MOCK" | "DEMO"
    app_env: str          # "development" | "staging" | "production"
    storage: str          # "database" | "memory"
    version: str
    features: dict[str, bool]


def get_environment_info(mode: str, settings: Settings | None = None) -> EnvironmentInfo:
    settings = settings or get_settings()
    synthetic = mode != ApplicationMode.LIVE.value

    features = {
        "synthetic_data": synthetic,
        "identity_switching": synthetic,
        "live_github": not synthetic,
        "debug_tools": not settings.is_production,
    }

    return EnvironmentInfo(
        mode=mode,
        app_env=settings.app_env,
        storage=settings.storage_provider,
        version=APP_VERSION,
        features=features,
    )


def to_dict(info: EnvironmentInfo) -> dict[str, Any]:
    return {
        "mode": info.mode,
        "app_env": info.app_env,
        "storage": info.storage,
        "version": info.version,
        "features": info.features,
    }


# ─── Startup Validation ──────────────────────────────────────────────────────


def _is_valid_http_url(url: str) -> bool:
    parsed = urlparse(url)
    return parsed.scheme in {"http", "https"} and bool(parsed.netloc)


def validate_environment(settings: Settings | None = None) -> None:
    """Validate environment configuration on startup.

    Checks:
        - APP_MODE is LIVE, MOCK or DEMO (case-insensitive).
        - STORAGE_PROVIDER is database or memory.
        - Synthetic defaults and the error simulation rate are in range.
        - ALLOWED_ORIGINS and GITHUB_API_URL are http(s) URLs.
        - Warns for LIVE without GITHUB_TOKEN and for synthetic modes in production.

    Called by: main.py ``lifespan()`` on app startup.

    Raises:
        ValueError: If a setting has an unrecognized value.
        RuntimeError: If a URL setting is malformed or unsafe in production.
    """
    settings = settings or get_settings()
    mode = settings.app_mode.upper()

    if mode not in VALID_MODES:
        raise ValueError(
            f"Invalid APP_MODE='{settings.app_mode}'. Must be one of: {sorted(VALID_MODES)}"
        )

    if settings.storage_provider not in VALID_STORAGE_PROVIDERS:
        raise ValueError(
            f"Invalid STORAGE_PROVIDER='{settings.storage_provider}'. "
            f"Must be one of: {sorted(VALID_STORAGE_PROVIDERS)}"
        )

    if settings.default_activity_level not in VALID_ACTIVITY_LEVELS:
        raise ValueError(
            f"Invalid DEFAULT_ACTIVITY_LEVEL='{settings.default_activity_level}'. "
            f"Must be one of: {sorted(VALID_ACTIVITY_LEVELS)}"
        )

    if not 0.0 <= settings.error_simulation_rate <= 1.0:
        raise ValueError(
            f"ERROR_SIMULATION_RATE must be within [0, 1], got {settings.error_simulation_rate}"
        )

    if not 0 <= settings.error_simulation_min_delay_ms <= settings.error_simulation_max_delay_ms:
        raise ValueError(
            "ERROR_SIMULATION_MIN_DELAY_MS must be >= 0 and <= ERROR_SIMULATION_MAX_DELAY_MS, "
            f"got {settings.error_simulation_min_delay_ms}..{settings.error_simulation_max_delay_ms}"
        )

    try:
        validate_dataset_name(settings.default_dataset)
    except ValidationError as exc:
        raise ValueError(f"Invalid DEFAULT_DATASET: {exc.message}") from None

    allowed_origins = settings.allowed_origins_list
    if "*" in allowed_origins:
        if settings.is_production:
            raise RuntimeError("ALLOWED_ORIGINS cannot contain '*' in production.")
        logger.warning("ALLOWED_ORIGINS contains '*'. This is unsafe outside local development.")

    invalid_origins = [o for o in allowed_origins if o != "*" and not _is_valid_http_url(o)]
    if invalid_origins:
        raise RuntimeError(f"ALLOWED_ORIGINS has invalid URL(s): {', '.join(invalid_origins)}")

    if not _is_valid_http_url(settings.github_api_url):
        raise RuntimeError("GITHUB_API_URL must be a full http(s) URL (example: https://api.github.com).")

    logger.info(
        "Environment initialized: mode=%s, env=%s, storage=%s",
        mode,
        settings.app_env,
        settings.storage_provider,
    )

    if mode == ApplicationMode.LIVE.value:
        if not settings.github_token:
            logger.warning(
                "GITHUB_TOKEN not set. LIVE requests will rely on per-user OAuth tokens. "
                "Consider APP_MODE=MOCK for frontend-only dev."
            )
        return

    logger.info("🎭 %s MODE: GitHub data and identities are synthetic.", mode)
    if settings.is_production:
        logger.warning(
            "APP_MODE=%s in production. Users will see synthetic data until an admin "
            "switches to LIVE.",
            mode,
        )
    if settings.uses_memory_storage:
        logger.info("STORAGE_PROVIDER=memory: datasets and mode changes are lost on restart.")
