"""Tests for application configuration."""

from __future__ import annotations

from pathlib import Path

from devpulse.config import Settings, get_settings


def test_default_settings():
    """Settings should have sensible defaults."""
    settings = Settings(_env_file=None)
    assert settings.app_env == "development"
    assert settings.is_production is False
    assert settings.app_mode == "LIVE"
    assert settings.storage_provider == "database"
    assert settings.uses_memory_storage is False
    assert settings.github_api_url == "https://api.github.com"
    assert settings.error_simulation_enabled is False
    assert settings.call_log_size == 200


def test_production_detection():
    """is_production should be True when app_env is 'production'."""
    settings = Settings(_env_file=None, app_env="production")
    assert settings.is_production is True


def test_allowed_origins_list_parsing():
    """ALLOWED_ORIGINS should parse into a trimmed list."""
    settings = Settings(
        _env_file=None,
        allowed_origins="https://app.example.com, https://admin.example.com ,",
    )
    assert settings.allowed_origins_list == [
        "https://app.example.com",
        "https://admin.example.com",
    ]


def test_comma_separated_lists():
    settings = Settings(
        _env_file=None,
        enabled_features="dashboard, burnout,,team",
        error_simulation_kinds="rate_limit_exceeded, NOT_FOUND",
    )
    assert settings.enabled_features_set == frozenset({"dashboard", "burnout", "team"})
    assert settings.error_simulation_kinds_list == ["RATE_LIMIT_EXCEEDED", "NOT_FOUND"]


def test_empty_fault_kinds_means_all():
    assert Settings(_env_file=None, error_simulation_kinds="").error_simulation_kinds_list == []


def test_get_settings_returns_singleton():
    """get_settings should return the same instance on repeated calls."""
    s1 = get_settings()
    s2 = get_settings()
    assert s1 is s2


def test_settings_ignores_unrelated_env_keys(tmp_path: Path):
    """Loading from env files should ignore unknown keys."""
    env_file = tmp_path / "test.env"
    env_file.write_text(
        "\n".join(
            [
                "APP_MODE=MOCK",
                "STORAGE_PROVIDER=memory",
                "DEFAULT_DATASET=demo",
                "SOME_UNRELATED_KEY=value",
            ]
        )
    )
    settings = Settings(_env_file=env_file)
    assert settings.app_mode == "MOCK"
    assert settings.uses_memory_storage is True
    assert settings.default_dataset == "demo"
