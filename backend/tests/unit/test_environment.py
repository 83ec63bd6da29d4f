"""Tests for startup validation and environment info (core/environment.py).

Run with: cd backend && pytest tests/unit/test_environment.py -v
"""

from __future__ import annotations

import logging

import pytest

from devpulse.config import Settings
from devpulse.core.environment import (
    VALID_MODES,
    EnvironmentInfo,
    get_environment_info,
    to_dict,
    validate_environment,
)


def _settings(**overrides) -> Settings:
    return Settings(_env_file=None, **overrides)


class TestEnvironmentInfo:
    """Tests for the EnvironmentInfo dataclass and get_environment_info()."""

    def test_valid_modes_contains_all_three(self):
        assert VALID_MODES == {"LIVE", "MOCK", "DEMO"}

    def test_synthetic_mode_features(self):
        info = get_environment_info("MOCK", _settings(storage_provider="memory"))

        assert info.mode == "MOCK"
        assert info.storage == "memory"
        assert info.features["synthetic_data"] is True
        assert info.features["identity_switching"] is True
        assert info.features["live_github"] is False
        assert info.features["debug_tools"] is True

    def test_live_production_features(self):
        info = get_environment_info("LIVE", _settings(app_env="production"))

        assert info.features["synthetic_data"] is False
        assert info.features["live_github"] is True
        assert info.features["debug_tools"] is False

    def test_to_dict_serialization(self):
        info = EnvironmentInfo(
            mode="DEMO",
            app_env="development",
            storage="memory",
            version="0.1.0",
            features={"synthetic_data": True},
        )
        result = to_dict(info)

        assert result["mode"] == "DEMO"
        assert result["storage"] == "memory"
        assert result["features"]["synthetic_data"] is True


class TestValidateEnvironment:
    """Tests for the validate_environment() startup check."""

    def test_invalid_mode_raises_error(self):
        with pytest.raises(ValueError, match="Invalid APP_MODE"):
            validate_environment(_settings(app_mode="sandbox"))

    def test_mode_is_case_insensitive(self):
        validate_environment(_settings(app_mode="mock", github_token=""))

    def test_invalid_storage_provider_raises_error(self):
        with pytest.raises(ValueError, match="Invalid STORAGE_PROVIDER"):
            validate_environment(_settings(storage_provider="sqlite"))

    def test_invalid_activity_level_raises_error(self):
        with pytest.raises(ValueError, match="DEFAULT_ACTIVITY_LEVEL"):
            validate_environment(_settings(default_activity_level="frantic"))

    def test_error_rate_out_of_range_raises_error(self):
        with pytest.raises(ValueError, match="ERROR_SIMULATION_RATE"):
            validate_environment(_settings(error_simulation_rate=1.5))

    def test_inverted_delay_range_raises_error(self):
        with pytest.raises(ValueError, match="ERROR_SIMULATION_MIN_DELAY_MS"):
            validate_environment(
                _settings(error_simulation_min_delay_ms=500, error_simulation_max_delay_ms=100)
            )

    def test_negative_delay_raises_error(self):
        with pytest.raises(ValueError, match="ERROR_SIMULATION_MIN_DELAY_MS"):
            validate_environment(_settings(error_simulation_min_delay_ms=-1))

    def test_delay_range_accepted(self):
        validate_environment(
            _settings(error_simulation_min_delay_ms=100, error_simulation_max_delay_ms=900)
        )

    def test_malformed_default_dataset_raises_error(self):
        with pytest.raises(ValueError, match="Invalid DEFAULT_DATASET"):
            validate_environment(_settings(default_dataset="team a"))

    def test_live_without_token_warns(self, caplog):
        with caplog.at_level(logging.WARNING, logger="devpulse.core.environment"):
            validate_environment(_settings(app_mode="LIVE", github_token=""))

        assert "GITHUB_TOKEN not set" in caplog.text

    def test_synthetic_mode_in_production_warns(self, caplog):
        settings = _settings(
            app_mode="DEMO",
            app_env="production",
            allowed_origins="https://app.example.com",
        )
        with caplog.at_level(logging.WARNING, logger="devpulse.core.environment"):
            validate_environment(settings)

        assert "in production" in caplog.text

    def test_production_wildcard_origin_rejected(self):
        with pytest.raises(RuntimeError, match="ALLOWED_ORIGINS cannot contain"):
            validate_environment(_settings(app_env="production", allowed_origins="*"))

    def test_invalid_origin_rejected(self):
        with pytest.raises(RuntimeError, match="invalid URL"):
            validate_environment(_settings(allowed_origins="localhost:3000"))

    def test_invalid_github_url_rejected(self):
        with pytest.raises(RuntimeError, match="GITHUB_API_URL must be a full"):
            validate_environment(_settings(github_api_url="api.github.com"))
