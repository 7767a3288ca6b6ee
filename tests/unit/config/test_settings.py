"""Unit tests for application settings."""

import os
from unittest.mock import patch

import pytest
from pydantic import ValidationError

from pumpalert.config.settings import Settings, get_settings
from pumpalert.core.exceptions import ConfigurationError

REQUIRED = {
    "moralis_api_keys": ["key-a"],
    "mid_tier_webhook_url": "https://discord.test/mid",
    "high_tier_webhook_url": "https://discord.test/high",
}


class TestSettingsDefaults:
    """Tests for default values."""

    def test_defaults_match_documented_values(self) -> None:
        """Thresholds and intervals default to the documented values."""
        settings = Settings(_env_file=None, **REQUIRED)  # type: ignore[call-arg]

        assert settings.mid_floor == 15000
        assert settings.high_floor == 80000
        assert settings.mid_max_age_minutes == 20
        assert settings.high_max_age_minutes == 120
        assert settings.default_interval_seconds == 30
        assert settings.fast_interval_seconds == 15
        assert settings.fast_threshold == 2
        assert settings.max_concurrency == 5
        assert settings.ledger_max_entries == 1000
        assert settings.mid_retention_minutes == 120
        assert settings.notify_retry_delay_seconds == 1.5
        assert settings.venue_denylist == ["pumpfun", "pumpswap"]
        assert settings.venue_allowlist == []

    def test_api_keys_are_secret(self) -> None:
        """API keys should not leak through repr."""
        settings = Settings(_env_file=None, **REQUIRED)  # type: ignore[call-arg]
        assert "key-a" not in repr(settings)
        assert settings.moralis_api_keys[0].get_secret_value() == "key-a"

    def test_api_keys_from_json_env(self) -> None:
        """MORALIS_API_KEYS is read as a JSON list."""
        with patch.dict(os.environ, {"MORALIS_API_KEYS": '["k1", "k2", "k3"]'}):
            settings = Settings(_env_file=None)  # type: ignore[call-arg]
        assert [k.get_secret_value() for k in settings.moralis_api_keys] == ["k1", "k2", "k3"]


class TestSettingsValidation:
    """Tests for Settings validation."""

    def test_empty_key_pool_rejected(self) -> None:
        """At least one non-blank key is required."""
        with pytest.raises(ValidationError) as exc_info:
            Settings(_env_file=None, **{**REQUIRED, "moralis_api_keys": ["", "  "]})
        assert "At least one Moralis API key" in str(exc_info.value)

    def test_blank_keys_are_dropped(self) -> None:
        """Blank entries are removed from the pool."""
        settings = Settings(_env_file=None, **{**REQUIRED, "moralis_api_keys": ["a", ""]})
        assert len(settings.moralis_api_keys) == 1

    def test_webhook_url_validation(self) -> None:
        """Webhook URLs must use HTTP(S)."""
        with pytest.raises(ValidationError) as exc_info:
            Settings(_env_file=None, **{**REQUIRED, "mid_tier_webhook_url": "discord.test/x"})
        assert "Webhook URL must start with" in str(exc_info.value)

    def test_mid_floor_must_be_below_high_floor(self) -> None:
        """Overlapping floors are rejected."""
        with pytest.raises(ValidationError) as exc_info:
            Settings(_env_file=None, **REQUIRED, mid_floor=90000, high_floor=80000)
        assert "mid_floor must be lower than high_floor" in str(exc_info.value)

    def test_log_level_must_be_valid(self) -> None:
        """Log level must be one of the allowed values."""
        for level in ["DEBUG", "INFO", "WARNING", "ERROR"]:
            settings = Settings(_env_file=None, **REQUIRED, log_level=level)
            assert settings.log_level == level

        with pytest.raises(ValidationError):
            Settings(_env_file=None, **REQUIRED, log_level="INVALID")

    def test_feed_limit_range(self) -> None:
        """Feed limit is capped at 100."""
        with pytest.raises(ValidationError):
            Settings(_env_file=None, **REQUIRED, feed_limit=101)
        with pytest.raises(ValidationError):
            Settings(_env_file=None, **REQUIRED, feed_limit=0)

    def test_fetch_retries_range(self) -> None:
        """Fetch retries are bounded between 1 and 5."""
        with pytest.raises(ValidationError):
            Settings(_env_file=None, **REQUIRED, fetch_max_retries=0)
        with pytest.raises(ValidationError):
            Settings(_env_file=None, **REQUIRED, fetch_max_retries=6)


class TestGetSettings:
    """Tests for the cached accessor."""

    def test_get_settings_is_cached(self) -> None:
        """Same instance is returned on repeated calls."""
        assert get_settings() is get_settings()

    def test_missing_webhook_raises_configuration_error(self) -> None:
        """Validation errors surface as ConfigurationError."""
        env = {k: v for k, v in os.environ.items() if k != "HIGH_TIER_WEBHOOK_URL"}
        with patch.dict(os.environ, env, clear=True), patch.dict(
            Settings.model_config, {"env_file": None}
        ):
            with pytest.raises(ConfigurationError, match="Invalid configuration"):
                get_settings()
