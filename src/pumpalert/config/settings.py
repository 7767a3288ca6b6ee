"""Application settings using pydantic-settings."""

from functools import lru_cache
from typing import Literal

from pydantic import Field, SecretStr, ValidationError, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from pumpalert.constants import polling, thresholds
from pumpalert.core.exceptions import ConfigurationError


class Settings(BaseSettings):
    """PumpAlert configuration from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",  # Ignore extra env vars
    )

    # Application
    app_name: str = Field(default="PumpAlert", description="Application name")
    debug: bool = Field(default=False, description="Enable debug mode")
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = Field(
        default="INFO", description="Minimum log level"
    )
    activity_log_path: str = Field(
        default="tokens.log", description="Append-only activity log file"
    )

    # Credentials and channels
    moralis_api_keys: list[SecretStr] = Field(
        description="Moralis API keys (JSON list), rotated per time block"
    )
    mid_tier_webhook_url: str = Field(description="Discord webhook for mid-tier alerts")
    high_tier_webhook_url: str = Field(description="Discord webhook for high-tier alerts")

    # Tier thresholds
    mid_floor: float = Field(default=thresholds.MID_FLOOR_USD, ge=0)
    high_floor: float = Field(default=thresholds.HIGH_FLOOR_USD, ge=0)
    discovery_max_age_minutes: float = Field(
        default=thresholds.DISCOVERY_MAX_AGE_MINUTES, gt=0
    )
    mid_max_age_minutes: float = Field(default=thresholds.MID_MAX_AGE_MINUTES, gt=0)
    high_max_age_minutes: float = Field(default=thresholds.HIGH_MAX_AGE_MINUTES, gt=0)

    # Dedup ledger
    mid_retention_minutes: float = Field(default=thresholds.MID_RETENTION_MINUTES, gt=0)
    high_retention_minutes: float = Field(default=thresholds.HIGH_RETENTION_MINUTES, gt=0)
    ledger_max_entries: int = Field(default=thresholds.LEDGER_MAX_ENTRIES, ge=1)

    # Polling
    default_interval_seconds: float = Field(default=polling.DEFAULT_INTERVAL_SECONDS, gt=0)
    fast_interval_seconds: float = Field(default=polling.FAST_INTERVAL_SECONDS, gt=0)
    fast_threshold: int = Field(default=polling.FAST_THRESHOLD, ge=1)

    # Fetchers
    feed_limit: int = Field(default=polling.FEED_LIMIT, ge=1, le=100)
    max_concurrency: int = Field(default=polling.MAX_CONCURRENCY, ge=1)
    fetch_max_retries: int = Field(default=polling.FETCH_MAX_RETRIES, ge=1, le=5)
    fetch_retry_delay_seconds: float = Field(default=polling.FETCH_RETRY_DELAY_SECONDS, ge=0)
    request_timeout_seconds: float = Field(default=polling.REQUEST_TIMEOUT_SECONDS, gt=0)

    # Notifier
    notify_retry_delay_seconds: float = Field(
        default=polling.NOTIFY_RETRY_DELAY_SECONDS, ge=0
    )

    # Credential rotation
    hours_per_block: int = Field(default=polling.HOURS_PER_BLOCK, ge=1, le=24)
    rotation_seed: str | None = Field(
        default=None, description="Seed for the daily key shuffle (random if unset)"
    )

    # Supplementary scans
    graduated_feed_enabled: bool = Field(default=True)
    secondary_feed_enabled: bool = Field(default=True)
    high_tier_recheck_enabled: bool = Field(default=True)
    listing_max_age_minutes: float = Field(default=thresholds.LISTING_MAX_AGE_MINUTES, gt=0)
    venue_allowlist: list[str] = Field(
        default_factory=list, description="If set, only these DEX ids are alerted"
    )
    venue_denylist: list[str] = Field(
        default_factory=lambda: sorted(thresholds.DEFAULT_VENUE_DENYLIST)
    )

    @field_validator("moralis_api_keys")
    @classmethod
    def validate_api_keys(cls, v: list[SecretStr]) -> list[SecretStr]:
        """Require at least one non-empty key."""
        keys = [k for k in v if k.get_secret_value().strip()]
        if not keys:
            raise ValueError("At least one Moralis API key is required")
        return keys

    @field_validator("mid_tier_webhook_url", "high_tier_webhook_url")
    @classmethod
    def validate_webhook_url(cls, v: str) -> str:
        """Validate webhook URL format."""
        if not v.startswith(("http://", "https://")):
            raise ValueError("Webhook URL must start with http:// or https://")
        return v

    @model_validator(mode="after")
    def validate_tier_floors(self) -> "Settings":
        """Mid floor must sit below the high floor."""
        if self.mid_floor >= self.high_floor:
            raise ValueError("mid_floor must be lower than high_floor")
        return self


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance.

    Raises:
        ConfigurationError: If a required value is missing or invalid.
    """
    try:
        return Settings()  # type: ignore[call-arg]  # Values from env
    except ValidationError as e:
        raise ConfigurationError(f"Invalid configuration: {e}") from e
