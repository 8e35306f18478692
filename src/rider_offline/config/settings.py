"""Offline engine configuration settings using pydantic-settings."""

import logging
from functools import cached_property
from pathlib import Path

import yaml
from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

logger = logging.getLogger(__name__)

# Max retries per action type when no policy file overrides them
DEFAULT_RETRY_POLICIES: dict[str, int] = {
    "location_update": 3,
    "job_status": 5,
    "qr_scan": 3,
    "photo_upload": 3,
    "availability_update": 3,
}


class Settings(BaseSettings):
    """Configuration settings for the rider offline engine.

    Settings are loaded from environment variables with the RIDER_ prefix.
    For example, RIDER_API_BASE_URL=https://api.example.com/api sets api_base_url.
    """

    model_config = SettingsConfigDict(
        env_prefix="RIDER_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Backend
    api_base_url: str = "http://localhost:8000/api"
    api_timeout: float = 15.0  # seconds
    health_path: str = "/health"

    # Connectivity probing
    connectivity_interval: float = 30.0  # seconds between probes

    # Cache
    default_cache_ttl_minutes: int = 60

    # File paths
    data_dir: Path = Path("~/.local/share/rider-offline")
    retry_policies_file: Path = Path("~/.config/rider-offline/retry_policies.yaml")

    # Logging
    rider_id: str | None = None  # added to every log record
    log_level: str = "INFO"
    log_file: Path | None = None

    @field_validator("api_timeout", "connectivity_interval")
    @classmethod
    def validate_positive(cls, v: float) -> float:
        """Ensure timing values are positive."""
        if v <= 0:
            raise ValueError("must be greater than 0")
        return v

    @field_validator("default_cache_ttl_minutes")
    @classmethod
    def validate_cache_ttl(cls, v: int) -> int:
        """Ensure the default TTL is at least one minute."""
        if v < 1:
            raise ValueError("default_cache_ttl_minutes must be at least 1")
        return v

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Ensure log level is valid."""
        valid_levels = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        if v.upper() not in valid_levels:
            raise ValueError(f"log_level must be one of {valid_levels}")
        return v.upper()

    @cached_property
    def data_path(self) -> Path:
        """Return expanded data directory path."""
        return self.data_dir.expanduser()

    @cached_property
    def store_path(self) -> Path:
        """Return the path of the SQLite key-value store."""
        return self.data_path / "offline.db"

    @cached_property
    def retry_policies_path(self) -> Path:
        """Return expanded retry policy file path."""
        return self.retry_policies_file.expanduser()

    def load_retry_policies(self) -> dict[str, int]:
        """Load max-retry overrides from the YAML policy file.

        The file maps action type names to a positive retry bound, e.g.::

            job_status: 8
            photo_upload: 2

        Unknown action types and non-positive values are ignored. If the file
        doesn't exist, the defaults are returned.
        """
        policies = dict(DEFAULT_RETRY_POLICIES)

        if not self.retry_policies_path.exists():
            return policies

        try:
            with open(self.retry_policies_path) as f:
                overrides = yaml.safe_load(f) or {}
        except (yaml.YAMLError, OSError) as e:
            logger.warning(
                "Failed to load retry policies from %s: %s", self.retry_policies_path, e
            )
            return policies

        if not isinstance(overrides, dict):
            logger.warning("Ignoring retry policy file %s: not a mapping", self.retry_policies_path)
            return policies

        for action_type, max_retries in overrides.items():
            if action_type not in policies:
                continue
            if isinstance(max_retries, int) and not isinstance(max_retries, bool) and max_retries > 0:
                policies[action_type] = max_retries
        return policies
