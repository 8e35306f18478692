"""Configuration module for the offline engine.

Provides centralized configuration management using pydantic-settings.

Usage:
    from rider_offline.config import get_settings

    settings = get_settings()
    print(settings.api_base_url)
    print(settings.load_retry_policies())
"""

from functools import lru_cache

from rider_offline.config.settings import DEFAULT_RETRY_POLICIES, Settings

__all__ = ["DEFAULT_RETRY_POLICIES", "Settings", "get_settings"]


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Get cached settings instance.

    To reload settings, call get_settings.cache_clear() first.

    Returns:
        Settings instance loaded from environment variables.
    """
    return Settings()
