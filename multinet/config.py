"""
Configuration management for the Multinet client
"""
from typing import Optional

from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_API_URL = "http://localhost:8000/api"


class MultinetConfig(BaseSettings):
    """Client configuration with environment variable support (MULTINET_*)."""

    # API settings
    api_url: str = DEFAULT_API_URL
    api_token: Optional[str] = None

    # Transport settings
    request_timeout: int = 30
    connect_timeout: int = 10
    user_agent: str = "multinet-client-python/1.0"

    # Application settings
    log_level: str = "INFO"
    log_file: Optional[str] = None  # JSON log file, disabled when unset
    environment: str = "development"

    model_config = SettingsConfigDict(
        env_prefix="MULTINET_",
        env_file=".env",
        case_sensitive=False,
        extra="ignore"
    )


# Global configuration instance - lazily initialized to avoid import-time errors
_config = None


def get_config() -> MultinetConfig:
    """Get the global configuration instance."""
    global _config
    if _config is None:
        _config = MultinetConfig()
    return _config
