"""Pydantic settings models for configuration management."""

from typing import Any, Optional

from pydantic import BaseModel, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from .types import ConfigError

REFRESH_POLICIES = ("supersede", "join")


class ServiceSettings(BaseModel):
    """Monitor API connection settings."""

    base_url: str = "http://localhost:8000"
    api_prefix: str = "/api"
    timeout: float = 15.0  # seconds, per read or create request
    check_timeout: float = 60.0  # seconds, a probe may take a while
    latest_checks_limit: int = 20

    @field_validator("base_url")
    @classmethod
    def validate_base_url(cls, v):
        if not v or not v.startswith(("http://", "https://")):
            raise ValueError("Service base URL must start with http:// or https://")
        return v.rstrip("/")

    @field_validator("api_prefix")
    @classmethod
    def validate_api_prefix(cls, v):
        v = "/" + v.strip("/") if v.strip("/") else ""
        return v

    @field_validator("timeout", "check_timeout")
    @classmethod
    def validate_timeout(cls, v):
        if v <= 0:
            raise ValueError("Timeout must be positive")
        return v

    @field_validator("latest_checks_limit")
    @classmethod
    def validate_limit(cls, v):
        if v <= 0:
            raise ValueError("Latest checks limit must be positive")
        return v


class SyncSettings(BaseModel):
    """Refresh behaviour of the sync coordinator."""

    refresh_policy: str = "supersede"
    fetch_retries: int = 1
    retry_delay: float = 0.5  # seconds
    clock_skew_tolerance_seconds: float = 5.0

    @field_validator("refresh_policy")
    @classmethod
    def validate_refresh_policy(cls, v):
        if v.lower() not in REFRESH_POLICIES:
            raise ValueError(f"Refresh policy must be one of: {list(REFRESH_POLICIES)}")
        return v.lower()

    @field_validator("fetch_retries")
    @classmethod
    def validate_retries(cls, v):
        if v < 0:
            raise ValueError("Fetch retries cannot be negative")
        return v

    @field_validator("retry_delay", "clock_skew_tolerance_seconds")
    @classmethod
    def validate_non_negative(cls, v):
        if v < 0:
            raise ValueError("Value cannot be negative")
        return v


class AppSettings(BaseSettings):
    """Main application settings."""

    model_config = SettingsConfigDict(
        env_prefix="SITEWATCH_",
        env_file=".env",
        env_nested_delimiter="__",
        case_sensitive=False,
        extra="ignore",
    )

    debug: bool = False
    log_level: str = "INFO"
    json_logs: bool = False

    service: ServiceSettings = Field(default_factory=ServiceSettings)
    sync: SyncSettings = Field(default_factory=SyncSettings)

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v):
        valid_levels = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        if v.upper() not in valid_levels:
            raise ValueError(f"Log level must be one of: {valid_levels}")
        return v.upper()


# Global settings instance
_settings: Optional[AppSettings] = None


def get_settings() -> AppSettings:
    """Get the application settings instance."""
    global _settings

    if _settings is None:
        try:
            _settings = AppSettings()
        except Exception as e:
            raise ConfigError(f"Failed to load settings: {str(e)}") from e

    return _settings


def reload_settings() -> AppSettings:
    """Force reload of settings (useful for testing)."""
    global _settings
    _settings = None
    return get_settings()


def configure_settings(overrides: dict[str, Any]) -> AppSettings:
    """Replace the global settings with env/defaults plus explicit overrides."""
    global _settings

    try:
        _settings = AppSettings(**overrides)
    except Exception as e:
        raise ConfigError(f"Failed to load settings: {str(e)}") from e

    return _settings
