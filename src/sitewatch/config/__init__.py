"""Configuration management for SiteWatch."""

from .loader import ConfigLoader, load_settings
from .settings import (
    AppSettings,
    ServiceSettings,
    SyncSettings,
    configure_settings,
    get_settings,
    reload_settings,
)
from .types import ConfigError, ConfigLoadError

__all__ = [
    "AppSettings",
    "ServiceSettings",
    "SyncSettings",
    "get_settings",
    "reload_settings",
    "configure_settings",
    "load_settings",
    "ConfigLoader",
    "ConfigError",
    "ConfigLoadError",
]
