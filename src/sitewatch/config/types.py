"""Type definitions for configuration system."""

from ..domain.types import SiteWatchError


class ConfigError(SiteWatchError):
    """Base exception for configuration-related errors."""

    pass


class ConfigLoadError(ConfigError):
    """Exception raised when configuration loading fails."""

    pass
