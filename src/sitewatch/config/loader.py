"""Configuration loading from YAML files."""

from pathlib import Path
from typing import Any, Optional, Union

import yaml

from ..utils.logging import get_structured_logger
from .settings import AppSettings, configure_settings
from .types import ConfigLoadError

logger = get_structured_logger(__name__)


class ConfigLoader:
    """Loads setting overrides from a YAML file."""

    def __init__(self, config_file: Optional[Path] = None):
        self.config_file = config_file or Path("sitewatch.yaml")

    def load_yaml_config(self) -> dict[str, Any]:
        """Load configuration from YAML file."""
        if not self.config_file.exists():
            logger.warning("Config file not found, using defaults", path=str(self.config_file))
            return {}

        try:
            with open(self.config_file, encoding="utf-8") as f:
                config = yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            raise ConfigLoadError(f"Failed to parse YAML config: {str(e)}") from e
        except OSError as e:
            raise ConfigLoadError(f"Failed to load config file: {str(e)}") from e

        if not isinstance(config, dict):
            raise ConfigLoadError(
                f"Config file {self.config_file} must contain a mapping at the top level"
            )

        logger.info("Loaded configuration", path=str(self.config_file))
        return config


def load_settings(config_file: Union[str, Path]) -> AppSettings:
    """Load YAML overrides and install them as the global settings."""
    loader = ConfigLoader(Path(config_file))
    return configure_settings(loader.load_yaml_config())
