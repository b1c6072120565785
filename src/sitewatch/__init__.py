"""SiteWatch - consistent dashboard snapshots and check commands for a website monitor."""

__version__ = "0.1.0"

# Core exports
from .config import get_settings
from .main import main_cli

main = main_cli

__all__ = ["main_cli", "main", "get_settings", "__version__"]
