"""Command-line interface components."""

from .main import cli
from .types import CLIContext, CLIError, CommandResult, OutputFormat

__all__ = [
    "CLIError",
    "CommandResult",
    "CLIContext",
    "OutputFormat",
    "cli",
]
