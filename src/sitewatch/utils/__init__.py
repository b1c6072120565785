"""Shared utilities for SiteWatch."""

from .async_utils import AsyncContextManager, create_task_with_error_handling, retry_async
from .logging import get_structured_logger, setup_logging

__all__ = [
    "setup_logging",
    "get_structured_logger",
    "retry_async",
    "create_task_with_error_handling",
    "AsyncContextManager",
]
