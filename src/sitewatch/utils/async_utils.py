"""Async utility functions and helpers."""

import asyncio
from collections.abc import Awaitable, Callable, Coroutine
from typing import Any, TypeVar

from .logging import get_structured_logger

logger = get_structured_logger(__name__)

T = TypeVar("T")


async def retry_async(
    coro_func: Callable[[], Awaitable[T]],
    max_retries: int = 3,
    delay: float = 1.0,
    backoff_factor: float = 2.0,
    exceptions: tuple = (Exception,),
) -> T:
    """Retry an async function with exponential backoff.

    ``coro_func`` is called once per attempt, so every attempt gets a fresh
    coroutine.
    """
    last_exception = None
    current_delay = delay

    for attempt in range(max_retries + 1):
        try:
            return await coro_func()
        except exceptions as e:
            last_exception = e

            if attempt == max_retries:
                if max_retries:
                    logger.warning("All attempts failed", attempts=max_retries + 1)
                break

            logger.warning(
                "Attempt failed, retrying",
                attempt=attempt + 1,
                retry_in=current_delay,
                error=str(e),
            )
            await asyncio.sleep(current_delay)
            current_delay *= backoff_factor

    raise last_exception


class AsyncContextManager:
    """Base class for async context managers."""

    async def __aenter__(self):
        await self.setup()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.cleanup()

    async def setup(self) -> None:
        """Setup the context manager."""
        pass

    async def cleanup(self) -> None:
        """Cleanup the context manager."""
        pass


def create_task_with_error_handling(
    coro: Coroutine[Any, Any, T], task_name: str = "unnamed_task"
) -> asyncio.Task[T]:
    """Create a task whose failure is always observed.

    The task may outlive every awaiter (callers are allowed to walk away), so
    the done callback retrieves the exception to keep asyncio from reporting it
    as never retrieved. Awaiters still receive it.
    """

    def _observe(task: asyncio.Task) -> None:
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            logger.debug("Background task failed", task=task_name, error=str(exc))

    task = asyncio.create_task(coro, name=task_name)
    task.add_done_callback(_observe)
    return task
