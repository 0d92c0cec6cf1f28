"""Deadline wrapper for a single network call.

The call runs as a task raced against a timer. If the timer wins, the task is
cancelled, which aborts the in-flight httpx request and releases its
connection instead of leaving it running in the background.
"""

import asyncio
import logging
from typing import Awaitable, Callable, TypeVar

from azbclient.infrastructure.resilience.errors import RequestTimeoutError

logger = logging.getLogger(__name__)

T = TypeVar("T")

async def with_timeout(factory: Callable[[], Awaitable[T]], timeout_seconds: float) -> T:
    """Awaits `factory()` for at most `timeout_seconds`.

    Args:
        factory: Zero-argument callable returning the awaitable to run. It is
            invoked exactly once, inside the deadline.
        timeout_seconds: Deadline in seconds.

    Returns:
        Whatever the awaitable returns.

    Raises:
        RequestTimeoutError: If the deadline elapsed first. The underlying
            call has been cancelled by then.
        Exception: Any error raised by the awaitable itself, unchanged.
    """
    try:
        return await asyncio.wait_for(factory(), timeout=timeout_seconds)
    except asyncio.TimeoutError as e:
        logger.warning(f"Call exceeded its {timeout_seconds:g}s deadline and was cancelled.")
        raise RequestTimeoutError(timeout_seconds) from e
