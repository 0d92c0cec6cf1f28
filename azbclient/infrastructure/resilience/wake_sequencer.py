"""Bounded wake-up sequence for a sleeping backend.

Each attempt goes through HealthProbe.check(), which reuses results younger
than its TTL. Attempts spaced closer than the TTL therefore see the cached
"asleep" answer; only the pauses between attempts give a later attempt the
chance to see a fresh probe.
"""

import asyncio
import logging
from typing import Awaitable, Callable

from azbclient.infrastructure.resilience.health_probe import HealthProbe

logger = logging.getLogger(__name__)

DEFAULT_WAKE_ATTEMPTS = 2
DEFAULT_WAKE_BASE_DELAY_SECONDS = 1.5

class WakeSequencer:
    """Drives the health probe until the backend answers or attempts run out."""

    def __init__(
        self,
        probe: HealthProbe,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        self._probe = probe
        self._sleep = sleep

    async def wake(
        self,
        max_attempts: int = DEFAULT_WAKE_ATTEMPTS,
        base_delay_seconds: float = DEFAULT_WAKE_BASE_DELAY_SECONDS,
    ) -> bool:
        """Tries to bring the backend up.

        Args:
            max_attempts: Number of probe attempts.
            base_delay_seconds: Pause after attempt n is `base_delay_seconds * n`
                (linear, no pause after the last attempt).

        Returns:
            True if the backend is awake (or was never believed asleep),
            False if it stayed asleep for every attempt.
        """
        state = self._probe.state
        if state.is_awake:
            return True

        state.waking_up = True
        logger.info(f"Backend appears to be asleep; attempting to wake it ({max_attempts} attempts).")
        for attempt in range(1, max_attempts + 1):
            if await self._probe.check():
                state.is_awake = True
                state.waking_up = False
                logger.info(f"Backend is awake after wake attempt {attempt}.")
                return True
            if attempt < max_attempts:
                delay = base_delay_seconds * attempt
                logger.debug(f"Wake attempt {attempt}/{max_attempts} failed; waiting {delay:.2f}s.")
                await self._sleep(delay)

        logger.warning(f"Backend still asleep after {max_attempts} wake attempts.")
        return False
