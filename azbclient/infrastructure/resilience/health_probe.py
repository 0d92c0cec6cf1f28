"""Cached liveness check against the backend's /health endpoint."""

import logging
import time
from typing import Callable

import httpx

from azbclient.domain.models.common import HealthState
from azbclient.infrastructure.resilience.errors import NetworkFailureError
from azbclient.infrastructure.resilience.timeout_race import with_timeout

logger = logging.getLogger(__name__)

DEFAULT_HEALTH_TTL_SECONDS = 30.0
DEFAULT_HEALTH_TIMEOUT_SECONDS = 5.0

class HealthProbe:
    """Answers "is the backend awake?", reusing results for `ttl_seconds`."""

    def __init__(
        self,
        http_client: httpx.AsyncClient,
        health_url: str,
        state: HealthState,
        ttl_seconds: float = DEFAULT_HEALTH_TTL_SECONDS,
        timeout_seconds: float = DEFAULT_HEALTH_TIMEOUT_SECONDS,
        clock: Callable[[], float] = time.monotonic,
    ):
        """Initializes the probe.

        Args:
            http_client: Client used for the probe request.
            health_url: Absolute URL of the liveness endpoint.
            state: Shared health state, also read by the wake sequencer and
                the request orchestrator.
            ttl_seconds: How long a result is reused without a network call.
            timeout_seconds: Hard deadline for the probe request.
            clock: Monotonic time source in seconds.
        """
        self._http_client = http_client
        self.health_url = health_url
        self.state = state
        self.ttl_seconds = ttl_seconds
        self.timeout_seconds = timeout_seconds
        self._clock = clock

    def is_fresh(self) -> bool:
        last = self.state.last_checked_at
        return last is not None and self._clock() - last < self.ttl_seconds

    async def check(self) -> bool:
        """Returns True when the backend answered /health with a 2xx status."""
        if self.is_fresh():
            logger.debug(f"Health cache hit: awake={self.state.is_awake}")
            return self.state.is_awake

        try:
            response = await with_timeout(
                lambda: self._http_client.get(
                    self.health_url, headers={"Content-Type": "application/json"}
                ),
                self.timeout_seconds,
            )
            awake = response.is_success
            if not awake:
                logger.info(f"Health check answered {response.status_code}; backend considered asleep.")
        except (httpx.HTTPError, NetworkFailureError) as e:
            logger.info(f"Health check failed ({type(e).__name__}: {e}); backend considered asleep.")
            awake = False

        self.state.is_awake = awake
        self.state.last_checked_at = self._clock()
        return awake
