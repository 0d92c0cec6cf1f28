"""Service for executing API calls against a cold-start backend.

Every endpoint call goes through `RequestOrchestrator.request`, which:
- refuses to send an expired token (and invalidates the session instead),
- gates the first attempt on a cached health probe and a short wake sequence,
- retries 503 responses and network failures with linear backoff,
- invalidates the session on a 401,
- raises a typed ApiError for everything else.

Retries run as a bounded loop carrying a RetryContext, at most
`max_retries + 1` attempts per call.
"""

import asyncio
import logging
import time
from typing import Any, Awaitable, Callable, Dict, Optional, Tuple

import httpx

from azbclient.domain.events.api_events import (
    DomainEvent, ApiCallInitiated, ApiCallSucceeded, ApiCallFailed,
    RetryScheduled, WakeAttempted, AuthInvalidated,
)
from azbclient.domain.models.common import BearerToken, HealthState, RequestDescriptor, RetryContext
from azbclient.infrastructure.auth.invalidation import AuthInvalidator
from azbclient.infrastructure.auth.token_store import TokenStore
from azbclient.infrastructure.auth.token_validator import is_token_expired
from azbclient.infrastructure.config.settings import ClientSettings
from azbclient.infrastructure.resilience.errors import (
    ApiError, ErrorResponse, NetworkFailureError, ServiceUnavailableError,
    SessionExpiredError, SERVER_STARTING_MESSAGE, build_error_message,
)
from azbclient.infrastructure.resilience.health_probe import HealthProbe
from azbclient.infrastructure.resilience.timeout_race import with_timeout
from azbclient.infrastructure.resilience.wake_sequencer import WakeSequencer

logger = logging.getLogger(__name__)

# Failures that never produced a response and may be caused by a cold backend
NETWORK_ERRORS = (httpx.TransportError, NetworkFailureError)

EventListener = Callable[[DomainEvent], None]

class RequestOrchestrator:
    """Single call contract for every endpoint wrapper.

    One instance owns the HTTP client, the shared health state and the
    token store handle; build it once and pass it to every caller.
    """

    def __init__(
        self,
        settings: ClientSettings,
        token_store: TokenStore,
        invalidator: AuthInvalidator,
        http_client: Optional[httpx.AsyncClient] = None,
        health_state: Optional[HealthState] = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
        clock: Callable[[], float] = time.monotonic,
        wall_clock: Callable[[], float] = time.time,
        event_listener: Optional[EventListener] = None,
    ):
        """Initializes the orchestrator.

        Args:
            settings: Resolved resilience constants and the API base URL.
            token_store: Source of the bearer token.
            invalidator: Clears the session and broadcasts invalidation.
            http_client: Client to send requests with; one is created (and
                closed by `aclose`) if omitted.
            health_state: Shared health state (a fresh one if omitted).
            sleep: Coroutine used for every backoff pause.
            clock: Monotonic time source for the health cache.
            wall_clock: Unix time source for token expiry.
            event_listener: Optional callback receiving every domain event.
        """
        self.settings = settings
        self.token_store = token_store
        self.invalidator = invalidator
        self._owns_http_client = http_client is None
        self._http_client = http_client or httpx.AsyncClient()
        self.health_state = health_state or HealthState()
        self._sleep = sleep
        self._wall_clock = wall_clock
        self._event_listener = event_listener

        self.health_probe = HealthProbe(
            self._http_client,
            settings.health_url,
            self.health_state,
            ttl_seconds=settings.health_ttl_seconds,
            timeout_seconds=settings.health_timeout_seconds,
            clock=clock,
        )
        self.wake_sequencer = WakeSequencer(self.health_probe, sleep=sleep)

        logger.info(
            f"RequestOrchestrator initialized: base={settings.api_base_url}, "
            f"max_retries={settings.max_retries}, retry_base_delay={settings.retry_base_delay_seconds}s"
        )

    async def __aenter__(self) -> "RequestOrchestrator":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        """Closes the HTTP client if this instance created it."""
        if self._owns_http_client:
            await self._http_client.aclose()

    def _dispatch_event(self, event: DomainEvent) -> None:
        logger.debug(f"EVENT: {event}")
        if self._event_listener:
            self._event_listener(event)

    # --- Public API ---

    async def request(
        self,
        path: str,
        method: str = "GET",
        *,
        json: Optional[Any] = None,
        content: Optional[str] = None,
        headers: Optional[Dict[str, str]] = None,
    ) -> Any:
        """Sends a request to `{api_base_url}{path}` with session and retry handling.

        Args:
            path: Path relative to the API base, e.g. '/products'.
            method: HTTP method.
            json: Body serialized as JSON.
            content: Raw body (e.g. an already serialized JSON string).
            headers: Extra headers; they override the default Content-Type.

        Returns:
            The parsed response body: decoded JSON when the response declares
            a JSON content type, otherwise the response text.

        Raises:
            SessionExpiredError: Token expired before sending, or a 401.
            ServiceUnavailableError: 503 on every attempt.
            NetworkFailureError: No response could be obtained.
            ApiError: Any other non-2xx response or an unreadable body.
        """
        context = RetryContext.for_path(path, self.settings.max_retries)

        while True:
            token = self._resolve_usable_token(context)
            descriptor = self._build_descriptor(context, method, token, json, content, headers)

            if context.attempt == 0 and not context.bypasses_auth:
                if not await self._ensure_awake() and context.can_retry:
                    await self._pause_before_retry(
                        context, self.settings.preflight_retry_delay_seconds, "backend_asleep"
                    )
                    context = context.next_attempt()
                    continue

            try:
                response, data = await self._send(context, descriptor)
            except NETWORK_ERRORS as e:
                if not context.bypasses_auth and context.can_retry:
                    logger.warning(
                        f"Network failure on {method} {path} (attempt {context.attempt + 1}/"
                        f"{context.max_retries + 1}): {type(e).__name__}: {e}"
                    )
                    if context.attempt == 0:
                        await self._wake()
                    await self._pause_before_retry(context, self._backoff(context), "network_failure")
                    context = context.next_attempt()
                    continue
                failure = self._network_failure(context, method, e)
                if failure is e:
                    raise
                raise failure from e
            except httpx.HTTPError as e:
                # Undecodable content, redirect loops and other non-transport httpx failures
                logger.error(f"{method} {path} failed: {type(e).__name__}: {e}")
                self._dispatch_event(ApiCallFailed(
                    method=method, path=path, error_type=type(e).__name__, error_message=str(e)
                ))
                raise ApiError(str(e) or type(e).__name__) from e

            if response.is_success:
                if self.health_state.waking_up:
                    self.health_state.waking_up = False
                    logger.info("Backend answered; clearing the waking-up flag.")
                return data

            status = response.status_code
            if status == 401 and not context.is_login:
                logger.warning(f"401 Unauthorized for {path}; clearing invalid session.")
                self._invalidate(path, "unauthorized", data)
                error: ApiError = SessionExpiredError(build_error_message(data), data=data)
            elif status == 503 and not context.bypasses_auth and context.can_retry:
                await self._pause_before_retry(context, self._backoff(context), "service_unavailable")
                context = context.next_attempt()
                continue
            elif status == 503:
                error = ServiceUnavailableError(build_error_message(data), ErrorResponse(status, data))
            else:
                error = ApiError(build_error_message(data), ErrorResponse(status, data))

            self._dispatch_event(ApiCallFailed(
                method=method, path=path, error_type=type(error).__name__,
                error_message=error.message, status=status,
            ))
            raise error

    # --- Steps ---

    def _resolve_usable_token(self, context: RetryContext) -> Optional[BearerToken]:
        """Returns the token to send, invalidating the session if it expired."""
        if context.bypasses_auth:
            return None
        token = self.token_store.resolve()
        if not token:
            logger.debug(f"No auth token available for request to: {context.path}")
            return None
        if is_token_expired(token, now=self._wall_clock(), skew_seconds=self.settings.token_skew_seconds):
            logger.warning(f"Token expired before request to {context.path}; clearing session.")
            self._invalidate(context.path, "token_expired")
            raise SessionExpiredError()
        return token

    def _build_descriptor(
        self,
        context: RetryContext,
        method: str,
        token: Optional[BearerToken],
        json: Optional[Any],
        content: Optional[str],
        headers: Optional[Dict[str, str]],
    ) -> RequestDescriptor:
        merged_headers = {"Content-Type": "application/json", **(headers or {})}
        if token:
            merged_headers["Authorization"] = f"Bearer {token}"
        return RequestDescriptor(
            method=method.upper(),
            url=f"{self.settings.api_base_url.rstrip('/')}{context.path}",
            headers=merged_headers,
            json=json,
            content=content,
            timeout_seconds=context.timeout_seconds(
                self.settings.default_timeout_seconds, self.settings.otp_timeout_seconds
            ),
        )

    async def _ensure_awake(self) -> bool:
        """Pre-flight gate: probe the backend and try to wake it if asleep."""
        if await self.health_probe.check():
            return True
        return await self._wake()

    async def _wake(self) -> bool:
        awake = await self.wake_sequencer.wake(
            self.settings.wake_max_attempts, self.settings.wake_base_delay_seconds
        )
        self._dispatch_event(WakeAttempted(max_attempts=self.settings.wake_max_attempts, succeeded=awake))
        return awake

    async def _send(self, context: RetryContext, descriptor: RequestDescriptor) -> Tuple[httpx.Response, Any]:
        """Issues one attempt under the deadline and parses the body."""
        self._dispatch_event(ApiCallInitiated(
            method=descriptor.method, path=context.path, attempt_number=context.attempt + 1
        ))
        start_time = time.perf_counter()
        response = await with_timeout(
            lambda: self._http_client.request(
                descriptor.method,
                descriptor.url,
                headers=descriptor.headers,
                json=descriptor.json,
                content=descriptor.content,
                timeout=descriptor.timeout_seconds,
            ),
            descriptor.timeout_seconds,
        )
        latency_ms = (time.perf_counter() - start_time) * 1000
        data = self._parse_body(response)
        logger.debug(f"{descriptor.method} {context.path} -> {response.status_code} in {latency_ms:.0f}ms")
        if response.is_success:
            self._dispatch_event(ApiCallSucceeded(
                method=descriptor.method, path=context.path,
                status=response.status_code, latency_ms=latency_ms,
            ))
        return response, data

    @staticmethod
    def _parse_body(response: httpx.Response) -> Any:
        content_type = response.headers.get("content-type", "")
        if "application/json" not in content_type:
            return response.text
        try:
            return response.json()
        except ValueError as e:
            raise ApiError(
                f"Invalid JSON in response body: {e}",
                ErrorResponse(response.status_code, response.text),
            ) from e

    def _backoff(self, context: RetryContext) -> float:
        """Linear backoff: base delay times the number of the next attempt."""
        return self.settings.retry_base_delay_seconds * (context.attempt + 1)

    async def _pause_before_retry(self, context: RetryContext, delay: float, reason: str) -> None:
        logger.info(
            f"Retrying {context.path} in {delay:.2f}s "
            f"(attempt {context.attempt + 2}/{context.max_retries + 1}, reason={reason})"
        )
        self._dispatch_event(RetryScheduled(
            path=context.path, attempt_number=context.attempt + 1, delay_seconds=delay, reason=reason
        ))
        await self._sleep(delay)

    def _invalidate(self, path: str, reason: str, details: Any = None) -> None:
        self.invalidator.clear_invalid_auth()
        self._dispatch_event(AuthInvalidated(path=path, reason=reason, details=details))

    def _network_failure(self, context: RetryContext, method: str, error: Exception) -> NetworkFailureError:
        """Final error for a network failure that will not be retried."""
        if context.attempt >= context.max_retries:
            logger.error(f"Max retries ({context.max_retries}) reached for {method} {context.path}. Last error: {error}")
            failure = NetworkFailureError(SERVER_STARTING_MESSAGE)
        elif isinstance(error, NetworkFailureError):
            failure = error
        else:
            failure = NetworkFailureError(str(error) or type(error).__name__)
        self._dispatch_event(ApiCallFailed(
            method=method, path=context.path, error_type=type(error).__name__, error_message=str(error)
        ))
        return failure
