"""Defines common Value Objects used across the client layers.

These objects represent the request bookkeeping shared by the resilience
components: classified request paths, backend health, retry state and the
fully resolved request that is handed to the transport.
"""

from dataclasses import dataclass, field, replace
from typing import NewType, Dict, Any, Optional

# === Core Value Objects ===

BearerToken = NewType("BearerToken", str)      # JWT 'header.payload.signature'
SignalName = NewType("SignalName", str)        # Name of an in-process notification

# === Path Classification ===
LOGIN_PATH = "/auth/login"
HEALTH_PATH = "/health"
OTP_PATHS = (
    "/auth/signup/send-otp",
    "/auth/signup/verify-otp",
    "/auth/forgot-password/send-otp",
    "/auth/forgot-password/verify-otp",
)

DEFAULT_MAX_RETRIES = 2
DEFAULT_TIMEOUT_SECONDS = 60.0
OTP_TIMEOUT_SECONDS = 120.0


@dataclass
class HealthState:
    """Last known liveness of the backend.

    `last_checked_at` is a monotonic timestamp in seconds, or None when the
    backend has never been probed. `waking_up` is raised while a wake
    sequence is in progress and lowered by the next successful request.
    """
    is_awake: bool = False
    last_checked_at: Optional[float] = None
    waking_up: bool = False


@dataclass(frozen=True)
class RetryContext:
    """Per-call retry bookkeeping, advanced once per attempt."""
    path: str
    is_login: bool = False
    is_health_check: bool = False
    is_otp: bool = False
    attempt: int = 0
    max_retries: int = DEFAULT_MAX_RETRIES

    def __post_init__(self) -> None:
        if not 0 <= self.attempt <= self.max_retries:
            raise ValueError(f"attempt {self.attempt} outside 0..{self.max_retries}")

    @classmethod
    def for_path(cls, path: str, max_retries: int = DEFAULT_MAX_RETRIES) -> "RetryContext":
        """Classifies a request path and starts at attempt 0."""
        return cls(
            path=path,
            is_login=LOGIN_PATH in path,
            is_health_check=HEALTH_PATH in path,
            is_otp=any(otp_path in path for otp_path in OTP_PATHS),
            max_retries=max_retries,
        )

    @property
    def bypasses_auth(self) -> bool:
        """Login and health calls never carry a token and are never retried."""
        return self.is_login or self.is_health_check

    @property
    def can_retry(self) -> bool:
        return self.attempt < self.max_retries

    def timeout_seconds(
        self,
        default_timeout: float = DEFAULT_TIMEOUT_SECONDS,
        otp_timeout: float = OTP_TIMEOUT_SECONDS,
    ) -> float:
        return otp_timeout if self.is_otp else default_timeout

    def next_attempt(self) -> "RetryContext":
        return replace(self, attempt=self.attempt + 1)


@dataclass
class RequestDescriptor:
    """A request with every header and the timeout resolved."""
    method: str
    url: str
    headers: Dict[str, str] = field(default_factory=dict)
    json: Optional[Any] = None
    content: Optional[str] = None
    timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS
