"""Domain Events related to API calls and session resilience.

Examples include events for when calls are initiated, retried, fail, or
succeed, when the backend is being woken, and when a session is invalidated.
"""

from dataclasses import dataclass, field
import time
from typing import Any, Optional

@dataclass
class DomainEvent:
    """Base class for domain events."""
    pass

# --- Specific API Events ---

@dataclass
class ApiCallInitiated(DomainEvent):
    """Event triggered when a request is about to be sent."""
    method: str
    path: str
    attempt_number: int
    timestamp: float = field(default_factory=time.time)

@dataclass
class ApiCallSucceeded(DomainEvent):
    """Event triggered when a request returns a 2xx response."""
    method: str
    path: str
    status: int
    latency_ms: float
    timestamp: float = field(default_factory=time.time)

@dataclass
class ApiCallFailed(DomainEvent):
    """Event triggered when a request fails definitively (no further retries)."""
    method: str
    path: str
    error_type: str
    error_message: str
    status: Optional[int] = None
    timestamp: float = field(default_factory=time.time)

@dataclass
class RetryScheduled(DomainEvent):
    """Event triggered when a retry is scheduled for a failed request."""
    path: str
    attempt_number: int
    delay_seconds: float
    reason: str # 'backend_asleep', 'service_unavailable', 'network_failure'
    timestamp: float = field(default_factory=time.time)

@dataclass
class WakeAttempted(DomainEvent):
    """Event triggered after a wake sequence ran against a sleeping backend."""
    max_attempts: int
    succeeded: bool
    timestamp: float = field(default_factory=time.time)

@dataclass
class AuthInvalidated(DomainEvent):
    """Event triggered when the stored session was discarded."""
    path: str
    reason: str # 'token_expired' or 'unauthorized'
    details: Optional[Any] = None
    timestamp: float = field(default_factory=time.time)
