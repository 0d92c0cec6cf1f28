"""Exceptions raised to callers of the request orchestrator.

Every failure surfaces as an ApiError. Errors that originate from an HTTP
response carry `.response` (status and parsed body); transport failures do
not.
"""

from dataclasses import dataclass
from typing import Any, Optional

SERVER_STARTING_MESSAGE = "Server may be starting up. Please wait a moment and try again."

@dataclass(frozen=True)
class ErrorResponse:
    """Status and parsed body of the response that caused an error."""
    status: int
    data: Any = None

class ApiError(Exception):
    """Base class for every error raised by the client."""

    def __init__(self, message: str, response: Optional[ErrorResponse] = None):
        super().__init__(message)
        self.message = message
        self.response = response

    @property
    def status(self) -> Optional[int]:
        return self.response.status if self.response else None

    @property
    def data(self) -> Any:
        return self.response.data if self.response else None

class SessionExpiredError(ApiError):
    """The session is no longer valid; the stored token has been discarded."""

    def __init__(self, message: str = "Session expired. Please log in again.", data: Any = None):
        super().__init__(message, ErrorResponse(status=401, data=data))

class ServiceUnavailableError(ApiError):
    """The backend kept answering 503 after every retry."""

class NetworkFailureError(ApiError):
    """The request never produced a response (connect, DNS, read, timeout)."""

class RequestTimeoutError(NetworkFailureError):
    """The deadline elapsed before the call completed."""

    def __init__(self, timeout_seconds: float):
        super().__init__(f"Request timeout after {timeout_seconds:g}s")
        self.timeout_seconds = timeout_seconds

def build_error_message(data: Any) -> str:
    """Message for a non-2xx response: body error/message plus details."""
    message = "Request failed"
    details = None
    if isinstance(data, dict):
        message = data.get("error") or data.get("message") or message
        details = data.get("details")
    return f"{message}: {details}" if details else str(message)
