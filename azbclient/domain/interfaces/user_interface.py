"""Interface for interacting with the user (input/output).

Defines the contract for displaying API results, health status, errors,
warnings and informational messages, allowing different UI implementations.
"""

import abc
from typing import Any

class UserInterface(abc.ABC):
    """Abstract Base Class for user interaction."""

    @abc.abstractmethod
    def display_output(self, output: Any, **kwargs: Any) -> None:
        """Displays a response payload to the user.

        Args:
            output: Parsed response body (JSON-compatible value or text).
            **kwargs: Additional arguments for formatting (e.g., title).
        """
        pass

    @abc.abstractmethod
    def display_error(self, error_message: str, **kwargs: Any) -> None:
        """Displays an error message to the user.

        Args:
            error_message: The error message string.
            **kwargs: Additional arguments for formatting (e.g., status).
        """
        pass

    @abc.abstractmethod
    def display_warning(self, warning_message: str, **kwargs: Any) -> None:
        """Displays a warning message to the user."""
        pass

    @abc.abstractmethod
    def display_info(self, info_message: str, **kwargs: Any) -> None:
        """Displays an informational message to the user."""
        pass

    def display_health(self, is_awake: bool, health_url: str) -> None:
        """Displays the result of a liveness check.

        Args:
            is_awake: Whether the backend answered its health endpoint.
            health_url: The URL that was probed.
        """
        pass
