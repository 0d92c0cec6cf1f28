"""Command Handler: Orchestrates CLI command execution.

Receives commands from the main entry point (main.py) and delegates the
work to the request orchestrator and the session service. API errors are
rendered through the UserInterface; the return value tells the caller
whether the command succeeded.
"""

import json
import logging
from typing import Any, Optional

from azbclient.core.services.session_service import SessionService
from azbclient.domain.interfaces.user_interface import UserInterface
from azbclient.infrastructure.resilience.errors import ApiError
from azbclient.infrastructure.resilience.request_orchestrator import RequestOrchestrator

logger = logging.getLogger(__name__)

class CommandHandler:
    """Handles incoming commands and delegates to appropriate services."""

    def __init__(
        self,
        orchestrator: RequestOrchestrator,
        session_service: SessionService,
        ui: UserInterface,
    ):
        """Initializes the CommandHandler with required services."""
        self.orchestrator = orchestrator
        self.session_service = session_service
        self.ui = ui

    def _report(self, action: str, error: ApiError) -> bool:
        logger.error(f"{action} failed: {error}")
        self.ui.display_error(f"{action} failed: {error.message}", status=error.status)
        return False

    async def handle_health(self) -> bool:
        """Handles the 'health' command: probe, and try to wake a sleeping backend."""
        probe = self.orchestrator.health_probe
        logger.info(f"Handling 'health' command against {probe.health_url}")
        awake = await probe.check()
        if not awake:
            self.ui.display_warning("Backend did not answer its health check; trying to wake it.")
            settings = self.orchestrator.settings
            awake = await self.orchestrator.wake_sequencer.wake(
                settings.wake_max_attempts, settings.wake_base_delay_seconds
            )
        self.ui.display_health(awake, probe.health_url)
        return awake

    async def handle_request(self, method: str, path: str, data: Optional[str] = None) -> bool:
        """Handles the 'get' and 'send' commands."""
        logger.info(f"Handling request command: {method} {path}")
        body: Any = None
        if data is not None:
            try:
                body = json.loads(data)
            except ValueError as e:
                self.ui.display_error(f"--data is not valid JSON: {e}")
                return False

        try:
            result = await self.orchestrator.request(path, method, json=body)
        except ApiError as e:
            return self._report(f"{method} {path}", e)

        self.ui.display_output(result, title=f"{method} {path}")
        return True

    async def handle_login(self, email: str, password: str) -> bool:
        """Handles the 'login' command."""
        logger.info("Handling 'login' command.")
        try:
            user = await self.session_service.login(email, password)
        except ApiError as e:
            return self._report("Login", e)
        self.ui.display_info(f"Logged in as {user.get('email', email)} ({user['role_name']}).")
        return True

    def handle_logout(self) -> bool:
        """Handles the 'logout' command."""
        self.session_service.logout()
        self.ui.display_info("Logged out; stored session removed.")
        return True

    async def handle_whoami(self) -> bool:
        """Handles the 'whoami' command using the stored session."""
        if self.session_service.restore() is None:
            self.ui.display_warning("No stored session. Run 'azbclient login' first.")
            return False
        try:
            user = await self.session_service.fetch_current_user()
        except ApiError as e:
            return self._report("whoami", e)
        self.ui.display_output(user, title="Current user")
        return True
