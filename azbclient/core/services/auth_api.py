"""Endpoint wrappers for the authentication API.

Each wrapper only shapes the path and body; retries, timeouts and session
handling are done by the request orchestrator.
"""

from typing import Any, Dict

from azbclient.infrastructure.resilience.request_orchestrator import RequestOrchestrator

class AuthApi:
    """Authentication endpoints of the backend."""

    def __init__(self, orchestrator: RequestOrchestrator):
        self._orchestrator = orchestrator

    async def login(self, email: str, password: str) -> Any:
        return await self._orchestrator.request(
            "/auth/login", "POST", json={"email": email, "password": password}
        )

    async def get_current_user(self) -> Any:
        return await self._orchestrator.request("/auth/me", "GET")

    async def send_signup_otp(self, email: str) -> Any:
        return await self._orchestrator.request("/auth/signup/send-otp", "POST", json={"email": email})

    async def verify_signup_otp(self, signup_data: Dict[str, Any]) -> Any:
        return await self._orchestrator.request("/auth/signup/verify-otp", "POST", json=signup_data)

    async def send_forgot_password_otp(self, email: str) -> Any:
        return await self._orchestrator.request(
            "/auth/forgot-password/send-otp", "POST", json={"email": email}
        )

    async def verify_forgot_password_otp(self, forgot_password_data: Dict[str, Any]) -> Any:
        return await self._orchestrator.request(
            "/auth/forgot-password/verify-otp", "POST", json=forgot_password_data
        )
