"""Core service holding the logged-in user for the running process.

Restores a persisted session, logs in and out, keeps the stored user in
sync, and forgets the user as soon as the orchestrator reports that the
session was invalidated.
"""

import json
import logging
from typing import Any, Dict, Optional

from azbclient.core.services.auth_api import AuthApi
from azbclient.domain.interfaces.storage import AUTH_TOKEN_KEY, AUTH_USER_KEY
from azbclient.infrastructure.auth.invalidation import SignalBus, AUTH_CHANGED_SIGNAL, AUTH_INVALID_SIGNAL
from azbclient.infrastructure.auth.token_store import TokenStore
from azbclient.infrastructure.resilience.errors import ApiError

logger = logging.getLogger(__name__)

ROLE_NAMES = {1: "Super Admin", 2: "Admin", 3: "Customer"}

def _coerce_role_id(value: Any) -> Optional[int]:
    if value is None:
        return None
    try:
        return int(value)
    except (ValueError, TypeError):
        logger.warning(f"Ignoring non-numeric role_id: {value!r}")
        return None

def normalize_user(raw_user: Optional[Dict[str, Any]]) -> Optional[Dict[str, Any]]:
    """Coerces `role_id` to an int and fills in `role_name` when missing."""
    if raw_user is None:
        return None
    role_id = _coerce_role_id(raw_user.get("role_id"))
    return {
        **raw_user,
        "role_id": role_id,
        "role_name": raw_user.get("role_name") or ROLE_NAMES.get(role_id, "User"),
    }

class SessionService:
    """Login state on top of the token store and the auth endpoints."""

    def __init__(self, auth_api: AuthApi, token_store: TokenStore, signals: SignalBus):
        self.auth_api = auth_api
        self.token_store = token_store
        self.signals = signals
        self.current_user: Optional[Dict[str, Any]] = None
        self._unsubscribe = signals.subscribe(AUTH_INVALID_SIGNAL, self._on_auth_invalid)

    @property
    def is_authenticated(self) -> bool:
        return self.current_user is not None

    def _on_auth_invalid(self) -> None:
        logger.info("Session invalidated by the API layer; dropping current user.")
        self.current_user = None

    def restore(self) -> Optional[Dict[str, Any]]:
        """Loads a persisted session, if both token and user are stored.

        Corrupt user data removes both keys so the next run starts clean.
        """
        storage = self.token_store.storage
        stored_token = storage.get(AUTH_TOKEN_KEY)
        stored_user = storage.get(AUTH_USER_KEY)
        if not (stored_token and stored_user):
            return None

        try:
            user = normalize_user(json.loads(stored_user))
        except (ValueError, TypeError, AttributeError) as e:
            logger.error(f"Error loading stored session: {e}")
            self.token_store.clear()
            return None

        self.token_store.persist(stored_token, json.dumps(user))
        self.current_user = user
        self.signals.dispatch(AUTH_CHANGED_SIGNAL)
        logger.info("Restored persisted session.")
        return user

    async def login(self, email: str, password: str) -> Dict[str, Any]:
        """Logs in and persists the session; returns the normalized user."""
        response = await self.auth_api.login(email, password)
        if not isinstance(response, dict) or not response.get("user") or not response.get("token"):
            logger.error("Login response is missing 'user' or 'token'.")
            raise ApiError("Invalid response from server")

        user = normalize_user(response["user"])
        self.token_store.persist(response["token"], json.dumps(user))
        self.current_user = user
        self.signals.dispatch(AUTH_CHANGED_SIGNAL)
        logger.info(f"Logged in as user id={user.get('id')} role={user['role_name']}")
        return user

    def logout(self) -> None:
        self.current_user = None
        self.token_store.clear()
        self.signals.dispatch(AUTH_CHANGED_SIGNAL)
        logger.info("Logged out.")

    def update_user(self, **fields: Any) -> Dict[str, Any]:
        """Merges fields into the current user and persists the result."""
        merged = normalize_user({**(self.current_user or {}), **fields})
        self.token_store.storage.set(AUTH_USER_KEY, json.dumps(merged))
        self.current_user = merged
        return merged

    async def fetch_current_user(self) -> Any:
        """Asks the backend who the stored token belongs to."""
        return await self.auth_api.get_current_user()

    def close(self) -> None:
        self._unsubscribe()
