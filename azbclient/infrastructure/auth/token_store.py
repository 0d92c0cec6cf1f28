"""Holds the current bearer token in memory, mirrored to persistent storage.

The store is the only writer of token state. Callers decide when a token is
persisted (`persist`) versus only held for the running process (`set`).
"""

import logging
import threading
from typing import Optional

from azbclient.domain.interfaces.storage import KeyValueStorage, AUTH_TOKEN_KEY, AUTH_USER_KEY
from azbclient.domain.models.common import BearerToken

logger = logging.getLogger(__name__)

class TokenStore:
    """In-memory token with a persisted fallback under `auth_token`."""

    def __init__(self, storage: KeyValueStorage):
        self._storage = storage
        self._token: Optional[BearerToken] = None
        # The CLI and tests may touch the store from worker threads
        self._lock = threading.Lock()

    @property
    def storage(self) -> KeyValueStorage:
        return self._storage

    def set(self, token: Optional[str]) -> None:
        """Replaces the in-memory token. Persistent storage is left untouched."""
        with self._lock:
            self._token = BearerToken(token) if token else None
        logger.debug(f"In-memory token {'set' if token else 'cleared'}")

    def resolve(self) -> Optional[BearerToken]:
        """Returns the in-memory token, else the persisted one, else None."""
        with self._lock:
            if self._token:
                return self._token
        persisted = self._storage.get(AUTH_TOKEN_KEY)
        return BearerToken(persisted) if persisted else None

    def persist(self, token: str, user_json: str) -> None:
        """Writes token and serialized user to persistent storage and memory."""
        self._storage.set(AUTH_TOKEN_KEY, token)
        self._storage.set(AUTH_USER_KEY, user_json)
        self.set(token)

    def clear(self) -> None:
        """Drops the in-memory token and removes both persisted keys."""
        with self._lock:
            self._token = None
        self._storage.delete(AUTH_TOKEN_KEY)
        self._storage.delete(AUTH_USER_KEY)
        logger.info("Session token cleared from memory and storage.")
