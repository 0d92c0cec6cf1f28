"""In-process notification of session changes.

A small observer registry replaces a global event bus: listeners subscribe
to a named, parameterless signal and are called synchronously, in
subscription order, every time the signal is dispatched.
"""

import logging
from collections import defaultdict
from typing import Callable, DefaultDict, List

from azbclient.domain.models.common import SignalName
from azbclient.infrastructure.auth.token_store import TokenStore

logger = logging.getLogger(__name__)

AUTH_INVALID_SIGNAL = SignalName("azb-auth-invalid")
AUTH_CHANGED_SIGNAL = SignalName("azb-auth-changed")

Listener = Callable[[], None]

class SignalBus:
    """Registry of listeners keyed by signal name."""

    def __init__(self):
        self._listeners: DefaultDict[str, List[Listener]] = defaultdict(list)

    def subscribe(self, name: str, listener: Listener) -> Callable[[], None]:
        """Registers a listener and returns a callable that unsubscribes it."""
        self._listeners[name].append(listener)
        logger.debug(f"Listener subscribed to '{name}' ({len(self._listeners[name])} total)")

        def unsubscribe() -> None:
            if listener in self._listeners[name]:
                self._listeners[name].remove(listener)
        return unsubscribe

    def dispatch(self, name: str) -> int:
        """Calls every listener of `name`; returns how many were notified.

        A listener that raises is logged and skipped so the remaining
        listeners still see the signal.
        """
        listeners = list(self._listeners.get(name, ()))
        logger.debug(f"Dispatching '{name}' to {len(listeners)} listener(s)")
        for listener in listeners:
            try:
                listener()
            except Exception as e:
                logger.error(f"Listener {listener!r} failed handling '{name}': {e}", exc_info=True)
        return len(listeners)

    def listener_count(self, name: str) -> int:
        return len(self._listeners.get(name, ()))

class AuthInvalidator:
    """Discards the session and tells the rest of the process about it."""

    def __init__(self, token_store: TokenStore, signals: SignalBus):
        self._token_store = token_store
        self._signals = signals

    @property
    def signals(self) -> SignalBus:
        return self._signals

    def clear_invalid_auth(self) -> None:
        """Clears the token store, then broadcasts `azb-auth-invalid`."""
        self._token_store.clear()
        self._signals.dispatch(AUTH_INVALID_SIGNAL)
        logger.warning("Session invalidated; listeners notified.")
