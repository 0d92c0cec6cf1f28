"""Interface for the persistent key-value area that mirrors session state.

The client only ever touches two keys (`auth_token`, `auth_user`), but the
contract is a plain string key-value store so that the CLI can back it with
a disk cache and tests with a dictionary.
"""

import abc
from typing import Optional

AUTH_TOKEN_KEY = "auth_token"
AUTH_USER_KEY = "auth_user"

class KeyValueStorage(abc.ABC):
    """Abstract Base Class for persisted string values."""

    @abc.abstractmethod
    def get(self, key: str) -> Optional[str]:
        """Returns the stored value, or None if the key is absent."""
        pass

    @abc.abstractmethod
    def set(self, key: str, value: str) -> None:
        """Stores a value under the key, replacing any previous value."""
        pass

    @abc.abstractmethod
    def delete(self, key: str) -> None:
        """Removes the key. Removing an absent key is not an error."""
        pass
