"""In-process KeyValueStorage used for ephemeral sessions and tests."""

from typing import Dict, Optional

from azbclient.domain.interfaces.storage import KeyValueStorage

class InMemoryStorage(KeyValueStorage):
    """Dictionary-backed storage. Nothing survives the process."""

    def __init__(self, initial: Optional[Dict[str, str]] = None):
        self._values: Dict[str, str] = dict(initial or {})

    def get(self, key: str) -> Optional[str]:
        return self._values.get(key)

    def set(self, key: str, value: str) -> None:
        self._values[key] = value

    def delete(self, key: str) -> None:
        self._values.pop(key, None)

    def __contains__(self, key: object) -> bool:
        return key in self._values
