"""Disk-backed key-value storage for persisted session state.

Wraps a `diskcache.Cache` directory so that the token and user survive
between CLI invocations. Values never expire on their own; they are removed
on logout or when the session is invalidated.
"""

import logging
from pathlib import Path
from typing import Optional, Union

import diskcache as dc

from azbclient.domain.interfaces.storage import KeyValueStorage

logger = logging.getLogger(__name__)

DEFAULT_STORAGE_DIR = Path.home() / ".azbclient" / "storage"

class DiskKeyValueStorage(KeyValueStorage):
    """KeyValueStorage backed by a diskcache directory."""

    def __init__(self, directory: Union[str, Path] = DEFAULT_STORAGE_DIR):
        self.directory = Path(directory)
        self.directory.mkdir(parents=True, exist_ok=True)
        # timeout is the SQLite busy timeout; concurrent CLI runs share the directory
        self._cache = dc.Cache(str(self.directory), timeout=1)
        logger.info(f"Initialized persistent storage at: {self._cache.directory}")

    def get(self, key: str) -> Optional[str]:
        value = self._cache.get(key, default=None)
        if value is not None and not isinstance(value, str):
            logger.warning(f"Ignoring non-string value stored under '{key}'")
            return None
        return value

    def set(self, key: str, value: str) -> None:
        self._cache.set(key, value)
        logger.debug(f"Persisted key: {key}")

    def delete(self, key: str) -> None:
        if self._cache.delete(key):
            logger.debug(f"Removed persisted key: {key}")

    def close(self) -> None:
        """Releases the underlying SQLite connection."""
        self._cache.close()
