"""In-memory snapshot of the persisted configuration."""

import threading
from collections.abc import Callable, Iterable, Mapping
from types import MappingProxyType

from src.domain.config import ConfigEntry


class ConfigCache:
    """
    Whole-store snapshot with coarse invalidation.

    The cache is either empty (never loaded, or cleared after a write) or
    holds a complete copy of the store taken at load time. A miss on a
    loaded cache therefore means the key has no persisted value.

    Both transitions run under one lock. The loader is called while the
    lock is held, so a clear issued during a load waits for it and a stale
    snapshot can never be installed after the clear.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._values: Mapping[str, str] | None = None

    @property
    def is_empty(self) -> bool:
        return self._values is None

    def ensure(self, loader: Callable[[], Iterable[ConfigEntry]]) -> Mapping[str, str]:
        """
        Return the current snapshot, loading it first if the cache is empty.

        The returned mapping is read-only and stays valid for the caller
        even if the cache is cleared right after.
        """
        with self._lock:
            if self._values is None:
                values = {entry.key.lower(): entry.value for entry in loader()}
                self._values = MappingProxyType(values)
            return self._values

    def clear(self) -> None:
        with self._lock:
            self._values = None
