"""
In-memory TTL cache for upstream responses.
Why: one process-lifetime store behind a small protocol so a shared store
(Redis, memcached) can replace it without touching the client.
"""

import threading
import time
from typing import Any, Callable, Dict, Optional, Protocol, Tuple

_Entry = Tuple[Any, float]  # (value, expires_at)


class ResponseCache(Protocol):
    def get(self, key: str) -> Optional[Any]: ...

    def set(self, key: str, value: Any, ttl_seconds: int) -> None: ...

    def delete(self, key: str) -> None: ...

    def clear(self) -> None: ...


class SimpleCache:
    """Dict-backed cache; expired entries are purged when read."""

    def __init__(self, clock: Callable[[], float] = time.time) -> None:
        self._data: Dict[str, _Entry] = {}
        self._lock = threading.Lock()
        self._clock = clock

    def get(self, key: str) -> Optional[Any]:
        with self._lock:
            entry = self._data.get(key)
            if entry is None:
                return None
            value, expires_at = entry
            if self._clock() >= expires_at:
                self._data.pop(key, None)
                return None
            return value

    def set(self, key: str, value: Any, ttl_seconds: int) -> None:
        if ttl_seconds < 0:
            raise ValueError("ttl_seconds must be >= 0")
        with self._lock:
            self._data[key] = (value, self._clock() + ttl_seconds)

    def delete(self, key: str) -> None:
        with self._lock:
            self._data.pop(key, None)

    def clear(self) -> None:
        with self._lock:
            self._data.clear()

    def __len__(self) -> int:
        """Stored entries, including expired ones not yet purged by a read."""
        with self._lock:
            return len(self._data)

    def __contains__(self, key: object) -> bool:
        return isinstance(key, str) and self.get(key) is not None
