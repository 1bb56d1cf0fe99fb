"""In-memory TTL cache for admin dashboard lookups.

One instance lives on ``app.state.cache``; logout clears it explicitly.
"""

import threading
import time
from typing import Any, Callable, Dict, Optional, Tuple

from fastapi import Request


class TTLCache:
    def __init__(self, default_ttl: float, clock: Callable[[], float] = time.monotonic):
        self.default_ttl = float(default_ttl)
        self._clock = clock
        self._entries: Dict[str, Tuple[Any, float]] = {}
        self._lock = threading.Lock()

    def get(self, key: str) -> Optional[Any]:
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return None
            value, expires_at = entry
            if self._clock() >= expires_at:
                del self._entries[key]
                return None
            return value

    def set(self, key: str, value: Any, ttl: Optional[float] = None) -> None:
        lifetime = self.default_ttl if ttl is None else float(ttl)
        with self._lock:
            self._entries[key] = (value, self._clock() + lifetime)

    def delete(self, key: str) -> None:
        with self._lock:
            self._entries.pop(key, None)

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)


def get_cache(request: Request) -> TTLCache:
    return request.app.state.cache
