"""In-memory TTL cache backing the process-local session store."""

from __future__ import annotations

import time
from collections import OrderedDict
from threading import RLock
from typing import Any, Callable, Hashable, Optional, Tuple

MISSING = object()


class TTLCache:
    """Thread-safe TTL cache with LRU eviction and per-entry lifetimes."""

    def __init__(
        self,
        maxsize: int = 128,
        ttl: float = 300.0,
        *,
        clock: Callable[[], float] = time.time,
    ) -> None:
        if maxsize <= 0:
            raise ValueError("maxsize must be positive")
        if ttl <= 0:
            raise ValueError("ttl must be positive")
        self.maxsize = maxsize
        self.ttl = ttl
        self._clock = clock
        self._data: "OrderedDict[Hashable, Tuple[Any, float]]" = OrderedDict()
        self._lock = RLock()

    def _evict_expired(self) -> None:
        now = self._clock()
        expired_keys = [key for key, (_, expiry) in self._data.items() if expiry <= now]
        for key in expired_keys:
            self._data.pop(key, None)

    def get(self, key: Hashable, default: Any = MISSING) -> Any:
        with self._lock:
            entry = self._data.get(key)
            if not entry:
                return default
            value, expiry = entry
            if expiry <= self._clock():
                self._data.pop(key, None)
                return default
            self._data.move_to_end(key)
            return value

    def set(self, key: Hashable, value: Any, ttl: Optional[float] = None) -> None:
        lifetime = self.ttl if ttl is None else ttl
        if lifetime <= 0:
            raise ValueError("ttl must be positive")
        with self._lock:
            self._evict_expired()
            expiry = self._clock() + lifetime
            if key in self._data:
                self._data.move_to_end(key)
            self._data[key] = (value, expiry)
            while len(self._data) > self.maxsize:
                self._data.popitem(last=False)

    def pop(self, key: Hashable, default: Any = None) -> Any:
        with self._lock:
            entry = self._data.pop(key, None)
            if entry is None:
                return default
            value, expiry = entry
            if expiry <= self._clock():
                return default
            return value

    def clear(self) -> None:
        with self._lock:
            self._data.clear()

    def __len__(self) -> int:
        with self._lock:
            self._evict_expired()
            return len(self._data)

    def __contains__(self, key: Hashable) -> bool:
        return self.get(key, MISSING) is not MISSING


__all__ = ["TTLCache", "MISSING"]
