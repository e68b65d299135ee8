# talentmatch/core/cache.py
"""
Tiny per-process TTL cache.

Only a latency optimisation: entries may disappear at any time and a
multi-process deployment keeps one independent copy per process. The
database stays the source of truth.
"""
from __future__ import annotations

import time
from typing import Any, Callable, Hashable, Protocol

_MISSING = object()


class Cache(Protocol):
    def get(self, key: Hashable, default: Any = None) -> Any: ...
    def set(self, key: Hashable, value: Any, ttl: float | None = None) -> None: ...
    def invalidate(self, key: Hashable) -> None: ...


class TTLCache:
    def __init__(self, ttl: float, clock: Callable[[], float] = time.monotonic, max_entries: int = 1024):
        self.ttl = ttl
        self.clock = clock
        self.max_entries = max_entries
        self._data: dict[Hashable, tuple[float, Any]] = {}

    def get(self, key: Hashable, default: Any = None) -> Any:
        entry = self._data.get(key, _MISSING)
        if entry is _MISSING:
            return default
        expires_at, value = entry
        if expires_at <= self.clock():
            self._data.pop(key, None)
            return default
        return value

    def set(self, key: Hashable, value: Any, ttl: float | None = None) -> None:
        if len(self._data) >= self.max_entries:
            self._evict()
        self._data[key] = (self.clock() + (self.ttl if ttl is None else ttl), value)

    def invalidate(self, key: Hashable) -> None:
        self._data.pop(key, None)

    def __len__(self) -> int:
        return len(self._data)

    def _evict(self) -> None:
        now = self.clock()
        for k in [k for k, (exp, _) in self._data.items() if exp <= now]:
            del self._data[k]
        # still full: drop the entry closest to expiry
        if len(self._data) >= self.max_entries:
            oldest = min(self._data, key=lambda k: self._data[k][0])
            del self._data[oldest]
