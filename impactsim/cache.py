from __future__ import annotations

import threading
import time
from collections import OrderedDict
from typing import Any, Callable, Hashable, Tuple

_MISSING = object()


def coordinate_key(lat: float, lon: float, precision: int = 2) -> Tuple[float, float]:
    """Cache key for a point; nearby points share a cell of 10**-precision degrees."""
    return round(float(lat), precision), round(float(lon), precision)


class TTLCache:
    """
    Small in-memory cache with per-entry expiry and LRU eviction once
    ``max_entries`` is reached. Safe to share between request threads.
    """

    def __init__(self, ttl_seconds: float, max_entries: int = 1024,
                 clock: Callable[[], float] = time.monotonic):
        if ttl_seconds <= 0:
            raise ValueError("ttl_seconds must be > 0")
        if max_entries <= 0:
            raise ValueError("max_entries must be > 0")
        self.ttl_seconds = float(ttl_seconds)
        self.max_entries = int(max_entries)
        self._clock = clock
        self._data: "OrderedDict[Hashable, Tuple[float, Any]]" = OrderedDict()
        self._lock = threading.Lock()

    def __len__(self) -> int:
        with self._lock:
            self._purge_expired()
            return len(self._data)

    def __contains__(self, key: Hashable) -> bool:
        return self._lookup(key) is not _MISSING

    def _purge_expired(self) -> None:
        now = self._clock()
        for k in [k for k, (exp, _) in self._data.items() if exp <= now]:
            del self._data[k]

    def _lookup(self, key: Hashable) -> Any:
        with self._lock:
            item = self._data.get(key)
            if item is None:
                return _MISSING
            expires_at, value = item
            if expires_at <= self._clock():
                del self._data[key]
                return _MISSING
            self._data.move_to_end(key)
            return value

    def get(self, key: Hashable, default: Any = None) -> Any:
        value = self._lookup(key)
        return default if value is _MISSING else value

    def set(self, key: Hashable, value: Any) -> None:
        with self._lock:
            self._data[key] = (self._clock() + self.ttl_seconds, value)
            self._data.move_to_end(key)
            while len(self._data) > self.max_entries:
                self._data.popitem(last=False)

    def get_or_compute(self, key: Hashable, factory: Callable[[], Any]) -> Any:
        """Return the cached value or store ``factory()``. Exceptions are not cached."""
        value = self._lookup(key)
        if value is not _MISSING:
            return value
        value = factory()
        self.set(key, value)
        return value

    def clear(self) -> None:
        with self._lock:
            self._data.clear()
