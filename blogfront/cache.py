"""Time-bounded cache for parsed API payloads.

Entries are keyed by endpoint path plus the sorted query parameters and
expire ``ttl`` seconds after they were stored. Callers only store successful
payloads, so a failed fetch is retried on the next request.
"""

from __future__ import annotations

import time
from typing import Any, Callable, Mapping, Optional

CacheKey = tuple[str, tuple[tuple[str, str], ...]]


def make_key(path: str, params: Optional[Mapping[str, object]] = None) -> CacheKey:
    items = tuple(sorted((str(k), str(v)) for k, v in (params or {}).items()))
    return (path, items)


class ResponseCache:
    def __init__(self, ttl: float, *, clock: Callable[[], float] = time.monotonic) -> None:
        self.ttl = ttl
        self._clock = clock
        self._entries: dict[CacheKey, tuple[float, Any]] = {}

    @property
    def enabled(self) -> bool:
        return self.ttl > 0

    def get(self, path: str, params: Optional[Mapping[str, object]] = None) -> Any:
        key = make_key(path, params)
        entry = self._entries.get(key)
        if entry is None:
            return None
        expires_at, value = entry
        if self._clock() >= expires_at:
            del self._entries[key]
            return None
        return value

    def set(self, path: str, params: Optional[Mapping[str, object]], value: Any) -> None:
        if not self.enabled:
            return
        self._entries[make_key(path, params)] = (self._clock() + self.ttl, value)

    def invalidate(self, path: str, params: Optional[Mapping[str, object]] = None) -> bool:
        return self._entries.pop(make_key(path, params), None) is not None

    def clear(self) -> None:
        self._entries.clear()

    def __len__(self) -> int:
        return len(self._entries)
