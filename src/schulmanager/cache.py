"""In-memory TTL cache for scraped timetable data.

Keys follow ``<category>:<scope>:<date>``, e.g. ``timetable:default:2025-10-13``,
or ``<category>:<scope>:week:<monday>`` for whole weeks;
the category decides the default TTL (see ``SchulmanagerConfig.ttl_for``).
"""

import time
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, TypeVar

from src.schulmanager.config import CANCELLED, SUBSTITUTIONS, TIMETABLE
from src.schulmanager.logging import get_logger

log = get_logger(__name__)

T = TypeVar("T")


def cache_key(category: str, scope: str, day: str) -> str:
    return f"{category}:{scope}:{day}"


def timetable_key(scope: str, day: str) -> str:
    return cache_key(TIMETABLE, scope, day)


def substitutions_key(scope: str, day: str) -> str:
    return cache_key(SUBSTITUTIONS, scope, day)


def cancelled_key(scope: str, day: str) -> str:
    return cache_key(CANCELLED, scope, day)


def week_key(category: str, scope: str, monday: str) -> str:
    return cache_key(category, scope, f"week:{monday}")


@dataclass
class _CacheEntry:
    value: Any
    expires_at: float


class TTLCache:
    """Process-local key/value cache with a per-entry time-to-live.

    Expired entries are dropped lazily when touched. ``get_or_set`` does not
    coordinate concurrent misses on the same key: each may compute.
    """

    def __init__(
        self,
        default_ttl: float = 600,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.default_ttl = default_ttl
        self._clock = clock
        self._entries: dict[str, _CacheEntry] = {}
        self._hits = 0
        self._misses = 0

    def _live_entry(self, key: str) -> _CacheEntry | None:
        entry = self._entries.get(key)
        if entry is None:
            return None
        if entry.expires_at <= self._clock():
            del self._entries[key]
            return None
        return entry

    def get(self, key: str) -> Any | None:
        entry = self._live_entry(key)
        if entry is None:
            self._misses += 1
            return None
        self._hits += 1
        return entry.value

    def set(self, key: str, value: Any, ttl: float | None = None) -> None:
        ttl = self.default_ttl if ttl is None else ttl
        self._entries[key] = _CacheEntry(value=value, expires_at=self._clock() + ttl)

    def has(self, key: str) -> bool:
        return self._live_entry(key) is not None

    def delete(self, key: str) -> int:
        return 1 if self._entries.pop(key, None) is not None else 0

    def delete_prefix(self, prefix: str) -> int:
        """Delete every key starting with ``prefix``; returns how many."""
        doomed = [key for key in self._entries if key.startswith(prefix)]
        for key in doomed:
            del self._entries[key]
        log.info("cache_prefix_invalidated", prefix=prefix, deleted=len(doomed))
        return len(doomed)

    def flush(self) -> None:
        self._entries.clear()

    def keys(self) -> list[str]:
        return [key for key in list(self._entries) if self.has(key)]

    def stats(self) -> dict[str, int]:
        return {"hits": self._hits, "misses": self._misses, "keys": len(self.keys())}

    async def get_or_set(
        self,
        key: str,
        compute: Callable[[], Awaitable[T]],
        ttl: float | None = None,
    ) -> T:
        """Return the cached value for ``key`` or compute, store and return it.

        Args:
            key: Cache key.
            compute: Coroutine factory invoked only on a miss.
            ttl: Seconds to keep the computed value, defaults to ``default_ttl``.
        """
        entry = self._live_entry(key)
        if entry is not None:
            self._hits += 1
            log.debug("cache_hit", key=key)
            return entry.value

        self._misses += 1
        log.debug("cache_miss", key=key)
        value = await compute()
        self.set(key, value, ttl)
        return value
