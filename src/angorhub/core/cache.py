"""
In-process keyed query cache.

Results of remote reads (indexer pages, project details, deny lists) are
stored under string keys. Keys that depend on the active data source start
with a namespace prefix (``remote-data-`` by default) so that a single
call can invalidate or reset everything derived from the old source.

Two invalidation strengths are offered:

- ``invalidate(prefix)`` marks matching entries stale. The next ``fetch``
  refetches, but ``get`` still returns the old value.
- ``reset(prefix)`` drops matching entries and bumps the generation.
  A ``fetch`` that started before the reset completes normally for its own
  caller, but its result is not written back into the cache.

Examples:
    ```python
    cache = QueryCache()
    page = await cache.fetch("remote-data-projects:mainnet:0", load_page, stale_time=60)
    cache.reset("remote-data-")
    ```
"""

from __future__ import annotations

import time
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import Any

from .logger import Logger


@dataclass(slots=True)
class CacheEntry:
    """A cached value with its write time and stale flag."""

    value: Any
    updated_at: float
    stale: bool = False


class QueryCache:
    """Keyed cache with prefix invalidation and generation-guarded writes."""

    def __init__(self, clock: Callable[[], float] = time.time) -> None:
        self._entries: dict[str, CacheEntry] = {}
        self._generation = 0
        self._clock = clock
        self._logger = Logger("cache")

    @property
    def generation(self) -> int:
        """Incremented on every ``reset``."""
        return self._generation

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, key: object) -> bool:
        return key in self._entries

    def keys(self) -> list[str]:
        return list(self._entries)

    def get(self, key: str) -> Any | None:
        entry = self._entries.get(key)
        return entry.value if entry is not None else None

    def is_stale(self, key: str, stale_time: float | None = None) -> bool:
        """True if ``key`` is missing, invalidated, or older than ``stale_time``."""
        entry = self._entries.get(key)
        if entry is None or entry.stale:
            return True
        if stale_time is None:
            return False
        return self._clock() - entry.updated_at >= stale_time

    def set(self, key: str, value: Any) -> None:
        self._entries[key] = CacheEntry(value=value, updated_at=self._clock())

    async def fetch(
        self,
        key: str,
        fn: Callable[[], Awaitable[Any]],
        stale_time: float | None = None,
    ) -> Any:
        """Return the cached value for ``key`` or load it with ``fn``.

        Args:
            key: Cache key.
            fn: Coroutine factory producing the value on a miss.
            stale_time: Seconds after which a stored value is refetched.
                ``None`` keeps values until invalidated.

        Returns:
            The cached or freshly loaded value. Exceptions raised by ``fn``
            propagate and nothing is stored.
        """
        if not self.is_stale(key, stale_time):
            return self._entries[key].value

        generation = self._generation
        value = await fn()
        if generation == self._generation:
            self.set(key, value)
        else:
            self._logger.debug("cache_write_discarded", key=key)
        return value

    def invalidate(self, prefix: str = "") -> int:
        """Mark every entry whose key starts with ``prefix`` as stale.

        Returns:
            Number of entries marked.
        """
        count = 0
        for key, entry in self._entries.items():
            if key.startswith(prefix):
                entry.stale = True
                count += 1
        return count

    def reset(self, prefix: str = "") -> int:
        """Drop every entry whose key starts with ``prefix``.

        Returns:
            Number of entries removed.
        """
        doomed = [key for key in self._entries if key.startswith(prefix)]
        for key in doomed:
            del self._entries[key]
        self._generation += 1
        self._logger.debug("cache_reset", prefix=prefix, removed=len(doomed))
        return len(doomed)
