"""
Cache invalidation driven by data-source changes.

[CacheCoordinator][angorhub.services.cache.CacheCoordinator] watches the
observed values that decide where data comes from and reduces them to a
[SourceSnapshot][angorhub.services.cache.SourceSnapshot]:

- the selected network,
- the indexer URL ``select_best`` resolves for it,
- the readable and writable relay URL sets.

Whenever the snapshot changes, every cache entry under the source prefix
is reset (dropped, with late writes discarded) and registered listeners,
such as [PaginatedAggregator.reset()][angorhub.services.projects.PaginatedAggregator.reset],
are called.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from angorhub.core.logger import Logger
from angorhub.models.constants import CACHE_PREFIX, NetworkId


if TYPE_CHECKING:
    from collections.abc import Callable

    from angorhub.core.cache import QueryCache
    from angorhub.core.observable import Observable
    from angorhub.services.indexers import IndexerHealthMonitor, IndexerRegistry
    from angorhub.services.relays import RelayMembership


@dataclass(frozen=True, slots=True)
class SourceSnapshot:
    """Everything a cached remote read depends on."""

    network: NetworkId
    indexer_url: str
    readable: tuple[str, ...]
    writable: tuple[str, ...]

    def changed_fields(self, other: SourceSnapshot) -> list[str]:
        return [
            name
            for name in ("network", "indexer_url", "readable", "writable")
            if getattr(self, name) != getattr(other, name)
        ]


class CacheCoordinator:
    """Resets source-dependent cache entries when the data source changes.

    Args:
        cache: The query cache to reset.
        network: Observed current network.
        registry: Indexer configuration (primary changes).
        monitor: Health statuses (best-indexer changes).
        membership: Relay membership (read/write set changes).
        prefix: Key prefix of source-dependent entries.
    """

    def __init__(
        self,
        cache: QueryCache,
        network: Observable[NetworkId],
        registry: IndexerRegistry,
        monitor: IndexerHealthMonitor,
        membership: RelayMembership,
        prefix: str = CACHE_PREFIX,
    ) -> None:
        self._cache = cache
        self._network = network
        self._registry = registry
        self._monitor = monitor
        self._membership = membership
        self._prefix = prefix
        self._logger = Logger("cache")
        self._listeners: list[Callable[[SourceSnapshot], None]] = []
        self._unsubscribers: list[Callable[[], None]] = []
        self._snapshot = self.compute_snapshot()

    @property
    def snapshot(self) -> SourceSnapshot:
        return self._snapshot

    def compute_snapshot(self) -> SourceSnapshot:
        network = self._network.value
        sets = self._membership.sets(network)
        return SourceSnapshot(
            network=network,
            indexer_url=self._monitor.select_best(network),
            readable=sets.readable,
            writable=sets.writable,
        )

    def start(self) -> None:
        """Subscribe to every source observable. Idempotent."""
        if self._unsubscribers:
            return
        self._snapshot = self.compute_snapshot()
        self._unsubscribers = [
            self._network.subscribe(self._on_change),
            self._registry.subscribe(self._on_change),
            self._monitor.observable.subscribe(self._on_change),
            self._membership.subscribe(self._on_change),
        ]

    def stop(self) -> None:
        for unsubscribe in self._unsubscribers:
            unsubscribe()
        self._unsubscribers = []

    def add_listener(self, listener: Callable[[SourceSnapshot], None]) -> Callable[[], None]:
        """Call ``listener`` after every reset; returns a remover."""
        self._listeners.append(listener)

        def remove() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return remove

    def _on_change(self, _value: Any) -> None:
        self.check()

    def check(self) -> bool:
        """Recompute the snapshot and reset if it changed. Returns True on reset."""
        snapshot = self.compute_snapshot()
        if snapshot == self._snapshot:
            return False
        changed = snapshot.changed_fields(self._snapshot)
        self._snapshot = snapshot
        self.reset(reason=",".join(changed))
        return True

    def reset(self, reason: str = "manual") -> int:
        """Drop every source-dependent entry and notify listeners."""
        removed = self._cache.reset(self._prefix)
        self._logger.info(
            "cache_reset",
            reason=reason,
            removed=removed,
            network=self._snapshot.network.value,
            indexer=self._snapshot.indexer_url,
        )
        for listener in list(self._listeners):
            listener(self._snapshot)
        return removed
