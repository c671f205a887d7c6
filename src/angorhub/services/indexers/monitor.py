"""
Indexer health monitoring and best-endpoint selection.

[IndexerHealthMonitor][angorhub.services.indexers.IndexerHealthMonitor]
probes every configured indexer of a network concurrently, keeps one
[IndexerHealthStatus][angorhub.models.indexer.IndexerHealthStatus] per
network (persisted under ``indexer-health-{network}``) and answers
``select_best`` from that status without ever waiting for a probe.

Selection policy for a network:

1. No status recorded yet: the configured primary. A background test run
   is started.
2. Otherwise (a stale status is still used, and triggers a background
   refresh): the primary if its last probe was reachable, else the first
   reachable result in test order that is still configured, else the first
   configured URL.
3. Empty configuration: the compiled-in fallback URL.

Probe failures are results (``reachable=False``) and never raise. Only
storage failures propagate from ``test_all`` and ``test_one``.
"""

from __future__ import annotations

import asyncio
import time
from collections.abc import Awaitable, Callable
from typing import TYPE_CHECKING

from angorhub.core.logger import Logger
from angorhub.core.observable import Observable
from angorhub.models.constants import HEALTH_KEY_PREFIX, NetworkId
from angorhub.models.indexer import IndexerHealthResult, IndexerHealthStatus
from angorhub.utils.http import probe_endpoint

from .configs import IndexerConfig


if TYPE_CHECKING:
    import aiohttp

    from angorhub.core.storage import KeyValueStore

    from .registry import IndexerRegistry


Probe = Callable[[str], Awaitable[IndexerHealthResult]]
HealthMap = dict[NetworkId, IndexerHealthStatus]


def health_key(network: NetworkId) -> str:
    return f"{HEALTH_KEY_PREFIX}{network.value}"


class IndexerHealthMonitor:
    """Concurrent liveness testing and best-indexer selection.

    Args:
        registry: Source of configured URLs and primaries.
        store: Key/value store for persisted health statuses.
        session: Shared aiohttp session used by the default probe.
        config: Timeouts and staleness window.
        probe: Replacement probe ``async (url) -> IndexerHealthResult``.
            Defaults to [probe_endpoint][angorhub.utils.http.probe_endpoint]
            over ``session``.
        clock: Wall-clock source (unix seconds).
    """

    def __init__(
        self,
        registry: IndexerRegistry,
        store: KeyValueStore,
        session: aiohttp.ClientSession | None = None,
        config: IndexerConfig | None = None,
        *,
        probe: Probe | None = None,
        clock: Callable[[], float] = time.time,
    ) -> None:
        if probe is None:
            if session is None:
                raise ValueError("either session or probe is required")
            probe = self._http_probe
        self._registry = registry
        self._store = store
        self._session = session
        self._config = config or IndexerConfig()
        self._probe = probe
        self._clock = clock
        self._logger = Logger("indexers")
        self._statuses: Observable[HealthMap] = Observable(self._load())
        self._refreshing: dict[NetworkId, asyncio.Task[IndexerHealthStatus]] = {}

    def _load(self) -> HealthMap:
        statuses: HealthMap = {}
        for network in NetworkId:
            raw = self._store.get(health_key(network))
            if raw is None:
                continue
            try:
                status = IndexerHealthStatus.from_dict(raw)
            except (KeyError, TypeError, ValueError, AttributeError) as e:
                self._logger.warning("health_status_discarded", network=network.value, error=str(e))
                continue
            if status.network_id == network:
                statuses[network] = status
        return statuses

    def _save(self, status: IndexerHealthStatus) -> None:
        self._store.set(health_key(status.network_id), status.to_dict())
        statuses = dict(self._statuses.value)
        statuses[status.network_id] = status
        self._statuses.set(statuses)

    async def _http_probe(self, url: str) -> IndexerHealthResult:
        return await probe_endpoint(
            self._session, url, timeout=self._config.probe_timeout, clock=self._clock
        )

    async def _run_probe(self, url: str) -> IndexerHealthResult:
        return await self._probe(url)

    # -- Observation ----------------------------------------------------------

    @property
    def observable(self) -> Observable[HealthMap]:
        return self._statuses

    def get_cached(self, network: NetworkId) -> IndexerHealthStatus | None:
        return self._statuses.value.get(network)

    def is_stale(self, network: NetworkId) -> bool:
        """True when no status exists or it is older than ``stale_after``."""
        status = self.get_cached(network)
        return status is None or status.is_stale(self._clock(), self._config.stale_after)

    # -- Testing --------------------------------------------------------------

    async def test_all(
        self, network: NetworkId, urls: list[str] | None = None
    ) -> IndexerHealthStatus:
        """Probe ``urls`` (default: the configured set) concurrently.

        Results follow input order regardless of completion order. The new
        status replaces the previous one for ``network`` and is persisted.

        Raises:
            StorageError: If the status cannot be persisted.
        """
        targets = self._registry.urls(network) if urls is None else list(urls)
        results = await asyncio.gather(*(self._run_probe(url) for url in targets))

        status = IndexerHealthStatus(
            network_id=network,
            results=tuple(results),
            last_updated=self._clock(),
        )
        self._save(status)
        self._logger.info(
            "health_tested",
            network=network.value,
            online=status.reachable_count,
            total=len(results),
            health=status.overall_health.value,
        )
        return status

    async def test_one(self, url: str, network: NetworkId | None = None) -> IndexerHealthResult:
        """Probe one URL and patch it into its network's cached status.

        The network is ``network`` when given, else the network that has
        ``url`` configured, else the network whose cached status lists it.
        Nothing is persisted when that network has no cached status.

        Raises:
            StorageError: If the patched status cannot be persisted.
        """
        result = await self._run_probe(url)

        target = network or self._registry.network_of(url) or self._cached_network_of(url)
        status = self.get_cached(target) if target is not None else None
        if status is not None:
            self._save(status.with_result(result, self._clock()))

        self._logger.debug(
            "health_retested", url=url, reachable=result.reachable, patched=status is not None
        )
        return result

    def _cached_network_of(self, url: str) -> NetworkId | None:
        for network, status in self._statuses.value.items():
            if status.result_for(url) is not None:
                return network
        return None

    # -- Selection ------------------------------------------------------------

    def select_best(self, network: NetworkId) -> str:
        """Return the indexer URL to use for ``network``. Never empty, never blocks."""
        configured = self._registry.urls(network)
        primary = self._registry.primary_url(network)
        status = self.get_cached(network)

        if status is None or status.is_stale(self._clock(), self._config.stale_after):
            self.maybe_refresh(network)
        if status is None:
            return primary

        primary_result = status.result_for(primary)
        if primary_result is not None and primary_result.reachable:
            return primary

        configured_set = set(configured)
        for result in status.results:
            if result.reachable and result.url in configured_set:
                return result.url

        return configured[0] if configured else primary

    def maybe_refresh(self, network: NetworkId) -> asyncio.Task[IndexerHealthStatus] | None:
        """Start a fire-and-forget ``test_all`` if the status is missing or stale.

        At most one refresh runs per network. Returns the running task, or
        None when fresh or when no event loop is running.
        """
        running = self._refreshing.get(network)
        if running is not None and not running.done():
            return running
        if not self.is_stale(network) or not self._registry.urls(network):
            return None
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            return None

        task = loop.create_task(self.test_all(network), name=f"health-refresh-{network.value}")
        self._refreshing[network] = task
        task.add_done_callback(lambda t: self._refresh_done(network, t))
        return task

    def _refresh_done(self, network: NetworkId, task: asyncio.Task[IndexerHealthStatus]) -> None:
        if self._refreshing.get(network) is task:
            del self._refreshing[network]
        if task.cancelled():
            return
        error = task.exception()
        if error is not None:
            self._logger.error("health_refresh_failed", network=network.value, error=str(error))

    async def aclose(self) -> None:
        """Cancel background refreshes still in flight."""
        tasks = list(self._refreshing.values())
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)
        self._refreshing.clear()
