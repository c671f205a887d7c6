"""
Composition root wiring every hub component around one HTTP session.

[Hub][angorhub.services.hub.Hub] owns the aiohttp ``ClientSession`` and
the key/value store and builds the component graph on
[connect()][angorhub.services.hub.Hub.connect]::

    NetworkSelection ─┬─ IndexerRegistry ── IndexerHealthMonitor ── IndexerClient
                      ├─ RelayMembership ── RelayPoolRouter ── RelayPool / RelayPublisher
                      └─ CacheCoordinator ── QueryCache, PaginatedAggregator

A change of network, indexer primary, best indexer or relay sets resets
every source-dependent cache entry and restarts pagination at offset 0.

Examples:
    ```python
    async with Hub.from_yaml("config/hub.yaml") as hub:
        await hub.deny_list.load()
        page = await hub.aggregator.load_more()
        hub.switch_network(NetworkId.TESTNET)
    ```
"""

from __future__ import annotations

import asyncio
import contextlib
from typing import TYPE_CHECKING, Any

import aiohttp
from pydantic import BaseModel, Field

from angorhub.core.cache import QueryCache
from angorhub.core.logger import Logger
from angorhub.core.storage import JsonFileStore, MemoryStore
from angorhub.core.yaml import load_yaml
from angorhub.models.constants import NetworkId, RelayStatus
from angorhub.utils.protocol import NostrRelayTransport

from .cache import CacheCoordinator
from .denylist import DenyListConfig, DenyListResolver
from .indexers import IndexerClient, IndexerConfig, IndexerHealthMonitor, IndexerRegistry
from .network import NetworkSelection
from .price import PriceConfig, PriceFetcher
from .projects import PaginatedAggregator, ProjectReader, ProjectsConfig
from .refresher import HealthRefresher, RefresherConfig
from .relays import (
    RelayConfig,
    RelayMembership,
    RelayPool,
    RelayPoolRouter,
    RelayPublisher,
    RelaySets,
)


if TYPE_CHECKING:
    from types import TracebackType

    from angorhub.core.storage import KeyValueStore
    from angorhub.utils.protocol import RelayTransport

    from .cache import SourceSnapshot
    from .indexers.monitor import Probe


class HubConfig(BaseModel):
    """Aggregate configuration for every hub component."""

    store_path: str | None = Field(
        default=None,
        description="JSON file for persisted settings and health; in-memory when unset",
    )
    default_network: NetworkId = Field(
        default=NetworkId.MAINNET, description="Network used when none is persisted"
    )
    indexers: IndexerConfig = Field(default_factory=IndexerConfig)
    relays: RelayConfig = Field(default_factory=RelayConfig)
    denylist: DenyListConfig = Field(default_factory=DenyListConfig)
    projects: ProjectsConfig = Field(default_factory=ProjectsConfig)
    price: PriceConfig = Field(default_factory=PriceConfig)
    refresher: RefresherConfig = Field(default_factory=RefresherConfig)


class Hub:
    """Owns the session and store and exposes the wired components.

    Args:
        config: Aggregate configuration.
        session: Externally managed session. Not closed by the hub.
        store: Externally managed store. Defaults to a
            [JsonFileStore][angorhub.core.storage.JsonFileStore] at
            ``config.store_path`` or a [MemoryStore][angorhub.core.storage.MemoryStore].
        transport: Relay transport. Defaults to
            [NostrRelayTransport][angorhub.utils.protocol.NostrRelayTransport]
            reporting connection outcomes to the relay membership.
        probe: Replacement indexer probe.
    """

    def __init__(
        self,
        config: HubConfig | None = None,
        *,
        session: aiohttp.ClientSession | None = None,
        store: KeyValueStore | None = None,
        transport: RelayTransport | None = None,
        probe: Probe | None = None,
    ) -> None:
        self._config = config or HubConfig()
        self._session = session
        self._owns_session = session is None
        self._probe = probe
        self._logger = Logger("hub")

        if store is None:
            path = self._config.store_path
            store = JsonFileStore(path) if path else MemoryStore()
        self._store = store

        self._network = NetworkSelection(self._store, self._config.default_network)
        self._registry = IndexerRegistry(self._store)
        self._membership = RelayMembership(self._store, self._network.observable)
        self._transport: RelayTransport = transport or NostrRelayTransport(
            on_status=self.record_relay_status
        )
        self._cache = QueryCache()
        self._components: dict[str, Any] = {}

    @classmethod
    def from_yaml(cls, config_path: str, **kwargs: Any) -> Hub:
        """Create a hub from a YAML file; ``kwargs`` go to the constructor."""
        return cls.from_dict(load_yaml(config_path), **kwargs)

    @classmethod
    def from_dict(cls, data: dict[str, Any], **kwargs: Any) -> Hub:
        return cls(config=HubConfig(**data), **kwargs)

    # -------------------------------------------------------------------------
    # Lifecycle
    # -------------------------------------------------------------------------

    @property
    def config(self) -> HubConfig:
        return self._config

    @property
    def is_connected(self) -> bool:
        return bool(self._components)

    async def connect(self) -> None:
        """Open the session (unless injected) and wire the components. Idempotent."""
        if self._components:
            return
        if self._session is None:
            self._session = aiohttp.ClientSession()
        self._wire(self._session)
        self._logger.info(
            "hub_connected",
            network=self._network.current.value,
            store=type(self._store).__name__,
        )

    def _wire(self, session: aiohttp.ClientSession) -> None:
        config = self._config
        network = self._network.observable

        monitor = IndexerHealthMonitor(
            self._registry, self._store, session, config.indexers, probe=self._probe
        )
        client = IndexerClient(session, monitor, network, config.indexers)
        deny_list = DenyListResolver(session, config.denylist)
        router = RelayPoolRouter(self._membership, config.relays)
        aggregator = PaginatedAggregator(
            client,
            monitor,
            network,
            cache=self._cache,
            deny_list=deny_list,
            config=config.projects,
        )
        coordinator = CacheCoordinator(
            self._cache,
            network,
            self._registry,
            monitor,
            self._membership,
            prefix=config.projects.cache_prefix,
        )

        def on_reset(_snapshot: SourceSnapshot) -> None:
            aggregator.reset()

        coordinator.add_listener(on_reset)
        coordinator.start()

        self._components = {
            "monitor": monitor,
            "client": client,
            "deny_list": deny_list,
            "router": router,
            "pool": RelayPool(router, self._transport, config.relays),
            "publisher": RelayPublisher(
                router, self._membership, network, self._transport, config.relays
            ),
            "aggregator": aggregator,
            "reader": ProjectReader(
                client, network, self._cache, deny_list=deny_list, config=config.projects
            ),
            "price": PriceFetcher(session, config.price, cache=self._cache),
            "coordinator": coordinator,
        }

    async def close(self) -> None:
        """Stop observers, cancel background work and close an owned session. Idempotent."""
        if self._components:
            self.coordinator.stop()
            await self.monitor.aclose()
            await self.deny_list.aclose()
            self._components = {}
        if self._owns_session and self._session is not None:
            await self._session.close()
            self._session = None
        self._logger.info("hub_closed")

    async def __aenter__(self) -> Hub:
        await self.connect()
        return self

    async def __aexit__(
        self,
        _exc_type: type[BaseException] | None,
        _exc_val: BaseException | None,
        _exc_tb: TracebackType | None,
    ) -> None:
        await self.close()

    def _component(self, name: str) -> Any:
        try:
            return self._components[name]
        except KeyError:
            raise RuntimeError("Hub is not connected; use 'async with hub' or connect()") from None

    # -------------------------------------------------------------------------
    # Components
    # -------------------------------------------------------------------------

    @property
    def store(self) -> KeyValueStore:
        return self._store

    @property
    def network(self) -> NetworkSelection:
        return self._network

    @property
    def registry(self) -> IndexerRegistry:
        return self._registry

    @property
    def membership(self) -> RelayMembership:
        return self._membership

    @property
    def cache(self) -> QueryCache:
        return self._cache

    @property
    def monitor(self) -> IndexerHealthMonitor:
        return self._component("monitor")  # type: ignore[no-any-return]

    @property
    def client(self) -> IndexerClient:
        return self._component("client")  # type: ignore[no-any-return]

    @property
    def deny_list(self) -> DenyListResolver:
        return self._component("deny_list")  # type: ignore[no-any-return]

    @property
    def pool(self) -> RelayPool:
        return self._component("pool")  # type: ignore[no-any-return]

    @property
    def publisher(self) -> RelayPublisher:
        return self._component("publisher")  # type: ignore[no-any-return]

    @property
    def aggregator(self) -> PaginatedAggregator:
        return self._component("aggregator")  # type: ignore[no-any-return]

    @property
    def reader(self) -> ProjectReader:
        return self._component("reader")  # type: ignore[no-any-return]

    @property
    def price(self) -> PriceFetcher:
        return self._component("price")  # type: ignore[no-any-return]

    @property
    def coordinator(self) -> CacheCoordinator:
        return self._component("coordinator")  # type: ignore[no-any-return]

    # -------------------------------------------------------------------------
    # Operations
    # -------------------------------------------------------------------------

    def switch_network(self, network: NetworkId) -> bool:
        """Select ``network``; observers reset caches and pagination. False if unchanged."""
        return self._network.switch(network)

    def record_relay_status(self, relay_url: str, status: RelayStatus) -> None:
        """Record a connection outcome for a member relay of the current network.

        Non-members and unparseable URLs are ignored.
        """
        with contextlib.suppress(ValueError):
            self._membership.update_status(relay_url, self._network.current, status)

    async def connect_relays(self) -> RelaySets:
        """Check every member relay of the current network concurrently.

        Each relay is marked ``CONNECTING``, then ``CONNECTED`` or ``ERROR``
        depending on whether it accepted a connection within
        ``relays.connect_timeout``.

        Returns:
            The resulting URL sets of the network.
        """
        network = self._network.current
        timeout = self._config.relays.connect_timeout
        urls = [entry.url for entry in self._membership.entries(network)]
        for url in urls:
            self._membership.update_status(url, network, RelayStatus.CONNECTING)

        async def check(url: str) -> RelayStatus:
            try:
                async with asyncio.timeout(timeout):
                    await self._transport.check(url, timeout)
            except Exception as e:  # Intentionally broad: a dead relay is a status, not an error
                self._logger.debug("relay_check_failed", relay=url, error=str(e))
                return RelayStatus.ERROR
            return RelayStatus.CONNECTED

        statuses = await asyncio.gather(*(check(url) for url in urls))
        for url, status in zip(urls, statuses, strict=True):
            self._membership.update_status(url, network, status)

        sets = self._membership.sets(network)
        self._logger.info(
            "relays_checked",
            network=network.value,
            total=len(urls),
            connected=len(sets.connected),
        )
        return sets

    def refresher(self, config: RefresherConfig | None = None) -> HealthRefresher:
        """Build a [HealthRefresher][angorhub.services.refresher.HealthRefresher] over this hub."""
        return HealthRefresher(
            config or self._config.refresher, monitor=self.monitor, registry=self._registry
        )
