"""Hub components built on the core and utils layers.

Services are the top layer of the diamond DAG, depending on
[angorhub.core][angorhub.core], [angorhub.utils][angorhub.utils] and
[angorhub.models][angorhub.models].

```text
NetworkSelection -> IndexerRegistry -> IndexerHealthMonitor -> IndexerClient
                 -> RelayMembership -> RelayPoolRouter      -> RelayPool / RelayPublisher
                 -> CacheCoordinator -> PaginatedAggregator / ProjectReader
```

Attributes:
    Hub: Composition root owning the HTTP session and the store.
    NetworkSelection: Persisted mainnet/testnet selection.
    IndexerRegistry: Per-network indexer endpoints with one primary.
    IndexerHealthMonitor: Concurrent probing and ``select_best``.
    RelayMembership: Per-network relay entries with read/write flags.
    RelayPublisher: Write fan-out with success counting.
    DenyListResolver: Moderation list over a transport fallback chain.
    PaginatedAggregator: Offset/limit paging over the selected indexer.
    PriceFetcher: Bitcoin spot price with retry.
    HealthRefresher: Periodic indexer health refresh.

Examples:
    ```python
    from angorhub.services import Hub

    async with Hub() as hub:
        await hub.aggregator.load_more()
    ```
"""

from .cache import CacheCoordinator, SourceSnapshot
from .denylist import DenyList, DenyListConfig, DenyListResolver
from .hub import Hub, HubConfig
from .indexers import IndexerClient, IndexerConfig, IndexerHealthMonitor, IndexerRegistry
from .network import NetworkSelection
from .price import BitcoinPrice, PriceConfig, PriceFetcher
from .projects import PageKey, PageState, PaginatedAggregator, ProjectReader, ProjectsConfig
from .refresher import HealthRefresher, RefresherConfig
from .relays import (
    PublishResult,
    RelayConfig,
    RelayMembership,
    RelayPool,
    RelayPoolRouter,
    RelayPublisher,
)


__all__ = [
    "BitcoinPrice",
    "CacheCoordinator",
    "DenyList",
    "DenyListConfig",
    "DenyListResolver",
    "HealthRefresher",
    "Hub",
    "HubConfig",
    "IndexerClient",
    "IndexerConfig",
    "IndexerHealthMonitor",
    "IndexerRegistry",
    "NetworkSelection",
    "PageKey",
    "PageState",
    "PaginatedAggregator",
    "PriceConfig",
    "PriceFetcher",
    "ProjectReader",
    "ProjectsConfig",
    "PublishResult",
    "RefresherConfig",
    "RelayConfig",
    "RelayMembership",
    "RelayPool",
    "RelayPoolRouter",
    "RelayPublisher",
    "SourceSnapshot",
]
