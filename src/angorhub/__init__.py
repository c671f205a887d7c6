r"""AngorHub -- Nostr and indexer aggregation for Angor crowdfunding projects.

Discovers projects through Angor indexers, keeps the fastest healthy
indexer selected per Bitcoin network, routes Nostr reads and writes over a
user-configurable relay pool and filters everything through a remote
moderation deny-list.

Architecture follows a **diamond DAG** dependency structure where imports
flow strictly downward:

```text
              services         Components and composition root
             /        \
          core        utils    Infrastructure, HTTP and relay transport
             \        /
              models           Pure frozen dataclasses (zero I/O)
```

Note:
    For lightweight usage, import directly from subpackages::

        from angorhub.models import NetworkId
        from angorhub.services import Hub

    Top-level imports (``from angorhub import Hub``) use lazy loading
    and resolve on first access.
"""

import importlib
from importlib.metadata import version as _get_version


__version__ = _get_version("angorhub")

__all__ = [
    "BaseService",
    "DenyListResolver",
    "HealthRefresher",
    "Hub",
    "HubConfig",
    "IndexerHealthMonitor",
    "IndexerRegistry",
    "Logger",
    "NetworkId",
    "PaginatedAggregator",
    "RelayMembership",
    "RelayPublisher",
]

_LAZY_IMPORTS: dict[str, tuple[str, str]] = {
    "BaseService": ("angorhub.core", "BaseService"),
    "Logger": ("angorhub.core", "Logger"),
    "NetworkId": ("angorhub.models", "NetworkId"),
    "DenyListResolver": ("angorhub.services", "DenyListResolver"),
    "HealthRefresher": ("angorhub.services", "HealthRefresher"),
    "Hub": ("angorhub.services", "Hub"),
    "HubConfig": ("angorhub.services", "HubConfig"),
    "IndexerHealthMonitor": ("angorhub.services", "IndexerHealthMonitor"),
    "IndexerRegistry": ("angorhub.services", "IndexerRegistry"),
    "PaginatedAggregator": ("angorhub.services", "PaginatedAggregator"),
    "RelayMembership": ("angorhub.services", "RelayMembership"),
    "RelayPublisher": ("angorhub.services", "RelayPublisher"),
}


def __getattr__(name: str) -> object:
    if name in _LAZY_IMPORTS:
        module_path, attr_name = _LAZY_IMPORTS[name]
        module = importlib.import_module(module_path)
        value = getattr(module, attr_name)
        globals()[name] = value  # Cache for subsequent access
        return value
    raise AttributeError(f"module 'angorhub' has no attribute {name!r}")


def __dir__() -> list[str]:
    return __all__
