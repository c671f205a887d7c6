"""Indexer package: configured endpoints, health monitoring and REST reads.

Re-exports all public symbols::

    from angorhub.services.indexers import IndexerRegistry, IndexerHealthMonitor
"""

from .client import IndexerClient
from .configs import IndexerConfig
from .monitor import IndexerHealthMonitor, health_key
from .registry import IndexerRegistry, default_indexer_config


__all__ = [
    "IndexerClient",
    "IndexerConfig",
    "IndexerHealthMonitor",
    "IndexerRegistry",
    "default_indexer_config",
    "health_key",
]
