"""Core layer: logging, errors, configuration loading, storage and caching.

Sits in the middle of the diamond DAG. It depends only on
``angorhub.models`` and is depended upon by ``angorhub.services``.

Attributes:
    Logger: Structured logger supporting key=value and JSON output modes.
    KeyValueStore: Persisted configuration storage
        ([JsonFileStore][angorhub.core.storage.JsonFileStore],
        [MemoryStore][angorhub.core.storage.MemoryStore]).
    Observable: Value holder with change listeners, used for state that
        many components read.
    QueryCache: Keyed cache with prefix invalidation and reset.
    BaseService: Interval loop with shutdown handling and metrics.
    MetricsServer: Prometheus ``/metrics`` endpoint.
"""

from .base_service import BaseService, BaseServiceConfig, ConfigT
from .cache import CacheEntry, QueryCache
from .exceptions import (
    AngorHubError,
    ConfigurationError,
    ConnectivityError,
    IndexerError,
    ProtocolError,
    PublishingError,
    RelayTimeoutError,
    StorageError,
)
from .logger import Logger, StructuredFormatter, format_kv_pairs
from .metrics import (
    CYCLE_DURATION_SECONDS,
    SERVICE_COUNTER,
    SERVICE_GAUGE,
    SERVICE_INFO,
    MetricsConfig,
    MetricsServer,
    start_metrics_server,
)
from .observable import Observable
from .storage import JsonFileStore, KeyValueStore, MemoryStore
from .yaml import load_yaml


__all__ = [
    "CYCLE_DURATION_SECONDS",
    "SERVICE_COUNTER",
    "SERVICE_GAUGE",
    "SERVICE_INFO",
    "AngorHubError",
    "BaseService",
    "BaseServiceConfig",
    "CacheEntry",
    "ConfigT",
    "ConfigurationError",
    "ConnectivityError",
    "IndexerError",
    "JsonFileStore",
    "KeyValueStore",
    "Logger",
    "MemoryStore",
    "MetricsConfig",
    "MetricsServer",
    "Observable",
    "ProtocolError",
    "PublishingError",
    "QueryCache",
    "RelayTimeoutError",
    "StorageError",
    "StructuredFormatter",
    "format_kv_pairs",
    "load_yaml",
    "start_metrics_server",
]
