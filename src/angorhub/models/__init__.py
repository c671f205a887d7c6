"""Pure frozen dataclasses and enums with zero I/O.

Sits at the bottom of the diamond DAG: every other layer may import from
here, and this package imports nothing from ``angorhub``.

Attributes:
    NetworkId: ``mainnet`` / ``testnet`` selector.
    IndexerEntry: Configured indexer URL with its primary flag.
    IndexerHealthResult: Outcome of one liveness probe.
    IndexerHealthStatus: Ordered probe results for one network.
    RelayEntry: Relay membership entry with read/write flags and status.
    Page: One page of indexer projects.
    ProjectFilters: Client-side filter and sort description.
"""

from .constants import NetworkId, OverallHealth, RelayStatus, ServiceName
from .indexer import (
    IndexerEntry,
    IndexerHealthResult,
    IndexerHealthStatus,
    normalize_indexer_url,
)
from .project import (
    FilteredProjects,
    Page,
    Project,
    ProjectFilters,
    ProjectStatistics,
    ProjectStats,
    ProjectStatus,
    SortType,
    apply_filters,
    compute_statistics,
    project_identifier,
)
from .relay import RelayEntry, normalize_relay_url


__all__ = [
    "FilteredProjects",
    "IndexerEntry",
    "IndexerHealthResult",
    "IndexerHealthStatus",
    "NetworkId",
    "OverallHealth",
    "Page",
    "Project",
    "ProjectFilters",
    "ProjectStatistics",
    "ProjectStats",
    "ProjectStatus",
    "RelayEntry",
    "RelayStatus",
    "ServiceName",
    "SortType",
    "apply_filters",
    "compute_statistics",
    "normalize_indexer_url",
    "normalize_relay_url",
    "project_identifier",
]
