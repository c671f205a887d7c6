"""Projects package: paging and cached reads over the selected indexer.

Re-exports all public symbols::

    from angorhub.services.projects import PaginatedAggregator, ProjectsConfig
"""

from .aggregator import PageKey, PageState, PaginatedAggregator
from .configs import ProjectsConfig
from .reader import ProjectReader


__all__ = [
    "PageKey",
    "PageState",
    "PaginatedAggregator",
    "ProjectReader",
    "ProjectsConfig",
]
