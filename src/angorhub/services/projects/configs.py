"""Project paging and caching configuration models.

See Also:
    [PaginatedAggregator][angorhub.services.projects.PaginatedAggregator]
        and [ProjectReader][angorhub.services.projects.ProjectReader]: The
        classes that consume this configuration.
"""

from __future__ import annotations

from pydantic import BaseModel, Field

from angorhub.models.constants import CACHE_PREFIX


class ProjectsConfig(BaseModel):
    """Page size, cache namespace and per-query stale times."""

    page_size: int = Field(default=6, ge=1, le=100, description="Projects per indexer request")
    cache_prefix: str = Field(
        default=CACHE_PREFIX,
        min_length=1,
        description="Key prefix of every cached query that depends on the data source",
    )
    page_stale_time: float = Field(default=60.0, ge=0.0, description="Seconds a page stays fresh")
    project_stale_time: float = Field(
        default=60.0, ge=0.0, description="Seconds a project record stays fresh"
    )
    stats_stale_time: float = Field(
        default=30.0, ge=0.0, description="Seconds project statistics stay fresh"
    )
    investments_stale_time: float = Field(
        default=60.0, ge=0.0, description="Seconds an investment list stays fresh"
    )
