"""Indexer configuration models.

See Also:
    [IndexerHealthMonitor][angorhub.services.indexers.IndexerHealthMonitor]
        and [IndexerClient][angorhub.services.indexers.IndexerClient]: The
        classes that consume this configuration.
"""

from __future__ import annotations

from pydantic import BaseModel, Field


class IndexerConfig(BaseModel):
    """Health checking and REST settings for indexers."""

    probe_timeout: float = Field(
        default=5.0, gt=0.0, le=60.0, description="Hard deadline for one liveness probe"
    )
    stale_after: float = Field(
        default=300.0,
        ge=0.0,
        description="Seconds after which a health status is refreshed in the background",
    )
    request_timeout: float = Field(
        default=30.0, gt=0.0, le=300.0, description="Total timeout for one REST call"
    )
    max_response_size: int = Field(
        default=5 * 1024 * 1024,
        ge=1024,
        description="Maximum accepted REST response body, in bytes",
    )
    search_limit: int = Field(default=20, ge=1, le=100, description="Search result limit")
    search_fallback_scan: int = Field(
        default=100,
        ge=1,
        le=1000,
        description="Projects scanned client-side when the search endpoint is missing",
    )
