"""Cached single-project reads.

Every key embeds the network and the resolved indexer URL under the
source-dependent prefix, so a
[CacheCoordinator][angorhub.services.cache.CacheCoordinator] reset drops
them together with the project pages.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from .configs import ProjectsConfig


if TYPE_CHECKING:
    from angorhub.core.cache import QueryCache
    from angorhub.core.observable import Observable
    from angorhub.models.constants import NetworkId
    from angorhub.models.project import Project, ProjectStats
    from angorhub.services.denylist import DenyListResolver
    from angorhub.services.indexers import IndexerClient


class ProjectReader:
    """Project detail, statistics, investments and search through the query cache."""

    def __init__(
        self,
        client: IndexerClient,
        network: Observable[NetworkId],
        cache: QueryCache,
        *,
        deny_list: DenyListResolver | None = None,
        config: ProjectsConfig | None = None,
    ) -> None:
        self._client = client
        self._network = network
        self._cache = cache
        self._deny_list = deny_list
        self._config = config or ProjectsConfig()

    def _key(self, kind: str, identifier: str) -> tuple[NetworkId, str]:
        network = self._network.value
        base = self._client.base_url(network)
        return network, f"{self._config.cache_prefix}{kind}:{network.value}:{base}:{identifier}"

    async def get_project(self, identifier: str) -> Project | None:
        """Project record, or None when unknown or denied."""
        if self._deny_list is not None and self._deny_list.is_denied(identifier):
            return None
        network, key = self._key("project", identifier)
        return await self._cache.fetch(
            key,
            lambda: self._client.get_project(identifier, network),
            stale_time=self._config.project_stale_time,
        )

    async def get_stats(self, identifier: str) -> ProjectStats | None:
        network, key = self._key("project-stats", identifier)
        return await self._cache.fetch(
            key,
            lambda: self._client.get_project_stats(identifier, network),
            stale_time=self._config.stats_stale_time,
        )

    async def get_investments(self, identifier: str) -> list[dict[str, Any]]:
        network, key = self._key("project-investments", identifier)
        return await self._cache.fetch(
            key,
            lambda: self._client.get_project_investments(identifier, network),
            stale_time=self._config.investments_stale_time,
        )

    async def search(self, query: str) -> list[Project]:
        network, key = self._key("project-search", query.lower())
        results = await self._cache.fetch(
            key,
            lambda: self._client.search_projects(query, network),
            stale_time=self._config.page_stale_time,
        )
        if self._deny_list is None:
            return results
        return self._deny_list.filter(results)
