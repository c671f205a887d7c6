"""
REST reads against the currently selected indexer.

Every call resolves its base URL through
[IndexerHealthMonitor.select_best()][angorhub.services.indexers.IndexerHealthMonitor.select_best]
at call time, so a network switch or a primary change is picked up by the
next request without rebuilding the client.

Endpoints (relative to the indexer base URL)::

    GET api/query/Angor/projects?offset={o}&limit={l}
    GET api/query/Angor/projects/{id}
    GET api/query/Angor/projects/{id}/stats
    GET api/query/Angor/projects/{id}/investments
    GET api/query/Angor/projects/search?q={query}&limit={l}
"""

from __future__ import annotations

import time
from typing import TYPE_CHECKING, Any
from urllib.parse import quote

import aiohttp

from angorhub.core.exceptions import IndexerError, ProtocolError
from angorhub.core.logger import Logger
from angorhub.models.constants import PROJECTS_PATH, NetworkId
from angorhub.models.project import Project, ProjectStats, project_identifier
from angorhub.utils.http import fetch_json

from .configs import IndexerConfig


if TYPE_CHECKING:
    from collections.abc import Callable

    from angorhub.core.observable import Observable

    from .monitor import IndexerHealthMonitor


class IndexerClient:
    """Typed access to the indexer project endpoints.

    Args:
        session: Shared aiohttp session.
        monitor: Resolves the base URL for a network.
        network: Observed current network, used when a call names none.
        config: Request timeout and size limits.
        clock: Wall-clock source for derived statistics.
    """

    def __init__(
        self,
        session: aiohttp.ClientSession,
        monitor: IndexerHealthMonitor,
        network: Observable[NetworkId],
        config: IndexerConfig | None = None,
        *,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._session = session
        self._monitor = monitor
        self._network = network
        self._config = config or IndexerConfig()
        self._clock = clock
        self._logger = Logger("indexers")

    def base_url(self, network: NetworkId | None = None) -> str:
        return self._monitor.select_best(network or self._network.value)

    def _url(self, path: str, network: NetworkId | None) -> str:
        return f"{self.base_url(network)}{PROJECTS_PATH}{path}"

    async def _get(self, url: str, params: dict[str, Any] | None = None) -> Any:
        """GET ``url`` and map transport failures onto the angorhub hierarchy.

        Raises:
            IndexerError: Non-2xx status or connection-level failure.
            ProtocolError: Body is not valid JSON.
        """
        try:
            return await fetch_json(
                self._session,
                url,
                params=params,
                timeout=self._config.request_timeout,
                max_size=self._config.max_response_size,
            )
        except aiohttp.ClientResponseError as e:
            raise IndexerError(f"HTTP {e.status} from {url}", url=url, status=e.status) from e
        except (aiohttp.ClientError, TimeoutError, OSError) as e:
            raise IndexerError(f"request to {url} failed: {e}", url=url) from e
        except ValueError as e:
            raise ProtocolError(f"invalid JSON from {url}: {e}") from e

    async def get_projects(
        self, offset: int, limit: int, network: NetworkId | None = None
    ) -> list[Project]:
        """Fetch one page of projects.

        Raises:
            IndexerError: The indexer failed or answered non-2xx.
            ProtocolError: The body is not a JSON array.
        """
        url = self._url("", network)
        data = await self._get(url, params={"offset": offset, "limit": limit})
        if not isinstance(data, list):
            raise ProtocolError(f"expected a JSON array from {url}, got {type(data).__name__}")
        projects = [item for item in data if isinstance(item, dict)]
        self._logger.debug("projects_fetched", url=url, offset=offset, count=len(projects))
        return projects

    async def get_project(
        self, identifier: str, network: NetworkId | None = None
    ) -> Project | None:
        """Fetch one project record; ``None`` when the indexer answers 404."""
        url = self._url(f"/{quote(identifier, safe='')}", network)
        try:
            data = await self._get(url)
        except IndexerError as e:
            if e.status == 404:
                return None
            raise
        if not isinstance(data, dict):
            raise ProtocolError(f"expected a JSON object from {url}")
        return data

    async def get_project_stats(
        self, identifier: str, network: NetworkId | None = None
    ) -> ProjectStats | None:
        """Fetch and derive funding statistics; ``None`` when the indexer answers 404."""
        url = self._url(f"/{quote(identifier, safe='')}/stats", network)
        try:
            data = await self._get(url)
        except IndexerError as e:
            if e.status == 404:
                return None
            raise
        if not isinstance(data, dict):
            raise ProtocolError(f"expected a JSON object from {url}")
        try:
            return ProjectStats.from_indexer(data, self._clock())
        except (TypeError, ValueError) as e:
            raise ProtocolError(f"malformed stats from {url}: {e}") from e

    async def get_project_investments(
        self, identifier: str, network: NetworkId | None = None
    ) -> list[dict[str, Any]]:
        url = self._url(f"/{quote(identifier, safe='')}/investments", network)
        data = await self._get(url)
        if not isinstance(data, list):
            return []
        return [item for item in data if isinstance(item, dict)]

    async def search_projects(
        self, query: str, network: NetworkId | None = None, limit: int | None = None
    ) -> list[Project]:
        """Search projects by text.

        When the search endpoint answers non-2xx, falls back to scanning the
        first ``search_fallback_scan`` projects and matching identifiers
        case-insensitively.
        """
        limit = limit or self._config.search_limit
        url = self._url("/search", network)
        try:
            data = await self._get(url, params={"q": query, "limit": limit})
        except IndexerError as e:
            if e.status is None:
                raise
            self._logger.debug("search_endpoint_unavailable", status=e.status)
            candidates = await self.get_projects(0, self._config.search_fallback_scan, network)
            needle = query.lower()
            return [p for p in candidates if needle in project_identifier(p).lower()]
        if not isinstance(data, list):
            return []
        return [item for item in data if isinstance(item, dict)]
