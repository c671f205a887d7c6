"""
Offset/limit paging over the selected indexer.

[PaginatedAggregator][angorhub.services.projects.PaginatedAggregator]
accumulates [Page][angorhub.models.project.Page] objects for one
[PageKey][angorhub.services.projects.aggregator.PageKey], the pair
(network, resolved indexer URL). States::

    IDLE -> LOADING -> HAS_MORE | IDLE     (page fetched)
                    -> ERROR               (fetch failed, empty page recorded)

End of data is inferred from a short page: ``has_more`` is
``len(projects) == limit`` because the indexer reports no total count.

A change of key (network switch, new best indexer) abandons the old state:
``reset`` bumps a generation counter and any fetch started under an older
generation is dropped when it completes.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum
from typing import TYPE_CHECKING

from angorhub.core.logger import Logger
from angorhub.models.constants import NetworkId
from angorhub.models.project import Page, Project

from .configs import ProjectsConfig


if TYPE_CHECKING:
    from angorhub.core.cache import QueryCache
    from angorhub.core.observable import Observable
    from angorhub.services.denylist import DenyListResolver
    from angorhub.services.indexers import IndexerClient, IndexerHealthMonitor


class PageState(StrEnum):
    IDLE = "idle"
    LOADING = "loading"
    HAS_MORE = "has_more"
    ERROR = "error"


@dataclass(frozen=True, slots=True)
class PageKey:
    network: NetworkId
    indexer_url: str

    def cache_key(self, prefix: str) -> str:
        return f"{prefix}projects:{self.network.value}:{self.indexer_url}:"


class PaginatedAggregator:
    """Accumulates project pages for the current (network, indexer) pair.

    Args:
        client: REST client used for page fetches.
        monitor: Resolves the indexer URL that forms half of the key.
        network: Observed current network.
        cache: Query cache for fetched pages. Pages are fetched uncached
            when omitted.
        deny_list: Applied by [projects][angorhub.services.projects.PaginatedAggregator.projects].
        config: Page size and cache settings.
    """

    def __init__(
        self,
        client: IndexerClient,
        monitor: IndexerHealthMonitor,
        network: Observable[NetworkId],
        *,
        cache: QueryCache | None = None,
        deny_list: DenyListResolver | None = None,
        config: ProjectsConfig | None = None,
    ) -> None:
        self._client = client
        self._monitor = monitor
        self._network = network
        self._cache = cache
        self._deny_list = deny_list
        self._config = config or ProjectsConfig()
        self._logger = Logger("projects")

        self._key: PageKey | None = None
        self._pages: list[Page] = []
        self._has_more = True
        self._loading = False
        self._error: Exception | None = None
        self._generation = 0

    # -- State ----------------------------------------------------------------

    def current_key(self) -> PageKey:
        network = self._network.value
        return PageKey(network=network, indexer_url=self._monitor.select_best(network))

    @property
    def key(self) -> PageKey | None:
        return self._key

    @property
    def limit(self) -> int:
        return self._config.page_size

    @property
    def pages(self) -> list[Page]:
        return list(self._pages)

    @property
    def has_more(self) -> bool:
        return self._has_more

    @property
    def is_loading(self) -> bool:
        return self._loading

    @property
    def error(self) -> Exception | None:
        """Error of the last failed fetch, cleared by the next success or reset."""
        return self._error

    @property
    def state(self) -> PageState:
        if self._loading:
            return PageState.LOADING
        if self._error is not None:
            return PageState.ERROR
        if self._pages and self._has_more:
            return PageState.HAS_MORE
        return PageState.IDLE

    @property
    def next_offset(self) -> int:
        """Sum of loaded project counts, not ``offset + limit``."""
        return sum(len(page.projects) for page in self._pages)

    @property
    def raw_projects(self) -> list[Project]:
        return [project for page in self._pages for project in page.projects]

    @property
    def projects(self) -> list[Project]:
        """Loaded projects with denied identifiers removed."""
        projects = self.raw_projects
        if self._deny_list is None:
            return projects
        return self._deny_list.filter(projects)

    # -- Fetching -------------------------------------------------------------

    async def _fetch(self, key: PageKey, offset: int, limit: int) -> Page:
        async def load() -> list[Project]:
            return await self._client.get_projects(offset, limit, key.network)

        if self._cache is None:
            projects = await load()
        else:
            projects = await self._cache.fetch(
                f"{key.cache_key(self._config.cache_prefix)}{offset}:{limit}",
                load,
                stale_time=self._config.page_stale_time,
            )
        return Page.from_projects(projects, offset, limit)

    async def fetch_page(self, offset: int, limit: int | None = None) -> Page:
        """Fetch one page against the current key.

        A failed fetch yields an empty page with ``has_more=False`` and sets
        [error][angorhub.services.projects.PaginatedAggregator.error].
        Accumulated state is not touched.
        """
        limit = limit or self.limit
        try:
            return await self._fetch(self.current_key(), offset, limit)
        except Exception as e:  # Intentionally broad: page boundary converts failures to data
            self._error = e
            self._logger.warning("page_fetch_failed", offset=offset, error=str(e))
            return Page.empty(offset, limit)

    async def load_more(self) -> Page | None:
        """Fetch and append the next page.

        No-op (returns None) while a fetch is in flight or once a short page
        has been seen. A change of key since the last load resets first.
        Returns None as well when a reset happened during the fetch.
        """
        if self._loading:
            return None
        key = self.current_key()
        if key != self._key:
            self.reset(key)
        if not self._has_more:
            return None

        generation = self._generation
        offset = self.next_offset
        self._loading = True
        try:
            page = await self._fetch(key, offset, self.limit)
            error: Exception | None = None
        except Exception as e:  # Intentionally broad: page boundary converts failures to data
            page = Page.empty(offset, self.limit)
            error = e
        finally:
            if generation == self._generation:
                self._loading = False

        if generation != self._generation:
            self._logger.debug("page_discarded", offset=offset, network=key.network.value)
            return None

        self._error = error
        if error is not None:
            self._logger.warning("page_fetch_failed", offset=offset, error=str(error))
        self._pages.append(page)
        self._has_more = page.has_more
        self._logger.debug(
            "page_loaded", offset=offset, count=len(page.projects), has_more=page.has_more
        )
        return page

    def reset(self, key: PageKey | None = None) -> None:
        """Abandon accumulated pages and in-flight fetches; restart at offset 0."""
        previous = self._key
        self._generation += 1
        self._pages = []
        self._has_more = True
        self._loading = False
        self._error = None
        self._key = key if key is not None else self.current_key()
        if self._cache is not None and previous is not None:
            self._cache.reset(previous.cache_key(self._config.cache_prefix))
        if previous is not None and previous != self._key:
            self._logger.info(
                "pagination_reset",
                network=self._key.network.value,
                indexer=self._key.indexer_url,
            )

    async def reset_and_refetch(self) -> Page | None:
        """Discard pages and cached entries for the current key, then load offset 0."""
        self.reset()
        return await self.load_more()
