"""Periodic indexer health refresh.

Keeps the persisted [IndexerHealthStatus][angorhub.models.indexer.IndexerHealthStatus]
of every configured network fresh, so ``select_best`` callers rarely see
a missing or stale status. One cycle tests each network whose status is
missing or older than ``stale_after``; a failure on one network does not
prevent the others from being tested.

Examples:
    ```python
    refresher = HealthRefresher.from_yaml(
        "config/refresher.yaml", monitor=hub.monitor, registry=hub.registry
    )
    async with refresher:
        await refresher.run_forever()
    ```
"""

from __future__ import annotations

from typing import TYPE_CHECKING, ClassVar

from angorhub.core.base_service import BaseService
from angorhub.models.constants import ServiceName

from .configs import RefresherConfig


if TYPE_CHECKING:
    from angorhub.services.indexers import IndexerHealthMonitor, IndexerRegistry


class HealthRefresher(BaseService[RefresherConfig]):
    """Re-tests indexers of every configured network on an interval."""

    SERVICE_NAME: ClassVar[ServiceName] = ServiceName.REFRESHER
    CONFIG_CLASS: ClassVar[type[RefresherConfig]] = RefresherConfig

    def __init__(
        self,
        config: RefresherConfig | None = None,
        *,
        monitor: IndexerHealthMonitor,
        registry: IndexerRegistry,
    ) -> None:
        super().__init__(config=config)
        self._config: RefresherConfig
        self._monitor = monitor
        self._registry = registry

    async def run(self) -> None:
        """Execute one refresh cycle over the configured networks."""
        networks = self._config.networks
        self._logger.info("cycle_started", networks=len(networks))

        tested = 0
        skipped = 0
        failed = 0

        for network in networks:
            if not self._config.force and not self._monitor.is_stale(network):
                skipped += 1
                continue
            if not self._registry.urls(network):
                skipped += 1
                self._logger.debug("network_skipped", network=network.value, reason="no_indexers")
                continue
            try:
                status = await self._monitor.test_all(network)
            except Exception as e:  # Intentionally broad: one network must not stop the cycle
                failed += 1
                self._logger.error("network_refresh_failed", network=network.value, error=str(e))
                continue
            tested += 1
            self.set_gauge(f"reachable_{network.value}", status.reachable_count)
            self.set_gauge(f"configured_{network.value}", len(status.results))

        self.set_gauge("networks_tested", tested)
        self.set_gauge("networks_failed", failed)
        self._logger.info("cycle_completed", tested=tested, skipped=skipped, failed=failed)
