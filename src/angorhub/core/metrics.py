"""
Prometheus metrics for long-running hub services.

Module-level metric objects are shared across services.
[BaseService.run_forever()][angorhub.core.base_service.BaseService.run_forever]
records cycle counts and durations automatically; services publish their
own values (reachable indexers per network, overall health) through
``set_gauge()`` and ``inc_counter()``.

``MetricsServer`` exposes the registry over HTTP with aiohttp so that the
``watch`` command can be scraped while it refreshes indexer health.

Attributes:
    SERVICE_INFO: Static metadata set once at startup.
    SERVICE_GAUGE: Point-in-time values, labelled by service and name.
    SERVICE_COUNTER: Cumulative totals, labelled by service and name.
    CYCLE_DURATION_SECONDS: Histogram of cycle durations.
"""

from __future__ import annotations

from aiohttp import web
from prometheus_client import (
    CONTENT_TYPE_LATEST,
    Counter,
    Gauge,
    Histogram,
    Info,
    generate_latest,
)
from pydantic import BaseModel, Field


class MetricsConfig(BaseModel):
    """Prometheus endpoint settings. The endpoint only starts when ``enabled``."""

    enabled: bool = Field(default=False, description="Enable metrics collection")
    port: int = Field(default=8000, ge=1024, le=65535, description="Metrics HTTP port")
    host: str = Field(default="127.0.0.1", description="Metrics HTTP bind address")
    path: str = Field(default="/metrics", description="Metrics endpoint path")


SERVICE_INFO = Info(
    "angorhub_service",
    "Service information and metadata",
)

# Health refresh cycles are short: a handful of 5 s probes per network
CYCLE_DURATION_SECONDS = Histogram(
    "angorhub_cycle_duration_seconds",
    "Duration of service cycle in seconds",
    ["service"],
    buckets=(0.1, 0.5, 1, 2.5, 5, 10, 30, 60),
)

SERVICE_GAUGE = Gauge(
    "angorhub_service_gauge",
    "Service gauge values (point-in-time state)",
    ["service", "name"],
)

SERVICE_COUNTER = Counter(
    "angorhub_service_counter",
    "Service counter values (cumulative totals)",
    ["service", "name"],
)


class MetricsServer:
    """aiohttp server answering Prometheus scrapes on ``config.path``."""

    def __init__(self, config: MetricsConfig) -> None:
        self._config = config
        self._runner: web.AppRunner | None = None

    @property
    def is_running(self) -> bool:
        return self._runner is not None

    async def start(self) -> None:
        """Bind the endpoint. No-op when metrics are disabled.

        Raises:
            OSError: If the port cannot be bound.
        """
        if not self._config.enabled or self._runner is not None:
            return

        app = web.Application()
        app.router.add_get(self._config.path, self._handle_metrics)

        runner = web.AppRunner(app, access_log=None)
        await runner.setup()
        site = web.TCPSite(runner, self._config.host, self._config.port)
        try:
            await site.start()
        except OSError:
            await runner.cleanup()
            raise
        self._runner = runner

    async def stop(self) -> None:
        """Release the port. Safe to call when never started."""
        if self._runner is not None:
            await self._runner.cleanup()
            self._runner = None

    @staticmethod
    async def _handle_metrics(_request: web.Request) -> web.Response:
        return web.Response(
            body=generate_latest(),
            headers={"Content-Type": CONTENT_TYPE_LATEST},
        )


async def start_metrics_server(config: MetricsConfig | None = None) -> MetricsServer:
    """Create and start a ``MetricsServer``; the caller must ``stop()`` it."""
    server = MetricsServer(config or MetricsConfig())
    await server.start()
    return server
