"""
Abstract base class for long-running hub services.

``BaseService[ConfigT]`` provides the lifecycle shared by every loop-driven
service: structured logging through [Logger][angorhub.core.logger.Logger],
graceful shutdown through an ``asyncio.Event``, interval-based cycling with
[run_forever()][angorhub.core.base_service.BaseService.run_forever], a
consecutive failure limit and Prometheus metrics.

Services receive their collaborators (indexer registry, health monitor,
...) as constructor keyword arguments; the base class only owns the
configuration and the loop.

See Also:
    [HealthRefresher][angorhub.services.refresher.HealthRefresher]: The
        periodic indexer health refresh built on this class.
"""

from __future__ import annotations

import asyncio
import time
from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Any, ClassVar, Generic, Self, TypeVar, cast

from pydantic import BaseModel, Field

from .logger import Logger
from .metrics import (
    CYCLE_DURATION_SECONDS,
    SERVICE_COUNTER,
    SERVICE_GAUGE,
    SERVICE_INFO,
    MetricsConfig,
)
from .yaml import load_yaml


if TYPE_CHECKING:
    from types import TracebackType

    from angorhub.models.constants import ServiceName


class BaseServiceConfig(BaseModel):
    """Loop settings shared by every service.

    Subclass this to add service-specific fields.
    """

    interval: float = Field(
        default=60.0,
        ge=1.0,
        description="Seconds between run cycles",
    )
    max_consecutive_failures: int = Field(
        default=5,
        ge=0,
        description="Stop after this many consecutive errors (0 = unlimited)",
    )
    metrics: MetricsConfig = Field(
        default_factory=MetricsConfig,
        description="Prometheus metrics configuration",
    )


ConfigT = TypeVar("ConfigT", bound=BaseServiceConfig)


class BaseService(ABC, Generic[ConfigT]):
    """Abstract base class for loop-driven services.

    Subclasses set ``SERVICE_NAME`` and ``CONFIG_CLASS`` and implement
    [run()][angorhub.core.base_service.BaseService.run].

    Attributes:
        SERVICE_NAME: Identifier used in logging and metric labels.
        CONFIG_CLASS: Pydantic model used by the factory methods.
    """

    SERVICE_NAME: ClassVar[ServiceName]
    CONFIG_CLASS: ClassVar[type[BaseServiceConfig]]

    def __init__(self, config: ConfigT | None = None) -> None:
        self._config: ConfigT = (
            config if config is not None else cast("ConfigT", self.CONFIG_CLASS())
        )
        self._logger = Logger(self.SERVICE_NAME)
        self._shutdown_event = asyncio.Event()

    @property
    def config(self) -> ConfigT:
        return self._config

    @abstractmethod
    async def run(self) -> None:
        """Execute one bounded cycle of work."""
        ...

    def request_shutdown(self) -> None:
        """Ask ``run_forever`` to exit at the next wait. Safe from signal handlers."""
        self._shutdown_event.set()

    @property
    def is_running(self) -> bool:
        return not self._shutdown_event.is_set()

    async def wait(self, timeout: float) -> bool:  # noqa: ASYNC109
        """Sleep up to ``timeout`` seconds; return True if shutdown was requested."""
        try:
            await asyncio.wait_for(self._shutdown_event.wait(), timeout=timeout)
            return True
        except TimeoutError:
            return False

    async def run_forever(self) -> None:
        """Call ``run()`` every ``config.interval`` seconds until shutdown.

        Stops early once ``config.max_consecutive_failures`` cycles in a row
        have raised (``0`` disables the limit). ``CancelledError``,
        ``KeyboardInterrupt`` and ``SystemExit`` propagate immediately.

        Metrics recorded: ``cycles_success``, ``cycles_failed`` and
        ``errors_{ExceptionType}`` counters, ``consecutive_failures`` and
        ``last_cycle_timestamp`` gauges, and the cycle duration histogram.
        """
        interval = self._config.interval
        max_consecutive_failures = self._config.max_consecutive_failures
        metrics_enabled = self._config.metrics.enabled

        if metrics_enabled:
            SERVICE_INFO.info({"service": self.SERVICE_NAME})

        self._logger.info(
            "run_forever_started",
            interval=interval,
            max_consecutive_failures=max_consecutive_failures,
        )

        consecutive_failures = 0

        while self.is_running:
            cycle_start = time.monotonic()

            try:
                await self.run()

                duration = time.monotonic() - cycle_start
                self.inc_counter("cycles_success")
                if metrics_enabled:
                    CYCLE_DURATION_SECONDS.labels(service=self.SERVICE_NAME).observe(duration)
                self.set_gauge("last_cycle_timestamp", time.time())
                self.set_gauge("consecutive_failures", 0)

                consecutive_failures = 0
                self._logger.info("cycle_completed", duration_s=round(duration, 3))

            except (asyncio.CancelledError, KeyboardInterrupt, SystemExit):
                raise

            except Exception as e:  # Intentionally broad: top-level error boundary for run_forever
                consecutive_failures += 1

                self.inc_counter("cycles_failed")
                self.set_gauge("consecutive_failures", consecutive_failures)
                self.inc_counter(f"errors_{type(e).__name__}")

                self._logger.error(
                    "run_cycle_error",
                    error=str(e),
                    consecutive_failures=consecutive_failures,
                )

                if 0 < max_consecutive_failures <= consecutive_failures:
                    self._logger.critical(
                        "max_consecutive_failures_reached",
                        failures=consecutive_failures,
                        limit=max_consecutive_failures,
                    )
                    break

            if await self.wait(interval):
                break

        self._logger.info("run_forever_stopped")

    # -------------------------------------------------------------------------
    # Factory Methods
    # -------------------------------------------------------------------------

    @classmethod
    def from_yaml(cls, config_path: str, **kwargs: Any) -> Self:
        """Build the service from a YAML file; ``kwargs`` go to the constructor."""
        return cls.from_dict(load_yaml(config_path), **kwargs)

    @classmethod
    def from_dict(cls, data: dict[str, Any], **kwargs: Any) -> Self:
        """Parse ``data`` into ``CONFIG_CLASS``; ``kwargs`` go to the constructor."""
        config = cast("ConfigT", cls.CONFIG_CLASS(**data))
        return cls(config=config, **kwargs)

    # -------------------------------------------------------------------------
    # Context Manager
    # -------------------------------------------------------------------------

    async def __aenter__(self) -> Self:
        self._shutdown_event.clear()
        self._logger.info("service_started")
        return self

    async def __aexit__(
        self,
        _exc_type: type[BaseException] | None,
        _exc_val: BaseException | None,
        _exc_tb: TracebackType | None,
    ) -> None:
        self._shutdown_event.set()
        self._logger.info("service_stopped")

    # -------------------------------------------------------------------------
    # Custom Metrics
    # -------------------------------------------------------------------------

    def set_gauge(self, name: str, value: float) -> None:
        """Set ``SERVICE_GAUGE{service, name}``. No-op when metrics are disabled."""
        if not self._config.metrics.enabled:
            return
        SERVICE_GAUGE.labels(service=self.SERVICE_NAME, name=name).set(value)

    def inc_counter(self, name: str, value: float = 1) -> None:
        """Increment ``SERVICE_COUNTER{service, name}``. No-op when metrics are disabled."""
        if not self._config.metrics.enabled:
            return
        SERVICE_COUNTER.labels(service=self.SERVICE_NAME, name=name).inc(value)
