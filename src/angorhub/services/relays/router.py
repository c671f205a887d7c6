"""
Read and write routing over the relay pool.

[RelayPoolRouter][angorhub.services.relays.RelayPoolRouter] is built once
and holds a live reference to a
[RelaySource][angorhub.services.relays.router.RelaySource]; every routing
call reads the current URL sets, so membership changes apply without
rebuilding anything.

- Reads broadcast the same filters to every readable, connected relay.
- Writes target every writable, connected relay.
- Either way, an empty set is replaced by the default relay and a warning
  is logged.

[RelayPool][angorhub.services.relays.RelayPool] executes routed reads:
one concurrent fetch per relay, each with its own deadline, merged and
de-duplicated by event id.
"""

from __future__ import annotations

import asyncio
from typing import TYPE_CHECKING, Any, Protocol

from angorhub.core.logger import Logger

from .configs import RelayConfig


if TYPE_CHECKING:
    from collections.abc import Sequence

    from nostr_sdk import Event, Filter

    from angorhub.utils.protocol import RelayTransport

    from .membership import RelaySets


class RelaySource(Protocol):
    """Anything that can report the current relay URL sets."""

    def current_sets(self) -> RelaySets: ...


def event_id(event: Any) -> str:
    """Hex id of a ``nostr_sdk.Event``."""
    return event.id().to_hex()


class RelayPoolRouter:
    """Maps logical reads and writes onto relay URLs."""

    def __init__(self, source: RelaySource, config: RelayConfig | None = None) -> None:
        self._source = source
        self._config = config or RelayConfig()
        self._logger = Logger("relays")

    @property
    def default_relay(self) -> str:
        return self._config.default_relay

    def route_filters(self, filters: Sequence[Filter]) -> dict[str, list[Filter]]:
        """Map every readable relay to the same filter list."""
        urls = list(self._source.current_sets().readable)
        if not urls:
            self._logger.warning("read_fallback_relay", relay=self.default_relay)
            urls = [self.default_relay]
        return {url: list(filters) for url in urls}

    def route_event(self, _event: Any = None) -> list[str]:
        """Return the de-duplicated writable relays for an event."""
        urls = list(dict.fromkeys(self._source.current_sets().writable))
        if not urls:
            self._logger.warning("write_fallback_relay", relay=self.default_relay)
            urls = [self.default_relay]
        return urls


class RelayPool:
    """Executes routed reads against the relay pool."""

    def __init__(
        self,
        router: RelayPoolRouter,
        transport: RelayTransport,
        config: RelayConfig | None = None,
    ) -> None:
        self._router = router
        self._transport = transport
        self._config = config or RelayConfig()
        self._logger = Logger("relays")

    @property
    def router(self) -> RelayPoolRouter:
        return self._router

    async def _fetch(self, relay_url: str, filters: list[Filter]) -> list[Event]:
        try:
            async with asyncio.timeout(self._config.query_timeout):
                return await self._transport.fetch(relay_url, filters, self._config.query_timeout)
        except TimeoutError:
            self._logger.debug("query_timeout", relay=relay_url)
        except Exception as e:  # Intentionally broad: one relay must not fail the fan-out
            self._logger.debug("query_failed", relay=relay_url, error=str(e))
        return []

    async def query(self, filters: Sequence[Filter]) -> list[Event]:
        """Fetch matching events from every routed relay.

        Returns:
            Events in relay order then arrival order, first occurrence of each
            event id kept. Failed or timed-out relays contribute nothing.
        """
        routes = self._router.route_filters(filters)
        batches = await asyncio.gather(
            *(self._fetch(url, relay_filters) for url, relay_filters in routes.items())
        )

        seen: set[str] = set()
        events: list[Event] = []
        for batch in batches:
            for event in batch:
                key = event_id(event)
                if key in seen:
                    continue
                seen.add(key)
                events.append(event)

        self._logger.debug("query_done", relays=len(routes), events=len(events))
        return events
