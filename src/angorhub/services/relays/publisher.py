"""
Concurrent event publishing.

An event is sent to the union, in this order and without duplicates, of:

1. the write routing of
   [RelayPoolRouter][angorhub.services.relays.RelayPoolRouter]: writable
   connected relays, or the default relay when there are none,
2. every connected relay of the current network, writable or not,
3. the protocol relays of the current network,
4. any extra targets given by the caller.

Each relay gets one independent attempt under its own ``publish_timeout``
deadline. Attempts run concurrently and never cancel one another; the
publish succeeds when at least one relay accepted the event.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
from typing import TYPE_CHECKING

from angorhub.core.exceptions import PublishingError, RelayTimeoutError
from angorhub.core.logger import Logger
from angorhub.models.constants import PROTOCOL_RELAYS, NetworkId

from .configs import RelayConfig


if TYPE_CHECKING:
    from collections.abc import Iterable

    from nostr_sdk import Event

    from angorhub.core.observable import Observable
    from angorhub.utils.protocol import RelayTransport

    from .membership import RelayMembership
    from .router import RelayPoolRouter


@dataclass(frozen=True, slots=True)
class PublishAttempt:
    """Outcome of publishing to one relay."""

    relay_url: str
    success: bool
    error: Exception | None = None


@dataclass(frozen=True, slots=True)
class PublishResult:
    """Per-relay outcomes of one publish, in target order."""

    attempts: tuple[PublishAttempt, ...]

    @property
    def targets(self) -> list[str]:
        return [a.relay_url for a in self.attempts]

    @property
    def success_count(self) -> int:
        return sum(1 for a in self.attempts if a.success)

    @property
    def succeeded(self) -> list[str]:
        return [a.relay_url for a in self.attempts if a.success]

    @property
    def failed(self) -> list[PublishAttempt]:
        return [a for a in self.attempts if not a.success]


class RelayPublisher:
    """Publishes signed events to the write fan-out of the current network.

    Args:
        router: Write routing for the event.
        membership: Live relay membership.
        network: Observed current network.
        transport: One-relay publish implementation.
        config: Publish deadline.
    """

    def __init__(
        self,
        router: RelayPoolRouter,
        membership: RelayMembership,
        network: Observable[NetworkId],
        transport: RelayTransport,
        config: RelayConfig | None = None,
    ) -> None:
        self._router = router
        self._membership = membership
        self._network = network
        self._transport = transport
        self._config = config or RelayConfig()
        self._logger = Logger("relays")

    def publish_targets(
        self, event: Event | None = None, extra_targets: Iterable[str] = ()
    ) -> list[str]:
        network = self._network.value
        routed = self._router.route_event(event)
        connected = self._membership.sets(network).connected
        protocol = PROTOCOL_RELAYS.get(network, PROTOCOL_RELAYS[NetworkId.MAINNET])
        return list(dict.fromkeys([*routed, *connected, *protocol, *extra_targets]))

    async def _attempt(self, relay_url: str, event: Event) -> PublishAttempt:
        timeout = self._config.publish_timeout
        try:
            async with asyncio.timeout(timeout):
                await self._transport.publish(relay_url, event, timeout)
        except TimeoutError:
            self._logger.debug("publish_timeout", relay=relay_url, timeout_s=timeout)
            return PublishAttempt(
                relay_url=relay_url,
                success=False,
                error=RelayTimeoutError(f"publish to {relay_url} timed out after {timeout}s"),
            )
        except Exception as e:  # Intentionally broad: a rejecting relay is a result, not an error
            self._logger.debug("publish_failed", relay=relay_url, error=str(e))
            return PublishAttempt(relay_url=relay_url, success=False, error=e)
        self._logger.debug("publish_succeeded", relay=relay_url)
        return PublishAttempt(relay_url=relay_url, success=True)

    async def publish(self, event: Event, extra_targets: Iterable[str] = ()) -> PublishResult:
        """Publish ``event`` to every target concurrently.

        Returns:
            Per-relay outcomes once every attempt has finished.

        Raises:
            PublishingError: If no relay accepted the event.
        """
        targets = self.publish_targets(event, extra_targets)
        attempts = await asyncio.gather(*(self._attempt(url, event) for url in targets))
        result = PublishResult(attempts=tuple(attempts))

        self._logger.info("event_published", success=result.success_count, total=len(targets))
        if result.success_count == 0:
            raise PublishingError(targets)
        return result
