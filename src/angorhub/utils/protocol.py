"""Nostr relay operations for angorhub.

Thin wrappers over ``nostr_sdk`` that talk to exactly one relay per call:
publish one already-signed event, or fetch the events matching a filter
set. Each call opens its own client and always shuts it down, so relays
are isolated from each other's failures.

Callers that track relay status pass ``on_status``: it receives
``CONNECTED`` once the relay accepted the connection and ``ERROR`` when
connecting failed or timed out.

Signing is not done here: events arrive signed by an external signer.

Attributes:
    RelayTransport: Structural interface the relay services depend on.
    NostrRelayTransport: ``nostr_sdk`` implementation of ``RelayTransport``.
    create_client: Client factory.
    publish_event: Send one event to one relay.
    fetch_events: Fetch events from one relay.
    check_relay: Connect to one relay and disconnect.

Examples:
    ```python
    from nostr_sdk import Filter, Kind

    events = await fetch_events("wss://relay.angor.io", [Filter().kind(Kind(30078))], 10.0)
    ```
"""

from __future__ import annotations

import asyncio
import contextlib
import logging
from collections.abc import Callable
from datetime import timedelta
from typing import TYPE_CHECKING, Protocol

from nostr_sdk import Client, ClientBuilder, NostrSigner, RelayUrl

from angorhub.models.constants import RelayStatus


if TYPE_CHECKING:
    from collections.abc import Sequence

    from nostr_sdk import Event, Filter, Keys


logger = logging.getLogger(__name__)

StatusCallback = Callable[[str, RelayStatus], None]


class RelayTransport(Protocol):
    """One-relay publish, fetch and connection check, each bounded by its own deadline.

    Implementations raise ``TimeoutError`` when the deadline expires and
    ``OSError`` when the relay cannot be reached or rejects the event.
    """

    async def publish(
        self,
        relay_url: str,
        event: Event,
        timeout: float,  # noqa: ASYNC109
    ) -> None: ...

    async def fetch(
        self,
        relay_url: str,
        filters: Sequence[Filter],
        timeout: float,  # noqa: ASYNC109
    ) -> list[Event]: ...

    async def check(self, relay_url: str, timeout: float) -> None: ...  # noqa: ASYNC109


def create_client(keys: Keys | None = None) -> Client:
    """Build a ``nostr_sdk`` client, signing with ``keys`` when given."""
    builder = ClientBuilder()
    if keys is not None:
        builder = builder.signer(NostrSigner.keys(keys))
    return builder.build()


async def _shutdown(client: Client) -> None:
    # nostr-sdk FFI can raise arbitrary exception types during shutdown
    with contextlib.suppress(Exception):
        await client.shutdown()


async def _connect(relay_url: str, timeout: float) -> tuple[Client, RelayUrl]:  # noqa: ASYNC109
    """Open a client connected to ``relay_url``; the client is shut down on any failure."""
    url = RelayUrl.parse(relay_url)
    client = create_client()
    try:
        await client.add_relay(url)
        output = await client.try_connect(timedelta(seconds=timeout))
        if url not in output.success:
            error_message = output.failed.get(url, "Unknown error")
            raise OSError(f"Connection failed: {relay_url} ({error_message})")
    except BaseException:
        await _shutdown(client)
        raise
    return client, url


def _report(on_status: StatusCallback | None, relay_url: str, status: RelayStatus) -> None:
    if on_status is not None:
        on_status(relay_url, status)


async def publish_event(
    relay_url: str,
    event: Event,
    timeout: float,  # noqa: ASYNC109
    *,
    on_status: StatusCallback | None = None,
) -> None:
    """Publish a signed event to one relay.

    The whole operation (connect + send + acknowledgement) runs under one
    ``asyncio.timeout`` deadline.

    Raises:
        TimeoutError: If the deadline expires.
        OSError: If the relay is unreachable or does not accept the event.
    """
    client: Client | None = None
    try:
        async with asyncio.timeout(timeout):
            client, url = await _connect(relay_url, timeout)
            _report(on_status, relay_url, RelayStatus.CONNECTED)
            output = await client.send_event(event)
            if url not in output.success:
                error_message = output.failed.get(url, "rejected")
                raise OSError(f"Publish rejected: {relay_url} ({error_message})")
        logger.debug("publish_accepted relay=%s", relay_url)
    except Exception:
        if client is None:
            _report(on_status, relay_url, RelayStatus.ERROR)
        raise
    finally:
        if client is not None:
            await _shutdown(client)


async def fetch_events(
    relay_url: str,
    filters: Sequence[Filter],
    timeout: float,  # noqa: ASYNC109
    *,
    on_status: StatusCallback | None = None,
) -> list[Event]:
    """Fetch every event matching any of ``filters`` from one relay.

    Raises:
        TimeoutError: If the deadline expires.
        OSError: If the relay is unreachable.
    """
    client: Client | None = None
    events: list[Event] = []
    try:
        async with asyncio.timeout(timeout):
            client, _ = await _connect(relay_url, timeout)
            _report(on_status, relay_url, RelayStatus.CONNECTED)
            for event_filter in filters:
                result = await client.fetch_events(event_filter, timedelta(seconds=timeout))
                events.extend(result.to_vec())
    except Exception:
        if client is None:
            _report(on_status, relay_url, RelayStatus.ERROR)
        raise
    finally:
        if client is not None:
            await _shutdown(client)
    logger.debug("fetch_done relay=%s events=%s", relay_url, len(events))
    return events


async def check_relay(
    relay_url: str,
    timeout: float,  # noqa: ASYNC109
    *,
    on_status: StatusCallback | None = None,
) -> None:
    """Connect to one relay and disconnect again.

    Raises:
        TimeoutError: If the deadline expires.
        OSError: If the relay is unreachable.
    """
    try:
        async with asyncio.timeout(timeout):
            client, _ = await _connect(relay_url, timeout)
    except Exception:
        _report(on_status, relay_url, RelayStatus.ERROR)
        raise
    _report(on_status, relay_url, RelayStatus.CONNECTED)
    await _shutdown(client)


class NostrRelayTransport:
    """[RelayTransport][angorhub.utils.protocol.RelayTransport] backed by ``nostr_sdk``.

    Args:
        on_status: Receives the connection outcome of every call.
    """

    def __init__(self, on_status: StatusCallback | None = None) -> None:
        self._on_status = on_status

    async def publish(self, relay_url: str, event: Event, timeout: float) -> None:  # noqa: ASYNC109
        await publish_event(relay_url, event, timeout, on_status=self._on_status)

    async def fetch(
        self,
        relay_url: str,
        filters: Sequence[Filter],
        timeout: float,  # noqa: ASYNC109
    ) -> list[Event]:
        return await fetch_events(relay_url, filters, timeout, on_status=self._on_status)

    async def check(self, relay_url: str, timeout: float) -> None:  # noqa: ASYNC109
        await check_relay(relay_url, timeout, on_status=self._on_status)
