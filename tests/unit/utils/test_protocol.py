"""
Unit tests for utils.protocol module.

Tests:
- publish_event() success, rejection, connect failure and shutdown
- Client shutdown when the connect deadline expires
- Connection status reporting
- fetch_events() per-filter collection and check_relay()
- NostrRelayTransport delegation
"""

import asyncio
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from angorhub.models.constants import RelayStatus
from angorhub.utils.protocol import (
    NostrRelayTransport,
    check_relay,
    fetch_events,
    publish_event,
)


RELAY = "wss://relay.example.com"


def _mock_client(*, connected: bool = True, accepted: bool = True) -> tuple[MagicMock, object]:
    url = object()
    client = MagicMock()
    client.add_relay = AsyncMock()
    client.shutdown = AsyncMock()

    connect_output = MagicMock()
    connect_output.success = [url] if connected else []
    connect_output.failed = {} if connected else {url: "refused"}
    client.try_connect = AsyncMock(return_value=connect_output)

    send_output = MagicMock()
    send_output.success = [url] if accepted else []
    send_output.failed = {} if accepted else {url: "blocked: spam"}
    client.send_event = AsyncMock(return_value=send_output)
    return client, url


def _patched(client: MagicMock, url: object):
    relay_url = MagicMock()
    relay_url.parse.return_value = url
    return (
        patch("angorhub.utils.protocol.create_client", return_value=client),
        patch("angorhub.utils.protocol.RelayUrl", relay_url),
    )


async def _hang(*_args: object) -> None:
    await asyncio.sleep(5)


class TestPublishEvent:
    async def test_accepted(self) -> None:
        client, url = _mock_client()
        p1, p2 = _patched(client, url)
        with p1, p2:
            await publish_event(RELAY, MagicMock(), timeout=1.0)
        client.send_event.assert_awaited_once()
        client.shutdown.assert_awaited_once()

    async def test_rejected_raises_oserror(self) -> None:
        client, url = _mock_client(accepted=False)
        p1, p2 = _patched(client, url)
        with p1, p2, pytest.raises(OSError, match="blocked: spam"):
            await publish_event(RELAY, MagicMock(), timeout=1.0)
        client.shutdown.assert_awaited()

    async def test_connect_failure_raises_oserror(self) -> None:
        client, url = _mock_client(connected=False)
        p1, p2 = _patched(client, url)
        with p1, p2, pytest.raises(OSError, match="Connection failed"):
            await publish_event(RELAY, MagicMock(), timeout=1.0)
        client.send_event.assert_not_awaited()

    async def test_shutdown_error_suppressed(self) -> None:
        client, url = _mock_client()
        client.shutdown = AsyncMock(side_effect=RuntimeError("ffi"))
        p1, p2 = _patched(client, url)
        with p1, p2:
            await publish_event(RELAY, MagicMock(), timeout=1.0)


class TestConnectDeadline:
    async def test_timed_out_connect_shuts_client_down(self) -> None:
        client, url = _mock_client()
        client.try_connect = AsyncMock(side_effect=_hang)
        p1, p2 = _patched(client, url)
        with p1, p2, pytest.raises(TimeoutError):
            await publish_event(RELAY, MagicMock(), timeout=0.05)

        client.shutdown.assert_awaited_once()
        client.send_event.assert_not_awaited()

    async def test_timed_out_fetch_connect_shuts_client_down(self) -> None:
        client, url = _mock_client()
        client.try_connect = AsyncMock(side_effect=_hang)
        p1, p2 = _patched(client, url)
        with p1, p2, pytest.raises(TimeoutError):
            await fetch_events(RELAY, [MagicMock()], timeout=0.05)

        client.shutdown.assert_awaited_once()


class TestStatusReporting:
    async def test_connected_reported_even_when_rejected(self) -> None:
        on_status = MagicMock()
        client, url = _mock_client(accepted=False)
        p1, p2 = _patched(client, url)
        with p1, p2, pytest.raises(OSError):
            await publish_event(RELAY, MagicMock(), timeout=1.0, on_status=on_status)

        on_status.assert_called_once_with(RELAY, RelayStatus.CONNECTED)

    async def test_connect_failure_reported_as_error(self) -> None:
        on_status = MagicMock()
        client, url = _mock_client(connected=False)
        p1, p2 = _patched(client, url)
        with p1, p2, pytest.raises(OSError):
            await fetch_events(RELAY, [MagicMock()], timeout=1.0, on_status=on_status)

        on_status.assert_called_once_with(RELAY, RelayStatus.ERROR)

    async def test_timeout_reported_as_error(self) -> None:
        on_status = MagicMock()
        client, url = _mock_client()
        client.try_connect = AsyncMock(side_effect=_hang)
        p1, p2 = _patched(client, url)
        with p1, p2, pytest.raises(TimeoutError):
            await check_relay(RELAY, timeout=0.05, on_status=on_status)

        on_status.assert_called_once_with(RELAY, RelayStatus.ERROR)

    async def test_check_relay_connects_and_disconnects(self) -> None:
        on_status = MagicMock()
        client, url = _mock_client()
        p1, p2 = _patched(client, url)
        with p1, p2:
            await check_relay(RELAY, timeout=1.0, on_status=on_status)

        on_status.assert_called_once_with(RELAY, RelayStatus.CONNECTED)
        client.shutdown.assert_awaited_once()


class TestFetchEvents:
    async def test_collects_every_filter(self) -> None:
        client, url = _mock_client()
        batch_a = MagicMock()
        batch_a.to_vec.return_value = ["e1", "e2"]
        batch_b = MagicMock()
        batch_b.to_vec.return_value = ["e3"]
        client.fetch_events = AsyncMock(side_effect=[batch_a, batch_b])

        p1, p2 = _patched(client, url)
        with p1, p2:
            events = await fetch_events(RELAY, [MagicMock(), MagicMock()], timeout=1.0)

        assert events == ["e1", "e2", "e3"]
        client.shutdown.assert_awaited_once()


class TestNostrRelayTransport:
    async def test_delegates(self) -> None:
        transport = NostrRelayTransport()
        with (
            patch("angorhub.utils.protocol.publish_event", new=AsyncMock()) as pub,
            patch("angorhub.utils.protocol.fetch_events", new=AsyncMock(return_value=[])) as fet,
        ):
            event = MagicMock()
            await transport.publish(RELAY, event, 2.0)
            assert await transport.fetch(RELAY, [], 3.0) == []

        pub.assert_awaited_once_with(RELAY, event, 2.0, on_status=None)
        fet.assert_awaited_once_with(RELAY, [], 3.0, on_status=None)

    async def test_reports_status(self) -> None:
        on_status = MagicMock()
        transport = NostrRelayTransport(on_status=on_status)
        client, url = _mock_client(connected=False)
        p1, p2 = _patched(client, url)
        with p1, p2, pytest.raises(OSError):
            await transport.check(RELAY, 1.0)

        on_status.assert_called_once_with(RELAY, RelayStatus.ERROR)
