"""
Unit tests for models.relay module.

Tests:
- normalize_relay_url() scheme defaulting, normalization and rejection
- RelayEntry status handling and persistence format
"""

import pytest

from angorhub.models import RelayEntry, RelayStatus, normalize_relay_url


class TestNormalizeRelayUrl:
    """URL parsing and normalization."""

    def test_wss_unchanged(self) -> None:
        assert normalize_relay_url("wss://relay.example.com") == "wss://relay.example.com"

    def test_bare_host_gets_wss(self) -> None:
        assert normalize_relay_url("relay.example.com") == "wss://relay.example.com"

    def test_ws_kept(self) -> None:
        assert normalize_relay_url("ws://relay.example.com") == "ws://relay.example.com"

    def test_trailing_slash_removed(self) -> None:
        assert normalize_relay_url("wss://relay.example.com/") == "wss://relay.example.com"

    def test_host_lowercased(self) -> None:
        assert normalize_relay_url("wss://Relay.Example.COM") == "wss://relay.example.com"

    def test_port_preserved(self) -> None:
        assert normalize_relay_url("wss://relay.example.com:7777") == "wss://relay.example.com:7777"

    def test_double_slashes_collapsed(self) -> None:
        assert normalize_relay_url("wss://relay.example.com//nostr//") == (
            "wss://relay.example.com/nostr"
        )

    def test_whitespace_stripped(self) -> None:
        assert normalize_relay_url("  wss://relay.example.com  ") == "wss://relay.example.com"

    @pytest.mark.parametrize(
        "url",
        [
            "",
            "   ",
            "https://relay.example.com",
            "wss://relay.example.com?x=1",
            "wss://relay.example.com#frag",
            "wss://relay\x00.example.com",
        ],
    )
    def test_rejects_invalid(self, url: str) -> None:
        with pytest.raises(ValueError):
            normalize_relay_url(url)


class TestRelayEntry:
    def test_defaults(self) -> None:
        entry = RelayEntry(url="wss://relay.example.com")
        assert entry.read is True
        assert entry.write is True
        assert entry.status == RelayStatus.DISCONNECTED
        assert entry.is_connected is False

    def test_with_status(self) -> None:
        entry = RelayEntry(url="wss://relay.example.com").with_status(RelayStatus.CONNECTED)
        assert entry.is_connected is True

    def test_status_is_not_persisted(self) -> None:
        entry = RelayEntry(url="wss://relay.example.com", status=RelayStatus.CONNECTED)
        assert "status" not in entry.to_dict()
        assert RelayEntry.from_dict(entry.to_dict()).status == RelayStatus.DISCONNECTED

    def test_from_dict_normalizes(self) -> None:
        entry = RelayEntry.from_dict({"url": "relay.example.com/", "read": False})
        assert entry.url == "wss://relay.example.com"
        assert entry.read is False
        assert entry.write is True

    def test_from_dict_rejects_missing_url(self) -> None:
        with pytest.raises(ValueError, match="invalid relay url"):
            RelayEntry.from_dict({"read": True})
