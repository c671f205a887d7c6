"""Unit tests for core.exceptions module."""

from angorhub.core.exceptions import (
    AngorHubError,
    ConfigurationError,
    ConnectivityError,
    IndexerError,
    ProtocolError,
    PublishingError,
    RelayTimeoutError,
    StorageError,
)


class TestHierarchy:
    def test_all_derive_from_base(self) -> None:
        for cls in (
            ConfigurationError,
            StorageError,
            ConnectivityError,
            IndexerError,
            RelayTimeoutError,
            ProtocolError,
            PublishingError,
        ):
            assert issubclass(cls, AngorHubError)

    def test_connectivity_family(self) -> None:
        assert issubclass(IndexerError, ConnectivityError)
        assert issubclass(RelayTimeoutError, ConnectivityError)
        assert not issubclass(ProtocolError, ConnectivityError)


class TestIndexerError:
    def test_carries_url_and_status(self) -> None:
        err = IndexerError("HTTP 503", url="https://ix.example/", status=503)
        assert err.url == "https://ix.example/"
        assert err.status == 503
        assert str(err) == "HTTP 503"

    def test_status_defaults_to_none(self) -> None:
        assert IndexerError("down", url="https://ix.example/").status is None


class TestPublishingError:
    def test_message_reports_target_count(self) -> None:
        err = PublishingError(["wss://a", "wss://b", "wss://c"])
        assert str(err) == "Failed to publish to any relay. Tried 3 relays."
        assert err.targets == ("wss://a", "wss://b", "wss://c")
