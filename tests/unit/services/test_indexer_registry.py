"""
Unit tests for services.indexers.registry module.

Tests:
- Defaults and persisted configuration loading
- add / remove / set_primary / reset_to_defaults
- Single-primary rule and primary promotion
"""

import logging

import pytest

from angorhub.core.storage import MemoryStore
from angorhub.models import NetworkId
from angorhub.models.constants import FALLBACK_INDEXER_URLS, INDEXER_CONFIG_KEY
from angorhub.services.indexers import IndexerRegistry


MAINNET = NetworkId.MAINNET
TESTNET = NetworkId.TESTNET


def _primaries(registry: IndexerRegistry, network: NetworkId) -> list[str]:
    return [e.url for e in registry.entries(network) if e.is_primary]


# ============================================================================
# Loading
# ============================================================================


class TestLoading:
    def test_defaults(self, registry: IndexerRegistry) -> None:
        assert registry.urls(MAINNET)[0] == "https://explorer.angor.io/"
        assert registry.primary_url(MAINNET) == "https://explorer.angor.io/"
        assert registry.primary_url(TESTNET) == "https://signet.angor.online/"

    def test_persisted_config_normalized_and_deduped(self) -> None:
        store = MemoryStore(
            {
                INDEXER_CONFIG_KEY: {
                    "mainnet": [
                        {"url": "https://a.example", "isPrimary": False},
                        {"url": "https://a.example/", "isPrimary": True},
                        {"url": "https://b.example/", "isPrimary": True},
                    ]
                }
            }
        )
        registry = IndexerRegistry(store)

        assert registry.urls(MAINNET) == ["https://a.example/", "https://b.example/"]
        assert _primaries(registry, MAINNET) == ["https://b.example/"]
        assert registry.urls(TESTNET) == [
            "https://tbtc.indexer.angor.io/",
            "https://signet.angor.online/",
        ]

    def test_persisted_without_primary_promotes_first(self) -> None:
        store = MemoryStore({INDEXER_CONFIG_KEY: {"mainnet": [{"url": "https://a.example/"}]}})
        assert _primaries(IndexerRegistry(store), MAINNET) == ["https://a.example/"]

    def test_malformed_network_falls_back_to_defaults(
        self, caplog: pytest.LogCaptureFixture
    ) -> None:
        store = MemoryStore({INDEXER_CONFIG_KEY: {"mainnet": [{"nope": 1}]}})
        with caplog.at_level(logging.WARNING):
            registry = IndexerRegistry(store)
        assert registry.primary_url(MAINNET) == "https://explorer.angor.io/"
        assert "indexer_config_discarded" in caplog.text

    def test_non_object_config_ignored(self) -> None:
        registry = IndexerRegistry(MemoryStore({INDEXER_CONFIG_KEY: ["x"]}))
        assert registry.primary_url(MAINNET) == "https://explorer.angor.io/"


# ============================================================================
# Mutations
# ============================================================================


class TestAdd:
    def test_appends_and_persists(self, registry: IndexerRegistry, store: MemoryStore) -> None:
        assert registry.add("https://new.example", MAINNET) is True
        assert registry.urls(MAINNET)[-1] == "https://new.example/"
        persisted = store.get(INDEXER_CONFIG_KEY)
        assert persisted["mainnet"][-1] == {"url": "https://new.example/", "isPrimary": False}

    def test_duplicate_rejected(self, registry: IndexerRegistry) -> None:
        assert registry.add("https://explorer.angor.io", MAINNET) is False

    def test_first_entry_of_empty_set_becomes_primary(self, registry: IndexerRegistry) -> None:
        for url in registry.urls(TESTNET):
            registry.remove(url, TESTNET)
        registry.add("https://solo.example/", TESTNET)
        assert _primaries(registry, TESTNET) == ["https://solo.example/"]

    def test_notifies_observers(self, registry: IndexerRegistry) -> None:
        seen: list[object] = []
        registry.subscribe(seen.append)
        registry.add("https://new.example/", MAINNET)
        assert len(seen) == 1


class TestRemove:
    def test_remove_primary_promotes_next(self, registry: IndexerRegistry) -> None:
        assert registry.remove("https://explorer.angor.io/", MAINNET) is True
        assert registry.primary_url(MAINNET) == "https://fulcrum.angor.online/"
        assert _primaries(registry, MAINNET) == ["https://fulcrum.angor.online/"]

    def test_remove_non_primary_keeps_primary(self, registry: IndexerRegistry) -> None:
        registry.remove("https://electrs.angor.online/", MAINNET)
        assert registry.primary_url(MAINNET) == "https://explorer.angor.io/"

    def test_remove_unknown(self, registry: IndexerRegistry) -> None:
        assert registry.remove("https://unknown.example/", MAINNET) is False

    def test_remove_all_leaves_empty_set(self, registry: IndexerRegistry) -> None:
        for url in registry.urls(MAINNET):
            registry.remove(url, MAINNET)
        assert registry.entries(MAINNET) == ()
        assert registry.primary_url(MAINNET) == FALLBACK_INDEXER_URLS[MAINNET]


class TestSetPrimary:
    def test_single_primary(self, registry: IndexerRegistry) -> None:
        assert registry.set_primary("https://electrs.angor.online", MAINNET) is True
        assert _primaries(registry, MAINNET) == ["https://electrs.angor.online/"]

    def test_unknown_url(self, registry: IndexerRegistry) -> None:
        assert registry.set_primary("https://unknown.example/", MAINNET) is False
        assert registry.primary_url(MAINNET) == "https://explorer.angor.io/"


class TestReset:
    def test_reset_to_defaults(self, registry: IndexerRegistry) -> None:
        registry.add("https://new.example/", MAINNET)
        registry.set_primary("https://new.example/", MAINNET)
        registry.reset_to_defaults()
        assert registry.primary_url(MAINNET) == "https://explorer.angor.io/"
        assert "https://new.example/" not in registry.urls(MAINNET)


class TestNetworkOf:
    def test_finds_network(self, registry: IndexerRegistry) -> None:
        assert registry.network_of("https://signet.angor.online") == TESTNET
        assert registry.network_of("https://nowhere.example/") is None
