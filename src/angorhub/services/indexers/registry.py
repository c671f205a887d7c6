"""
Configured indexer entries per network.

Holds an ordered tuple of [IndexerEntry][angorhub.models.indexer.IndexerEntry]
per [NetworkId][angorhub.models.constants.NetworkId] and keeps at most one
of them primary. Every mutation replaces the whole mapping, persists it
under ``angor:indexer-config`` and notifies observers.

Persisted format::

    {"mainnet": [{"url": "https://explorer.angor.io/", "isPrimary": true}, ...],
     "testnet": [...]}
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from angorhub.core.logger import Logger
from angorhub.core.observable import Observable
from angorhub.models.constants import (
    DEFAULT_INDEXERS,
    FALLBACK_INDEXER_URLS,
    INDEXER_CONFIG_KEY,
    NetworkId,
)
from angorhub.models.indexer import IndexerEntry, normalize_indexer_url


if TYPE_CHECKING:
    from collections.abc import Callable, Iterable

    from angorhub.core.storage import KeyValueStore


IndexerConfigMap = dict[NetworkId, tuple[IndexerEntry, ...]]


def default_indexer_config() -> IndexerConfigMap:
    return {
        network: tuple(IndexerEntry(url=url, is_primary=primary) for url, primary in entries)
        for network, entries in DEFAULT_INDEXERS.items()
    }


def _with_single_primary(entries: Iterable[IndexerEntry]) -> tuple[IndexerEntry, ...]:
    """Keep the first primary flag; promote the first entry when none is set."""
    items = list(entries)
    primary_index = next((i for i, e in enumerate(items) if e.is_primary), 0)
    return tuple(
        IndexerEntry(url=e.url, is_primary=(i == primary_index)) for i, e in enumerate(items)
    )


class IndexerRegistry:
    """Mutable view over the persisted indexer configuration.

    Args:
        store: Key/value store holding ``angor:indexer-config``.
    """

    def __init__(self, store: KeyValueStore) -> None:
        self._store = store
        self._logger = Logger("indexers")
        self._config: Observable[IndexerConfigMap] = Observable(self._load())

    # -- Persistence ----------------------------------------------------------

    def _load(self) -> IndexerConfigMap:
        config = default_indexer_config()
        raw = self._store.get(INDEXER_CONFIG_KEY)
        if raw is None:
            return config
        if not isinstance(raw, dict):
            self._logger.warning("indexer_config_discarded", reason="not an object")
            return config

        for network in NetworkId:
            items = raw.get(network.value)
            if items is None:
                continue
            try:
                entries = [IndexerEntry.from_dict(item) for item in items]
            except (TypeError, ValueError, AttributeError) as e:
                self._logger.warning(
                    "indexer_config_discarded", network=network.value, error=str(e)
                )
                continue
            deduped: dict[str, IndexerEntry] = {}
            for entry in entries:
                url = normalize_indexer_url(entry.url)
                deduped.setdefault(url, IndexerEntry(url=url, is_primary=entry.is_primary))
            config[network] = _with_single_primary(deduped.values())
        return config

    def _commit(self, config: IndexerConfigMap) -> None:
        payload: dict[str, Any] = {
            network.value: [entry.to_dict() for entry in entries]
            for network, entries in config.items()
        }
        self._store.set(INDEXER_CONFIG_KEY, payload)
        self._config.set(config)

    # -- Reads ----------------------------------------------------------------

    @property
    def observable(self) -> Observable[IndexerConfigMap]:
        return self._config

    def subscribe(self, listener: Callable[[IndexerConfigMap], None]) -> Callable[[], None]:
        return self._config.subscribe(listener)

    def entries(self, network: NetworkId) -> tuple[IndexerEntry, ...]:
        return self._config.value.get(network, ())

    def urls(self, network: NetworkId) -> list[str]:
        return [entry.url for entry in self.entries(network)]

    def network_of(self, url: str) -> NetworkId | None:
        """Return the network whose configuration contains ``url``, if any."""
        normalized = normalize_indexer_url(url)
        for network, entries in self._config.value.items():
            if any(entry.url == normalized for entry in entries):
                return network
        return None

    def primary_url(self, network: NetworkId) -> str:
        """Configured primary, else the first entry, else the compiled-in fallback."""
        entries = self.entries(network)
        for entry in entries:
            if entry.is_primary:
                return entry.url
        if entries:
            return entries[0].url
        return FALLBACK_INDEXER_URLS[network]

    # -- Mutations ------------------------------------------------------------

    def add(self, url: str, network: NetworkId) -> bool:
        """Append an indexer. The first entry of an empty set becomes primary.

        Returns:
            False if the (normalized) URL is already configured.
        """
        normalized = normalize_indexer_url(url)
        entries = self.entries(network)
        if any(entry.url == normalized for entry in entries):
            return False

        new_entry = IndexerEntry(url=normalized, is_primary=not entries)
        config = dict(self._config.value)
        config[network] = (*entries, new_entry)
        self._commit(config)
        self._logger.info("indexer_added", network=network.value, url=normalized)
        return True

    def remove(self, url: str, network: NetworkId) -> bool:
        """Remove an indexer, promoting the first remaining entry if it was primary.

        Returns:
            False if the URL was not configured.
        """
        normalized = normalize_indexer_url(url)
        entries = self.entries(network)
        removed = next((e for e in entries if e.url == normalized), None)
        if removed is None:
            return False

        remaining = [e for e in entries if e.url != normalized]
        if removed.is_primary and remaining:
            remaining[0] = IndexerEntry(url=remaining[0].url, is_primary=True)

        config = dict(self._config.value)
        config[network] = tuple(remaining)
        self._commit(config)
        self._logger.info(
            "indexer_removed", network=network.value, url=normalized, remaining=len(remaining)
        )
        return True

    def set_primary(self, url: str, network: NetworkId) -> bool:
        """Make ``url`` the only primary entry of ``network``.

        Returns:
            False if the URL is not configured.
        """
        normalized = normalize_indexer_url(url)
        entries = self.entries(network)
        if not any(entry.url == normalized for entry in entries):
            return False

        config = dict(self._config.value)
        config[network] = tuple(
            IndexerEntry(url=e.url, is_primary=(e.url == normalized)) for e in entries
        )
        self._commit(config)
        self._logger.info("indexer_primary_set", network=network.value, url=normalized)
        return True

    def reset_to_defaults(self) -> None:
        self._commit(default_indexer_config())
        self._logger.info("indexer_config_reset")
