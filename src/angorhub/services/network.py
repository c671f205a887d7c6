"""
Persisted selection of the active Bitcoin network.

Switching networks is the root of the cascading reset: every component
that caches data per network observes
[NetworkSelection.observable][angorhub.services.network.NetworkSelection.observable]
and drops state keyed by the previous value.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from angorhub.core.logger import Logger
from angorhub.core.observable import Observable
from angorhub.models.constants import NETWORK_KEY, NetworkId


if TYPE_CHECKING:
    from collections.abc import Callable

    from angorhub.core.storage import KeyValueStore


class NetworkSelection:
    """Current [NetworkId][angorhub.models.constants.NetworkId], persisted under ``angor:network``.

    An invalid persisted value is logged and replaced by ``default``.
    """

    def __init__(self, store: KeyValueStore, default: NetworkId = NetworkId.MAINNET) -> None:
        self._store = store
        self._logger = Logger("network")
        self._current: Observable[NetworkId] = Observable(self._load(default))

    def _load(self, default: NetworkId) -> NetworkId:
        raw = self._store.get(NETWORK_KEY)
        if raw is None:
            return default
        try:
            return NetworkId(raw)
        except (TypeError, ValueError):
            self._logger.warning("network_discarded", value=raw, fallback=default.value)
            return default

    @property
    def current(self) -> NetworkId:
        return self._current.value

    @property
    def observable(self) -> Observable[NetworkId]:
        return self._current

    def subscribe(self, listener: Callable[[NetworkId], None]) -> Callable[[], None]:
        return self._current.subscribe(listener)

    def switch(self, network: NetworkId) -> bool:
        """Persist ``network`` and notify observers.

        Returns:
            False if ``network`` was already selected.

        Raises:
            StorageError: If the selection cannot be persisted.
        """
        if network == self._current.value:
            return False
        previous = self._current.value
        self._store.set(NETWORK_KEY, network.value)
        self._current.set(network)
        self._logger.info("network_switched", previous=previous.value, current=network.value)
        return True
