"""
Relay membership per network.

Holds the ordered [RelayEntry][angorhub.models.relay.RelayEntry] list of
each network, persisted under ``angor:relay-config``. Read/write flags and
membership changes are persisted; connection status is transient and is
reported by whatever owns the relay sockets through
[update_status()][angorhub.services.relays.RelayMembership.update_status].

Routers never copy URL sets: they call
[current_sets()][angorhub.services.relays.RelayMembership.current_sets] on
every routing decision, so membership changes apply immediately.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import TYPE_CHECKING, Any, Literal

from angorhub.core.logger import Logger
from angorhub.core.observable import Observable
from angorhub.models.constants import PROTOCOL_RELAYS, RELAY_CONFIG_KEY, NetworkId, RelayStatus
from angorhub.models.relay import RelayEntry, normalize_relay_url


if TYPE_CHECKING:
    from collections.abc import Callable

    from angorhub.core.storage import KeyValueStore


RelayConfigMap = dict[NetworkId, tuple[RelayEntry, ...]]
Permission = Literal["read", "write"]


@dataclass(frozen=True, slots=True)
class RelaySets:
    """Derived relay URL sets of one network, in membership order.

    Attributes:
        network: Network the sets were derived for.
        readable: Connected relays flagged ``read``.
        writable: Connected relays flagged ``write``.
        connected: Every connected relay.
        active: Connected relays flagged ``read`` or ``write``.
    """

    network: NetworkId
    readable: tuple[str, ...] = ()
    writable: tuple[str, ...] = ()
    connected: tuple[str, ...] = ()
    active: tuple[str, ...] = ()

    @classmethod
    def from_entries(cls, network: NetworkId, entries: tuple[RelayEntry, ...]) -> RelaySets:
        connected = [e for e in entries if e.is_connected]
        return cls(
            network=network,
            readable=tuple(e.url for e in connected if e.read),
            writable=tuple(e.url for e in connected if e.write),
            connected=tuple(e.url for e in connected),
            active=tuple(e.url for e in connected if e.read or e.write),
        )


def default_relay_config() -> RelayConfigMap:
    return {
        network: tuple(RelayEntry(url=url, is_default=True) for url in urls)
        for network, urls in PROTOCOL_RELAYS.items()
    }


class RelayMembership:
    """Per-network relay list with read/write flags and connection status.

    Args:
        store: Key/value store holding ``angor:relay-config``.
        network: Observed current network; reads default to it.
    """

    def __init__(self, store: KeyValueStore, network: Observable[NetworkId]) -> None:
        self._store = store
        self._network = network
        self._logger = Logger("relays")
        self._relays: Observable[RelayConfigMap] = Observable(self._load())

    def _load(self) -> RelayConfigMap:
        config = default_relay_config()
        raw = self._store.get(RELAY_CONFIG_KEY)
        if raw is None:
            return config
        if not isinstance(raw, dict):
            self._logger.warning("relay_config_discarded", reason="not an object")
            return config

        for network in NetworkId:
            items = raw.get(network.value)
            if items is None:
                continue
            try:
                entries = [RelayEntry.from_dict(item) for item in items]
            except (TypeError, ValueError, AttributeError) as e:
                self._logger.warning("relay_config_discarded", network=network.value, error=str(e))
                continue
            deduped: dict[str, RelayEntry] = {}
            for entry in entries:
                deduped.setdefault(entry.url, entry)
            config[network] = tuple(deduped.values())
        return config

    def _commit(self, config: RelayConfigMap, *, persist: bool = True) -> None:
        if persist:
            payload: dict[str, Any] = {
                network.value: [entry.to_dict() for entry in entries]
                for network, entries in config.items()
            }
            self._store.set(RELAY_CONFIG_KEY, payload)
        self._relays.set(config)

    def _replace(self, network: NetworkId, entries: tuple[RelayEntry, ...], **kwargs: Any) -> None:
        config = dict(self._relays.value)
        config[network] = entries
        self._commit(config, **kwargs)

    # -- Reads ----------------------------------------------------------------

    @property
    def observable(self) -> Observable[RelayConfigMap]:
        return self._relays

    def subscribe(self, listener: Callable[[RelayConfigMap], None]) -> Callable[[], None]:
        return self._relays.subscribe(listener)

    def entries(self, network: NetworkId | None = None) -> tuple[RelayEntry, ...]:
        return self._relays.value.get(network or self._network.value, ())

    def sets(self, network: NetworkId | None = None) -> RelaySets:
        network = network or self._network.value
        return RelaySets.from_entries(network, self.entries(network))

    def current_sets(self) -> RelaySets:
        """URL sets of the currently selected network."""
        return self.sets()

    def readable_urls(self, network: NetworkId | None = None) -> list[str]:
        return list(self.sets(network).readable)

    def writable_urls(self, network: NetworkId | None = None) -> list[str]:
        return list(self.sets(network).writable)

    def connected_urls(self, network: NetworkId | None = None) -> list[str]:
        return list(self.sets(network).connected)

    def active_urls(self, network: NetworkId | None = None) -> list[str]:
        return list(self.sets(network).active)

    # -- Mutations ------------------------------------------------------------

    def add(self, url: str, network: NetworkId) -> bool:
        """Add a read+write relay. ``wss://`` is assumed when no scheme is given.

        Returns:
            False if the relay is already a member.

        Raises:
            ValueError: If ``url`` is not a valid ws/wss URL.
        """
        normalized = normalize_relay_url(url)
        entries = self.entries(network)
        if any(entry.url == normalized for entry in entries):
            return False
        self._replace(network, (*entries, RelayEntry(url=normalized)))
        self._logger.info("relay_added", network=network.value, url=normalized)
        return True

    def remove(self, url: str, network: NetworkId) -> bool:
        normalized = normalize_relay_url(url)
        entries = self.entries(network)
        remaining = tuple(e for e in entries if e.url != normalized)
        if len(remaining) == len(entries):
            return False
        self._replace(network, remaining)
        self._logger.info("relay_removed", network=network.value, url=normalized)
        return True

    def toggle_permission(self, url: str, network: NetworkId, permission: Permission) -> bool:
        """Flip the ``read`` or ``write`` flag of a member relay.

        Returns:
            False if the relay is not a member.
        """
        if permission not in ("read", "write"):
            raise ValueError(f"unknown permission: {permission!r}")
        normalized = normalize_relay_url(url)
        entries = self.entries(network)
        if not any(e.url == normalized for e in entries):
            return False
        self._replace(
            network,
            tuple(
                replace(e, **{permission: not getattr(e, permission)}) if e.url == normalized else e
                for e in entries
            ),
        )
        return True

    def update_status(self, url: str, network: NetworkId, status: RelayStatus) -> bool:
        """Record a connection status change. Status is not persisted.

        Returns:
            False if the relay is not a member or the status is unchanged.
        """
        normalized = normalize_relay_url(url)
        entries = self.entries(network)
        target = next((e for e in entries if e.url == normalized), None)
        if target is None or target.status == status:
            return False
        self._replace(
            network,
            tuple(e.with_status(status) if e.url == normalized else e for e in entries),
            persist=False,
        )
        self._logger.debug(
            "relay_status", network=network.value, url=normalized, status=status.value
        )
        return True

    def reset_to_defaults(self) -> None:
        self._commit(default_relay_config())
        self._logger.info("relay_config_reset")
