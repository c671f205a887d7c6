"""Shared constants for the models layer.

Defines enumerations and compiled-in defaults that are used across multiple
model and service modules. Placing them here avoids circular dependencies
between the models and services layers.

See Also:
    [IndexerRegistry][angorhub.services.indexers.IndexerRegistry]: Seeds
        its entries from [DEFAULT_INDEXERS][angorhub.models.constants.DEFAULT_INDEXERS].
    [RelayMembership][angorhub.services.relays.RelayMembership]: Seeds its
        entries from [PROTOCOL_RELAYS][angorhub.models.constants.PROTOCOL_RELAYS].
    [DenyListResolver][angorhub.services.denylist.DenyListResolver]: Uses
        the deny-list URLs and the hardcoded fallback list.
"""

from __future__ import annotations

from enum import StrEnum


class NetworkId(StrEnum):
    """Bitcoin network the hub is bound to.

    Each network selects an entirely disjoint set of indexer URLs and relay
    memberships. Switching networks is an explicit user action that resets
    every piece of state keyed by the previous network.

    Attributes:
        MAINNET: Bitcoin mainnet.
        TESTNET: Bitcoin test network (signet indexers).
    """

    MAINNET = "mainnet"
    TESTNET = "testnet"


class RelayStatus(StrEnum):
    """Connection status of a relay as reported by the connection owner.

    Attributes:
        CONNECTED: Socket open and usable.
        CONNECTING: Handshake in progress.
        DISCONNECTED: Not connected (initial state).
        ERROR: Last connection attempt failed.
    """

    CONNECTED = "connected"
    CONNECTING = "connecting"
    DISCONNECTED = "disconnected"
    ERROR = "error"


class OverallHealth(StrEnum):
    """Aggregate health of an indexer set.

    Attributes:
        HEALTHY: Every tested indexer is reachable.
        DEGRADED: At least one, but not all, indexers are reachable.
        CRITICAL: No indexer is reachable.
    """

    HEALTHY = "healthy"
    DEGRADED = "degraded"
    CRITICAL = "critical"


class ServiceName(StrEnum):
    """Identifiers of long-running services, used in logging and metrics.

    Attributes:
        REFRESHER: Periodic indexer health refresh
            ([HealthRefresher][angorhub.services.refresher.HealthRefresher]).
    """

    REFRESHER = "refresher"


# ---------------------------------------------------------------------------
# Indexers
# ---------------------------------------------------------------------------

# (url, is_primary) pairs per network, in display order
DEFAULT_INDEXERS: dict[NetworkId, tuple[tuple[str, bool], ...]] = {
    NetworkId.MAINNET: (
        ("https://explorer.angor.io/", True),
        ("https://fulcrum.angor.online/", False),
        ("https://electrs.angor.online/", False),
    ),
    NetworkId.TESTNET: (
        ("https://tbtc.indexer.angor.io/", False),
        ("https://signet.angor.online/", True),
    ),
}

# Last-resort indexer when a network's configured set is empty
FALLBACK_INDEXER_URLS: dict[NetworkId, str] = {
    NetworkId.MAINNET: "https://explorer.angor.io/",
    NetworkId.TESTNET: "https://tbtc.indexer.angor.io/",
}

PROJECTS_PATH = "api/query/Angor/projects"


# ---------------------------------------------------------------------------
# Relays
# ---------------------------------------------------------------------------

PROTOCOL_RELAYS: dict[NetworkId, tuple[str, ...]] = {
    NetworkId.MAINNET: (
        "wss://relay.damus.io",
        "wss://relay.primal.net",
        "wss://nos.lol",
        "wss://relay.angor.io",
        "wss://relay2.angor.io",
    ),
    NetworkId.TESTNET: (
        "wss://relay.damus.io",
        "wss://relay.primal.net",
        "wss://nos.lol",
        "wss://relay.angor.io",
        "wss://relay2.angor.io",
    ),
}

DEFAULT_RELAY_URL = "wss://relay.angor.io"


# ---------------------------------------------------------------------------
# Deny list
# ---------------------------------------------------------------------------

DENY_LIST_URL = "https://lists.blockcore.net/deny/angor.json"

CORS_PROXIES: tuple[str, ...] = (
    "https://corsproxy.io/?",
    "https://cors-anywhere.herokuapp.com/",
    "https://api.allorigins.win/raw?url=",
)

FALLBACK_DENY_LIST: tuple[str, ...] = (
    "angor1qfs3835r3r8leha9ksnrf8jadvtyzwuzu7huqk9",
    "angor1q748m7hqu5d7h58zyxvl6gvz4hhaptg5kez6r7f",
    "angor1q2a5m2zcwpmkh49z05pg6gd9cxm4dhx3ywfclem",
)


# ---------------------------------------------------------------------------
# Persistence namespaces
# ---------------------------------------------------------------------------

INDEXER_CONFIG_KEY = "angor:indexer-config"
RELAY_CONFIG_KEY = "angor:relay-config"
NETWORK_KEY = "angor:network"
HEALTH_KEY_PREFIX = "indexer-health-"

CACHE_PREFIX = "remote-data-"


# ---------------------------------------------------------------------------
# Price
# ---------------------------------------------------------------------------

PRICE_URL = "https://mempool.space/api/v1/prices"
