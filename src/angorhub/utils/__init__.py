"""Utility layer: HTTP and Nostr relay helpers.

Depends only on ``angorhub.models``. Importable from ``angorhub.services``
without violating the diamond DAG.

Attributes:
    probe_endpoint: Bounded-time liveness check for one URL.
    fetch_json: GET and parse a bounded JSON body.
    read_bounded_json: Parse a JSON response body with a size limit.
    RelayTransport: Interface for one-relay publish and fetch.
    NostrRelayTransport: ``nostr_sdk`` implementation of ``RelayTransport``.
"""

from .http import (
    DEFAULT_MAX_RESPONSE_SIZE,
    DEFAULT_PROBE_TIMEOUT,
    fetch_json,
    probe_endpoint,
    read_bounded_json,
)
from .protocol import (
    NostrRelayTransport,
    RelayTransport,
    create_client,
    fetch_events,
    publish_event,
)


__all__ = [
    "DEFAULT_MAX_RESPONSE_SIZE",
    "DEFAULT_PROBE_TIMEOUT",
    "NostrRelayTransport",
    "RelayTransport",
    "create_client",
    "fetch_events",
    "fetch_json",
    "probe_endpoint",
    "publish_event",
    "read_bounded_json",
]
