"""angorhub exception hierarchy.

Typed exceptions for the failure categories the aggregation layer
distinguishes. Expected unreachability (a probe or relay that is down) is
never an exception: it is recorded as data in per-target results. These
classes cover what actually propagates to a caller.

Exception hierarchy:

```text
AngorHubError (base -- never raised directly)
├── ConfigurationError      -- malformed persisted JSON, bad YAML, bad URL
├── StorageError            -- key/value store read/write failure
├── ConnectivityError       -- network-level failure
│   ├── IndexerError        -- non-2xx or malformed indexer response
│   └── RelayTimeoutError   -- relay attempt exceeded its deadline
├── ProtocolError           -- payload has the wrong shape
└── PublishingError         -- no relay accepted an event
```
"""

from __future__ import annotations

from typing import TYPE_CHECKING


if TYPE_CHECKING:
    from collections.abc import Sequence


class AngorHubError(Exception):
    """Base exception for all angorhub errors. Never raised directly."""


# ---------------------------------------------------------------------------
# Configuration
# ---------------------------------------------------------------------------


class ConfigurationError(AngorHubError):
    """Invalid or missing configuration (persisted JSON, YAML, user input)."""


# ---------------------------------------------------------------------------
# Storage
# ---------------------------------------------------------------------------


class StorageError(AngorHubError):
    """The key/value store could not be read or written.

    Infrastructure-level failure: unlike probe failures, this surfaces to
    the caller of health runs and configuration mutations.
    """


# ---------------------------------------------------------------------------
# Connectivity
# ---------------------------------------------------------------------------


class ConnectivityError(AngorHubError):
    """Base for network-level failures (timeouts, DNS, refused connections)."""


class IndexerError(ConnectivityError):
    """An indexer answered with a non-2xx status or an unusable body.

    Attributes:
        url: Requested URL.
        status: HTTP status, ``None`` when no response was received.
    """

    def __init__(self, message: str, *, url: str, status: int | None = None) -> None:
        super().__init__(message)
        self.url = url
        self.status = status


class RelayTimeoutError(ConnectivityError):
    """A relay operation did not complete before its deadline."""


# ---------------------------------------------------------------------------
# Protocol
# ---------------------------------------------------------------------------


class ProtocolError(AngorHubError):
    """A response parsed but does not have the expected shape."""


# ---------------------------------------------------------------------------
# Publishing
# ---------------------------------------------------------------------------


class PublishingError(AngorHubError):
    """No relay accepted a published event.

    Attributes:
        targets: Every relay URL that was attempted.
    """

    def __init__(self, targets: Sequence[str]) -> None:
        self.targets = tuple(targets)
        super().__init__(f"Failed to publish to any relay. Tried {len(self.targets)} relays.")
