"""
Relay membership entries with WebSocket URL validation.

Relay URLs are parsed and normalized with RFC 3986 so that the same relay
typed two different ways (``relay.example.com`` vs ``wss://relay.example.com/``)
maps to a single membership entry.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Any

from rfc3986 import uri_reference
from rfc3986.exceptions import UnpermittedComponentError, ValidationError
from rfc3986.validators import Validator

from .constants import RelayStatus


def normalize_relay_url(raw: str) -> str:
    """Parse and normalize a relay URL.

    A bare hostname gets the ``wss://`` scheme. The scheme must be ``ws`` or
    ``wss``, a host is required, and query strings and fragments are
    rejected. Duplicate and trailing slashes in the path are removed.

    Args:
        raw: URL as typed by the user or read from configuration.

    Returns:
        Normalized URL, e.g. ``wss://relay.example.com``.

    Raises:
        ValueError: If the URL is not a valid WebSocket URL.
    """
    candidate = raw.strip()
    if not candidate:
        raise ValueError("Relay URL must not be empty")
    if "\x00" in candidate:
        raise ValueError("Relay URL must not contain null bytes")
    if not candidate.startswith(("ws://", "wss://")) and "://" not in candidate:
        candidate = f"wss://{candidate}"

    uri = uri_reference(candidate).normalize()
    validator = (
        Validator()
        .require_presence_of("scheme", "host")
        .allow_schemes("ws", "wss")
        .check_validity_of("scheme", "host", "port", "path")
    )

    try:
        validator.validate(uri)
    except UnpermittedComponentError:
        raise ValueError("Invalid scheme: must be ws or wss") from None
    except ValidationError as e:
        raise ValueError(f"Invalid URL: {e}") from None

    if uri.query:
        raise ValueError(f"Relay URL must not contain a query string: ?{uri.query}")
    if uri.fragment:
        raise ValueError(f"Relay URL must not contain a fragment: #{uri.fragment}")

    path = uri.path or ""
    while "//" in path:
        path = path.replace("//", "/")
    path = path.rstrip("/")

    authority = uri.host if not uri.port else f"{uri.host}:{uri.port}"
    return f"{uri.scheme}://{authority}{path}"


@dataclass(frozen=True, slots=True)
class RelayEntry:
    """One relay of a network's membership list.

    Connection status is owned by whatever manages the relay sockets; the
    aggregation layer only reads it to derive URL sets.

    Attributes:
        url: Normalized WebSocket URL.
        read: Relay may be queried.
        write: Relay may receive published events.
        status: Last reported connection status.
        is_default: Entry came from the compiled-in protocol relay pool.
    """

    url: str
    read: bool = True
    write: bool = True
    status: RelayStatus = RelayStatus.DISCONNECTED
    is_default: bool = False

    @property
    def is_connected(self) -> bool:
        return self.status == RelayStatus.CONNECTED

    def with_status(self, status: RelayStatus) -> RelayEntry:
        return replace(self, status=status)

    def to_dict(self) -> dict[str, Any]:
        # Status is transient and never persisted
        return {
            "url": self.url,
            "read": self.read,
            "write": self.write,
            "isDefault": self.is_default,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> RelayEntry:
        """Parse a persisted entry.

        Raises:
            ValueError: If the URL is missing or invalid.
        """
        url = data.get("url")
        if not isinstance(url, str):
            raise ValueError(f"invalid relay url: {url!r}")
        return cls(
            url=normalize_relay_url(url),
            read=bool(data.get("read", True)),
            write=bool(data.get("write", True)),
            is_default=bool(data.get("isDefault", False)),
        )
