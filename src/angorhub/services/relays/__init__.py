"""Relay package: membership, routing, reads and publishing.

Re-exports all public symbols::

    from angorhub.services.relays import RelayMembership, RelayPublisher
"""

from .configs import RelayConfig
from .membership import RelayMembership, RelaySets, default_relay_config
from .publisher import PublishAttempt, PublishResult, RelayPublisher
from .router import RelayPool, RelayPoolRouter, RelaySource, event_id


__all__ = [
    "PublishAttempt",
    "PublishResult",
    "RelayConfig",
    "RelayMembership",
    "RelayPool",
    "RelayPoolRouter",
    "RelayPublisher",
    "RelaySets",
    "RelaySource",
    "default_relay_config",
    "event_id",
]
