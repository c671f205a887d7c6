"""Deny-list package.

Re-exports all public symbols::

    from angorhub.services.denylist import DenyListResolver, DenyListConfig
"""

from .configs import DenyListConfig
from .resolver import DenyList, DenyListResolver, Transport, TransportKind, build_chain


__all__ = [
    "DenyList",
    "DenyListConfig",
    "DenyListResolver",
    "Transport",
    "TransportKind",
    "build_chain",
]
