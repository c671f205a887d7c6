"""
Observed values for state that many components read.

Network selection, indexer configuration, relay membership and health
status are each held in an ``Observable``. Long-lived components keep a
reference to the observable (not to its value), so they always read the
latest value without being rebuilt, and the
[CacheCoordinator][angorhub.services.cache.CacheCoordinator] subscribes to
changes to drive invalidation.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from typing import Generic, TypeVar


T = TypeVar("T")

logger = logging.getLogger(__name__)


class Observable(Generic[T]):
    """A value plus synchronous change listeners.

    ``set`` notifies listeners only when the new value differs (``!=``)
    from the current one. Listeners run in subscription order; one failing
    listener is logged and does not prevent the others from running.
    """

    __slots__ = ("_listeners", "_value")

    def __init__(self, value: T) -> None:
        self._value = value
        self._listeners: list[Callable[[T], None]] = []

    @property
    def value(self) -> T:
        return self._value

    def set(self, value: T) -> bool:
        """Replace the value. Returns True if listeners were notified."""
        if value == self._value:
            return False
        self._value = value
        for listener in list(self._listeners):
            try:
                listener(value)
            except Exception:  # Intentionally broad: isolate observers from each other
                logger.exception("observer_failed listener=%r", listener)
        return True

    def subscribe(self, listener: Callable[[T], None]) -> Callable[[], None]:
        """Register ``listener``; returns a callable that removes it."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe
