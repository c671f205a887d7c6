"""
Pytest configuration and shared fixtures for angorhub tests.

Provides:
- A controllable wall clock
- In-memory store, network selection, indexer registry and relay membership
- A scripted indexer probe that never touches the network
- Project record builders
"""

import asyncio
import logging
from collections.abc import Awaitable, Callable
from typing import Any

import pytest

from angorhub.core.storage import MemoryStore
from angorhub.models import IndexerHealthResult, NetworkId
from angorhub.services.indexers import IndexerConfig, IndexerHealthMonitor, IndexerRegistry
from angorhub.services.network import NetworkSelection
from angorhub.services.relays import RelayMembership


# ============================================================================
# Logging Configuration
# ============================================================================


@pytest.fixture(scope="session", autouse=True)
def setup_logging() -> None:
    """Configure logging for tests."""
    logging.basicConfig(level=logging.DEBUG)


# ============================================================================
# Helpers
# ============================================================================


class FakeClock:
    """Wall clock that only moves when told to."""

    def __init__(self, now: float = 1_700_000_000.0) -> None:
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class ScriptedProbe:
    """Probe answering from a url -> reachable map, with optional per-url delays.

    Unknown URLs are unreachable. Every probed URL is recorded in ``calls``.
    """

    def __init__(
        self,
        reachable: dict[str, bool] | None = None,
        delays: dict[str, float] | None = None,
        clock: Callable[[], float] | None = None,
    ) -> None:
        self.reachable = dict(reachable or {})
        self.delays = dict(delays or {})
        self.clock = clock or FakeClock()
        self.calls: list[str] = []

    async def __call__(self, url: str) -> IndexerHealthResult:
        self.calls.append(url)
        delay = self.delays.get(url, 0.0)
        if delay:
            await asyncio.sleep(delay)
        ok = self.reachable.get(url, False)
        return IndexerHealthResult(
            url=url,
            reachable=ok,
            latency_ms=12.5 if ok else None,
            checked_at=self.clock(),
            http_status=200 if ok else None,
            error=None if ok else "connection refused",
        )


def make_project(identifier: str, **fields: Any) -> dict[str, Any]:
    """Indexer project record with the given identifier."""
    return {"projectIdentifier": identifier, "nostrEventId": f"ev-{identifier}", **fields}


def make_projects(count: int, start: int = 0, prefix: str = "angor1p") -> list[dict[str, Any]]:
    return [make_project(f"{prefix}{i}") for i in range(start, start + count)]


# ============================================================================
# Fixtures
# ============================================================================


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def store() -> MemoryStore:
    return MemoryStore()


@pytest.fixture
def network(store: MemoryStore) -> NetworkSelection:
    return NetworkSelection(store)


@pytest.fixture
def registry(store: MemoryStore) -> IndexerRegistry:
    return IndexerRegistry(store)


@pytest.fixture
def membership(store: MemoryStore, network: NetworkSelection) -> RelayMembership:
    return RelayMembership(store, network.observable)


@pytest.fixture
def probe(clock: FakeClock) -> ScriptedProbe:
    return ScriptedProbe(clock=clock)


@pytest.fixture
def make_monitor(
    registry: IndexerRegistry, store: MemoryStore, clock: FakeClock
) -> Callable[..., IndexerHealthMonitor]:
    """Factory building a monitor over the shared registry and store."""

    def factory(
        probe: Callable[[str], Awaitable[IndexerHealthResult]], **config: Any
    ) -> IndexerHealthMonitor:
        return IndexerHealthMonitor(
            registry, store, config=IndexerConfig(**config), probe=probe, clock=clock
        )

    return factory


@pytest.fixture
def mainnet() -> NetworkId:
    return NetworkId.MAINNET
