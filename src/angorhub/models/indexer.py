"""
Indexer configuration entries and health-check results.

All models are immutable. Mutation operations on indexer sets build new
tuples of [IndexerEntry][angorhub.models.indexer.IndexerEntry] and health
runs build new [IndexerHealthStatus][angorhub.models.indexer.IndexerHealthStatus]
instances, so readers never observe a half-updated value.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import Any

from .constants import NetworkId, OverallHealth


def normalize_indexer_url(url: str) -> str:
    """Strip whitespace and guarantee a trailing slash.

    Indexer paths are appended directly to the base URL
    (``{base}api/query/...``), so every stored URL ends with ``/``.
    """
    normalized = url.strip()
    if not normalized.endswith("/"):
        normalized += "/"
    return normalized


@dataclass(frozen=True, slots=True)
class IndexerEntry:
    """One configured indexer for a network.

    Attributes:
        url: Base URL ending with ``/``.
        is_primary: Whether this is the preferred indexer of its network.
    """

    url: str
    is_primary: bool = False

    def to_dict(self) -> dict[str, Any]:
        return {"url": self.url, "isPrimary": self.is_primary}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> IndexerEntry:
        """Parse a persisted entry.

        Raises:
            ValueError: If ``url`` is missing or not a non-empty string.
        """
        url = data.get("url")
        if not isinstance(url, str) or not url:
            raise ValueError(f"invalid indexer url: {url!r}")
        return cls(url=url, is_primary=bool(data.get("isPrimary", False)))


@dataclass(frozen=True, slots=True)
class IndexerHealthResult:
    """Outcome of a single liveness probe.

    An unreachable endpoint is data, not an error: ``reachable`` is False and
    ``error`` carries a short description of what went wrong.

    Attributes:
        url: Probed URL.
        reachable: True when the server answered with a status below 500.
        latency_ms: Round-trip time in milliseconds, ``None`` when no
            response was received.
        checked_at: Unix timestamp (seconds) of the probe.
        http_status: HTTP status code, ``None`` on network-level failure.
        error: Failure description for unreachable endpoints.
    """

    url: str
    reachable: bool
    latency_ms: float | None = None
    checked_at: float = 0.0
    http_status: int | None = None
    error: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "url": self.url,
            "reachable": self.reachable,
            "latencyMs": self.latency_ms,
            "checkedAt": self.checked_at,
            "httpStatus": self.http_status,
            "error": self.error,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> IndexerHealthResult:
        return cls(
            url=str(data["url"]),
            reachable=bool(data["reachable"]),
            latency_ms=data.get("latencyMs"),
            checked_at=float(data.get("checkedAt", 0.0)),
            http_status=data.get("httpStatus"),
            error=data.get("error"),
        )


@dataclass(frozen=True, slots=True)
class IndexerHealthStatus:
    """Health of every tested indexer of one network.

    Overwritten wholesale by a full test run; a single-endpoint retest
    produces a copy with that URL's result replaced or appended (see
    [with_result()][angorhub.models.indexer.IndexerHealthStatus.with_result]).

    Attributes:
        network_id: Network the results belong to.
        results: Probe results in input URL order.
        last_updated: Unix timestamp (seconds) of the last change.
    """

    network_id: NetworkId
    results: tuple[IndexerHealthResult, ...] = field(default_factory=tuple)
    last_updated: float = 0.0

    @property
    def reachable_count(self) -> int:
        return sum(1 for r in self.results if r.reachable)

    @property
    def overall_health(self) -> OverallHealth:
        """``healthy`` if all reachable, ``degraded`` if some, ``critical`` if none."""
        online = self.reachable_count
        if self.results and online == len(self.results):
            return OverallHealth.HEALTHY
        if online > 0:
            return OverallHealth.DEGRADED
        return OverallHealth.CRITICAL

    def result_for(self, url: str) -> IndexerHealthResult | None:
        for result in self.results:
            if result.url == url:
                return result
        return None

    def with_result(self, result: IndexerHealthResult, now: float) -> IndexerHealthStatus:
        """Return a copy with ``result`` replacing the entry for its URL, or appended."""
        results = list(self.results)
        for i, existing in enumerate(results):
            if existing.url == result.url:
                results[i] = result
                break
        else:
            results.append(result)
        return replace(self, results=tuple(results), last_updated=now)

    def is_stale(self, now: float, max_age: float) -> bool:
        return now - self.last_updated > max_age

    def to_dict(self) -> dict[str, Any]:
        return {
            "networkId": self.network_id.value,
            "results": [r.to_dict() for r in self.results],
            "lastUpdated": self.last_updated,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> IndexerHealthStatus:
        """Parse a persisted status.

        Raises:
            KeyError: If a required field is missing.
            ValueError: If the network id or a field value is invalid.
            TypeError: If ``results`` is not a list of objects.
        """
        return cls(
            network_id=NetworkId(data["networkId"]),
            results=tuple(IndexerHealthResult.from_dict(r) for r in data["results"]),
            last_updated=float(data["lastUpdated"]),
        )
