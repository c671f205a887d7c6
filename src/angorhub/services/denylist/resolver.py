"""
Moderation list resolution through an ordered chain of transports.

The chain is a fixed sequence of
[Transport][angorhub.services.denylist.resolver.Transport] values, tried
strictly one after another::

    PROXY -> DIRECT -> CORS_PROXY(0) -> CORS_PROXY(1) -> ... -> FALLBACK

A transport succeeds only when it answers 2xx with a JSON array of strings.
Any other outcome is logged and the next transport is tried; ``FALLBACK``
always succeeds with the compiled-in list.

Filtering is fail-open: while the first resolution is pending,
``is_denied`` answers False and ``filter`` returns its input unchanged.
Once resolved, the list is served for ``cache_ttl`` seconds; after that it
is still served while a background refresh replaces it.
"""

from __future__ import annotations

import asyncio
import time
from dataclasses import dataclass
from enum import StrEnum
from typing import TYPE_CHECKING, Any
from urllib.parse import quote

import aiohttp

from angorhub.core.logger import Logger
from angorhub.models.project import Project, project_identifier
from angorhub.utils.http import fetch_json

from .configs import DenyListConfig


if TYPE_CHECKING:
    from collections.abc import Callable, Iterable


class TransportKind(StrEnum):
    PROXY = "proxy"
    DIRECT = "direct"
    CORS_PROXY = "cors_proxy"
    FALLBACK = "fallback"


@dataclass(frozen=True, slots=True)
class Transport:
    """One step of the chain. ``url`` is empty for ``FALLBACK``."""

    kind: TransportKind
    url: str = ""
    index: int | None = None

    @property
    def label(self) -> str:
        if self.kind == TransportKind.CORS_PROXY:
            return f"{self.kind.value}[{self.index}]"
        return self.kind.value


@dataclass(frozen=True, slots=True)
class DenyList:
    """A resolved list and the transport that produced it."""

    ids: tuple[str, ...]
    source: Transport
    resolved_at: float

    def __contains__(self, identifier: object) -> bool:
        return identifier in self.ids


def build_chain(config: DenyListConfig) -> list[Transport]:
    chain: list[Transport] = []
    if config.proxy_url:
        chain.append(Transport(TransportKind.PROXY, config.proxy_url))
    chain.append(Transport(TransportKind.DIRECT, config.url))
    encoded = quote(config.url, safe="")
    chain.extend(
        Transport(TransportKind.CORS_PROXY, f"{proxy}{encoded}", index=i)
        for i, proxy in enumerate(config.cors_proxies)
    )
    chain.append(Transport(TransportKind.FALLBACK))
    return chain


def _as_id_list(data: Any) -> tuple[str, ...] | None:
    if not isinstance(data, list) or not all(isinstance(item, str) for item in data):
        return None
    return tuple(data)


class DenyListResolver:
    """Resolves, caches and applies the moderation list.

    Args:
        session: Shared aiohttp session.
        config: Transport chain and cache settings.
        clock: Wall-clock source for cache ageing.
    """

    def __init__(
        self,
        session: aiohttp.ClientSession,
        config: DenyListConfig | None = None,
        *,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._session = session
        self._config = config or DenyListConfig()
        self._clock = clock
        self._logger = Logger("denylist")
        self._chain = build_chain(self._config)
        self._current: DenyList | None = None
        self._ids: frozenset[str] = frozenset()
        self._inflight: asyncio.Task[DenyList] | None = None

    @property
    def chain(self) -> list[Transport]:
        return list(self._chain)

    @property
    def is_loading(self) -> bool:
        """True until the first resolution completes."""
        return self._current is None

    @property
    def current(self) -> DenyList | None:
        return self._current

    def is_stale(self) -> bool:
        return (
            self._current is None
            or self._clock() - self._current.resolved_at >= self._config.cache_ttl
        )

    # -- Resolution -----------------------------------------------------------

    async def _attempt(self, transport: Transport) -> tuple[str, ...] | None:
        if transport.kind == TransportKind.FALLBACK:
            return tuple(self._config.fallback)
        try:
            data = await fetch_json(
                self._session,
                transport.url,
                timeout=self._config.request_timeout,
            )
        except aiohttp.ClientResponseError as e:
            self._logger.warning(
                "denylist_transport_failed", transport=transport.label, status=e.status
            )
            return None
        except (aiohttp.ClientError, TimeoutError, OSError, ValueError) as e:
            self._logger.warning(
                "denylist_transport_failed",
                transport=transport.label,
                error=str(e) or type(e).__name__,
            )
            return None

        ids = _as_id_list(data)
        if ids is None:
            self._logger.warning(
                "denylist_transport_failed",
                transport=transport.label,
                error=f"expected a list of strings, got {type(data).__name__}",
            )
        return ids

    async def resolve(self) -> DenyList:
        """Walk the chain until a transport yields a list. Never raises."""
        for transport in self._chain:
            ids = await self._attempt(transport)
            if ids is not None:
                resolved = DenyList(ids=ids, source=transport, resolved_at=self._clock())
                self._logger.info("denylist_resolved", source=transport.label, count=len(ids))
                return resolved
        # Only reached for a chain built without FALLBACK
        return DenyList(
            ids=tuple(self._config.fallback),
            source=Transport(TransportKind.FALLBACK),
            resolved_at=self._clock(),
        )

    async def refresh(self) -> DenyList:
        """Resolve now and replace the cached list. Concurrent callers share one run."""
        if self._inflight is None or self._inflight.done():
            self._inflight = asyncio.get_running_loop().create_task(self._refresh())
        return await asyncio.shield(self._inflight)

    async def _refresh(self) -> DenyList:
        resolved = await self.resolve()
        self._current = resolved
        self._ids = frozenset(resolved.ids)
        return resolved

    async def load(self) -> DenyList:
        """Return the cached list, resolving it first when none exists.

        A stale list is returned immediately and a background refresh is
        started.
        """
        if self._current is None:
            return await self.refresh()
        if self.is_stale() and (self._inflight is None or self._inflight.done()):
            self._inflight = asyncio.get_running_loop().create_task(self._refresh())
        return self._current

    async def aclose(self) -> None:
        if self._inflight is not None and not self._inflight.done():
            self._inflight.cancel()
            await asyncio.gather(self._inflight, return_exceptions=True)
        self._inflight = None

    # -- Application ----------------------------------------------------------

    def is_denied(self, identifier: str) -> bool:
        """Exact membership. False while loading and for an empty identifier."""
        if not identifier or self._current is None:
            return False
        return identifier in self._ids

    def filter(self, projects: Iterable[Project]) -> list[Project]:
        """Drop denied projects. Returns the input unchanged while loading."""
        items = list(projects)
        if self._current is None:
            return items
        kept = [p for p in items if not self.is_denied(project_identifier(p))]
        if len(kept) != len(items):
            self._logger.debug("denylist_filtered", removed=len(items) - len(kept))
        return kept
