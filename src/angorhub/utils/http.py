"""HTTP utilities for angorhub.

Bounded JSON reading, endpoint liveness probing and JSON fetching on top of
a caller-owned ``aiohttp.ClientSession``.

Note:
    This module sits in the ``utils`` layer and depends only on
    ``angorhub.models``, the stdlib and ``aiohttp``. Errors are reported
    with ``aiohttp`` / builtin exception types; the services layer maps
    them onto the angorhub exception hierarchy.

See Also:
    [IndexerHealthMonitor][angorhub.services.indexers.IndexerHealthMonitor]:
        Runs [probe_endpoint][angorhub.utils.http.probe_endpoint] across an
        indexer set.
    [IndexerClient][angorhub.services.indexers.IndexerClient]: REST reads
        through [fetch_json][angorhub.utils.http.fetch_json].
"""

from __future__ import annotations

import asyncio
import json
import logging
import time
from collections.abc import Callable
from typing import Any

import aiohttp

from angorhub.models.indexer import IndexerHealthResult


logger = logging.getLogger(__name__)

DEFAULT_PROBE_TIMEOUT = 5.0
DEFAULT_MAX_RESPONSE_SIZE = 5 * 1024 * 1024


async def _read_bounded(response: aiohttp.ClientResponse, max_size: int) -> bytes:
    """Read an entire response body, refusing bodies larger than ``max_size``.

    Reads in a loop because a single ``content.read(n)`` may return fewer
    bytes than requested on chunked responses.

    Raises:
        ValueError: If the response body exceeds *max_size*.
    """
    chunks: list[bytes] = []
    total = 0
    while True:
        chunk = await response.content.read(max_size + 1 - total)
        if not chunk:
            break
        total += len(chunk)
        if total > max_size:
            raise ValueError(f"Response body too large: >{max_size} bytes")
        chunks.append(chunk)
    return b"".join(chunks)


async def read_bounded_json(response: aiohttp.ClientResponse, max_size: int) -> Any:
    """Read and parse a JSON response body with size enforcement.

    Raises:
        ValueError: If the body exceeds *max_size*.
        json.JSONDecodeError: If the body is not valid JSON.
    """
    body = await _read_bounded(response, max_size)
    return json.loads(body)


async def probe_endpoint(
    session: aiohttp.ClientSession,
    url: str,
    *,
    timeout: float = DEFAULT_PROBE_TIMEOUT,  # noqa: ASYNC109
    clock: Callable[[], float] = time.time,
) -> IndexerHealthResult:
    """Check whether ``url`` is served, within a hard deadline.

    Issues a ``HEAD`` request and classifies the endpoint as reachable when
    the status is below 500: a 404 means the server is alive and only the
    path is absent. The body is never read.

    The deadline is enforced with ``asyncio.timeout`` around the whole
    request, independently of any timeout configured on ``session``.

    Args:
        session: Shared aiohttp session.
        url: Endpoint to probe.
        timeout: Hard deadline in seconds.
        clock: Wall-clock source for ``checked_at``.

    Returns:
        An [IndexerHealthResult][angorhub.models.indexer.IndexerHealthResult].
        Every failure (timeout, DNS, refused connection, TLS) yields
        ``reachable=False``; nothing but cancellation propagates.
    """
    started = time.monotonic()
    try:
        async with asyncio.timeout(timeout), session.head(url, allow_redirects=True) as response:
            status = response.status
    except TimeoutError:
        logger.debug("probe_timeout url=%s timeout_s=%s", url, timeout)
        return IndexerHealthResult(
            url=url, reachable=False, checked_at=clock(), error=f"timeout after {timeout}s"
        )
    except Exception as e:  # Intentionally broad: probe failures are results, not errors
        logger.debug("probe_failed url=%s error=%s", url, e)
        return IndexerHealthResult(
            url=url, reachable=False, checked_at=clock(), error=str(e) or type(e).__name__
        )

    latency_ms = round((time.monotonic() - started) * 1000, 1)
    reachable = status < 500
    logger.debug("probe_done url=%s status=%s latency_ms=%s", url, status, latency_ms)
    return IndexerHealthResult(
        url=url,
        reachable=reachable,
        latency_ms=latency_ms,
        checked_at=clock(),
        http_status=status,
        error=None if reachable else f"HTTP {status}",
    )


async def fetch_json(
    session: aiohttp.ClientSession,
    url: str,
    *,
    params: dict[str, Any] | None = None,
    timeout: float = 30.0,  # noqa: ASYNC109
    max_size: int = DEFAULT_MAX_RESPONSE_SIZE,
) -> Any:
    """GET ``url`` and return its parsed JSON body.

    Raises:
        aiohttp.ClientResponseError: On a non-2xx status (``.status`` is set).
        aiohttp.ClientError: On connection-level failures.
        TimeoutError: If the request exceeds *timeout*.
        ValueError: If the body is too large or not valid JSON.
    """
    client_timeout = aiohttp.ClientTimeout(total=timeout)
    async with session.get(url, params=params, timeout=client_timeout) as response:
        response.raise_for_status()
        return await read_bounded_json(response, max_size)
