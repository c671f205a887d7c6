"""
Bitcoin spot price from mempool.space.

``GET https://mempool.space/api/v1/prices`` answers one object mapping
currency codes to prices, plus a ``time`` field::

    {"time": 1760000000, "USD": 67000, "EUR": 62000, ...}

A failed request is retried with backoff (``initial_delay * 2^attempt``,
capped at ``max_delay``); the last failure is raised as
[ConnectivityError][angorhub.core.exceptions.ConnectivityError].
"""

from __future__ import annotations

import asyncio
import time
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

import aiohttp
from pydantic import BaseModel, Field, ValidationInfo, field_validator

from angorhub.core.exceptions import ConnectivityError, ProtocolError
from angorhub.core.logger import Logger
from angorhub.models.constants import PRICE_URL
from angorhub.utils.http import fetch_json


if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable

    from angorhub.core.cache import QueryCache


PRICE_CACHE_KEY = "bitcoin-price"


class PriceConfig(BaseModel):
    """Price endpoint, timeout and retry strategy."""

    url: str = Field(default=PRICE_URL, description="Price endpoint")
    timeout: float = Field(default=10.0, gt=0.0, le=120.0, description="Timeout per attempt")
    max_retries: int = Field(default=3, ge=0, le=10, description="Retries after the first attempt")
    initial_delay: float = Field(default=1.0, ge=0.0, description="Delay before the first retry")
    max_delay: float = Field(default=30.0, ge=0.0, description="Maximum retry delay")
    stale_time: float = Field(default=30.0, ge=0.0, description="Seconds a price stays fresh")

    @field_validator("max_delay")
    @classmethod
    def validate_max_delay(cls, v: float, info: ValidationInfo) -> float:
        initial_delay = info.data.get("initial_delay", 1.0)
        if v < initial_delay:
            raise ValueError(f"max_delay ({v}) must be >= initial_delay ({initial_delay})")
        return v


@dataclass(frozen=True, slots=True)
class BitcoinPrice:
    """Prices keyed by upper-case currency code."""

    prices: dict[str, float] = field(default_factory=dict)
    fetched_at: float = 0.0

    def __getitem__(self, currency: str) -> float:
        return self.prices[currency.upper()]

    def get(self, currency: str) -> float | None:
        return self.prices.get(currency.upper())

    @classmethod
    def from_response(cls, data: Any, fetched_at: float) -> BitcoinPrice:
        """Parse the price object, ignoring non-numeric fields.

        Raises:
            ProtocolError: If ``data`` is not an object with at least one price.
        """
        if not isinstance(data, dict):
            raise ProtocolError(f"expected a JSON object, got {type(data).__name__}")
        prices = {
            str(k).upper(): float(v)
            for k, v in data.items()
            if k != "time" and isinstance(v, int | float) and not isinstance(v, bool)
        }
        if not prices:
            raise ProtocolError("price response contains no prices")
        return cls(prices=prices, fetched_at=fetched_at)


class PriceFetcher:
    """Fetches the Bitcoin price with retry, optionally through the query cache."""

    def __init__(
        self,
        session: aiohttp.ClientSession,
        config: PriceConfig | None = None,
        *,
        cache: QueryCache | None = None,
        clock: Callable[[], float] = time.time,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        self._session = session
        self._config = config or PriceConfig()
        self._cache = cache
        self._clock = clock
        self._sleep = sleep
        self._logger = Logger("price")

    def _retry_delay(self, attempt: int) -> float:
        return float(min(self._config.initial_delay * (2**attempt), self._config.max_delay))

    async def _fetch_once(self) -> BitcoinPrice:
        data = await fetch_json(self._session, self._config.url, timeout=self._config.timeout)
        return BitcoinPrice.from_response(data, self._clock())

    async def _fetch_with_retry(self) -> BitcoinPrice:
        attempts = self._config.max_retries + 1
        for attempt in range(attempts):
            try:
                price = await self._fetch_once()
            except (aiohttp.ClientError, TimeoutError, OSError, ValueError, ProtocolError) as e:
                if attempt + 1 >= attempts:
                    self._logger.error("price_fetch_failed", attempts=attempt + 1, error=str(e))
                    raise ConnectivityError(
                        f"Failed to fetch Bitcoin price after {attempt + 1} attempts: {e}"
                    ) from e
                delay = self._retry_delay(attempt)
                self._logger.warning(
                    "price_fetch_retry", attempt=attempt + 1, delay=delay, error=str(e)
                )
                await self._sleep(delay)
            else:
                self._logger.debug("price_fetched", currencies=len(price.prices))
                return price
        raise ConnectivityError("Failed to fetch Bitcoin price")

    async def fetch(self) -> BitcoinPrice:
        """Return the current price.

        Raises:
            ConnectivityError: If every attempt failed.
        """
        if self._cache is None:
            return await self._fetch_with_retry()
        return await self._cache.fetch(
            PRICE_CACHE_KEY, self._fetch_with_retry, stale_time=self._config.stale_time
        )
