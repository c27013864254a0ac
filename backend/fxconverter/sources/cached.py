"""
Caching decorator over any RateSource.
"""

import time
from datetime import date
from typing import Any, Awaitable, Callable, Dict, Optional, TypeVar

from pydantic import ValidationError

from fxconverter.core.exceptions import StorageFailureError
from fxconverter.core.logging import get_logger
from fxconverter.repositories.cache_repository import CacheEntry, CacheRepository
from fxconverter.schemas.currency import RateSourceKind, SymbolInfo, TimeSeries
from fxconverter.sources.base import RateSource, Sourced

logger = get_logger(__name__)

T = TypeVar("T")


def symbols_key() -> str:
    return "symbols"


def rate_key(from_currency: str, to_currency: str) -> str:
    return f"rate:{from_currency}:{to_currency}"


def time_series_key(from_currency: str, to_currency: str, days: int, end_date: date) -> str:
    return f"timeseries:{from_currency}:{to_currency}:{days}:{end_date.isoformat()}"


def _encode_symbols(symbols: Dict[str, SymbolInfo]) -> Dict[str, Any]:
    return {code: info.model_dump() for code, info in symbols.items()}


def _decode_symbols(data: Dict[str, Any]) -> Dict[str, SymbolInfo]:
    return {code: SymbolInfo.model_validate(info) for code, info in data.items()}


def _encode_series(series: TimeSeries) -> Dict[str, Any]:
    return series.model_dump(by_alias=True)


class CachedSource(RateSource):
    """
    Serves fresh cache entries without calling *inner*.

    On a miss or a stale entry the inner source is called and a success
    overwrites the entry. Inner failures propagate unchanged: a stale entry
    is never served in place of a failed refresh.

    Cache storage errors count as a miss on read and are logged on write.
    Series keys carry the end date of the window, so a series cached
    yesterday is never served once the date changes.

    Two concurrent misses on one key both reach the inner source; the last
    write wins.
    """

    name = "cache"

    def __init__(
        self,
        inner: RateSource,
        repository: CacheRepository,
        symbols_ttl: float = 3600,
        rate_ttl: float = 300,
        time_series_ttl: float = 300,
        clock: Callable[[], float] = time.time,
        today: Callable[[], date] = date.today,
    ):
        self.inner = inner
        self.repository = repository
        self.symbols_ttl = symbols_ttl
        self.rate_ttl = rate_ttl
        self.time_series_ttl = time_series_ttl
        self.clock = clock
        self.today = today

    async def _lookup(self, key: str, ttl: float, decode: Callable[[Any], T]) -> Optional[T]:
        try:
            entry = await self.repository.get(key)
        except StorageFailureError as e:
            logger.warning(f"Cache read failed for {key}, treating as miss: {e.message}")
            return None
        if entry is None or entry.is_stale(self.clock(), ttl):
            return None
        try:
            return decode(entry.data)
        except (TypeError, ValueError, AttributeError, ValidationError) as e:
            logger.warning(f"Undecodable cache entry for {key}, treating as miss: {e}")
            return None

    async def _store(self, key: str, data: Any) -> None:
        try:
            await self.repository.set(key, CacheEntry(data=data, stored_at=self.clock()))
        except StorageFailureError as e:
            logger.warning(f"Cache write failed for {key}: {e.message}")

    async def _resolve(
        self,
        key: str,
        ttl: float,
        fetch: Callable[[], Awaitable[Sourced[T]]],
        encode: Callable[[T], Any],
        decode: Callable[[Any], T],
    ) -> Sourced[T]:
        cached = await self._lookup(key, ttl, decode)
        if cached is not None:
            logger.debug(f"Cache hit for {key}")
            return Sourced(cached, RateSourceKind.CACHE)

        result = await fetch()
        await self._store(key, encode(result.value))
        return result

    async def fetch_symbols(self) -> Sourced[Dict[str, SymbolInfo]]:
        return await self._resolve(
            symbols_key(),
            self.symbols_ttl,
            self.inner.fetch_symbols,
            _encode_symbols,
            _decode_symbols,
        )

    async def fetch_rate(self, from_currency: str, to_currency: str) -> Sourced[float]:
        return await self._resolve(
            rate_key(from_currency, to_currency),
            self.rate_ttl,
            lambda: self.inner.fetch_rate(from_currency, to_currency),
            float,
            float,
        )

    async def fetch_time_series(
        self,
        from_currency: str,
        to_currency: str,
        days: int,
    ) -> Sourced[TimeSeries]:
        return await self._resolve(
            time_series_key(from_currency, to_currency, days, self.today()),
            self.time_series_ttl,
            lambda: self.inner.fetch_time_series(from_currency, to_currency, days),
            _encode_series,
            TimeSeries.model_validate,
        )

    async def clear(self) -> None:
        """Drop every cached entry."""
        await self.repository.clear()

    async def entry_count(self) -> int:
        return await self.repository.count()
