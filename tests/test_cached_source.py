"""
Cache decorator tests: TTL expiry, strict staleness, storage failures.
"""

from datetime import date, timedelta

import pytest

from fxconverter.core.exceptions import StorageFailureError, UpstreamUnavailableError
from fxconverter.repositories.cache_repository import (
    CacheEntry,
    FileCacheRepository,
    InMemoryCacheRepository,
)
from fxconverter.schemas.currency import RateSourceKind
from fxconverter.sources.cached import CachedSource, rate_key, time_series_key


class FailingCacheRepository(InMemoryCacheRepository):
    """Cache store whose reads and writes always fail."""

    async def get(self, key):
        raise StorageFailureError("disk gone")

    async def set(self, key, entry):
        raise StorageFailureError("disk gone")


@pytest.fixture
def cached(upstream, clock):
    return CachedSource(
        upstream,
        InMemoryCacheRepository(),
        symbols_ttl=3600,
        rate_ttl=300,
        time_series_ttl=300,
        clock=clock,
    )


def test_cache_keys_are_derived_from_operation_and_parameters():
    assert rate_key("USD", "EUR") == "rate:USD:EUR"
    assert time_series_key("USD", "EUR", 30, date(2024, 6, 15)) == "timeseries:USD:EUR:30:2024-06-15"


@pytest.mark.asyncio
async def test_second_call_within_ttl_is_served_from_cache(cached, upstream):
    first = await cached.fetch_rate("USD", "EUR")
    second = await cached.fetch_rate("USD", "EUR")

    assert first.source == RateSourceKind.LIVE
    assert second.source == RateSourceKind.CACHE
    assert second.value == first.value
    assert upstream.calls["rate"] == 1


@pytest.mark.asyncio
async def test_expired_entry_triggers_inner_call(cached, upstream, clock):
    await cached.fetch_rate("USD", "EUR")
    clock.advance(299)
    await cached.fetch_rate("USD", "EUR")
    assert upstream.calls["rate"] == 1

    clock.advance(1)
    refreshed = await cached.fetch_rate("USD", "EUR")
    assert upstream.calls["rate"] == 2
    assert refreshed.source == RateSourceKind.LIVE


@pytest.mark.asyncio
async def test_ttl_differs_per_operation(cached, upstream, clock):
    await cached.fetch_symbols()
    await cached.fetch_rate("USD", "GBP")
    clock.advance(600)

    await cached.fetch_symbols()
    await cached.fetch_rate("USD", "GBP")
    assert upstream.calls["symbols"] == 1
    assert upstream.calls["rate"] == 2


@pytest.mark.asyncio
async def test_stale_entry_is_not_served_when_inner_fails(cached, upstream, clock):
    await cached.fetch_rate("USD", "EUR")
    clock.advance(301)
    upstream.fail = True

    with pytest.raises(UpstreamUnavailableError):
        await cached.fetch_rate("USD", "EUR")


@pytest.mark.asyncio
async def test_distinct_parameters_use_distinct_entries(cached, upstream):
    await cached.fetch_time_series("USD", "EUR", 7)
    await cached.fetch_time_series("USD", "EUR", 30)
    hit = await cached.fetch_time_series("USD", "EUR", 7)

    assert upstream.calls["timeseries"] == 2
    assert hit.cached
    assert len(hit.value.rates) == 8


@pytest.mark.asyncio
async def test_storage_failure_is_a_miss(upstream, clock):
    cached = CachedSource(upstream, FailingCacheRepository(), clock=clock)

    first = await cached.fetch_rate("USD", "EUR")
    second = await cached.fetch_rate("USD", "EUR")

    assert first.source == RateSourceKind.LIVE
    assert second.source == RateSourceKind.LIVE
    assert upstream.calls["rate"] == 2


@pytest.mark.asyncio
async def test_undecodable_entry_is_a_miss(upstream, clock):
    repository = InMemoryCacheRepository()
    await repository.set("rate:USD:EUR", CacheEntry(data="not a number", stored_at=clock()))
    cached = CachedSource(upstream, repository, clock=clock)

    resolved = await cached.fetch_rate("USD", "EUR")
    assert resolved.source == RateSourceKind.LIVE
    assert upstream.calls["rate"] == 1


@pytest.mark.asyncio
async def test_file_cache_survives_new_instance(tmp_path, upstream, clock):
    directory = tmp_path / "cache"
    first = CachedSource(upstream, FileCacheRepository(str(directory)), clock=clock)
    symbols = await first.fetch_symbols()
    series = await first.fetch_time_series("USD", "GBP", 5)

    second = CachedSource(upstream, FileCacheRepository(str(directory)), clock=clock)
    cached_symbols = await second.fetch_symbols()
    cached_series = await second.fetch_time_series("USD", "GBP", 5)

    assert cached_symbols.cached
    assert cached_symbols.value == symbols.value
    assert cached_series.cached
    assert cached_series.value.rates == series.value.rates
    assert upstream.calls["symbols"] == 1
    assert upstream.calls["timeseries"] == 1
    assert await second.entry_count() == 2


@pytest.mark.asyncio
async def test_corrupt_cache_file_is_a_miss(tmp_path, upstream, clock):
    repository = FileCacheRepository(str(tmp_path))
    cached = CachedSource(upstream, repository, clock=clock)
    await cached.fetch_rate("USD", "EUR")
    repository._path("rate:USD:EUR").write_text("{not json", encoding="utf-8")

    resolved = await cached.fetch_rate("USD", "EUR")
    assert resolved.source == RateSourceKind.LIVE
    assert upstream.calls["rate"] == 2


@pytest.mark.asyncio
async def test_clear_drops_entries(cached, upstream):
    await cached.fetch_rate("USD", "EUR")
    await cached.clear()
    assert await cached.entry_count() == 0

    await cached.fetch_rate("USD", "EUR")
    assert upstream.calls["rate"] == 2


@pytest.mark.asyncio
async def test_series_cached_yesterday_is_not_served_today(upstream, clock):
    current = {"day": date(2024, 6, 15)}
    cached = CachedSource(upstream, InMemoryCacheRepository(), clock=clock, today=lambda: current["day"])

    await cached.fetch_time_series("USD", "EUR", 7)
    assert (await cached.fetch_time_series("USD", "EUR", 7)).cached

    # Still within the TTL, but the window has moved on
    current["day"] += timedelta(days=1)
    clock.advance(60)
    refreshed = await cached.fetch_time_series("USD", "EUR", 7)

    assert refreshed.source == RateSourceKind.LIVE
    assert upstream.calls["timeseries"] == 2
