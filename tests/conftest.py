"""
Pytest configuration and fixtures.
Provides stub rate sources, a test DI container and a test app client.
"""

import os

# Settings are read at import time; tests run without rate limiting or disk cache
os.environ.setdefault("RATE_LIMIT_ENABLED", "false")
os.environ.setdefault("CACHE_BACKEND", "memory")
os.environ.setdefault("HISTORY_BACKEND", "memory")

from collections import Counter
from datetime import date

import pytest
from dependency_injector import providers
from httpx import ASGITransport, AsyncClient

from fxconverter.core.config import Settings
from fxconverter.core.exceptions import UnsupportedCurrencyError, UpstreamUnavailableError
from fxconverter.deps.di_container import build_container, set_container
from fxconverter.main import app
from fxconverter.schemas.currency import RateSourceKind, SymbolInfo, TimeSeries
from fxconverter.sources.base import RateSource, Sourced, constant_series, date_window


class StubUpstreamSource(RateSource):
    """Upstream stand-in with a fixed table, a failure switch and call counters."""

    name = "live"

    def __init__(self, rates=None, fail=False):
        self.rates = rates or {"USD": 1.0, "EUR": 0.9, "GBP": 0.8, "XAU": 0.0005}
        self.fail = fail
        self.calls = Counter()

    def _check(self, operation):
        self.calls[operation] += 1
        if self.fail:
            raise UpstreamUnavailableError("stub upstream is down")

    def _rate(self, from_currency, to_currency):
        for code in (from_currency, to_currency):
            if code not in self.rates:
                raise UnsupportedCurrencyError(code)
        return self.rates[to_currency] / self.rates[from_currency]

    async def fetch_symbols(self):
        self._check("symbols")
        return Sourced(
            {code: SymbolInfo(code=code, description=f"{code} live", symbol=code) for code in self.rates},
            RateSourceKind.LIVE,
        )

    async def fetch_rate(self, from_currency, to_currency):
        self._check("rate")
        if from_currency == to_currency:
            return Sourced(1.0, RateSourceKind.LIVE)
        return Sourced(self._rate(from_currency, to_currency), RateSourceKind.LIVE)

    async def fetch_time_series(self, from_currency, to_currency, days):
        self._check("timeseries")
        today = date.today()
        if from_currency == to_currency:
            return Sourced(constant_series(from_currency, to_currency, days, today), RateSourceKind.LIVE)
        rate = self._rate(from_currency, to_currency)
        window = date_window(days, today)
        series = TimeSeries(
            from_currency=from_currency,
            to_currency=to_currency,
            days=days,
            start_date=window[0].isoformat(),
            end_date=window[-1].isoformat(),
            rates={d.isoformat(): rate for d in window},
        )
        return Sourced(series, RateSourceKind.LIVE)


class FakeClock:
    """Manually advanced epoch clock."""

    def __init__(self, now=1_700_000_000.0):
        self.now = now

    def __call__(self):
        return self.now

    def advance(self, seconds):
        self.now += seconds


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def upstream():
    return StubUpstreamSource()


@pytest.fixture
def container(tmp_path, upstream):
    """
    Container with in-memory cache, a file history store under tmp_path
    and the stub upstream in place of the real provider.
    """
    test_settings = Settings(
        CACHE_BACKEND="memory",
        HISTORY_BACKEND="file",
        HISTORY_FILE=str(tmp_path / "data" / "history.json"),
        RATE_LIMIT_ENABLED=False,
    )
    container = build_container(test_settings)
    container.upstream_source.override(providers.Object(upstream))
    yield container
    container.upstream_source.reset_override()


@pytest.fixture
async def test_client(container):
    """
    Create a test HTTP client bound to the test container.
    """
    set_container(container)
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        yield client
    set_container(None)
