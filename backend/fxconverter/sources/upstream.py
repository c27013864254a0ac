"""
Upstream rate source backed by the external FX provider.
"""

import asyncio
from datetime import date
from typing import Any, Callable, Dict, Optional
import aiohttp
import logging

from fxconverter.core.exceptions import UpstreamUnavailableError
from fxconverter.core.integrations.http.http_client import HttpClient
from fxconverter.core.integrations.observability import Diagnostics
from fxconverter.schemas.currency import RateSourceKind, SymbolInfo, TimeSeries
from fxconverter.sources.base import RateSource, Sourced, constant_series, date_window

logger = logging.getLogger(__name__)


class UpstreamSource(RateSource):
    """
    Calls the fxratesapi-compatible provider.

    One attempt per call. Any transport error, timeout, non-2xx status,
    undecodable body or unexpected payload shape raises
    UpstreamUnavailableError; the caller decides what to fall back to.
    """

    name = "live"

    def __init__(
        self,
        http_client: HttpClient,
        timeout: float = 10,
        timeseries_timeout: float = 15,
        diagnostics: Optional[Diagnostics] = None,
        today: Callable[[], date] = date.today,
    ):
        self.http_client = http_client
        self.timeout = timeout
        self.timeseries_timeout = timeseries_timeout
        self.diagnostics = diagnostics
        self.today = today

    async def _get(self, endpoint: str, params: Optional[Dict[str, Any]] = None, timeout: Optional[float] = None) -> Dict[str, Any]:
        """
        Fetch an endpoint and return the payload if it reports success.

        Raises:
            UpstreamUnavailableError: On any transport or payload failure
        """
        try:
            data = await self.http_client.get(endpoint, params=params, timeout=timeout or self.timeout)
        except (aiohttp.ClientError, asyncio.TimeoutError, ValueError) as e:
            self._record(False, f"{type(e).__name__}: {e}")
            raise UpstreamUnavailableError(
                f"Upstream request to {endpoint} failed",
                details={"endpoint": endpoint, "reason": type(e).__name__},
            ) from e

        if not isinstance(data, dict) or not data.get("success"):
            error = data.get("error") if isinstance(data, dict) else None
            self._record(False, f"unsuccessful payload: {error}")
            raise UpstreamUnavailableError(
                f"Upstream {endpoint} returned an error",
                details={"endpoint": endpoint, "error": error},
            )

        self._record(True)
        return data

    def _record(self, ok: bool, error: Optional[str] = None) -> None:
        if self.diagnostics is not None:
            self.diagnostics.record_upstream(ok, error)

    @staticmethod
    def _shape_error(endpoint: str, reason: str) -> UpstreamUnavailableError:
        logger.warning(f"Unexpected payload from upstream {endpoint}: {reason}")
        return UpstreamUnavailableError(
            f"Unexpected payload from upstream {endpoint}",
            details={"endpoint": endpoint, "reason": reason},
        )

    async def fetch_symbols(self) -> Sourced[Dict[str, SymbolInfo]]:
        data = await self._get("/symbols")
        raw_symbols = data.get("symbols")
        if not isinstance(raw_symbols, dict) or not raw_symbols:
            raise self._shape_error("/symbols", "missing symbols mapping")

        symbols = {}
        for code, entry in raw_symbols.items():
            if not isinstance(entry, dict):
                continue
            normalized = str(code).strip().upper()
            symbols[normalized] = SymbolInfo(
                code=normalized,
                description=entry.get("description") or entry.get("name") or normalized,
                symbol=entry.get("symbol") or normalized,
            )
        if not symbols:
            raise self._shape_error("/symbols", "no usable symbol entries")
        return Sourced(symbols, RateSourceKind.LIVE)

    async def fetch_rate(self, from_currency: str, to_currency: str) -> Sourced[float]:
        if from_currency == to_currency:
            return Sourced(1.0, RateSourceKind.LIVE)

        data = await self._get("/convert", params={"from": from_currency, "to": to_currency, "amount": 1})
        info = data.get("info")
        rate = info.get("rate") if isinstance(info, dict) else None
        if rate is None:
            rate = data.get("result")
        try:
            rate = float(rate)
        except (TypeError, ValueError):
            raise self._shape_error("/convert", "missing rate") from None
        if rate <= 0:
            raise self._shape_error("/convert", f"non-positive rate {rate}")
        return Sourced(rate, RateSourceKind.LIVE)

    async def fetch_time_series(
        self,
        from_currency: str,
        to_currency: str,
        days: int,
    ) -> Sourced[TimeSeries]:
        today = self.today()
        if from_currency == to_currency:
            return Sourced(constant_series(from_currency, to_currency, days, today), RateSourceKind.LIVE)

        window = date_window(days, today)
        start_date, end_date = window[0].isoformat(), window[-1].isoformat()
        data = await self._get(
            "/timeseries",
            params={
                "start_date": start_date,
                "end_date": end_date,
                "base": from_currency,
                "symbols": to_currency,
            },
            timeout=self.timeseries_timeout,
        )

        raw_rates = data.get("rates")
        if not isinstance(raw_rates, dict):
            raise self._shape_error("/timeseries", "missing rates mapping")

        rates = {}
        for day, day_rates in raw_rates.items():
            if not isinstance(day_rates, dict) or to_currency not in day_rates:
                continue
            try:
                rates[str(day)[:10]] = float(day_rates[to_currency])
            except (TypeError, ValueError):
                continue
        if not rates:
            raise self._shape_error("/timeseries", f"no rates for {to_currency}")

        series = TimeSeries(
            from_currency=from_currency,
            to_currency=to_currency,
            days=days,
            start_date=start_date,
            end_date=end_date,
            rates=dict(sorted(rates.items())),
        )
        return Sourced(series, RateSourceKind.LIVE)
