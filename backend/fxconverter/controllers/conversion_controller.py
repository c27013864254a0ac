"""
Conversion controller.
Maps resolved rate data onto the response envelopes the UI consumes.
"""

from fxconverter.controllers.base_controller import BaseController
from fxconverter.schemas.currency import (
    ConvertResponse,
    RateSourceKind,
    SymbolsResponse,
    TimeSeriesResponse,
)
from fxconverter.services.conversion_service import ConversionService


class ConversionController(BaseController):
    """Controller for symbols, conversion and time series operations."""

    def __init__(self, conversion_service: ConversionService):
        self.conversion_service = conversion_service

    async def get_symbols(self) -> SymbolsResponse:
        """List supported currencies."""
        resolved = await self.conversion_service.get_symbols()
        return SymbolsResponse(
            symbols=dict(sorted(resolved.value.items())),
            cached=resolved.cached,
            fallback=resolved.fallback,
            timestamp=self.now_iso(),
        )

    async def convert(self, from_currency, to_currency, amount) -> ConvertResponse:
        """Convert an amount between two currencies."""
        result = await self.conversion_service.convert(from_currency, to_currency, amount)
        return ConvertResponse(
            from_currency=result.from_currency,
            to_currency=result.to_currency,
            amount=result.amount,
            result=result.result,
            rate=result.rate,
            date=result.date,
            cached=result.source == RateSourceKind.CACHE,
            fallback=result.source == RateSourceKind.FALLBACK,
        )

    async def get_time_series(self, from_currency, to_currency, days) -> TimeSeriesResponse:
        """Get daily rates for charting, ordered by date."""
        resolved = await self.conversion_service.get_time_series(from_currency, to_currency, days)
        series = resolved.value
        rates = dict(sorted(series.rates.items()))
        return TimeSeriesResponse(
            from_currency=series.from_currency,
            to_currency=series.to_currency,
            start_date=series.start_date,
            end_date=series.end_date,
            days=series.days,
            rates=rates,
            count=len(rates),
            cached=resolved.cached,
            fallback=resolved.fallback,
            timestamp=self.now_iso(),
        )
