"""
Static fallback rates.
Used when the upstream provider and the cache cannot answer.
"""

import random
from datetime import date
from typing import Callable, Dict, Optional

from fxconverter.core.exceptions import UnsupportedCurrencyError
from fxconverter.schemas.currency import RateSourceKind, SymbolInfo, TimeSeries
from fxconverter.sources.base import RateSource, Sourced, constant_series, date_window

# Rates are relative to USD (1 USD = 1.0)
# Each value is how many units of the currency = 1 USD
FALLBACK_RATES_TO_USD: Dict[str, float] = {
    "USD": 1.0,
    "EUR": 0.85,
    "GBP": 0.73,
    "JPY": 110.0,
    "CHF": 0.92,
    "CAD": 1.25,
    "AUD": 1.35,
    "CNY": 6.45,
    "RUB": 75.0,
    "INR": 74.0,
    "BRL": 5.2,
    "KRW": 1180.0,
    "MXN": 20.0,
    "SGD": 1.35,
    "HKD": 7.8,
    "NOK": 8.5,
    "SEK": 8.7,
    "DKK": 6.3,
    "PLN": 3.9,
    "CZK": 21.5,
}

FALLBACK_SYMBOLS: Dict[str, SymbolInfo] = {
    code: SymbolInfo(code=code, description=description, symbol=symbol)
    for code, description, symbol in [
        ("USD", "US Dollar", "$"),
        ("EUR", "Euro", "€"),
        ("GBP", "British Pound", "£"),
        ("JPY", "Japanese Yen", "¥"),
        ("CHF", "Swiss Franc", "CHF"),
        ("CAD", "Canadian Dollar", "C$"),
        ("AUD", "Australian Dollar", "A$"),
        ("CNY", "Chinese Yuan", "¥"),
        ("RUB", "Russian Ruble", "₽"),
        ("INR", "Indian Rupee", "₹"),
        ("BRL", "Brazilian Real", "R$"),
        ("KRW", "South Korean Won", "₩"),
        ("MXN", "Mexican Peso", "$"),
        ("SGD", "Singapore Dollar", "S$"),
        ("HKD", "Hong Kong Dollar", "HK$"),
        ("NOK", "Norwegian Krone", "kr"),
        ("SEK", "Swedish Krona", "kr"),
        ("DKK", "Danish Krone", "kr"),
        ("PLN", "Polish Zloty", "zł"),
        ("CZK", "Czech Koruna", "Kč"),
    ]
}

# Synthetic series stay within +/- 5% of the table rate
SERIES_VARIATION = 0.05


class StaticFallbackSource(RateSource):
    """
    Fixed in-memory rate table.

    Time series are synthetic demo data, not market history: each day is
    the table rate perturbed independently by a uniform draw in
    [-SERIES_VARIATION, +SERIES_VARIATION], with no continuity between days.
    """

    name = "fallback"

    def __init__(
        self,
        rates: Optional[Dict[str, float]] = None,
        symbols: Optional[Dict[str, SymbolInfo]] = None,
        rng: Optional[random.Random] = None,
        today: Callable[[], date] = date.today,
    ):
        self.rates = dict(rates if rates is not None else FALLBACK_RATES_TO_USD)
        self.symbols = dict(symbols if symbols is not None else FALLBACK_SYMBOLS)
        self.rng = rng or random.Random()
        self.today = today

    def _rate_to_usd(self, currency: str) -> float:
        try:
            return self.rates[currency]
        except KeyError:
            raise UnsupportedCurrencyError(currency) from None

    def _cross_rate(self, from_currency: str, to_currency: str) -> float:
        from_rate = self._rate_to_usd(from_currency)
        to_rate = self._rate_to_usd(to_currency)
        if from_currency == to_currency:
            return 1.0
        return to_rate / from_rate

    async def fetch_symbols(self) -> Sourced[Dict[str, SymbolInfo]]:
        symbols = dict(self.symbols)
        # Every rate-table currency is listed even without a description
        for code in self.rates:
            symbols.setdefault(code, SymbolInfo(code=code, description=code, symbol=code))
        return Sourced(symbols, RateSourceKind.FALLBACK)

    async def fetch_rate(self, from_currency: str, to_currency: str) -> Sourced[float]:
        if from_currency == to_currency:
            return Sourced(1.0, RateSourceKind.FALLBACK)
        return Sourced(self._cross_rate(from_currency, to_currency), RateSourceKind.FALLBACK)

    async def fetch_time_series(
        self,
        from_currency: str,
        to_currency: str,
        days: int,
    ) -> Sourced[TimeSeries]:
        today = self.today()
        if from_currency == to_currency:
            return Sourced(constant_series(from_currency, to_currency, days, today), RateSourceKind.FALLBACK)

        base_rate = self._cross_rate(from_currency, to_currency)
        window = date_window(days, today)
        rates = {}
        for day in window:
            variation = self.rng.uniform(-SERIES_VARIATION, SERIES_VARIATION)
            rates[day.isoformat()] = round(base_rate * (1 + variation), 6)

        series = TimeSeries(
            from_currency=from_currency,
            to_currency=to_currency,
            days=days,
            start_date=window[0].isoformat(),
            end_date=window[-1].isoformat(),
            rates=rates,
        )
        return Sourced(series, RateSourceKind.FALLBACK)
