"""
Rate source abstraction.

Every tier (upstream provider, static table, cache decorator) implements the
same three async operations so the conversion service can try them in order.
"""

import re
from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import date, timedelta
from typing import Dict, Generic, List, TypeVar

from fxconverter.core.exceptions import InvalidParametersError
from fxconverter.schemas.currency import RateSourceKind, SymbolInfo, TimeSeries

T = TypeVar("T")

MIN_DAYS = 1
MAX_DAYS = 365

_CODE_PATTERN = re.compile(r"^[A-Z]{3}$")


@dataclass(frozen=True)
class Sourced(Generic[T]):
    """A resolved value together with the tier that produced it."""
    value: T
    source: RateSourceKind

    @property
    def cached(self) -> bool:
        return self.source == RateSourceKind.CACHE

    @property
    def fallback(self) -> bool:
        return self.source == RateSourceKind.FALLBACK


def normalize_currency_code(code) -> str:
    """
    Normalize a currency code to its uppercase key form.

    Raises:
        InvalidParametersError: If the code is empty or not three letters
    """
    if code is None or not isinstance(code, str) or not code.strip():
        raise InvalidParametersError("Currency code is required")
    normalized = code.strip().upper()
    if not _CODE_PATTERN.match(normalized):
        raise InvalidParametersError(
            f"Invalid currency code: {code!r}",
            details={"currency": code},
        )
    return normalized


def clamp_days(days: int) -> int:
    """Clamp a requested window length to [MIN_DAYS, MAX_DAYS]."""
    return max(MIN_DAYS, min(int(days), MAX_DAYS))


def date_window(days: int, today: date) -> List[date]:
    """Return every date in [today - days, today], oldest first."""
    return [today - timedelta(days=offset) for offset in range(days, -1, -1)]


def constant_series(from_currency: str, to_currency: str, days: int, today: date) -> TimeSeries:
    """Series for an identical pair: rate 1 on every day."""
    window = date_window(days, today)
    return TimeSeries(
        from_currency=from_currency,
        to_currency=to_currency,
        days=days,
        start_date=window[0].isoformat(),
        end_date=window[-1].isoformat(),
        rates={d.isoformat(): 1.0 for d in window},
    )


class RateSource(ABC):
    """Capability interface for anything that can produce rate data."""

    name: str = "source"

    @abstractmethod
    async def fetch_symbols(self) -> Sourced[Dict[str, SymbolInfo]]:
        """Return the currencies this source knows, keyed by code."""
        raise NotImplementedError

    @abstractmethod
    async def fetch_rate(self, from_currency: str, to_currency: str) -> Sourced[float]:
        """Return the unit rate such that 1 *from_currency* = rate *to_currency*."""
        raise NotImplementedError

    @abstractmethod
    async def fetch_time_series(
        self,
        from_currency: str,
        to_currency: str,
        days: int,
    ) -> Sourced[TimeSeries]:
        """Return one rate per day for the window ending today."""
        raise NotImplementedError
