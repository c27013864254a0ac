"""
Conversion service.
Resolves symbols, rates and time series through an ordered list of rate tiers.
"""

import math
from datetime import datetime, timezone
from typing import Awaitable, Callable, Dict, List, Optional, TypeVar

from fxconverter.core.exceptions import (
    InvalidParametersError,
    StorageFailureError,
    UnsupportedCurrencyError,
    UpstreamUnavailableError,
)
from fxconverter.core.integrations.observability import Diagnostics
from fxconverter.core.logging import get_logger
from fxconverter.schemas.currency import ConversionResult, SymbolInfo, TimeSeries
from fxconverter.services.base_service import BaseService
from fxconverter.sources.base import RateSource, Sourced, clamp_days, normalize_currency_code

logger = get_logger(__name__)

T = TypeVar("T")

# Failures that move resolution on to the next tier
TIER_FAILURES = (UpstreamUnavailableError, UnsupportedCurrencyError, StorageFailureError)


class ConversionService(BaseService):
    """
    Service for rate resolution.

    Tiers are tried in order, typically ``[CachedSource(UpstreamSource),
    StaticFallbackSource]``. The first success wins. When every tier fails
    the last tier's error is raised, so with the static table last the only
    terminal outcome is UnsupportedCurrencyError.
    """

    def __init__(
        self,
        primary: RateSource,
        fallback: RateSource,
        diagnostics: Optional[Diagnostics] = None,
    ):
        self.tiers: List[RateSource] = [primary, fallback]
        self.diagnostics = diagnostics or Diagnostics()

    async def _resolve(
        self,
        operation: str,
        call: Callable[[RateSource], Awaitable[Sourced[T]]],
    ) -> Sourced[T]:
        last_error: Optional[Exception] = None
        for index, tier in enumerate(self.tiers):
            try:
                result = await call(tier)
            except TIER_FAILURES as e:
                last_error = e
                self.diagnostics.record_tier_failure(operation, tier.name, e)
                continue
            if index > 0:
                self.diagnostics.record_fallback(operation)
            return result

        logger.warning(
            f"All rate tiers failed for {operation}",
            extra={"operation": operation, "exception_type": type(last_error).__name__},
        )
        raise last_error

    async def get_symbols(self) -> Sourced[Dict[str, SymbolInfo]]:
        """
        Get the supported currencies.

        Returns:
            Symbol table keyed by code, with its provenance
        """
        return await self._resolve("symbols", lambda tier: tier.fetch_symbols())

    async def convert(self, from_currency, to_currency, amount) -> ConversionResult:
        """
        Convert *amount* between two currencies.

        Args:
            from_currency: Source currency code, any case
            to_currency: Target currency code, any case
            amount: Positive number, or a string holding one

        Returns:
            ConversionResult with result rounded to 2 places and rate to 6

        Raises:
            InvalidParametersError: Missing codes or non-positive amount
            UnsupportedCurrencyError: Pair unknown to every tier
        """
        from_code = normalize_currency_code(from_currency)
        to_code = normalize_currency_code(to_currency)
        value = self._parse_amount(amount)

        resolved = await self._resolve(
            "convert",
            lambda tier: tier.fetch_rate(from_code, to_code),
        )
        rate = resolved.value

        return ConversionResult(
            from_currency=from_code,
            to_currency=to_code,
            amount=value,
            result=round(value * rate, 2),
            rate=round(rate, 6),
            date=datetime.now(timezone.utc).isoformat(),
            source=resolved.source,
        )

    async def get_time_series(self, from_currency, to_currency, days=30) -> Sourced[TimeSeries]:
        """
        Get daily rates for the last *days* days plus today.

        *days* is clamped to [1, 365] before any tier is asked.
        """
        from_code = normalize_currency_code(from_currency)
        to_code = normalize_currency_code(to_currency)
        try:
            window = clamp_days(days)
        except (TypeError, ValueError):
            raise InvalidParametersError(
                f"Invalid days value: {days!r}",
                details={"days": days},
            ) from None

        return await self._resolve(
            "timeseries",
            lambda tier: tier.fetch_time_series(from_code, to_code, window),
        )

    @staticmethod
    def _parse_amount(amount) -> float:
        if amount is None or amount == "" or isinstance(amount, bool):
            raise InvalidParametersError("Amount is required")
        try:
            value = float(amount)
        except (TypeError, ValueError):
            raise InvalidParametersError(
                f"Invalid amount: {amount!r}",
                details={"amount": str(amount)},
            ) from None
        if not math.isfinite(value) or value <= 0:
            raise InvalidParametersError(
                "Amount must be greater than zero",
                details={"amount": str(amount)},
            )
        return value
