"""
Currency Pydantic schemas for rate resolution requests and responses.
"""

from pydantic import BaseModel, Field
from typing import Dict, Optional, Union
from enum import Enum


class RateSourceKind(str, Enum):
    """Tier that produced a resolved value."""
    LIVE = "live"
    CACHE = "cache"
    FALLBACK = "fallback"


class SymbolInfo(BaseModel):
    """Reference data for one currency."""
    code: str = Field(..., description="ISO 4217 currency code (e.g., USD, EUR)")
    description: str
    symbol: str

    class Config:
        frozen = True


class SymbolsResponse(BaseModel):
    """Response schema for the symbols listing."""
    success: bool = True
    symbols: Dict[str, SymbolInfo]
    cached: bool = False
    fallback: bool = False
    timestamp: str


class ConvertRequest(BaseModel):
    """Conversion request body; values are validated by the conversion service."""
    from_currency: Optional[str] = Field(None, alias="from")
    to_currency: Optional[str] = Field(None, alias="to")
    amount: Optional[Union[float, str]] = None

    class Config:
        populate_by_name = True


class ConversionResult(BaseModel):
    """Outcome of a single conversion, ready to be appended to history."""
    from_currency: str = Field(..., alias="from")
    to_currency: str = Field(..., alias="to")
    amount: float
    result: float
    rate: float
    date: str
    source: RateSourceKind

    class Config:
        frozen = True
        populate_by_name = True


class ConvertResponse(BaseModel):
    """Response schema for a conversion."""
    success: bool = True
    from_currency: str = Field(..., alias="from")
    to_currency: str = Field(..., alias="to")
    amount: float
    result: float
    rate: float
    date: str
    cached: bool = False
    fallback: bool = False

    class Config:
        populate_by_name = True


class TimeSeries(BaseModel):
    """Daily rates for a pair, keyed by ISO date in ascending order."""
    from_currency: str = Field(..., alias="from")
    to_currency: str = Field(..., alias="to")
    days: int = Field(..., ge=1, le=365)
    start_date: str
    end_date: str
    rates: Dict[str, float]

    class Config:
        frozen = True
        populate_by_name = True


class TimeSeriesResponse(BaseModel):
    """Response schema for a time series."""
    success: bool = True
    from_currency: str = Field(..., alias="from")
    to_currency: str = Field(..., alias="to")
    start_date: str
    end_date: str
    days: int
    rates: Dict[str, float]
    count: int
    cached: bool = False
    fallback: bool = False
    timestamp: str

    class Config:
        populate_by_name = True
