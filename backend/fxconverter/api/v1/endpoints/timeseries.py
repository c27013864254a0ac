"""
Historical rate series endpoint, used for trend charts.
"""

from typing import Optional

from fastapi import APIRouter, Query

from fxconverter.deps.di_container import get_container
from fxconverter.schemas.currency import TimeSeriesResponse

router = APIRouter()


@router.get("", response_model=TimeSeriesResponse)
async def get_time_series(
    from_currency: Optional[str] = Query(None, alias="from"),
    to_currency: Optional[str] = Query(None, alias="to"),
    days: int = Query(30, description="Window length, clamped to 1..365"),
) -> TimeSeriesResponse:
    """Get one rate per day for the last *days* days and today."""
    controller = get_container().conversion_controller()
    return await controller.get_time_series(from_currency, to_currency, days)
