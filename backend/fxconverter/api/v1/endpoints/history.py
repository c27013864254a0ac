"""
Conversion history endpoints.
"""

from typing import Any, Dict

from fastapi import APIRouter, Body, Query

from fxconverter.core.config import settings
from fxconverter.deps.di_container import get_container
from fxconverter.schemas.history import (
    HistoryAppendResponse,
    HistoryClearResponse,
    HistoryListResponse,
)

router = APIRouter()


@router.get("", response_model=HistoryListResponse)
async def list_history(
    limit: int = Query(settings.HISTORY_DISPLAY_LIMIT, ge=0),
) -> HistoryListResponse:
    """List recent conversions, newest first."""
    controller = get_container().history_controller()
    return await controller.list_history(limit=limit)


@router.post("", response_model=HistoryAppendResponse)
async def append_history(
    record: Dict[str, Any] = Body(...),
) -> HistoryAppendResponse:
    """Append a conversion to history."""
    controller = get_container().history_controller()
    return await controller.append_history(record)


@router.delete("", response_model=HistoryClearResponse)
async def clear_history() -> HistoryClearResponse:
    """Clear conversion history."""
    controller = get_container().history_controller()
    return await controller.clear_history()
