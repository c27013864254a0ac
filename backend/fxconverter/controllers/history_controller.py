"""
History controller.
"""

from typing import Any, Optional

from fxconverter.controllers.base_controller import BaseController
from fxconverter.schemas.history import (
    HistoryAppendResponse,
    HistoryClearResponse,
    HistoryListResponse,
)
from fxconverter.services.history_service import HistoryService


class HistoryController(BaseController):
    """Controller for conversion history operations."""

    def __init__(self, history_service: HistoryService):
        self.history_service = history_service

    async def list_history(self, limit: Optional[int] = None) -> HistoryListResponse:
        """List history records, newest first."""
        records, fallback = await self.history_service.list(limit=limit)
        return HistoryListResponse(
            history=records,
            count=len(records),
            fallback=fallback,
            timestamp=self.now_iso(),
        )

    async def append_history(self, record: Any) -> HistoryAppendResponse:
        """Append a conversion to history."""
        stored, total, fallback = await self.history_service.append(record)
        return HistoryAppendResponse(
            record=stored,
            total_records=total,
            fallback=fallback,
            timestamp=self.now_iso(),
        )

    async def clear_history(self) -> HistoryClearResponse:
        """Clear all history records."""
        fallback = await self.history_service.clear()
        return HistoryClearResponse(
            fallback=fallback,
            timestamp=self.now_iso(),
        )
