"""
Health service.
Provides health check functionality.
"""

import time
from typing import Optional

from fxconverter.core.exceptions import StorageFailureError
from fxconverter.core.integrations.observability import Diagnostics
from fxconverter.repositories.cache_repository import CacheRepository
from fxconverter.repositories.history_repository import HistoryRepository
from fxconverter.services.base_service import BaseService
from fxconverter.schemas.health import HealthResponse


class HealthService(BaseService):
    """Service for health check operations."""

    def __init__(
        self,
        cache_repository: Optional[CacheRepository] = None,
        history_repository: Optional[HistoryRepository] = None,
        diagnostics: Optional[Diagnostics] = None,
    ):
        self.start_time = time.time()
        self.cache_repository = cache_repository
        self.history_repository = history_repository
        self.diagnostics = diagnostics or Diagnostics()

    async def get_health(self) -> HealthResponse:
        """
        Get system health status.

        Storage checks must pass for "ok". The upstream provider is reported
        from the last real request, never probed here, and a degraded
        upstream does not degrade the service since the fallback tier covers it.

        Returns:
            HealthResponse with status, uptime, checks and diagnostics
        """
        # Calculate uptime
        uptime_seconds = int(time.time() - self.start_time)
        uptime_str = f"PT{uptime_seconds}S"  # ISO 8601 duration format

        checks = {}

        if self.cache_repository is not None:
            try:
                entries = await self.cache_repository.count()
                checks["cache"] = "ok"
                checks["cache_entries"] = entries
            except (StorageFailureError, OSError) as e:
                checks["cache"] = f"error: {str(e)}"

        if self.history_repository is not None:
            try:
                await self.history_repository.load()
                checks["history_store"] = "ok"
            except StorageFailureError as e:
                checks["history_store"] = f"error: {e.message}"

        snapshot = self.diagnostics.snapshot()
        checks["upstream"] = snapshot["upstream"]["status"]

        storage_checks = [checks.get(name) for name in ("cache", "history_store") if name in checks]
        status = "ok" if all(check == "ok" for check in storage_checks) else "degraded"

        return HealthResponse(
            status=status,
            uptime=uptime_str,
            checks=checks,
            diagnostics=snapshot,
        )
