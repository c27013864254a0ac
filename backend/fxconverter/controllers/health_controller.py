"""
Health controller.
Shapes the health report for the API.
"""

from fxconverter.controllers.base_controller import BaseController
from fxconverter.schemas.health import HealthResponse
from fxconverter.services.health_service import HealthService


class HealthController(BaseController):
    """Controller for health check operations."""

    def __init__(self, health_service: HealthService):
        self.health_service = health_service

    async def get_health(self, include_diagnostics: bool = True) -> HealthResponse:
        """
        Get service health.

        Args:
            include_diagnostics: Include tier failure and fallback counters

        Returns:
            HealthResponse with status, uptime, storage checks and diagnostics
        """
        report = await self.health_service.get_health()
        if include_diagnostics:
            return report
        return report.model_copy(update={"diagnostics": {}})
