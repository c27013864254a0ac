"""
Health check endpoint.
Reports uptime, storage checks and rate tier diagnostics.
"""

from fastapi import APIRouter, Query, Response

from fxconverter.schemas.health import HealthResponse
from fxconverter.deps.di_container import get_container

router = APIRouter()


@router.get("/health", response_model=HealthResponse)
async def get_health(
    response: Response,
    diagnostics: bool = Query(True, description="Include tier failure and fallback counters"),
) -> HealthResponse:
    """
    Health check endpoint.
    Responses carry Cache-Control: no-store.
    """
    response.headers["Cache-Control"] = "no-store"
    controller = get_container().health_controller()
    return await controller.get_health(include_diagnostics=diagnostics)
