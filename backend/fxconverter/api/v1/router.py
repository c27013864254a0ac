"""
API v1 router that aggregates all endpoint routers.
"""

from fastapi import APIRouter

from fxconverter.api.v1.endpoints import (
    health,
    symbols,
    convert,
    timeseries,
    history,
)

api_router = APIRouter()

api_router.include_router(health.router, tags=["health"])
api_router.include_router(symbols.router, prefix="/symbols", tags=["symbols"])
api_router.include_router(convert.router, prefix="/convert", tags=["convert"])
api_router.include_router(timeseries.router, prefix="/timeseries", tags=["timeseries"])
api_router.include_router(history.router, prefix="/history", tags=["history"])
