"""
Currency symbols endpoint.
"""

from fastapi import APIRouter

from fxconverter.deps.di_container import get_container
from fxconverter.schemas.currency import SymbolsResponse

router = APIRouter()


@router.get("", response_model=SymbolsResponse)
async def get_symbols() -> SymbolsResponse:
    """List supported currencies. Falls back to the built-in table, never errors."""
    controller = get_container().conversion_controller()
    return await controller.get_symbols()
