"""
Currency conversion endpoints.
"""

from typing import Optional

from fastapi import APIRouter, Body, Query

from fxconverter.deps.di_container import get_container
from fxconverter.schemas.currency import ConvertRequest, ConvertResponse

router = APIRouter()


@router.get("", response_model=ConvertResponse)
async def convert_get(
    from_currency: Optional[str] = Query(None, alias="from"),
    to_currency: Optional[str] = Query(None, alias="to"),
    amount: Optional[str] = Query(None),
) -> ConvertResponse:
    """Convert an amount given as query parameters."""
    controller = get_container().conversion_controller()
    return await controller.convert(from_currency, to_currency, amount)


@router.post("", response_model=ConvertResponse)
async def convert_post(
    request_data: ConvertRequest = Body(...),
) -> ConvertResponse:
    """Convert an amount given as a JSON body."""
    controller = get_container().conversion_controller()
    return await controller.convert(
        request_data.from_currency,
        request_data.to_currency,
        request_data.amount,
    )
