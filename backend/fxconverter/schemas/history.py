"""
Conversion history Pydantic schemas.
"""

from pydantic import BaseModel, Field
from typing import List


class HistoryRecord(BaseModel):
    """A stored conversion."""
    id: str
    from_currency: str = Field(..., alias="from")
    to_currency: str = Field(..., alias="to")
    amount: float
    result: float
    rate: float
    date: str
    timestamp: int

    class Config:
        populate_by_name = True


class HistoryListResponse(BaseModel):
    """Response schema for listing history, newest first."""
    success: bool = True
    history: List[HistoryRecord]
    count: int
    fallback: bool = False
    timestamp: str


class HistoryAppendResponse(BaseModel):
    """Response schema for an appended record."""
    success: bool = True
    message: str = "Record added to history"
    record: HistoryRecord
    total_records: int
    fallback: bool = False
    timestamp: str


class HistoryClearResponse(BaseModel):
    """Response schema for clearing history."""
    success: bool = True
    message: str = "Conversion history cleared"
    fallback: bool = False
    timestamp: str
