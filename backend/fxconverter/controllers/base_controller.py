"""
Base controller class.
Controllers coordinate services and return Pydantic schemas.
"""

from abc import ABC
from datetime import datetime, timezone


class BaseController(ABC):
    """Base controller class for all controllers."""

    @staticmethod
    def now_iso() -> str:
        """Current UTC time as an ISO 8601 string for response envelopes."""
        return datetime.now(timezone.utc).isoformat()
