"""
In-process diagnostics for the rate resolution tiers.
Counts absorbed tier failures and fallbacks and remembers the last upstream outcome.
"""

from collections import Counter
from datetime import datetime, timezone
from typing import Any, Dict, Optional
from fastapi import Request
import logging

logger = logging.getLogger(__name__)


class Diagnostics:
    """
    Counters for tier failures, keyed by operation and tier.

    Only diagnostic state lives here; nothing in the request path reads it
    back except the health check.
    """

    def __init__(self):
        self.tier_failures: Counter = Counter()
        self.fallbacks: Counter = Counter()
        self.last_upstream_status: str = "unknown"
        self.last_upstream_error: Optional[str] = None
        self.last_upstream_at: Optional[str] = None

    def record_tier_failure(self, operation: str, tier: str, exc: Exception) -> None:
        """Record that *tier* failed for *operation* and the next tier will be tried."""
        self.tier_failures[f"{operation}:{tier}"] += 1
        logger.warning(
            f"Rate tier '{tier}' failed for {operation}: {exc}",
            extra={
                "operation": operation,
                "tier": tier,
                "exception_type": type(exc).__name__,
            },
        )

    def record_fallback(self, operation: str) -> None:
        self.fallbacks[operation] += 1

    def record_upstream(self, ok: bool, error: Optional[str] = None) -> None:
        self.last_upstream_status = "ok" if ok else "degraded"
        self.last_upstream_error = error
        self.last_upstream_at = datetime.now(timezone.utc).isoformat()

    def snapshot(self) -> Dict[str, Any]:
        """Return a JSON-serializable copy of all counters."""
        return {
            "upstream": {
                "status": self.last_upstream_status,
                "error": self.last_upstream_error,
                "checked_at": self.last_upstream_at,
            },
            "tier_failures": dict(self.tier_failures),
            "fallbacks": dict(self.fallbacks),
        }


def record_exception(exc: Exception, request: Request) -> None:
    """
    Record an unexpected exception.

    Args:
        exc: The exception that occurred
        request: The FastAPI request object
    """
    logger.error(
        f"Exception recorded: {type(exc).__name__}",
        extra={
            "exception_message": str(exc),
            "path": request.url.path,
        },
    )
