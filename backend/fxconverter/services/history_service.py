"""
History service.
Append-only, size-bounded log of past conversions.
"""

import asyncio
import math
import time
import uuid
from datetime import datetime, timezone
from typing import Any, Dict, List, Mapping, Optional, Tuple, Union

from pydantic import BaseModel, ValidationError

from fxconverter.core.exceptions import InvalidParametersError, InvalidRecordError, StorageFailureError
from fxconverter.core.logging import get_logger
from fxconverter.repositories.history_repository import HistoryRepository, InMemoryHistoryRepository
from fxconverter.schemas.history import HistoryRecord
from fxconverter.services.base_service import BaseService
from fxconverter.sources.base import normalize_currency_code

logger = get_logger(__name__)

REQUIRED_FIELDS = ("from", "to", "amount", "result", "rate")


class HistoryService(BaseService):
    """
    Service for the conversion history log.

    Records are kept newest first and truncated to *max_records* on every
    append. All read-modify-write cycles run under one lock.

    When the primary repository fails, the failure is logged and the
    operation is served from *fallback_repository* instead; results then
    carry ``fallback=True``.
    """

    def __init__(
        self,
        repository: HistoryRepository,
        max_records: int = 50,
        fallback_repository: Optional[HistoryRepository] = None,
    ):
        self.repository = repository
        self.max_records = max_records
        self.fallback_repository = fallback_repository or InMemoryHistoryRepository()
        self._lock = asyncio.Lock()

    async def append(self, record: Union[Mapping[str, Any], BaseModel]) -> Tuple[HistoryRecord, int, bool]:
        """
        Add a record to the front of the log.

        Args:
            record: Mapping with from/to/amount/result/rate, or a ConversionResult

        Returns:
            Tuple of (stored record, records retained, served from fallback store)

        Raises:
            InvalidRecordError: If a required field is missing or invalid
        """
        new_record = self._build_record(record)
        document = new_record.model_dump(by_alias=True)

        async with self._lock:
            pending = await self.fallback_repository.load()
            try:
                records = await self.repository.load()
                records = self._prepend(document, [*pending, *records])
                await self.repository.save(records)
            except StorageFailureError as e:
                logger.warning(f"History store unavailable, appending in memory: {e.message}")
                records = self._prepend(document, pending)
                await self.fallback_repository.save(records)
                return new_record, len(records), True

            if pending:
                logger.info(f"History store recovered, merged {len(pending)} record(s) kept in memory")
                await self.fallback_repository.clear()
            return new_record, len(records), False

    async def list(self, limit: Optional[int] = None) -> Tuple[List[HistoryRecord], bool]:
        """
        List records, newest first.

        Records still held in memory from a storage outage come first.
        A *limit* larger than the stored count returns every record.
        """
        if limit is not None and limit < 0:
            raise InvalidParametersError("Limit must not be negative", details={"limit": limit})

        async with self._lock:
            pending = await self.fallback_repository.load()
            fallback = False
            try:
                records = [*pending, *await self.repository.load()][: self.max_records]
            except StorageFailureError as e:
                logger.warning(f"History store unavailable, reading from memory: {e.message}")
                records = pending
                fallback = True

        parsed = [self._parse_stored(record) for record in records]
        valid = [record for record in parsed if record is not None]
        if limit is not None:
            valid = valid[:limit]
        return valid, fallback

    async def clear(self) -> bool:
        """
        Remove every record. Clearing an empty log succeeds.

        Returns:
            True if only the fallback store could be cleared
        """
        async with self._lock:
            await self.fallback_repository.clear()
            try:
                await self.repository.clear()
            except StorageFailureError as e:
                logger.warning(f"History store unavailable, cleared memory only: {e.message}")
                return True
        return False

    def _prepend(self, document: Dict[str, Any], records: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
        return [document, *records][: self.max_records]

    @staticmethod
    def _parse_stored(record: Dict[str, Any]) -> Optional[HistoryRecord]:
        """Parse a stored record; unreadable ones are logged and skipped."""
        if any(record.get(field) is None for field in REQUIRED_FIELDS):
            logger.warning(f"Skipping stored history record without required fields: {record.get('id')}")
            return None
        data = dict(record)
        data.setdefault("id", uuid.uuid4().hex)
        data.setdefault("timestamp", 0)
        data.setdefault("date", "")
        try:
            return HistoryRecord.model_validate(data)
        except ValidationError as e:
            logger.warning(
                f"Skipping unreadable stored history record {data.get('id')}",
                extra={"errors": e.errors(include_url=False)},
            )
            return None

    @staticmethod
    def _build_record(record: Union[Mapping[str, Any], BaseModel]) -> HistoryRecord:
        if isinstance(record, BaseModel):
            record = record.model_dump(by_alias=True)
        if not isinstance(record, Mapping):
            raise InvalidRecordError("History record must be an object")

        missing = [field for field in REQUIRED_FIELDS if record.get(field) is None]
        if missing:
            raise InvalidRecordError(
                f"Missing required field: {missing[0]}",
                details={"missing": missing},
            )

        try:
            from_code = normalize_currency_code(record["from"])
            to_code = normalize_currency_code(record["to"])
        except InvalidParametersError as e:
            raise InvalidRecordError(e.message, details=e.details) from None

        numbers = {}
        for field in ("amount", "result", "rate"):
            value = record[field]
            try:
                if isinstance(value, bool):
                    raise ValueError(value)
                numbers[field] = float(value)
            except (TypeError, ValueError):
                raise InvalidRecordError(f"Field {field} must be a number", details={field: str(value)}) from None
            if not math.isfinite(numbers[field]) or numbers[field] <= 0:
                raise InvalidRecordError(
                    "Amounts and rate must be greater than zero",
                    details={field: str(value)},
                )

        timestamp = record.get("timestamp")
        if timestamp is None:
            timestamp = int(time.time())
        elif (
            isinstance(timestamp, bool)
            or not isinstance(timestamp, (int, float))
            or not math.isfinite(timestamp)
            or timestamp < 0
        ):
            raise InvalidRecordError(
                "Field timestamp must be a non-negative epoch time",
                details={"timestamp": str(timestamp)},
            )

        return HistoryRecord(
            id=str(record.get("id") or uuid.uuid4().hex),
            from_currency=from_code,
            to_currency=to_code,
            amount=numbers["amount"],
            result=numbers["result"],
            rate=numbers["rate"],
            date=str(record.get("date") or datetime.now(timezone.utc).isoformat()),
            timestamp=int(timestamp),
        )
