"""
History repositories: backing stores for the conversion log.
"""

from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any, Dict, List

from fxconverter.core.exceptions import StorageFailureError
from fxconverter.repositories.base_repository import BaseRepository


class HistoryRepository(ABC):
    """Stores the full record list, newest first."""

    @abstractmethod
    async def load(self) -> List[Dict[str, Any]]:
        raise NotImplementedError

    @abstractmethod
    async def save(self, records: List[Dict[str, Any]]) -> None:
        raise NotImplementedError

    @abstractmethod
    async def clear(self) -> None:
        raise NotImplementedError


class InMemoryHistoryRepository(HistoryRepository):
    """Process-local record list."""

    def __init__(self):
        self._records: List[Dict[str, Any]] = []

    async def load(self) -> List[Dict[str, Any]]:
        return [dict(record) for record in self._records]

    async def save(self, records: List[Dict[str, Any]]) -> None:
        self._records = [dict(record) for record in records]

    async def clear(self) -> None:
        self._records = []


class FileHistoryRepository(BaseRepository, HistoryRepository):
    """Record list stored as a JSON array in a single file."""

    def __init__(self, path: str):
        self.path = Path(path)

    async def load(self) -> List[Dict[str, Any]]:
        document = await self.read_json(self.path)
        if document is None:
            return []
        if not isinstance(document, list):
            raise StorageFailureError(
                f"History file {self.path} does not contain a list",
                details={"path": str(self.path)},
            )
        return [record for record in document if isinstance(record, dict)]

    async def save(self, records: List[Dict[str, Any]]) -> None:
        await self.write_json(self.path, records)

    async def clear(self) -> None:
        await self.delete_file(self.path)
