"""
Cache repositories: where CachedSource keeps its entries.
"""

import asyncio
import hashlib
from abc import ABC, abstractmethod
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Optional

from fxconverter.core.exceptions import StorageFailureError
from fxconverter.repositories.base_repository import BaseRepository


@dataclass(frozen=True)
class CacheEntry:
    """Cached JSON-serializable data and the epoch time it was stored."""
    data: Any
    stored_at: float

    def is_stale(self, now: float, ttl: float) -> bool:
        return now - self.stored_at >= ttl


class CacheRepository(ABC):
    """Key/value store for cache entries."""

    @abstractmethod
    async def get(self, key: str) -> Optional[CacheEntry]:
        raise NotImplementedError

    @abstractmethod
    async def set(self, key: str, entry: CacheEntry) -> None:
        raise NotImplementedError

    @abstractmethod
    async def clear(self) -> None:
        raise NotImplementedError

    @abstractmethod
    async def count(self) -> int:
        raise NotImplementedError


class InMemoryCacheRepository(CacheRepository):
    """Process-local cache store."""

    def __init__(self):
        self._entries: Dict[str, CacheEntry] = {}

    async def get(self, key: str) -> Optional[CacheEntry]:
        return self._entries.get(key)

    async def set(self, key: str, entry: CacheEntry) -> None:
        self._entries[key] = entry

    async def clear(self) -> None:
        self._entries.clear()

    async def count(self) -> int:
        return len(self._entries)


class FileCacheRepository(BaseRepository, CacheRepository):
    """
    One JSON file per cache key under *directory*.

    File names are the md5 of the key, so any key is a safe file name.
    Each file holds ``{"key", "stored_at", "data"}``.
    """

    def __init__(self, directory: str):
        self.directory = Path(directory)

    def _path(self, key: str) -> Path:
        digest = hashlib.md5(key.encode("utf-8")).hexdigest()
        return self.directory / f"{digest}.json"

    async def get(self, key: str) -> Optional[CacheEntry]:
        document = await self.read_json(self._path(key))
        if document is None:
            return None
        if not isinstance(document, dict) or document.get("key") != key or "stored_at" not in document:
            raise StorageFailureError(
                f"Corrupt cache entry for {key}",
                details={"key": key},
            )
        return CacheEntry(data=document.get("data"), stored_at=float(document["stored_at"]))

    async def set(self, key: str, entry: CacheEntry) -> None:
        await self.write_json(
            self._path(key),
            {"key": key, "stored_at": entry.stored_at, "data": entry.data},
        )

    async def clear(self) -> None:
        if not self.directory.exists():
            return
        for path in await asyncio.to_thread(lambda: list(self.directory.glob("*.json"))):
            await self.delete_file(path)

    async def count(self) -> int:
        if not self.directory.exists():
            return 0
        return await asyncio.to_thread(lambda: sum(1 for _ in self.directory.glob("*.json")))
