"""
Base repository class with JSON file persistence helpers.
Repositories own a storage medium; file I/O runs in a worker thread.
"""

import asyncio
import json
import os
from pathlib import Path
from typing import Any, Optional

from fxconverter.core.exceptions import StorageFailureError
from fxconverter.core.logging import get_logger

logger = get_logger(__name__)


class BaseRepository:
    """Base repository for JSON documents stored on disk."""

    @staticmethod
    def _read_sync(path: Path) -> Optional[Any]:
        if not path.exists():
            return None
        content = path.read_text(encoding="utf-8")
        if not content.strip():
            return None
        return json.loads(content)

    @staticmethod
    def _write_sync(path: Path, data: Any) -> None:
        path.parent.mkdir(parents=True, exist_ok=True)
        tmp_path = path.with_name(f".{path.name}.tmp")
        tmp_path.write_text(json.dumps(data, ensure_ascii=False, indent=2), encoding="utf-8")
        os.replace(tmp_path, path)

    async def read_json(self, path: Path) -> Optional[Any]:
        """
        Read and decode a JSON document.

        Args:
            path: File to read

        Returns:
            Decoded document, or None when the file is missing or empty

        Raises:
            StorageFailureError: If the file cannot be read or decoded
        """
        try:
            return await asyncio.to_thread(self._read_sync, path)
        except (OSError, ValueError) as e:
            raise StorageFailureError(
                f"Could not read {path}",
                details={"path": str(path), "reason": str(e)},
            ) from e

    async def write_json(self, path: Path, data: Any) -> None:
        """
        Encode and write a JSON document, replacing any previous content.

        Raises:
            StorageFailureError: If the file cannot be written
        """
        try:
            await asyncio.to_thread(self._write_sync, path, data)
        except (OSError, TypeError, ValueError) as e:
            raise StorageFailureError(
                f"Could not write {path}",
                details={"path": str(path), "reason": str(e)},
            ) from e

    async def delete_file(self, path: Path) -> None:
        """Delete a file if present."""
        try:
            await asyncio.to_thread(path.unlink, missing_ok=True)
        except OSError as e:
            raise StorageFailureError(
                f"Could not delete {path}",
                details={"path": str(path), "reason": str(e)},
            ) from e
