"""
File storage adapter.

Each key is stored as ``{base_path}/{key}.json``. Keys containing ``/`` map to
subdirectories. Blocking file I/O runs in a worker thread.
"""

import asyncio
import shutil
from pathlib import Path
from typing import Any, List, Union

from sidvid.core.constants import DEFAULT_STORAGE_PATH
from sidvid.core.exceptions import StorageError, StorageKeyNotFoundError
from sidvid.core.logging_config import get_logger
from sidvid.utils.file_utils import read_json, write_json, ensure_directory
from .adapter import StorageAdapter

logger = get_logger("storage.file")

_SUFFIX = ".json"


class FileStorageAdapter(StorageAdapter):
    """JSON-file-per-key storage rooted at a base directory."""

    def __init__(self, base_path: Union[str, Path] = DEFAULT_STORAGE_PATH):
        self.base_path = Path(base_path)

    def _path_for(self, key: str) -> Path:
        parts = [p for p in key.split("/") if p]
        if not parts or any(p in (".", "..") for p in parts):
            raise StorageError(f"Invalid storage key: '{key}'", {"key": key})
        return self.base_path.joinpath(*parts[:-1], parts[-1] + _SUFFIX)

    async def load(self, key: str) -> Any:
        path = self._path_for(key)
        if not path.exists():
            raise StorageKeyNotFoundError(key)
        return await asyncio.to_thread(read_json, path)

    async def save(self, key: str, value: Any) -> None:
        path = self._path_for(key)
        await asyncio.to_thread(write_json, path, value)
        logger.debug(f"Saved {key} -> {path}")

    async def delete(self, key: str) -> None:
        path = self._path_for(key)
        if not path.exists():
            raise StorageKeyNotFoundError(key)
        await asyncio.to_thread(path.unlink)

    async def list(self, prefix: str = "") -> List[str]:
        return await asyncio.to_thread(self._list_sync, prefix)

    def _list_sync(self, prefix: str) -> List[str]:
        if not self.base_path.exists():
            return []
        keys = []
        for path in self.base_path.rglob(f"*{_SUFFIX}"):
            if not path.is_file():
                continue
            key = path.relative_to(self.base_path).as_posix()[:-len(_SUFFIX)]
            if key.startswith(prefix):
                keys.append(key)
        return sorted(keys)

    async def clear(self) -> None:
        if self.base_path.exists():
            await asyncio.to_thread(shutil.rmtree, self.base_path)
        ensure_directory(self.base_path)
        logger.info(f"Cleared storage at {self.base_path}")
