"""
In-memory storage adapter, used by tests and ephemeral API instances.
"""

import json
from typing import Any, Dict, List

from sidvid.core.exceptions import StorageKeyNotFoundError
from sidvid.core.logging_config import get_logger
from .adapter import StorageAdapter

logger = get_logger("storage.memory")


class MemoryStorageAdapter(StorageAdapter):
    """Dict-backed storage; values are copied through JSON on the way in and out."""

    def __init__(self):
        self._data: Dict[str, str] = {}

    async def load(self, key: str) -> Any:
        if key not in self._data:
            raise StorageKeyNotFoundError(key)
        return json.loads(self._data[key])

    async def save(self, key: str, value: Any) -> None:
        self._data[key] = json.dumps(value)
        logger.debug(f"Saved {key}")

    async def delete(self, key: str) -> None:
        if key not in self._data:
            raise StorageKeyNotFoundError(key)
        del self._data[key]

    async def list(self, prefix: str = "") -> List[str]:
        return sorted(k for k in self._data if k.startswith(prefix))

    async def clear(self) -> None:
        self._data.clear()

    def __len__(self) -> int:
        return len(self._data)
