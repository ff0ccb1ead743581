"""
SidVid Storage Adapter

Abstract key/value interface sessions persist through.
"""

from abc import ABC, abstractmethod
from typing import Any, List


class StorageAdapter(ABC):
    """
    Key-based persistence backend.

    Values are JSON-compatible structures. Keys are slash separated paths
    such as ``sessions/index``. Each ``save`` must replace the value of its
    key atomically.
    """

    @abstractmethod
    async def load(self, key: str) -> Any:
        """Return the value stored at key; raises StorageKeyNotFoundError if absent."""
        pass

    @abstractmethod
    async def save(self, key: str, value: Any) -> None:
        pass

    @abstractmethod
    async def delete(self, key: str) -> None:
        """Remove key; raises StorageKeyNotFoundError if absent."""
        pass

    @abstractmethod
    async def list(self, prefix: str = "") -> List[str]:
        """Return all keys that start with prefix, sorted."""
        pass

    @abstractmethod
    async def clear(self) -> None:
        pass

    async def exists(self, key: str) -> bool:
        return key in await self.list(key)
