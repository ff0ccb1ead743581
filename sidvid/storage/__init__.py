"""
SidVid Storage

Key/value persistence backends for sessions.
"""

from .adapter import StorageAdapter
from .memory_adapter import MemoryStorageAdapter
from .file_adapter import FileStorageAdapter


def create_storage(backend: str = "file", base_path=None) -> StorageAdapter:
    """Build a storage adapter from a StorageConfig-style backend name."""
    if backend == "memory":
        return MemoryStorageAdapter()
    if base_path is None:
        return FileStorageAdapter()
    return FileStorageAdapter(base_path)


__all__ = [
    'StorageAdapter',
    'MemoryStorageAdapter',
    'FileStorageAdapter',
    'create_storage',
]
