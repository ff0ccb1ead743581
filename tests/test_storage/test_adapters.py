"""
Tests for Storage Adapters

Tests for sidvid/storage/
"""

import pytest

from sidvid.core.exceptions import StorageError, StorageKeyNotFoundError
from sidvid.storage import FileStorageAdapter, MemoryStorageAdapter, create_storage


@pytest.fixture(params=["memory", "file"])
def adapter(request, temp_dir):
    if request.param == "memory":
        return MemoryStorageAdapter()
    return FileStorageAdapter(temp_dir / "store")


class TestStorageContract:
    """Behavior shared by every adapter."""

    @pytest.mark.asyncio
    async def test_save_and_load(self, adapter):
        await adapter.save("sessions/a", {"name": "A", "items": [1, 2]})

        assert await adapter.load("sessions/a") == {"name": "A", "items": [1, 2]}

    @pytest.mark.asyncio
    async def test_save_replaces_value(self, adapter):
        await adapter.save("k", {"v": 1})
        await adapter.save("k", {"v": 2})

        assert await adapter.load("k") == {"v": 2}

    @pytest.mark.asyncio
    async def test_load_missing_raises(self, adapter):
        with pytest.raises(StorageKeyNotFoundError):
            await adapter.load("sessions/missing")

    @pytest.mark.asyncio
    async def test_delete(self, adapter):
        await adapter.save("sessions/a", {})
        await adapter.delete("sessions/a")

        assert not await adapter.exists("sessions/a")
        with pytest.raises(StorageKeyNotFoundError):
            await adapter.delete("sessions/a")

    @pytest.mark.asyncio
    async def test_list_by_prefix_sorted(self, adapter):
        for key in ("sessions/b", "sessions/a", "other/x", "sessions/index"):
            await adapter.save(key, {})

        assert await adapter.list("sessions/") == ["sessions/a", "sessions/b", "sessions/index"]
        assert len(await adapter.list()) == 4

    @pytest.mark.asyncio
    async def test_clear(self, adapter):
        await adapter.save("a", 1)
        await adapter.save("b/c", 2)
        await adapter.clear()

        assert await adapter.list() == []

    @pytest.mark.asyncio
    async def test_loaded_value_is_a_copy(self, adapter):
        value = {"items": [1]}
        await adapter.save("k", value)
        value["items"].append(2)

        loaded = await adapter.load("k")
        loaded["items"].append(3)

        assert await adapter.load("k") == {"items": [1]}


class TestFileStorageAdapter:
    """File-specific behavior."""

    @pytest.mark.asyncio
    async def test_key_maps_to_json_file(self, temp_dir):
        adapter = FileStorageAdapter(temp_dir)
        await adapter.save("sessions/abc", {"id": "abc"})

        assert (temp_dir / "sessions" / "abc.json").is_file()

    @pytest.mark.asyncio
    async def test_no_temp_files_left_behind(self, temp_dir):
        adapter = FileStorageAdapter(temp_dir)
        for i in range(3):
            await adapter.save("sessions/abc", {"n": i})

        assert [p.name for p in (temp_dir / "sessions").iterdir()] == ["abc.json"]

    @pytest.mark.asyncio
    @pytest.mark.parametrize("key", ["", "../escape", "sessions/./x"])
    async def test_invalid_keys_rejected(self, temp_dir, key):
        adapter = FileStorageAdapter(temp_dir)

        with pytest.raises(StorageError):
            await adapter.save(key, {})

    @pytest.mark.asyncio
    async def test_list_on_missing_directory(self, temp_dir):
        adapter = FileStorageAdapter(temp_dir / "never-created")

        assert await adapter.list() == []


class TestCreateStorage:
    """Tests for the storage factory."""

    def test_memory_backend(self):
        assert isinstance(create_storage("memory"), MemoryStorageAdapter)

    def test_file_backend(self, temp_dir):
        adapter = create_storage("file", temp_dir)

        assert isinstance(adapter, FileStorageAdapter)
        assert adapter.base_path == temp_dir
