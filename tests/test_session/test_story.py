"""
Tests for Session Story History

Tests for story generation, improvement and revert in sidvid/session/session.py
"""

import asyncio

import pytest

from sidvid.core.exceptions import InvalidArgumentError, InvalidStateError
from sidvid.generation import MockGenerationService


class CountingService(MockGenerationService):
    """Tracks how many story calls run at the same time."""

    def __init__(self):
        super().__init__(latency=0.01)
        self.active = 0
        self.max_active = 0

    async def generate_story(self, prompt, scene_count=None):
        self.active += 1
        self.max_active = max(self.max_active, self.active)
        try:
            return await super().generate_story(prompt, scene_count)
        finally:
            self.active -= 1


class TestStoryHistory:
    """Tests for generate_story and improve_story."""

    def test_new_session_has_no_story(self, session):
        assert session.get_current_story() is None
        assert session.get_story_history() == []
        assert session.current_index == -1

    @pytest.mark.asyncio
    async def test_generate_appends_and_becomes_current(self, session):
        first = await session.generate_story("a harbor mystery")
        second = await session.generate_story("a desert chase", 3)

        assert session.get_story_history() == [first, second]
        assert session.current_index == 1
        assert session.get_current_story() is second
        assert len(first.scenes) == 5
        assert len(second.scenes) == 3

    @pytest.mark.asyncio
    async def test_improve_appends_new_version(self, session):
        original = await session.generate_story("a harbor mystery")
        improved = await session.improve_story("add rain")

        assert session.current_index == 1
        assert session.get_current_story() is improved
        assert improved.id != original.id
        assert session.story_history[0] is original

    @pytest.mark.asyncio
    async def test_improve_without_story_rejected(self, session):
        with pytest.raises(InvalidStateError) as exc:
            await session.improve_story()

        assert exc.value.message == "No story to improve. Generate a story first."
        assert session.get_story_history() == []

    @pytest.mark.asyncio
    async def test_history_returns_a_copy(self, session):
        await session.generate_story("a harbor mystery")
        session.get_story_history().clear()

        assert len(session.story_history) == 1

    @pytest.mark.asyncio
    async def test_concurrent_generation_is_serialized(self, memory_storage, fast_config):
        """Two overlapping generate calls both land in the history, one at a time."""
        from sidvid.session import Session

        service = CountingService()
        session = Session(service, memory_storage, config=fast_config)

        a, b = await asyncio.gather(
            session.generate_story("first"),
            session.generate_story("second"),
        )

        assert service.max_active == 1
        assert session.get_story_history() == [a, b]
        assert session.current_index == 1


class TestRevert:
    """Tests for revert_to_story."""

    @pytest.mark.asyncio
    async def test_revert_truncates_history(self, session):
        await session.generate_story("a harbor mystery")
        for note in ("one", "two", "three"):
            await session.improve_story(note)
        versions = session.get_story_history()

        for i in (3, 2, 1, 0):
            story = await session.revert_to_story(i)

            assert len(session.story_history) == i + 1
            assert session.current_index == i
            assert story is versions[i]
            assert session.get_current_story() is versions[i]

    @pytest.mark.asyncio
    async def test_generate_after_revert_discards_later_versions(self, session):
        first = await session.generate_story("a harbor mystery")
        await session.improve_story()
        await session.revert_to_story(0)
        newest = await session.generate_story("a desert chase")

        assert session.get_story_history() == [first, newest]

    @pytest.mark.asyncio
    @pytest.mark.parametrize("index", [-1, 2, 10])
    async def test_invalid_index_leaves_history_alone(self, session, index):
        await session.generate_story("a harbor mystery")
        await session.improve_story()

        with pytest.raises(InvalidArgumentError) as exc:
            await session.revert_to_story(index)

        assert exc.value.message == "Invalid story index"
        assert len(session.story_history) == 2
        assert session.current_index == 1

    @pytest.mark.asyncio
    async def test_revert_on_empty_history(self, session):
        with pytest.raises(InvalidArgumentError):
            await session.revert_to_story(0)
