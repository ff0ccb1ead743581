"""
Tests for Final Video Assembly

Tests for the assembly manifest and assemble_final_video() in sidvid/session/session.py
"""

import pytest

from sidvid.core.constants import VideoJobStatus, session_key
from sidvid.core.exceptions import InvalidStateError
from sidvid.session import Session


async def _generated(session, scene_count=3):
    """Storyboard with one image per scene and every scene video generated."""
    await session.generate_story("a harbor mystery", scene_count)
    for scene in session.extract_scenes():
        await session.generate_scene_image(scene.id)
    await session.create_storyboard()
    await session.video_pipeline.start_generating_all_scenes()
    await session.video_pipeline.wait_until_idle(timeout=5)
    return session


class TestManifest:
    """Tests for get_assembly_manifest()."""

    @pytest.mark.asyncio
    async def test_clips_follow_scene_order_and_frame_timing(self, session):
        await _generated(session)
        frames = session.storyboard.scene_frames
        position = session.storyboard.frames.index(frames[1])
        await session.update_storyboard_frame(position, {"duration": 2.5, "transition": "fade"})

        clips = session.get_assembly_manifest()

        assert [c.scene_index for c in clips] == [0, 1, 2]
        assert [c.scene_id for c in clips] == [f.source_id for f in frames]
        assert [c.video_url for c in clips] == [j.video_url for j in session.video_pipeline.jobs]
        assert clips[1].duration == 2.5
        assert clips[1].transition == "fade"
        assert clips[0].duration == frames[0].duration

    @pytest.mark.asyncio
    async def test_unfinished_scenes_are_left_out(self, session):
        await _generated(session)
        failed = session.video_pipeline.get_job(1)
        failed.status = VideoJobStatus.FAILED
        failed.video_url = None

        clips = session.get_assembly_manifest()

        assert [c.scene_index for c in clips] == [0, 2]

    @pytest.mark.asyncio
    async def test_requires_storyboard(self, session):
        with pytest.raises(InvalidStateError):
            session.get_assembly_manifest()


class TestAssemble:
    """Tests for assemble_final_video()."""

    @pytest.mark.asyncio
    async def test_assembles_completed_scenes(self, session, mock_service):
        await _generated(session)

        final_video = await session.assemble_final_video()

        assert session.final_video is final_video
        assert mock_service.assembled[final_video.video_url] == [c.video_url for c in final_video.clips]
        assert len(final_video.clips) == 3
        assert final_video.total_duration == sum(f.duration for f in session.storyboard.scene_frames)

    @pytest.mark.asyncio
    async def test_nothing_to_assemble(self, session):
        await session.generate_story("a harbor mystery", 2)
        for scene in session.extract_scenes():
            await session.generate_scene_image(scene.id)
        await session.create_storyboard()

        with pytest.raises(InvalidStateError) as exc:
            await session.assemble_final_video()
        assert exc.value.message == "No completed scene videos to assemble"

    @pytest.mark.asyncio
    async def test_refused_while_generating(self, session):
        await _generated(session)
        await session.video_pipeline.start_generating_all_scenes()

        with pytest.raises(InvalidStateError) as exc:
            await session.assemble_final_video()

        assert exc.value.message == "Video generation is still running"
        session.video_pipeline.teardown()

    @pytest.mark.asyncio
    async def test_final_video_is_persisted(self, session, mock_service, memory_storage, fast_config):
        await _generated(session)
        session.enable_auto_save()

        final_video = await session.assemble_final_video()
        stored = await memory_storage.load(session_key(session.id))
        restored = Session(mock_service, memory_storage, session_id=session.id, config=fast_config)
        await restored.load()

        assert stored["final_video"]["video_url"] == final_video.video_url
        assert restored.final_video.to_dict() == final_video.to_dict()
