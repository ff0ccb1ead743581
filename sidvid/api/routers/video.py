"""Video router for SidVid API.

Starts, advances, cancels and reports on a session's scene video pipeline,
and assembles the completed scenes into the final video.
"""

from fastapi import APIRouter, Request
from slowapi import Limiter
from slowapi.util import get_remote_address

from sidvid.core.logging_config import get_logger
from sidvid.pipelines.video_pipeline import VideoPipeline
from ..dependencies import get_manager

logger = get_logger("api.video")

router = APIRouter()

# Video generation is the most expensive provider call
limiter = Limiter(key_func=get_remote_address)


def _status(pipeline: VideoPipeline) -> dict:
    return {
        "status": pipeline.status.value,
        "progress": pipeline.aggregate_progress,
        "counts": pipeline.summary(),
        "jobs": [j.to_dict() for j in pipeline.jobs],
    }


@router.post("/{session_id}/start")
@limiter.limit("10/minute")
async def start_video_generation(request: Request, session_id: str):
    """Reset all scene jobs and start sequential generation in the background."""
    session = await get_manager(request).load_session(session_id)
    await session.video_pipeline.start_generating_all_scenes()
    logger.info(f"Video generation started for session {session_id}")
    return _status(session.video_pipeline)


@router.post("/{session_id}/next")
async def generate_next_scene(request: Request, session_id: str):
    session = await get_manager(request).load_session(session_id)
    session.video_pipeline.generate_next_scene()
    return _status(session.video_pipeline)


@router.post("/{session_id}/cancel")
async def cancel_video_generation(request: Request, session_id: str):
    session = await get_manager(request).load_session(session_id)
    session.video_pipeline.teardown()
    return _status(session.video_pipeline)


@router.get("/{session_id}/status")
async def video_status(request: Request, session_id: str):
    session = await get_manager(request).load_session(session_id)
    return _status(session.video_pipeline)


@router.get("/{session_id}/manifest")
async def assembly_manifest(request: Request, session_id: str):
    """Completed scene clips, in order, that the final video is built from."""
    session = await get_manager(request).load_session(session_id)
    clips = session.get_assembly_manifest()
    return {
        "clips": [c.to_dict() for c in clips],
        "total_duration": sum(c.duration for c in clips),
    }


@router.post("/{session_id}/assemble")
@limiter.limit("10/minute")
async def assemble_final_video(request: Request, session_id: str):
    session = await get_manager(request).load_session(session_id)
    final_video = await session.assemble_final_video()
    return final_video.to_dict()
