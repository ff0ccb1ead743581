"""Shared request helpers for SidVid API routers."""

from typing import Any, Dict

from fastapi import Request

from sidvid.models.world import WorldElement
from sidvid.session import Session, SessionManager


def get_manager(request: Request) -> SessionManager:
    return request.app.state.manager


def element_view(element: WorldElement) -> Dict[str, Any]:
    data = element.to_dict()
    data["history_length"] = len(element.history)
    data.pop("history")
    return data


def session_view(session: Session) -> Dict[str, Any]:
    """Compact view of a session without per-element histories."""
    story = session.get_current_story()
    return {
        **session.get_metadata().to_dict(),
        "current_index": session.current_index,
        "current_story": story.to_dict() if story else None,
        "elements": [element_view(el) for el in session.elements.values()],
        "storyboard": session.storyboard.to_dict() if session.storyboard else None,
        "video": session.video_pipeline.to_dict(),
        "final_video": session.final_video.to_dict() if session.final_video else None,
    }
