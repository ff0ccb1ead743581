"""Sessions router for SidVid API.

Session CRUD, story versions, world elements and storyboard endpoints.
"""

import json
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Body, Request
from pydantic import BaseModel
from slowapi import Limiter
from slowapi.util import get_remote_address

from sidvid.core.constants import ElementType
from sidvid.core.logging_config import get_logger
from sidvid.generation.service import ImageOptions
from ..dependencies import get_manager, element_view, session_view

logger = get_logger("api.sessions")

router = APIRouter()

# Rate limiter for provider-backed operations
limiter = Limiter(key_func=get_remote_address)


class CreateSessionRequest(BaseModel):
    name: Optional[str] = None


class RenameSessionRequest(BaseModel):
    name: str


class StoryRequest(BaseModel):
    prompt: str
    scene_count: Optional[int] = None


class ImproveRequest(BaseModel):
    prompt: Optional[str] = None


class RevertRequest(BaseModel):
    index: int


class ElementRequest(BaseModel):
    name: str
    type: ElementType
    description: str = ""


class EnhanceRequest(BaseModel):
    prompt: Optional[str] = None


class ImageRequest(BaseModel):
    style: Optional[str] = None
    size: Optional[str] = None
    quality: Optional[str] = None
    aspect_ratio: Optional[str] = None


class ReorderRequest(BaseModel):
    order: List[int]


class FrameUpdateRequest(BaseModel):
    duration: Optional[float] = None
    transition: Optional[str] = None


# =============================================================================
# SESSIONS
# =============================================================================

@router.get("")
async def list_sessions(request: Request):
    """List session metadata, most recently updated first."""
    sessions = await get_manager(request).list_sessions()
    return {"sessions": [m.to_dict() for m in sessions]}


@router.post("", status_code=201)
async def create_session(request: Request, body: CreateSessionRequest):
    session = await get_manager(request).create_session(body.name)
    return session_view(session)


@router.delete("")
async def delete_all_sessions(request: Request):
    await get_manager(request).delete_all_sessions()
    return {"success": True}


@router.get("/active")
async def get_active_session(request: Request):
    session = get_manager(request).get_active_session()
    return {"session": session_view(session) if session else None}


@router.put("/active/{session_id}")
async def set_active_session(request: Request, session_id: str):
    session = await get_manager(request).set_active_session(session_id)
    return session_view(session)


@router.post("/import", status_code=201)
async def import_session(request: Request, payload: Any = Body(...)):
    session = await get_manager(request).import_session(payload)
    return session_view(session)


@router.get("/export-all")
async def export_all_sessions(request: Request):
    return json.loads(await get_manager(request).export_all_sessions())


@router.post("/import-all", status_code=201)
async def import_all_sessions(request: Request, payload: Any = Body(...)):
    sessions = await get_manager(request).import_all_sessions(payload)
    return {"sessions": [s.get_metadata().to_dict() for s in sessions]}


@router.get("/{session_id}")
async def get_session(request: Request, session_id: str):
    session = await get_manager(request).load_session(session_id)
    return session_view(session)


@router.patch("/{session_id}")
async def rename_session(request: Request, session_id: str, body: RenameSessionRequest):
    session = await get_manager(request).rename_session(session_id, body.name)
    return session_view(session)


@router.delete("/{session_id}")
async def delete_session(request: Request, session_id: str):
    await get_manager(request).delete_session(session_id)
    return {"success": True}


@router.get("/{session_id}/export")
async def export_session(request: Request, session_id: str):
    return json.loads(await get_manager(request).export_session(session_id))


# =============================================================================
# STORY
# =============================================================================

@router.post("/{session_id}/story")
@limiter.limit("30/minute")
async def generate_story(request: Request, session_id: str, body: StoryRequest):
    session = await get_manager(request).load_session(session_id)
    story = await session.generate_story(body.prompt, body.scene_count)
    return {"story": story.to_dict(), "current_index": session.current_index}


@router.post("/{session_id}/story/improve")
@limiter.limit("30/minute")
async def improve_story(request: Request, session_id: str, body: ImproveRequest):
    session = await get_manager(request).load_session(session_id)
    story = await session.improve_story(body.prompt)
    return {"story": story.to_dict(), "current_index": session.current_index}


@router.post("/{session_id}/story/revert")
async def revert_story(request: Request, session_id: str, body: RevertRequest):
    session = await get_manager(request).load_session(session_id)
    story = await session.revert_to_story(body.index)
    return {"story": story.to_dict(), "current_index": session.current_index}


@router.get("/{session_id}/story/history")
async def story_history(request: Request, session_id: str):
    session = await get_manager(request).load_session(session_id)
    return {
        "history": [s.to_dict() for s in session.get_story_history()],
        "current_index": session.current_index,
    }


# =============================================================================
# WORLD ELEMENTS
# =============================================================================

@router.get("/{session_id}/characters")
async def extract_characters(request: Request, session_id: str):
    session = await get_manager(request).load_session(session_id)
    return {"characters": [element_view(el) for el in session.extract_characters()]}


@router.get("/{session_id}/scenes")
async def extract_scenes(request: Request, session_id: str):
    session = await get_manager(request).load_session(session_id)
    return {"scenes": [element_view(el) for el in session.extract_scenes()]}


@router.get("/{session_id}/locations")
async def extract_locations(request: Request, session_id: str):
    session = await get_manager(request).load_session(session_id)
    return {"locations": [element_view(el) for el in session.extract_locations()]}


@router.post("/{session_id}/elements", status_code=201)
async def add_element(request: Request, session_id: str, body: ElementRequest):
    session = await get_manager(request).load_session(session_id)
    element = await session.add_element(body.name, body.type, body.description)
    return element_view(element)


@router.delete("/{session_id}/elements/{element_id}")
async def delete_element(request: Request, session_id: str, element_id: str):
    session = await get_manager(request).load_session(session_id)
    await session.delete_element(element_id)
    return {"success": True}


@router.post("/{session_id}/elements/{element_id}/enhance")
@limiter.limit("30/minute")
async def enhance_element(request: Request, session_id: str, element_id: str, body: EnhanceRequest):
    session = await get_manager(request).load_session(session_id)
    element = await session.enhance_element(element_id, body.prompt)
    return element_view(element)


@router.post("/{session_id}/elements/{element_id}/images")
@limiter.limit("30/minute")
async def generate_element_image(request: Request, session_id: str, element_id: str, body: ImageRequest):
    session = await get_manager(request).load_session(session_id)
    element = session.get_element(element_id)
    options = session.default_image_options(element.type)
    for key, value in body.model_dump(exclude_none=True).items():
        setattr(options, key, value)
    element = await session.generate_element_image(element_id, options)
    return element_view(element)


@router.put("/{session_id}/elements/{element_id}/images/{image_id}/active")
async def set_active_image(request: Request, session_id: str, element_id: str, image_id: str):
    session = await get_manager(request).load_session(session_id)
    await session.set_active_image(element_id, image_id)
    return element_view(session.get_element(element_id))


@router.delete("/{session_id}/elements/{element_id}/images/{image_id}")
async def delete_image(request: Request, session_id: str, element_id: str, image_id: str):
    session = await get_manager(request).load_session(session_id)
    await session.delete_image(element_id, image_id)
    return element_view(session.get_element(element_id))


@router.get("/{session_id}/elements/{element_id}/history")
async def element_history(request: Request, session_id: str, element_id: str):
    session = await get_manager(request).load_session(session_id)
    return {"history": [v.to_dict() for v in session.get_element_history(element_id)]}


# =============================================================================
# STORYBOARD
# =============================================================================

@router.post("/{session_id}/storyboard")
async def create_storyboard(request: Request, session_id: str):
    session = await get_manager(request).load_session(session_id)
    storyboard = await session.create_storyboard()
    return storyboard.to_dict()


@router.put("/{session_id}/storyboard/order")
async def reorder_storyboard(request: Request, session_id: str, body: ReorderRequest):
    session = await get_manager(request).load_session(session_id)
    storyboard = await session.reorder_storyboard_frames(body.order)
    return storyboard.to_dict()


@router.patch("/{session_id}/storyboard/frames/{index}")
async def update_storyboard_frame(request: Request, session_id: str, index: int, body: FrameUpdateRequest):
    session = await get_manager(request).load_session(session_id)
    patch: Dict[str, Any] = body.model_dump(exclude_unset=True)
    frame = await session.update_storyboard_frame(index, patch)
    return frame.to_dict()
