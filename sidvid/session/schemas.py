"""
Session Snapshot Schemas

Pydantic models used to validate session data before it is imported.
"""

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ValidationError, model_validator

from sidvid.core.constants import ElementType, FrameType, SlotStatus, VideoJobStatus
from sidvid.core.exceptions import InvalidSessionDataError


class StorySceneSchema(BaseModel):
    number: int
    title: str = ""
    description: str
    dialogue: str = ""
    action: str = ""


class StoryCharacterSchema(BaseModel):
    name: str
    description: str
    physical: str = ""
    profile: str = ""


class StoryLocationSchema(BaseModel):
    name: str
    description: str


class StoryVersionSchema(BaseModel):
    id: str
    title: str
    scenes: List[StorySceneSchema]
    characters: List[StoryCharacterSchema] = []
    locations: List[StoryLocationSchema] = []
    raw_content: str = ""
    prompt: Optional[str] = None
    created_at: str


class ElementImageSchema(BaseModel):
    id: str
    image_url: str
    revised_prompt: Optional[str] = None
    is_active: bool
    created_at: str


class WorldElementVersionSchema(BaseModel):
    id: str
    name: str
    description: str
    enhanced_description: Optional[str] = None
    images: List[ElementImageSchema] = []
    note: str = ""
    created_at: str


class WorldElementSchema(BaseModel):
    id: str
    name: str
    type: ElementType
    description: str
    enhanced_description: Optional[str] = None
    is_enhanced: bool = False
    pre_enhancement_description: Optional[str] = None
    images: List[ElementImageSchema] = []
    history: List[WorldElementVersionSchema] = []
    attributes: Dict[str, Any] = {}
    source_key: Optional[str] = None
    created_at: str
    updated_at: str

    @model_validator(mode="after")
    def check_single_active_image(self):
        active = [i for i in self.images if i.is_active]
        if self.images and len(active) != 1:
            raise ValueError(f"element {self.id} must have exactly one active image")
        return self


class ExtractionSchema(BaseModel):
    story_id: str
    element_ids: List[str]


class SceneSlotSchema(BaseModel):
    id: str
    scene_index: Optional[int] = None
    description: str = ""
    dialogue: str = ""
    action: str = ""
    custom_description: Optional[str] = None
    element_ids: List[str] = []
    status: SlotStatus = SlotStatus.PENDING
    images: List[ElementImageSchema] = []
    error: Optional[str] = None


class ScenePipelineSchema(BaseModel):
    source_story_index: int
    slots: List[SceneSlotSchema]


class StoryboardFrameSchema(BaseModel):
    id: str
    image_url: str
    frame_type: FrameType
    source_id: str
    title: str = ""
    description: str = ""
    duration: float
    transition: Optional[str] = None


class StoryboardSchema(BaseModel):
    id: str
    created_at: str
    frames: List[StoryboardFrameSchema]


class SceneVideoJobSchema(BaseModel):
    scene_index: int
    scene_id: str
    description: str = ""
    image_url: str = ""
    video_id: Optional[str] = None
    video_url: Optional[str] = None
    status: VideoJobStatus
    progress: int = 0
    error: Optional[str] = None
    message: Optional[str] = None
    retry_count: int = 0


class VideoPipelineSchema(BaseModel):
    status: str = "idle"
    jobs: List[SceneVideoJobSchema] = []


class VideoClipSchema(BaseModel):
    scene_index: int
    scene_id: str
    video_url: str
    duration: float
    transition: Optional[str] = None


class FinalVideoSchema(BaseModel):
    id: str
    video_url: str
    clips: List[VideoClipSchema]
    created_at: str


class SessionSnapshotSchema(BaseModel):
    """Full session snapshot as written by Session.to_dict()."""
    id: str
    name: str
    created_at: str
    updated_at: str
    story_history: List[StoryVersionSchema]
    current_index: int
    elements: List[WorldElementSchema] = []
    extractions: Dict[ElementType, ExtractionSchema] = {}
    scene_pipeline: Optional[ScenePipelineSchema] = None
    storyboard: Optional[StoryboardSchema] = None
    video_pipeline: Optional[VideoPipelineSchema] = None
    final_video: Optional[FinalVideoSchema] = None

    @model_validator(mode="after")
    def check_current_index(self):
        if self.story_history:
            if not 0 <= self.current_index < len(self.story_history):
                raise ValueError("current_index out of range")
        elif self.current_index != -1:
            raise ValueError("current_index must be -1 without story history")
        return self


def validate_session_data(data: Any) -> Dict[str, Any]:
    """
    Validate a session snapshot.

    Args:
        data: Decoded JSON value

    Returns:
        The data unchanged, once validated

    Raises:
        InvalidSessionDataError: If the data does not describe a session
    """
    if not isinstance(data, dict):
        raise InvalidSessionDataError(details={"reason": "expected a JSON object"})
    try:
        SessionSnapshotSchema.model_validate(data)
    except ValidationError as e:
        raise InvalidSessionDataError(details={"errors": e.errors(include_url=False, include_context=False)})
    return data
