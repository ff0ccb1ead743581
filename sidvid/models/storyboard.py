"""
Storyboard Models
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from sidvid.core.constants import DEFAULT_FRAME_DURATION, FrameType
from .common import utc_now, new_id


@dataclass
class StoryboardFrame:
    """One frame: a generated asset plus its timing."""
    image_url: str
    frame_type: FrameType
    source_id: str
    title: str = ""
    description: str = ""
    duration: float = DEFAULT_FRAME_DURATION  # seconds
    transition: Optional[str] = None
    id: str = field(default_factory=new_id)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "image_url": self.image_url,
            "frame_type": self.frame_type.value,
            "source_id": self.source_id,
            "title": self.title,
            "description": self.description,
            "duration": self.duration,
            "transition": self.transition,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "StoryboardFrame":
        return cls(
            image_url=data.get("image_url", ""),
            frame_type=FrameType(data.get("frame_type", FrameType.SCENE.value)),
            source_id=data.get("source_id", ""),
            title=data.get("title", ""),
            description=data.get("description", ""),
            duration=float(data.get("duration", DEFAULT_FRAME_DURATION)),
            transition=data.get("transition"),
            id=data.get("id") or new_id()
        )


@dataclass
class Storyboard:
    """Ordered frames assembled from a session's generated images."""
    frames: List[StoryboardFrame] = field(default_factory=list)
    id: str = field(default_factory=new_id)
    created_at: str = field(default_factory=utc_now)

    @property
    def total_duration(self) -> float:
        return sum(f.duration for f in self.frames)

    @property
    def scene_frames(self) -> List[StoryboardFrame]:
        return [f for f in self.frames if f.frame_type == FrameType.SCENE]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "created_at": self.created_at,
            "frames": [f.to_dict() for f in self.frames],
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Storyboard":
        return cls(
            frames=[StoryboardFrame.from_dict(f) for f in data.get("frames", [])],
            id=data.get("id") or new_id(),
            created_at=data.get("created_at") or utc_now()
        )
