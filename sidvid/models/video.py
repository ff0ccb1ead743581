"""
Video Job Models
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from sidvid.core.constants import DEFAULT_FRAME_DURATION, VideoJobStatus
from .common import utc_now, new_id


@dataclass
class SceneVideoJob:
    """Video generation state of one storyboard scene."""
    scene_index: int
    scene_id: str
    description: str = ""
    image_url: str = ""
    video_id: Optional[str] = None
    video_url: Optional[str] = None
    status: VideoJobStatus = VideoJobStatus.PENDING
    progress: int = 0  # 0-100
    error: Optional[str] = None
    message: Optional[str] = None
    retry_count: int = 0

    def reset(self) -> None:
        self.video_id = None
        self.video_url = None
        self.status = VideoJobStatus.PENDING
        self.progress = 0
        self.error = None
        self.message = None
        self.retry_count = 0

    def release(self) -> bool:
        """Return an in-flight job to pending. True if the job was in flight."""
        if self.status.is_terminal or self.status == VideoJobStatus.PENDING:
            return False
        self.reset()
        return True

    def to_dict(self) -> Dict[str, Any]:
        return {
            "scene_index": self.scene_index,
            "scene_id": self.scene_id,
            "description": self.description,
            "image_url": self.image_url,
            "video_id": self.video_id,
            "video_url": self.video_url,
            "status": self.status.value,
            "progress": self.progress,
            "error": self.error,
            "message": self.message,
            "retry_count": self.retry_count,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "SceneVideoJob":
        """Create from dict; jobs that were in flight come back as pending."""
        status = VideoJobStatus(data.get("status", VideoJobStatus.PENDING.value))
        job = cls(
            scene_index=int(data.get("scene_index", 0)),
            scene_id=data.get("scene_id", ""),
            description=data.get("description", ""),
            image_url=data.get("image_url", ""),
            video_id=data.get("video_id"),
            video_url=data.get("video_url"),
            status=status,
            progress=int(data.get("progress", 0)),
            error=data.get("error"),
            message=data.get("message"),
            retry_count=int(data.get("retry_count", 0))
        )
        job.release()
        return job


@dataclass
class VideoClip:
    """A completed scene video placed in the final cut."""
    scene_index: int
    scene_id: str
    video_url: str
    duration: float = DEFAULT_FRAME_DURATION  # seconds, from the storyboard frame
    transition: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "scene_index": self.scene_index,
            "scene_id": self.scene_id,
            "video_url": self.video_url,
            "duration": self.duration,
            "transition": self.transition,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "VideoClip":
        return cls(
            scene_index=int(data.get("scene_index", 0)),
            scene_id=data.get("scene_id", ""),
            video_url=data.get("video_url", ""),
            duration=float(data.get("duration", DEFAULT_FRAME_DURATION)),
            transition=data.get("transition")
        )


@dataclass
class FinalVideo:
    """The assembled video and the ordered clips it was made from."""
    video_url: str
    clips: List[VideoClip] = field(default_factory=list)
    id: str = field(default_factory=new_id)
    created_at: str = field(default_factory=utc_now)

    @property
    def total_duration(self) -> float:
        return sum(c.duration for c in self.clips)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "video_url": self.video_url,
            "clips": [c.to_dict() for c in self.clips],
            "total_duration": self.total_duration,
            "created_at": self.created_at,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "FinalVideo":
        return cls(
            video_url=data.get("video_url", ""),
            clips=[VideoClip.from_dict(c) for c in data.get("clips", [])],
            id=data.get("id") or new_id(),
            created_at=data.get("created_at") or utc_now()
        )
