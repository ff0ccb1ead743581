"""
SidVid Generation Service

Abstract interface to the story, image and video providers, with typed results.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, asdict
from enum import Enum
from typing import Any, Dict, List, Optional

from sidvid.core.constants import VideoJobStatus, VideoProvider
from sidvid.core.exceptions import ProviderError
from sidvid.core.logging_config import get_logger
from sidvid.models.story import StoryVersion
from sidvid.models.video import VideoClip

logger = get_logger("generation.service")


class ProviderVideoStatus(Enum):
    """Video status vocabulary shared by all providers."""
    QUEUED = "queued"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    FAILED = "failed"

    def to_job_status(self) -> VideoJobStatus:
        return {
            ProviderVideoStatus.QUEUED: VideoJobStatus.QUEUED,
            ProviderVideoStatus.IN_PROGRESS: VideoJobStatus.GENERATING,
            ProviderVideoStatus.COMPLETED: VideoJobStatus.COMPLETED,
            ProviderVideoStatus.FAILED: VideoJobStatus.FAILED,
        }[self]


_STATUS_ALIASES = {
    "waiting": ProviderVideoStatus.QUEUED,
    "queuing": ProviderVideoStatus.QUEUED,
    "queued": ProviderVideoStatus.QUEUED,
    "submitted": ProviderVideoStatus.QUEUED,
    "pending": ProviderVideoStatus.QUEUED,
    "generating": ProviderVideoStatus.IN_PROGRESS,
    "processing": ProviderVideoStatus.IN_PROGRESS,
    "in_progress": ProviderVideoStatus.IN_PROGRESS,
    "success": ProviderVideoStatus.COMPLETED,
    "succeed": ProviderVideoStatus.COMPLETED,
    "completed": ProviderVideoStatus.COMPLETED,
    "fail": ProviderVideoStatus.FAILED,
    "failed": ProviderVideoStatus.FAILED,
}


def normalize_provider_status(raw: str) -> ProviderVideoStatus:
    """
    Map a provider-specific status string onto ProviderVideoStatus.

    Unknown values are treated as still in progress so polling continues.
    """
    status = _STATUS_ALIASES.get((raw or "").strip().lower())
    if status is None:
        logger.warning(f"Unknown provider video status '{raw}', treating as in progress")
        return ProviderVideoStatus.IN_PROGRESS
    return status


@dataclass
class ImageOptions:
    style: str = "realistic"
    size: str = "1024x1024"
    quality: str = "standard"
    aspect_ratio: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class ImageResult:
    image_url: str
    revised_prompt: Optional[str] = None


@dataclass
class VideoOptions:
    provider: str = VideoProvider.MOCK.value
    sound: bool = True


@dataclass
class VideoSubmission:
    video_id: str


@dataclass
class VideoStatusResult:
    status: ProviderVideoStatus
    progress: int = 0
    video_url: Optional[str] = None
    error: Optional[str] = None

    @property
    def is_terminal(self) -> bool:
        return self.status in (ProviderVideoStatus.COMPLETED, ProviderVideoStatus.FAILED)


class GenerationService(ABC):
    """
    Story, image and video generation backend.

    Implementations raise ProviderError (or RateLimitError) on provider failures.
    """

    @abstractmethod
    async def generate_story(self, prompt: str, scene_count: Optional[int] = None) -> StoryVersion:
        pass

    @abstractmethod
    async def improve_story(self, current: StoryVersion, prompt: Optional[str] = None) -> StoryVersion:
        pass

    @abstractmethod
    async def enhance_description(self, text: str, prompt: Optional[str] = None) -> str:
        pass

    @abstractmethod
    async def generate_image(self, description: str, options: ImageOptions) -> ImageResult:
        pass

    @abstractmethod
    async def generate_video(
        self,
        scene_description: str,
        image_url: str,
        options: VideoOptions
    ) -> VideoSubmission:
        pass

    @abstractmethod
    async def check_video_status(self, video_id: str) -> VideoStatusResult:
        pass

    async def assemble_video(self, clips: List[VideoClip]) -> str:
        """
        Join completed scene clips, in the given order, into one video.

        Args:
            clips: Ordered clips with their storyboard durations

        Returns:
            URL of the assembled video

        Raises:
            ProviderError: If the backend cannot assemble videos
        """
        raise ProviderError("Video assembly is not supported by this provider")
