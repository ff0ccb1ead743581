"""
SidVid Constants

Central definitions for enums, storage keys and pipeline timing defaults.
"""

from enum import Enum


# =============================================================================
# WORLD ELEMENTS
# =============================================================================

class ElementType(Enum):
    """Kinds of world element a session tracks."""
    CHARACTER = "character"
    LOCATION = "location"
    OBJECT = "object"
    CONCEPT = "concept"
    SCENE = "scene"


class FrameType(Enum):
    """Source kind of a storyboard frame."""
    CHARACTER = "character"
    LOCATION = "location"
    ELEMENT = "element"
    SCENE = "scene"


# =============================================================================
# SCENE SLOTS
# =============================================================================

class SlotStatus(Enum):
    """Image generation status of a scene slot."""
    PENDING = "pending"
    GENERATING = "generating"
    COMPLETED = "completed"
    FAILED = "failed"


# =============================================================================
# VIDEO PIPELINE
# =============================================================================

class VideoJobStatus(Enum):
    """Per-scene video job states."""
    PENDING = "pending"
    QUEUED = "queued"
    RETRY_SCHEDULED = "retry_scheduled"
    GENERATING = "generating"
    COMPLETED = "completed"
    FAILED = "failed"

    @property
    def is_terminal(self) -> bool:
        return self in (VideoJobStatus.COMPLETED, VideoJobStatus.FAILED)

    @property
    def is_live(self) -> bool:
        return self in (VideoJobStatus.QUEUED, VideoJobStatus.GENERATING)


class VideoPipelineStatus(Enum):
    """Overall state of a session's video pipeline."""
    IDLE = "idle"
    RUNNING = "running"


class VideoProvider(Enum):
    """Video providers the generation service can route to."""
    MOCK = "mock"
    KLING = "kling"
    SORA = "sora"


# =============================================================================
# DEFAULTS
# =============================================================================

MAX_RETRIES = 3
RETRY_DELAY_SECONDS = 10.0
POLL_INTERVAL_SECONDS = 5.0
SETTLE_DELAY_SECONDS = 5.0

DEFAULT_SCENE_COUNT = 5
DEFAULT_FRAME_DURATION = 5.0
DEFAULT_SESSION_NAME = "Untitled Session"
DEFAULT_IMPROVE_PROMPT = "Improve this story and make it more engaging"

DEFAULT_STORAGE_PATH = ".sidvid"

# Storage layout
SESSIONS_PREFIX = "sessions/"
SESSION_INDEX_KEY = "sessions/index"


def session_key(session_id: str) -> str:
    """Storage key of one session snapshot."""
    return f"{SESSIONS_PREFIX}{session_id}"
