"""
SidVid - Story to Storyboard to Scene Video

Manages revertible story versions, world elements with enhancement and image
histories, storyboard assembly and a sequential scene video pipeline.

Version: 0.3.0
"""

__version__ = "0.3.0"
__project__ = "SidVid"

from pathlib import Path

# Load environment variables early
from sidvid.core.env_loader import ensure_env_loaded
ensure_env_loaded()

# Package root directory
PACKAGE_ROOT = Path(__file__).parent

from .core.exceptions import (
    SidVidError,
    NotFoundError,
    SessionNotFoundError,
    InvalidArgumentError,
    InvalidSessionDataError,
    ProviderError,
    RateLimitError,
)
from .generation import GenerationService, MockGenerationService
from .pipelines import VideoPipeline
from .session import Session, SessionManager
from .storage import StorageAdapter, MemoryStorageAdapter, FileStorageAdapter

__all__ = [
    '__version__',
    'SidVidError',
    'NotFoundError',
    'SessionNotFoundError',
    'InvalidArgumentError',
    'InvalidSessionDataError',
    'ProviderError',
    'RateLimitError',
    'GenerationService',
    'MockGenerationService',
    'VideoPipeline',
    'Session',
    'SessionManager',
    'StorageAdapter',
    'MemoryStorageAdapter',
    'FileStorageAdapter',
]
