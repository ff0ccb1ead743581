"""
SidVid Generation

Provider interface for stories, images and videos.
"""

from .service import (
    GenerationService,
    ImageOptions,
    ImageResult,
    VideoOptions,
    VideoSubmission,
    VideoStatusResult,
    ProviderVideoStatus,
    normalize_provider_status,
)
from .mock_service import MockGenerationService

__all__ = [
    'GenerationService',
    'ImageOptions',
    'ImageResult',
    'VideoOptions',
    'VideoSubmission',
    'VideoStatusResult',
    'ProviderVideoStatus',
    'normalize_provider_status',
    'MockGenerationService',
]
