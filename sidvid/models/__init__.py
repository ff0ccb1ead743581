"""
SidVid Models

Dataclasses for everything a session persists.
"""

from .story import StoryScene, StoryCharacter, StoryLocation, StoryVersion
from .world import ElementImage, WorldElementVersion, WorldElement
from .scene_slot import SceneSlot
from .storyboard import StoryboardFrame, Storyboard
from .video import SceneVideoJob, VideoClip, FinalVideo
from .session import SessionMetadata

__all__ = [
    'StoryScene',
    'StoryCharacter',
    'StoryLocation',
    'StoryVersion',
    'ElementImage',
    'WorldElementVersion',
    'WorldElement',
    'SceneSlot',
    'StoryboardFrame',
    'Storyboard',
    'SceneVideoJob',
    'VideoClip',
    'FinalVideo',
    'SessionMetadata',
]
