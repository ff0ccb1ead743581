"""
Story Models

A story version is one complete generated story: title, scenes, characters and
locations, plus the raw text the generator returned.
"""

from dataclasses import dataclass, field, asdict
from typing import Any, Dict, List, Optional

from .common import utc_now, new_id


@dataclass
class StoryScene:
    """A numbered scene of a story."""
    number: int
    title: str
    description: str
    dialogue: str = ""
    action: str = ""

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "StoryScene":
        return cls(
            number=int(data.get("number", 0)),
            title=data.get("title", ""),
            description=data.get("description", ""),
            dialogue=data.get("dialogue", ""),
            action=data.get("action", "")
        )


@dataclass
class StoryCharacter:
    """A character as written in the story."""
    name: str
    description: str
    physical: str = ""
    profile: str = ""

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "StoryCharacter":
        return cls(
            name=data.get("name", ""),
            description=data.get("description", ""),
            physical=data.get("physical", ""),
            profile=data.get("profile", "")
        )


@dataclass
class StoryLocation:
    """A location as written in the story."""
    name: str
    description: str

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "StoryLocation":
        return cls(name=data.get("name", ""), description=data.get("description", ""))


@dataclass
class StoryVersion:
    """One entry of a session's story history."""
    title: str
    scenes: List[StoryScene] = field(default_factory=list)
    characters: List[StoryCharacter] = field(default_factory=list)
    locations: List[StoryLocation] = field(default_factory=list)
    raw_content: str = ""
    prompt: Optional[str] = None
    id: str = field(default_factory=new_id)
    created_at: str = field(default_factory=utc_now)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to JSON-serializable dict."""
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "StoryVersion":
        """Create from dict."""
        return cls(
            title=data.get("title", ""),
            scenes=[StoryScene.from_dict(s) for s in data.get("scenes", [])],
            characters=[StoryCharacter.from_dict(c) for c in data.get("characters", [])],
            locations=[StoryLocation.from_dict(loc) for loc in data.get("locations", [])],
            raw_content=data.get("raw_content", ""),
            prompt=data.get("prompt"),
            id=data.get("id") or new_id(),
            created_at=data.get("created_at") or utc_now()
        )
