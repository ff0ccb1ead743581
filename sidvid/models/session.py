"""
Session Metadata Model
"""

from dataclasses import dataclass, asdict
from typing import Any, Dict


@dataclass
class SessionMetadata:
    """Summary of a session, as stored in the session index."""
    id: str
    name: str
    created_at: str
    updated_at: str
    story_count: int = 0
    character_count: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "SessionMetadata":
        return cls(
            id=data["id"],
            name=data.get("name", ""),
            created_at=data.get("created_at", ""),
            updated_at=data.get("updated_at", ""),
            story_count=int(data.get("story_count", 0)),
            character_count=int(data.get("character_count", 0))
        )
