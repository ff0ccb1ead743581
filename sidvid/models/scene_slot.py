"""
Scene Slot Models

A scene slot is a working copy of a story scene used to compose scene images
from assigned world elements.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from sidvid.core.constants import SlotStatus
from .common import new_id
from .world import ElementImage


@dataclass
class SceneSlot:
    scene_index: Optional[int]
    description: str = ""
    dialogue: str = ""
    action: str = ""
    custom_description: Optional[str] = None
    element_ids: List[str] = field(default_factory=list)
    status: SlotStatus = SlotStatus.PENDING
    images: List[ElementImage] = field(default_factory=list)
    error: Optional[str] = None
    id: str = field(default_factory=new_id)

    @property
    def prompt_description(self) -> str:
        return self.custom_description or self.description

    @property
    def active_image(self) -> Optional[ElementImage]:
        return next((i for i in self.images if i.is_active), None)

    def add_image(self, image: ElementImage) -> None:
        for existing in self.images:
            existing.is_active = False
        image.is_active = True
        self.images.append(image)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "scene_index": self.scene_index,
            "description": self.description,
            "dialogue": self.dialogue,
            "action": self.action,
            "custom_description": self.custom_description,
            "element_ids": list(self.element_ids),
            "status": self.status.value,
            "images": [i.to_dict() for i in self.images],
            "error": self.error,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "SceneSlot":
        return cls(
            scene_index=data.get("scene_index"),
            description=data.get("description", ""),
            dialogue=data.get("dialogue", ""),
            action=data.get("action", ""),
            custom_description=data.get("custom_description"),
            element_ids=list(data.get("element_ids", [])),
            status=SlotStatus(data.get("status", SlotStatus.PENDING.value)),
            images=[ElementImage.from_dict(i) for i in data.get("images", [])],
            error=data.get("error"),
            id=data.get("id") or new_id()
        )
