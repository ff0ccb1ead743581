"""
World Element Models

Characters, locations, objects, concepts and extracted story scenes all share one
shape: a description that can be enhanced, a list of generated images with exactly
one active, and an append-only list of version snapshots.
"""

import copy
from dataclasses import dataclass, field, asdict
from typing import Any, Dict, List, Optional

from sidvid.core.constants import ElementType
from sidvid.core.exceptions import ImageNotFoundError, InvalidArgumentError
from .common import utc_now, new_id


@dataclass
class ElementImage:
    """A generated image of a world element."""
    image_url: str
    revised_prompt: Optional[str] = None
    is_active: bool = True
    id: str = field(default_factory=new_id)
    created_at: str = field(default_factory=utc_now)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ElementImage":
        return cls(
            image_url=data.get("image_url", ""),
            revised_prompt=data.get("revised_prompt"),
            is_active=bool(data.get("is_active", False)),
            id=data.get("id") or new_id(),
            created_at=data.get("created_at") or utc_now()
        )


@dataclass
class WorldElementVersion:
    """Snapshot of an element after a content change."""
    name: str
    description: str
    enhanced_description: Optional[str] = None
    images: List[ElementImage] = field(default_factory=list)
    note: str = ""
    id: str = field(default_factory=new_id)
    created_at: str = field(default_factory=utc_now)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "WorldElementVersion":
        return cls(
            name=data.get("name", ""),
            description=data.get("description", ""),
            enhanced_description=data.get("enhanced_description"),
            images=[ElementImage.from_dict(i) for i in data.get("images", [])],
            note=data.get("note", ""),
            id=data.get("id") or new_id(),
            created_at=data.get("created_at") or utc_now()
        )


@dataclass
class WorldElement:
    """
    A character, location, object, concept or story scene.

    ``source_key`` links elements extracted from a story back to their story
    entry (lowercased name, or ``scene:{number}``) so re-extraction reuses them.
    Custom elements have no source key.
    """
    name: str
    type: ElementType
    description: str
    enhanced_description: Optional[str] = None
    is_enhanced: bool = False
    pre_enhancement_description: Optional[str] = None
    images: List[ElementImage] = field(default_factory=list)
    history: List[WorldElementVersion] = field(default_factory=list)
    attributes: Dict[str, Any] = field(default_factory=dict)
    source_key: Optional[str] = None
    id: str = field(default_factory=new_id)
    created_at: str = field(default_factory=utc_now)
    updated_at: str = field(default_factory=utc_now)

    def __post_init__(self):
        if not self.history:
            self.snapshot("created")

    # -------------------------------------------------------------------------
    # Images
    # -------------------------------------------------------------------------

    @property
    def active_image(self) -> Optional[ElementImage]:
        for image in self.images:
            if image.is_active:
                return image
        return None

    def get_image(self, image_id: str) -> ElementImage:
        for image in self.images:
            if image.id == image_id:
                return image
        raise ImageNotFoundError(self.id, image_id)

    def add_image(self, image: ElementImage) -> ElementImage:
        """Append image as the sole active image."""
        for existing in self.images:
            existing.is_active = False
        image.is_active = True
        self.images.append(image)
        return image

    def set_active_image(self, image_id: str) -> ElementImage:
        target = self.get_image(image_id)
        for image in self.images:
            image.is_active = image is target
        return target

    def delete_image(self, image_id: str) -> None:
        target = self.get_image(image_id)
        if target.is_active:
            raise InvalidArgumentError(
                "Cannot delete the active image",
                {"element_id": self.id, "image_id": image_id}
            )
        self.images.remove(target)

    # -------------------------------------------------------------------------
    # History
    # -------------------------------------------------------------------------

    @property
    def effective_description(self) -> str:
        """Description used for image prompts: enhanced when available."""
        return self.enhanced_description or self.description

    def snapshot(self, note: str = "") -> WorldElementVersion:
        version = WorldElementVersion(
            name=self.name,
            description=self.description,
            enhanced_description=self.enhanced_description,
            images=copy.deepcopy(self.images),
            note=note
        )
        self.history.append(version)
        return version

    # -------------------------------------------------------------------------
    # Serialization
    # -------------------------------------------------------------------------

    def to_dict(self) -> Dict[str, Any]:
        """Convert to JSON-serializable dict."""
        return {
            "id": self.id,
            "name": self.name,
            "type": self.type.value,
            "description": self.description,
            "enhanced_description": self.enhanced_description,
            "is_enhanced": self.is_enhanced,
            "pre_enhancement_description": self.pre_enhancement_description,
            "images": [i.to_dict() for i in self.images],
            "history": [v.to_dict() for v in self.history],
            "attributes": copy.deepcopy(self.attributes),
            "source_key": self.source_key,
            "created_at": self.created_at,
            "updated_at": self.updated_at,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "WorldElement":
        """Create from dict."""
        return cls(
            name=data.get("name", ""),
            type=ElementType(data.get("type", ElementType.CONCEPT.value)),
            description=data.get("description", ""),
            enhanced_description=data.get("enhanced_description"),
            is_enhanced=bool(data.get("is_enhanced", False)),
            pre_enhancement_description=data.get("pre_enhancement_description"),
            images=[ElementImage.from_dict(i) for i in data.get("images", [])],
            history=[WorldElementVersion.from_dict(v) for v in data.get("history", [])],
            attributes=copy.deepcopy(data.get("attributes", {})),
            source_key=data.get("source_key"),
            id=data.get("id") or new_id(),
            created_at=data.get("created_at") or utc_now(),
            updated_at=data.get("updated_at") or utc_now()
        )
