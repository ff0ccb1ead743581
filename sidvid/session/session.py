"""
SidVid Session

One project's mutable state: story history, world elements extracted from the
current story (with their enhancement and image histories), scene slots, the
storyboard and the scene video pipeline.

Mutating methods are coroutines. Story mutations are serialized per session;
changes to one world element are serialized per element so its history keeps
call order. When autosave is enabled every mutation ends with ``save()``.
"""

import asyncio
import copy
import math
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Dict, List, Optional

from sidvid.core.config import SidVidConfig, get_config
from sidvid.core.constants import (
    DEFAULT_SESSION_NAME,
    ElementType,
    FrameType,
    SlotStatus,
    VideoJobStatus,
    session_key,
)
from sidvid.core.exceptions import (
    ElementNotFoundError,
    InvalidArgumentError,
    InvalidStateError,
    SessionNotFoundError,
    StorageKeyNotFoundError,
)
from sidvid.core.logging_config import get_session_logger
from sidvid.generation.service import GenerationService, ImageOptions
from sidvid.models.common import utc_now, next_timestamp, new_id
from sidvid.models.scene_slot import SceneSlot
from sidvid.models.session import SessionMetadata
from sidvid.models.story import StoryVersion
from sidvid.models.storyboard import Storyboard, StoryboardFrame
from sidvid.models.video import FinalVideo, SceneVideoJob, VideoClip
from sidvid.models.world import ElementImage, WorldElement, WorldElementVersion
from sidvid.pipelines.video_pipeline import VideoPipeline
from sidvid.storage.adapter import StorageAdapter

SaveListener = Callable[["Session"], Awaitable[None]]

_KIND_LABELS = {
    ElementType.CHARACTER: "character",
    ElementType.SCENE: "scene",
    ElementType.LOCATION: "location",
}


@dataclass
class ExtractionState:
    """Which elements were derived from which story version."""
    story_id: str
    element_ids: List[str] = field(default_factory=list)


@dataclass
class ScenePipeline:
    """Scene slots built from one story version."""
    source_story_index: int
    slots: List[SceneSlot] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "source_story_index": self.source_story_index,
            "slots": [s.to_dict() for s in self.slots],
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ScenePipeline":
        return cls(
            source_story_index=int(data.get("source_story_index", 0)),
            slots=[SceneSlot.from_dict(s) for s in data.get("slots", [])]
        )


class Session:
    """
    A single creative project.

    Args:
        service: Generation backend for stories, images and videos
        storage: Where snapshots are persisted (``sessions/{id}``)
        session_id: Existing id, or None to generate one
        name: Display name
        config: Settings; defaults to the global config
    """

    def __init__(
        self,
        service: GenerationService,
        storage: StorageAdapter,
        session_id: Optional[str] = None,
        name: Optional[str] = None,
        config: Optional[SidVidConfig] = None
    ):
        self.service = service
        self.storage = storage
        self.config = config or get_config()

        self.id = session_id or new_id()
        self.logger = get_session_logger("session", self.id)
        self.name = name or DEFAULT_SESSION_NAME
        self.created_at = utc_now()
        self.updated_at = self.created_at

        self.story_history: List[StoryVersion] = []
        self.current_index = -1
        self.elements: Dict[str, WorldElement] = {}
        self.scene_pipeline: Optional[ScenePipeline] = None
        self.storyboard: Optional[Storyboard] = None
        self.final_video: Optional[FinalVideo] = None
        self._extractions: Dict[ElementType, ExtractionState] = {}

        self.video_pipeline = VideoPipeline(
            service,
            self.config.video,
            build_jobs=self._build_video_jobs,
            on_change=self._after_mutation,
            session_id=self.id
        )

        self._auto_save = False
        self._save_listener: Optional[SaveListener] = None
        self._story_lock = asyncio.Lock()
        self._save_lock = asyncio.Lock()
        self._element_locks: Dict[str, asyncio.Lock] = {}

    def __repr__(self) -> str:
        return f"Session(id={self.id!r}, name={self.name!r}, stories={len(self.story_history)})"

    async def set_name(self, name: str) -> None:
        """Rename the session."""
        if not isinstance(name, str) or not name.strip():
            raise InvalidArgumentError("Session name must not be empty", {"name": name})
        self.name = name.strip()
        self.logger.info(f"Renamed to '{self.name}'")
        await self._after_mutation()

    # =========================================================================
    # STORY
    # =========================================================================

    def get_current_story(self) -> Optional[StoryVersion]:
        if self.current_index < 0:
            return None
        return self.story_history[self.current_index]

    def get_story_history(self) -> List[StoryVersion]:
        return list(self.story_history)

    async def generate_story(self, prompt: str, scene_count: Optional[int] = None) -> StoryVersion:
        """
        Generate a new story and append it to the history.

        Args:
            prompt: Story premise
            scene_count: Desired number of scenes (config default when None)

        Returns:
            The new current story
        """
        async with self._story_lock:
            story = await self.service.generate_story(
                prompt, scene_count or self.config.default_scene_count
            )
            self._append_story(story)
            self.logger.info(f"Generated story '{story.title}' ({len(story.scenes)} scenes)")
        await self._after_mutation()
        return story

    async def improve_story(self, prompt: Optional[str] = None) -> StoryVersion:
        async with self._story_lock:
            current = self.get_current_story()
            if current is None:
                raise InvalidStateError("No story to improve. Generate a story first.")
            story = await self.service.improve_story(current, prompt)
            self._append_story(story)
            self.logger.info(f"Improved story -> version {self.current_index}")
        await self._after_mutation()
        return story

    async def revert_to_story(self, index: int) -> StoryVersion:
        """Truncate the history so that entry ``index`` is the current story."""
        async with self._story_lock:
            if not isinstance(index, int) or not 0 <= index < len(self.story_history):
                raise InvalidArgumentError(
                    "Invalid story index",
                    {"index": index, "history_length": len(self.story_history)}
                )
            del self.story_history[index + 1:]
            self.current_index = index
            self.logger.info(f"Reverted to story version {index}")
            story = self.story_history[index]
        await self._after_mutation()
        return story

    def _append_story(self, story: StoryVersion) -> None:
        self.story_history.append(story)
        self.current_index = len(self.story_history) - 1

    # =========================================================================
    # EXTRACTION
    # =========================================================================

    def extract_characters(self) -> List[WorldElement]:
        return self._extract(ElementType.CHARACTER)

    def extract_scenes(self) -> List[WorldElement]:
        return self._extract(ElementType.SCENE)

    def extract_locations(self) -> List[WorldElement]:
        return self._extract(ElementType.LOCATION)

    def _extract(self, kind: ElementType) -> List[WorldElement]:
        """
        Derive elements of one kind from the current story.

        Repeated calls against the same story return the same element objects.
        When the story changes, elements whose source entry still exists keep
        their identity and history.
        """
        story = self.get_current_story()
        if story is None:
            return []

        state = self._extractions.get(kind)
        if state is not None and state.story_id == story.id:
            return [self.elements[i] for i in state.element_ids if i in self.elements]

        existing = {
            el.source_key: el for el in self.elements.values()
            if el.type == kind and el.source_key
        }
        ids = []
        for source_key, name, description, attributes in _story_entries(story, kind):
            element = existing.get(source_key)
            if element is None:
                element = WorldElement(
                    name=name,
                    type=kind,
                    description=description,
                    attributes=attributes,
                    source_key=source_key
                )
                self.elements[element.id] = element
            elif not element.is_enhanced:
                element.name = name
                element.description = description
                element.attributes = attributes
            ids.append(element.id)

        self._extractions[kind] = ExtractionState(story_id=story.id, element_ids=ids)
        self.logger.debug(f"Extracted {len(ids)} {kind.value} elements")
        return [self.elements[i] for i in ids]

    # =========================================================================
    # WORLD ELEMENTS
    # =========================================================================

    def get_element(self, element_id: str) -> WorldElement:
        element = self.elements.get(element_id)
        if element is None:
            raise ElementNotFoundError("element", element_id)
        return element

    def list_elements(self, element_type: Optional[ElementType] = None) -> List[WorldElement]:
        return [
            el for el in self.elements.values()
            if element_type is None or el.type == element_type
        ]

    def _require(self, element_id: str, kind: Optional[ElementType]) -> WorldElement:
        element = self.elements.get(element_id)
        if element is None or (kind is not None and element.type != kind):
            raise ElementNotFoundError(_KIND_LABELS.get(kind, "element"), element_id)
        return element

    def _element_lock(self, element_id: str) -> asyncio.Lock:
        return self._element_locks.setdefault(element_id, asyncio.Lock())

    async def add_element(self, name: str, element_type: ElementType, description: str) -> WorldElement:
        """Add a custom world element that is not tied to the story."""
        if not name or not name.strip():
            raise InvalidArgumentError("Element name must not be empty")
        element = WorldElement(name=name.strip(), type=ElementType(element_type), description=description)
        self.elements[element.id] = element
        await self._after_mutation()
        return element

    async def delete_element(self, element_id: str) -> None:
        """
        Delete an element and every reference to it.

        The id is removed from scene slot assignments, extraction lists and
        storyboard frames sourced from the element.
        """
        self.get_element(element_id)
        async with self._element_lock(element_id):
            del self.elements[element_id]

        for state in self._extractions.values():
            if element_id in state.element_ids:
                state.element_ids.remove(element_id)
        if self.scene_pipeline is not None:
            for slot in self.scene_pipeline.slots:
                if element_id in slot.element_ids:
                    slot.element_ids = [i for i in slot.element_ids if i != element_id]
        if self.storyboard is not None:
            self.storyboard.frames = [f for f in self.storyboard.frames if f.source_id != element_id]
        self._element_locks.pop(element_id, None)

        self.logger.info(f"Deleted element {element_id}")
        await self._after_mutation()

    # -------------------------------------------------------------------------
    # Enhancement
    # -------------------------------------------------------------------------

    async def enhance_character(self, character_id: str, prompt: Optional[str] = None) -> WorldElement:
        return await self._enhance(character_id, ElementType.CHARACTER, prompt)

    async def enhance_scene(self, scene_id: str, prompt: Optional[str] = None) -> WorldElement:
        return await self._enhance(scene_id, ElementType.SCENE, prompt)

    async def enhance_location(self, location_id: str, prompt: Optional[str] = None) -> WorldElement:
        return await self._enhance(location_id, ElementType.LOCATION, prompt)

    async def enhance_element(self, element_id: str, prompt: Optional[str] = None) -> WorldElement:
        return await self._enhance(element_id, None, prompt)

    async def _enhance(self, element_id: str, kind: Optional[ElementType], prompt: Optional[str]) -> WorldElement:
        element = self._require(element_id, kind)
        async with self._element_lock(element_id):
            # Always enhance from the original text so repeated enhancement cannot drift
            if element.pre_enhancement_description is None:
                element.pre_enhancement_description = element.description
            enhanced = await self.service.enhance_description(element.pre_enhancement_description, prompt)
            if element_id not in self.elements:
                raise ElementNotFoundError(_KIND_LABELS.get(kind, "element"), element_id)

            element.enhanced_description = enhanced
            element.is_enhanced = True
            element.updated_at = next_timestamp(element.updated_at)
            element.snapshot("enhanced")
        await self._after_mutation()
        return element

    # -------------------------------------------------------------------------
    # Images
    # -------------------------------------------------------------------------

    async def generate_character_image(self, character_id: str, options: Optional[ImageOptions] = None) -> WorldElement:
        return await self._generate_image(character_id, ElementType.CHARACTER, options)

    async def generate_scene_image(self, scene_id: str, options: Optional[ImageOptions] = None) -> WorldElement:
        return await self._generate_image(scene_id, ElementType.SCENE, options)

    async def generate_location_image(self, location_id: str, options: Optional[ImageOptions] = None) -> WorldElement:
        return await self._generate_image(location_id, ElementType.LOCATION, options)

    async def generate_element_image(self, element_id: str, options: Optional[ImageOptions] = None) -> WorldElement:
        return await self._generate_image(element_id, None, options)

    def default_image_options(self, element_type: ElementType) -> ImageOptions:
        defaults = self.config.images
        if element_type == ElementType.SCENE:
            return ImageOptions(
                style=defaults.scene_style,
                size=defaults.character_size,
                quality=defaults.character_quality,
                aspect_ratio=defaults.scene_aspect_ratio
            )
        return ImageOptions(
            style=defaults.character_style,
            size=defaults.character_size,
            quality=defaults.character_quality
        )

    async def _generate_image(
        self,
        element_id: str,
        kind: Optional[ElementType],
        options: Optional[ImageOptions]
    ) -> WorldElement:
        element = self._require(element_id, kind)
        options = options or self.default_image_options(element.type)
        async with self._element_lock(element_id):
            result = await self.service.generate_image(element.effective_description, options)
            if element_id not in self.elements:
                raise ElementNotFoundError(_KIND_LABELS.get(kind, "element"), element_id)

            element.add_image(ElementImage(image_url=result.image_url, revised_prompt=result.revised_prompt))
            element.updated_at = next_timestamp(element.updated_at)
            element.snapshot("image generated")
        self.logger.info(f"New image for {element.type.value} '{element.name}'")
        await self._after_mutation()
        return element

    async def set_active_image(self, element_id: str, image_id: str) -> ElementImage:
        element = self.get_element(element_id)
        async with self._element_lock(element_id):
            image = element.set_active_image(image_id)
            element.updated_at = next_timestamp(element.updated_at)
        await self._after_mutation()
        return image

    async def delete_image(self, element_id: str, image_id: str) -> None:
        """Delete a non-active image; deleting the active image is refused."""
        element = self.get_element(element_id)
        async with self._element_lock(element_id):
            element.delete_image(image_id)
            element.updated_at = next_timestamp(element.updated_at)
        await self._after_mutation()

    # -------------------------------------------------------------------------
    # History
    # -------------------------------------------------------------------------

    def get_character_history(self, character_id: str) -> List[WorldElementVersion]:
        return list(self._require(character_id, ElementType.CHARACTER).history)

    def get_scene_history(self, scene_id: str) -> List[WorldElementVersion]:
        return list(self._require(scene_id, ElementType.SCENE).history)

    def get_location_history(self, location_id: str) -> List[WorldElementVersion]:
        return list(self._require(location_id, ElementType.LOCATION).history)

    def get_element_history(self, element_id: str) -> List[WorldElementVersion]:
        return list(self.get_element(element_id).history)

    # =========================================================================
    # SCENE SLOTS
    # =========================================================================

    def get_scene_pipeline(self) -> Optional[ScenePipeline]:
        return self.scene_pipeline

    def _require_scene_pipeline(self) -> ScenePipeline:
        if self.scene_pipeline is None:
            raise InvalidStateError("No scene pipeline. Initialize it first.")
        return self.scene_pipeline

    def _find_slot(self, slot_id: str) -> SceneSlot:
        for slot in self._require_scene_pipeline().slots:
            if slot.id == slot_id:
                return slot
        raise ElementNotFoundError("scene slot", slot_id)

    async def initialize_scene_pipeline(self) -> ScenePipeline:
        """Create one slot per scene of the current story."""
        story = self.get_current_story()
        if story is None:
            raise InvalidStateError("No story available. Generate a story first.")

        self.scene_pipeline = ScenePipeline(
            source_story_index=self.current_index,
            slots=[
                SceneSlot(
                    scene_index=i,
                    description=scene.description,
                    dialogue=scene.dialogue,
                    action=scene.action
                )
                for i, scene in enumerate(story.scenes)
            ]
        )
        await self._after_mutation()
        return self.scene_pipeline

    async def assign_elements_to_slot(self, slot_id: str, element_ids: List[str]) -> SceneSlot:
        slot = self._find_slot(slot_id)
        for element_id in element_ids:
            self.get_element(element_id)
        slot.element_ids = list(dict.fromkeys(element_ids))
        await self._after_mutation()
        return slot

    async def set_slot_custom_description(self, slot_id: str, description: str) -> SceneSlot:
        slot = self._find_slot(slot_id)
        slot.custom_description = description or None
        await self._after_mutation()
        return slot

    async def add_slot(self, after_slot_id: Optional[str] = None) -> SceneSlot:
        """Add an empty custom slot at the end or right after another slot."""
        pipeline = self._require_scene_pipeline()
        slot = SceneSlot(scene_index=None)
        if after_slot_id is None:
            pipeline.slots.append(slot)
        else:
            anchor = self._find_slot(after_slot_id)
            pipeline.slots.insert(pipeline.slots.index(anchor) + 1, slot)
        await self._after_mutation()
        return slot

    async def remove_slot(self, slot_id: str) -> None:
        slot = self._find_slot(slot_id)
        self.scene_pipeline.slots.remove(slot)
        await self._after_mutation()

    async def reorder_slots(self, new_order: List[str]) -> List[SceneSlot]:
        pipeline = self._require_scene_pipeline()
        current = {s.id: s for s in pipeline.slots}
        if sorted(new_order) != sorted(current):
            raise InvalidArgumentError("New order must be a permutation of slot ids", {"new_order": new_order})
        pipeline.slots = [current[i] for i in new_order]
        await self._after_mutation()
        return pipeline.slots

    async def generate_slot_image(self, slot_id: str, options: Optional[ImageOptions] = None) -> SceneSlot:
        """
        Generate a scene image for one slot.

        The prompt is the slot description plus the descriptions of its assigned
        elements. A provider failure is recorded on the slot instead of raised.
        """
        slot = self._find_slot(slot_id)
        description = slot.prompt_description
        cast = [
            self.elements[i].effective_description
            for i in slot.element_ids if i in self.elements
        ]
        if cast:
            description = f"{description}. Characters in scene: {'. '.join(cast)}"

        slot.status = SlotStatus.GENERATING
        slot.error = None
        try:
            result = await self.service.generate_image(
                description, options or self.default_image_options(ElementType.SCENE)
            )
        except Exception as e:
            slot.status = SlotStatus.FAILED
            slot.error = getattr(e, "message", None) or str(e) or "Generation failed"
            self.logger.warning(f"Slot {slot.id} image failed: {slot.error}")
        else:
            slot.add_image(ElementImage(image_url=result.image_url, revised_prompt=result.revised_prompt))
            slot.status = SlotStatus.COMPLETED

        await self._after_mutation()
        return slot

    async def generate_all_pending_slots(self, options: Optional[ImageOptions] = None) -> List[SceneSlot]:
        pipeline = self._require_scene_pipeline()
        pending = [s for s in pipeline.slots if s.status == SlotStatus.PENDING]
        return [await self.generate_slot_image(s.id, options) for s in pending]

    async def regenerate_slot(self, slot_id: str, options: Optional[ImageOptions] = None) -> SceneSlot:
        slot = self._find_slot(slot_id)
        slot.status = SlotStatus.PENDING
        slot.error = None
        return await self.generate_slot_image(slot_id, options)

    async def clear_scene_pipeline(self) -> None:
        self.scene_pipeline = None
        await self._after_mutation()

    # =========================================================================
    # STORYBOARD
    # =========================================================================

    def get_storyboard(self) -> Optional[Storyboard]:
        return self.storyboard

    def _require_storyboard(self) -> Storyboard:
        if self.storyboard is None:
            raise InvalidStateError("No storyboard exists")
        return self.storyboard

    async def create_storyboard(self) -> Storyboard:
        """
        Assemble frames from everything that has an active image.

        Order: characters, locations, custom objects and concepts, then scenes.
        Completed scene slots replace extracted scenes as the scene frames.
        """
        frames: List[StoryboardFrame] = []
        groups = [
            (ElementType.CHARACTER, FrameType.CHARACTER),
            (ElementType.LOCATION, FrameType.LOCATION),
            (ElementType.OBJECT, FrameType.ELEMENT),
            (ElementType.CONCEPT, FrameType.ELEMENT),
        ]
        for element_type, frame_type in groups:
            for element in self.list_elements(element_type):
                if element.active_image:
                    frames.append(_frame_for(element, frame_type))

        slot_frames = []
        if self.scene_pipeline is not None:
            for i, slot in enumerate(self.scene_pipeline.slots):
                if slot.status == SlotStatus.COMPLETED and slot.active_image:
                    slot_frames.append(StoryboardFrame(
                        image_url=slot.active_image.image_url,
                        frame_type=FrameType.SCENE,
                        source_id=slot.id,
                        title=f"Scene {i + 1}",
                        description=slot.prompt_description
                    ))
        if slot_frames:
            frames.extend(slot_frames)
        else:
            scenes = sorted(
                self.list_elements(ElementType.SCENE),
                key=lambda el: el.attributes.get("number", 0)
            )
            frames.extend(_frame_for(el, FrameType.SCENE) for el in scenes if el.active_image)

        self.storyboard = Storyboard(frames=frames)
        self.logger.info(f"Storyboard created with {len(frames)} frames")
        await self._after_mutation()
        return self.storyboard

    async def reorder_storyboard_frames(self, new_order: List[int]) -> Storyboard:
        storyboard = self._require_storyboard()
        if sorted(new_order) != list(range(len(storyboard.frames))):
            raise InvalidArgumentError(
                "New order must be a permutation of frame indices",
                {"new_order": list(new_order), "frame_count": len(storyboard.frames)}
            )
        storyboard.frames = [storyboard.frames[i] for i in new_order]
        await self._after_mutation()
        return storyboard

    async def update_storyboard_frame(self, index: int, patch: Dict[str, Any]) -> StoryboardFrame:
        """Merge duration/transition into the frame at index."""
        storyboard = self._require_storyboard()
        if not isinstance(index, int) or not 0 <= index < len(storyboard.frames):
            raise InvalidArgumentError("Invalid frame index", {"index": index})

        unknown = set(patch) - {"duration", "transition"}
        if unknown:
            raise InvalidArgumentError("Only duration and transition can be updated", {"fields": sorted(unknown)})

        frame = storyboard.frames[index]
        if "duration" in patch:
            value = patch["duration"]
            try:
                if isinstance(value, bool):
                    raise TypeError(value)
                duration = float(value)
            except (TypeError, ValueError):
                raise InvalidArgumentError("Invalid frame duration", {"duration": value})
            if not math.isfinite(duration) or duration <= 0:
                raise InvalidArgumentError("Frame duration must be positive", {"duration": duration})
            frame.duration = duration
        if "transition" in patch:
            frame.transition = patch["transition"]
        await self._after_mutation()
        return frame

    # =========================================================================
    # VIDEO
    # =========================================================================

    def _build_video_jobs(self) -> List[SceneVideoJob]:
        storyboard = self._require_storyboard()
        return [
            SceneVideoJob(
                scene_index=i,
                scene_id=frame.source_id,
                description=frame.description or frame.title,
                image_url=frame.image_url
            )
            for i, frame in enumerate(storyboard.scene_frames)
        ]

    def get_assembly_manifest(self) -> List[VideoClip]:
        """
        Completed scene videos in scene order, each with its storyboard timing.

        Failed or unfinished scenes are left out.
        """
        storyboard = self._require_storyboard()
        frames = {f.source_id: f for f in storyboard.scene_frames}
        clips = []
        for job in sorted(self.video_pipeline.jobs, key=lambda j: j.scene_index):
            if job.status != VideoJobStatus.COMPLETED or not job.video_url:
                continue
            clip = VideoClip(scene_index=job.scene_index, scene_id=job.scene_id, video_url=job.video_url)
            frame = frames.get(job.scene_id)
            if frame is not None:
                clip.duration = frame.duration
                clip.transition = frame.transition
            clips.append(clip)
        return clips

    async def assemble_final_video(self) -> FinalVideo:
        """
        Join the completed scene videos into the final video.

        Raises:
            InvalidStateError: While scenes are still generating, or when no
                scene video has completed
        """
        if self.video_pipeline.is_running:
            raise InvalidStateError("Video generation is still running")
        clips = self.get_assembly_manifest()
        if not clips:
            raise InvalidStateError("No completed scene videos to assemble")

        video_url = await self.service.assemble_video(clips)
        self.final_video = FinalVideo(video_url=video_url, clips=clips)
        self.logger.info(f"Assembled {len(clips)} scene videos into {video_url}")
        await self._after_mutation()
        return self.final_video

    # =========================================================================
    # PERSISTENCE
    # =========================================================================

    @property
    def auto_save_enabled(self) -> bool:
        return self._auto_save

    def enable_auto_save(self) -> None:
        self._auto_save = True

    def disable_auto_save(self) -> None:
        self._auto_save = False

    def set_save_listener(self, listener: Optional[SaveListener]) -> None:
        """Awaited after every successful save (the manager keeps its index fresh this way)."""
        self._save_listener = listener

    async def _after_mutation(self) -> None:
        self.updated_at = next_timestamp(self.updated_at)
        if self._auto_save:
            await self.save()

    async def save(self) -> None:
        """Write the full snapshot to ``sessions/{id}``; concurrent saves run one at a time."""
        async with self._save_lock:
            await self.storage.save(session_key(self.id), self.to_dict())
            self.logger.debug("Saved")
            if self._save_listener is not None:
                await self._save_listener(self)

    async def load(self) -> None:
        """Replace in-memory state with the stored snapshot."""
        try:
            data = await self.storage.load(session_key(self.id))
        except StorageKeyNotFoundError:
            raise SessionNotFoundError(self.id)
        self._apply(data)

    def get_metadata(self) -> SessionMetadata:
        return SessionMetadata(
            id=self.id,
            name=self.name,
            created_at=self.created_at,
            updated_at=self.updated_at,
            story_count=len(self.story_history),
            character_count=len(self.list_elements(ElementType.CHARACTER))
        )

    def to_dict(self) -> Dict[str, Any]:
        """Convert to JSON-serializable snapshot."""
        return {
            "id": self.id,
            "name": self.name,
            "created_at": self.created_at,
            "updated_at": self.updated_at,
            "story_history": [s.to_dict() for s in self.story_history],
            "current_index": self.current_index,
            "elements": [el.to_dict() for el in self.elements.values()],
            "extractions": {
                kind.value: {"story_id": state.story_id, "element_ids": list(state.element_ids)}
                for kind, state in self._extractions.items()
            },
            "scene_pipeline": self.scene_pipeline.to_dict() if self.scene_pipeline else None,
            "storyboard": self.storyboard.to_dict() if self.storyboard else None,
            "video_pipeline": self.video_pipeline.to_dict(),
            "final_video": self.final_video.to_dict() if self.final_video else None,
            "metadata": self.get_metadata().to_dict(),
        }

    @classmethod
    def from_dict(
        cls,
        data: Dict[str, Any],
        service: GenerationService,
        storage: StorageAdapter,
        config: Optional[SidVidConfig] = None,
        session_id: Optional[str] = None
    ) -> "Session":
        """Build a session from a snapshot; ``session_id`` overrides the stored id."""
        session = cls(service, storage, session_id=session_id or data.get("id"), config=config)
        session._apply(data)
        return session

    def _apply(self, data: Dict[str, Any]) -> None:
        data = copy.deepcopy(data)
        self.name = data.get("name") or self.name
        self.created_at = data.get("created_at") or self.created_at
        self.updated_at = data.get("updated_at") or self.updated_at
        self.story_history = [StoryVersion.from_dict(s) for s in data.get("story_history", [])]
        self.current_index = int(data.get("current_index", len(self.story_history) - 1))

        self.elements = {}
        for item in data.get("elements", []):
            element = WorldElement.from_dict(item)
            self.elements[element.id] = element
        self._element_locks = {}

        self._extractions = {
            ElementType(kind): ExtractionState(
                story_id=state.get("story_id", ""),
                element_ids=list(state.get("element_ids", []))
            )
            for kind, state in (data.get("extractions") or {}).items()
        }

        pipeline = data.get("scene_pipeline")
        self.scene_pipeline = ScenePipeline.from_dict(pipeline) if pipeline else None
        storyboard = data.get("storyboard")
        self.storyboard = Storyboard.from_dict(storyboard) if storyboard else None
        final_video = data.get("final_video")
        self.final_video = FinalVideo.from_dict(final_video) if final_video else None
        self.video_pipeline.load_state(data.get("video_pipeline"))


def _story_entries(story: StoryVersion, kind: ElementType):
    """(source_key, name, description, attributes) for each story entry of a kind."""
    if kind == ElementType.CHARACTER:
        for c in story.characters:
            yield c.name.lower(), c.name, c.description, {"physical": c.physical, "profile": c.profile}
    elif kind == ElementType.LOCATION:
        for loc in story.locations:
            yield loc.name.lower(), loc.name, loc.description, {}
    elif kind == ElementType.SCENE:
        for s in story.scenes:
            yield (
                f"scene:{s.number}",
                s.title or f"Scene {s.number}",
                s.description,
                {"number": s.number, "title": s.title, "dialogue": s.dialogue, "action": s.action},
            )
    else:
        raise InvalidArgumentError(f"Elements of type '{kind.value}' are not derived from stories")


def _frame_for(element: WorldElement, frame_type: FrameType) -> StoryboardFrame:
    return StoryboardFrame(
        image_url=element.active_image.image_url,
        frame_type=frame_type,
        source_id=element.id,
        title=element.name,
        description=element.effective_description
    )
