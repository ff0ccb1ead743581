"""
Mock Generation Service

Deterministic offline provider for development, the CLI demo mode and tests.
Stories are built from the prompt, images and videos get ``mock://`` URLs, and a
video completes after a fixed number of status polls.
"""

import asyncio
import itertools
from typing import Dict, List, Optional

from sidvid.core.constants import DEFAULT_SCENE_COUNT, DEFAULT_IMPROVE_PROMPT
from sidvid.core.exceptions import ProviderError, RateLimitError
from sidvid.core.logging_config import get_logger
from sidvid.models.story import StoryScene, StoryCharacter, StoryLocation, StoryVersion
from sidvid.models.video import VideoClip
from .service import (
    GenerationService,
    ImageOptions,
    ImageResult,
    VideoOptions,
    VideoSubmission,
    VideoStatusResult,
    normalize_provider_status,
)

logger = get_logger("generation.mock")

_CAST = [
    ("Mara Quinn", "A sharp-eyed investigator who trusts evidence over instinct.",
     "Tall, dark coat, silver ring on her left hand.", "Former journalist, stubborn and curious."),
    ("Elias Hart", "A soft-spoken archivist hiding a secret.",
     "Slight build, round glasses, ink-stained fingers.", "Meticulous, anxious, loyal to old friends."),
    ("Juno Vale", "A street musician who sees everything on her corner.",
     "Braided hair, patched jacket, battered violin case.", "Witty, restless, distrustful of authority."),
]

_PLACES = [
    ("The Harbor District", "Fog-bound docks lit by sodium lamps and the glow of night markets."),
    ("Hart Archive", "A narrow three-storey archive crammed with ledgers and dust."),
]

_BEATS = [
    ("An Unexpected Discovery", "opens on", "We need to talk about what you found.", "Pulls a folded note from a coat pocket."),
    ("Following the Trail", "follows a lead through", "Someone was here before us.", "Kneels to study fresh footprints."),
    ("A Tense Confrontation", "faces a suspect in", "You knew all along, didn't you?", "Slams a ledger onto the table."),
    ("The Turn", "uncovers the truth beneath", "It was never about the money.", "Steps back as the lights flicker."),
    ("Resolution", "closes the case at", "Some doors should stay shut.", "Walks away into the morning fog."),
]


class MockGenerationService(GenerationService):
    """
    Offline GenerationService.

    Args:
        polls_to_complete: Status checks before a video reports completion
        rate_limit_failures: Number of initial generate_video calls that raise RateLimitError
        latency: Seconds each call sleeps, to simulate provider round trips
    """

    def __init__(self, polls_to_complete: int = 3, rate_limit_failures: int = 0, latency: float = 0.0):
        self.polls_to_complete = max(1, polls_to_complete)
        self.rate_limit_failures = rate_limit_failures
        self.latency = latency
        self._counter = itertools.count(1)
        self._videos: Dict[str, Dict] = {}
        self.assembled: Dict[str, List[str]] = {}

    async def _simulate_latency(self) -> None:
        if self.latency > 0:
            await asyncio.sleep(self.latency)

    # -------------------------------------------------------------------------
    # Story
    # -------------------------------------------------------------------------

    async def generate_story(self, prompt: str, scene_count: Optional[int] = None) -> StoryVersion:
        await self._simulate_latency()
        prompt = (prompt or "").strip()
        if not prompt:
            raise ProviderError("Prompt must not be empty", provider="mock")

        count = max(1, scene_count or DEFAULT_SCENE_COUNT)
        title = prompt.rstrip(".!?").title()
        lead = _CAST[0][0]

        scenes = []
        for i in range(count):
            beat_title, verb, dialogue, action = _BEATS[i % len(_BEATS)]
            place = _PLACES[i % len(_PLACES)][0]
            scenes.append(StoryScene(
                number=i + 1,
                title=beat_title,
                description=f"{lead} {verb} {place}. {prompt.rstrip('.')}.",
                dialogue=dialogue,
                action=action
            ))

        characters = [StoryCharacter(name, desc, physical, profile) for name, desc, physical, profile in _CAST]
        locations = [StoryLocation(name, desc) for name, desc in _PLACES]
        raw = "\n\n".join(f"Scene {s.number}: {s.title}\n{s.description}" for s in scenes)

        logger.debug(f"Mock story '{title}' with {count} scenes")
        return StoryVersion(
            title=title,
            scenes=scenes,
            characters=characters,
            locations=locations,
            raw_content=f"{title}\n\n{raw}",
            prompt=prompt
        )

    async def improve_story(self, current: StoryVersion, prompt: Optional[str] = None) -> StoryVersion:
        await self._simulate_latency()
        instruction = prompt or DEFAULT_IMPROVE_PROMPT
        scenes = [
            StoryScene(
                number=s.number,
                title=s.title,
                description=f"{s.description} ({instruction})",
                dialogue=s.dialogue,
                action=s.action
            )
            for s in current.scenes
        ]
        characters = [StoryCharacter(c.name, c.description, c.physical, c.profile) for c in current.characters]
        locations = [StoryLocation(loc.name, loc.description) for loc in current.locations]
        return StoryVersion(
            title=current.title,
            scenes=scenes,
            characters=characters,
            locations=locations,
            raw_content=f"{current.raw_content}\n\n[Revised: {instruction}]",
            prompt=instruction
        )

    async def enhance_description(self, text: str, prompt: Optional[str] = None) -> str:
        await self._simulate_latency()
        focus = prompt or "rich visual detail, lighting and texture"
        return f"{text} Rendered with {focus}."

    # -------------------------------------------------------------------------
    # Images
    # -------------------------------------------------------------------------

    async def generate_image(self, description: str, options: ImageOptions) -> ImageResult:
        await self._simulate_latency()
        n = next(self._counter)
        return ImageResult(
            image_url=f"mock://image/{n}.png",
            revised_prompt=f"{description} [{options.style}, {options.aspect_ratio or options.size}]"
        )

    # -------------------------------------------------------------------------
    # Video
    # -------------------------------------------------------------------------

    async def generate_video(
        self,
        scene_description: str,
        image_url: str,
        options: VideoOptions
    ) -> VideoSubmission:
        await self._simulate_latency()
        if self.rate_limit_failures > 0:
            self.rate_limit_failures -= 1
            raise RateLimitError("429 Too Many Requests", provider=options.provider)

        video_id = f"mock-video-{next(self._counter)}"
        self._videos[video_id] = {"polls": 0, "status": "waiting"}
        return VideoSubmission(video_id=video_id)

    async def check_video_status(self, video_id: str) -> VideoStatusResult:
        await self._simulate_latency()
        video = self._videos.get(video_id)
        if video is None:
            raise ProviderError(f"Video not found: {video_id}", provider="mock")

        video["polls"] += 1
        progress = min(100, video["polls"] * 100 // self.polls_to_complete)
        video["status"] = "success" if progress >= 100 else "generating"

        return VideoStatusResult(
            status=normalize_provider_status(video["status"]),
            progress=progress,
            video_url=f"mock://video/{video_id}.mp4" if progress >= 100 else None
        )

    async def assemble_video(self, clips: List[VideoClip]) -> str:
        await self._simulate_latency()
        if not clips:
            raise ProviderError("No clips provided", provider="mock")
        for position, clip in enumerate(clips, start=1):
            if not clip.video_url:
                raise ProviderError(f"Clip {position} is missing URL", provider="mock")

        url = f"mock://video/final-{next(self._counter)}.mp4"
        self.assembled[url] = [c.video_url for c in clips]
        logger.debug(f"Mock assembled {len(clips)} clips into {url}")
        return url
