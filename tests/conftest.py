"""
Pytest Configuration and Fixtures

Shared fixtures for all tests.
"""

import pytest
import tempfile
import shutil
from pathlib import Path

from sidvid.core.config import SidVidConfig, VideoPipelineConfig
from sidvid.generation import MockGenerationService
from sidvid.models.story import StoryScene, StoryCharacter, StoryLocation, StoryVersion
from sidvid.session import Session, SessionManager
from sidvid.storage import MemoryStorageAdapter


@pytest.fixture
def temp_dir():
    """Create a temporary directory for tests."""
    temp_path = tempfile.mkdtemp()
    yield Path(temp_path)
    shutil.rmtree(temp_path, ignore_errors=True)


@pytest.fixture
def fast_config() -> SidVidConfig:
    """Config with sub-second pipeline timers."""
    return SidVidConfig(
        video=VideoPipelineConfig(
            max_retries=3,
            retry_delay_seconds=0.01,
            poll_interval_seconds=0.01,
            settle_delay_seconds=0.01,
        ),
        auto_save=True,
    )


@pytest.fixture
def memory_storage() -> MemoryStorageAdapter:
    return MemoryStorageAdapter()


@pytest.fixture
def mock_service() -> MockGenerationService:
    return MockGenerationService(polls_to_complete=2)


@pytest.fixture
def session(mock_service, memory_storage, fast_config) -> Session:
    """A fresh session without autosave."""
    return Session(mock_service, memory_storage, name="Test Session", config=fast_config)


@pytest.fixture
def manager(mock_service, memory_storage, fast_config) -> SessionManager:
    return SessionManager(memory_storage, mock_service, fast_config)


@pytest.fixture
def sample_story() -> StoryVersion:
    """Small hand-written story."""
    return StoryVersion(
        title="The Lighthouse",
        scenes=[
            StoryScene(1, "Arrival", "A keeper arrives at a storm-battered lighthouse.", "Hello?", "Knocks twice."),
            StoryScene(2, "The Lamp", "The great lamp flickers and dies.", "", "Climbs the stairs."),
        ],
        characters=[
            StoryCharacter("Ada", "A weathered lighthouse keeper.", "Grey braid, oilskin coat.", "Patient."),
        ],
        locations=[StoryLocation("The Lighthouse", "A white tower on black rocks.")],
        raw_content="The Lighthouse",
    )
