"""
SidVid Configuration Management

Centralized configuration system with JSON loading and environment overrides.
"""

import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

from .constants import (
    MAX_RETRIES,
    RETRY_DELAY_SECONDS,
    POLL_INTERVAL_SECONDS,
    SETTLE_DELAY_SECONDS,
    DEFAULT_SCENE_COUNT,
    DEFAULT_STORAGE_PATH,
    VideoProvider,
)
from .env_loader import get_env, ENV_STORAGE_PATH, ENV_LOG_LEVEL, ENV_VIDEO_PROVIDER
from .exceptions import ConfigurationError, InvalidConfigError


@dataclass
class VideoPipelineConfig:
    """Timing and retry policy of the video pipeline."""
    max_retries: int = MAX_RETRIES
    retry_delay_seconds: float = RETRY_DELAY_SECONDS
    poll_interval_seconds: float = POLL_INTERVAL_SECONDS
    settle_delay_seconds: float = SETTLE_DELAY_SECONDS
    provider: str = VideoProvider.MOCK.value
    sound: bool = True

    @classmethod
    def from_dict(cls, data: dict) -> 'VideoPipelineConfig':
        """Create VideoPipelineConfig from dictionary."""
        config = cls(
            max_retries=int(data.get('max_retries', MAX_RETRIES)),
            retry_delay_seconds=float(data.get('retry_delay_seconds', RETRY_DELAY_SECONDS)),
            poll_interval_seconds=float(data.get('poll_interval_seconds', POLL_INTERVAL_SECONDS)),
            settle_delay_seconds=float(data.get('settle_delay_seconds', SETTLE_DELAY_SECONDS)),
            provider=data.get('provider', VideoProvider.MOCK.value),
            sound=bool(data.get('sound', True))
        )
        if config.max_retries < 0:
            raise InvalidConfigError("max_retries must be >= 0", {"max_retries": config.max_retries})
        if min(config.retry_delay_seconds, config.poll_interval_seconds, config.settle_delay_seconds) < 0:
            raise InvalidConfigError("Pipeline delays must be >= 0")
        return config


@dataclass
class ImageDefaults:
    """Default image options per element kind."""
    character_style: str = "realistic"
    character_size: str = "1024x1024"
    character_quality: str = "standard"
    scene_style: str = "cinematic"
    scene_aspect_ratio: str = "16:9"

    @classmethod
    def from_dict(cls, data: dict) -> 'ImageDefaults':
        defaults = cls()
        return cls(**{k: data.get(k, getattr(defaults, k)) for k in defaults.__dict__})


@dataclass
class StorageConfig:
    """Storage backend settings."""
    backend: str = "file"  # "file" or "memory"
    base_path: Path = field(default_factory=lambda: Path(DEFAULT_STORAGE_PATH))

    @classmethod
    def from_dict(cls, data: dict) -> 'StorageConfig':
        backend = data.get('backend', 'file')
        if backend not in ("file", "memory"):
            raise InvalidConfigError(f"Unknown storage backend: {backend}")
        return cls(backend=backend, base_path=Path(data.get('base_path', DEFAULT_STORAGE_PATH)))


@dataclass
class SidVidConfig:
    """Main configuration class for SidVid."""

    video: VideoPipelineConfig = field(default_factory=VideoPipelineConfig)
    images: ImageDefaults = field(default_factory=ImageDefaults)
    storage: StorageConfig = field(default_factory=StorageConfig)

    # Feature flags
    auto_save: bool = True
    default_scene_count: int = DEFAULT_SCENE_COUNT
    verbose_logging: bool = False
    log_level: str = "INFO"

    @classmethod
    def from_dict(cls, data: dict) -> 'SidVidConfig':
        """Create SidVidConfig from dictionary."""
        config = cls()

        config.auto_save = data.get('auto_save', config.auto_save)
        config.default_scene_count = int(data.get('default_scene_count', config.default_scene_count))
        config.verbose_logging = data.get('verbose_logging', config.verbose_logging)
        config.log_level = data.get('log_level', config.log_level)

        if 'video' in data:
            config.video = VideoPipelineConfig.from_dict(data['video'])
        if 'images' in data:
            config.images = ImageDefaults.from_dict(data['images'])
        if 'storage' in data:
            config.storage = StorageConfig.from_dict(data['storage'])

        return config


def apply_env_overrides(config: SidVidConfig) -> SidVidConfig:
    """Apply SIDVID_* environment variables on top of a loaded config."""
    storage_path = get_env(ENV_STORAGE_PATH)
    if storage_path:
        config.storage.base_path = Path(storage_path)

    log_level = get_env(ENV_LOG_LEVEL)
    if log_level:
        config.log_level = log_level

    provider = get_env(ENV_VIDEO_PROVIDER)
    if provider:
        config.video.provider = provider

    return config


def load_config(config_path: Optional[Path] = None) -> SidVidConfig:
    """
    Load configuration from JSON file.

    Args:
        config_path: Path to configuration file. If None, uses default.

    Returns:
        Loaded SidVidConfig instance
    """
    if config_path is None:
        config_path = Path("config/sidvid_config.json")
    config_path = Path(config_path)

    if not config_path.exists():
        return apply_env_overrides(SidVidConfig())

    try:
        with open(config_path, 'r', encoding='utf-8') as f:
            data = json.load(f)
        return apply_env_overrides(SidVidConfig.from_dict(data))
    except json.JSONDecodeError as e:
        raise InvalidConfigError(f"Invalid JSON in config file: {e}")
    except ConfigurationError:
        raise
    except Exception as e:
        raise ConfigurationError(f"Failed to load config: {e}")


# Global config instance
_config: Optional[SidVidConfig] = None


def get_config() -> SidVidConfig:
    """Get the global configuration instance."""
    global _config
    if _config is None:
        _config = load_config()
    return _config


def set_config(config: SidVidConfig) -> None:
    """Set the global configuration instance."""
    global _config
    _config = config
