"""
Tests for Configuration Module

Tests for sidvid/core/config.py
"""

import pytest
import json
from pathlib import Path

from sidvid.core.config import (
    SidVidConfig,
    VideoPipelineConfig,
    StorageConfig,
    load_config,
    get_config,
    set_config,
)
from sidvid.core.exceptions import ConfigurationError, InvalidConfigError


class TestSidVidConfig:
    """Tests for SidVidConfig class."""

    def test_default_config(self):
        """Test default configuration values."""
        config = SidVidConfig()

        assert config.video.max_retries == 3
        assert config.video.retry_delay_seconds == 10.0
        assert config.video.poll_interval_seconds == 5.0
        assert config.video.settle_delay_seconds == 5.0
        assert config.images.character_style == "realistic"
        assert config.images.scene_aspect_ratio == "16:9"
        assert config.storage.base_path == Path(".sidvid")
        assert config.default_scene_count == 5

    def test_config_from_dict(self):
        """Test creating config from dictionary."""
        config = SidVidConfig.from_dict({
            "auto_save": False,
            "default_scene_count": 3,
            "video": {"max_retries": 5, "poll_interval_seconds": 1},
            "storage": {"backend": "memory"},
        })

        assert config.auto_save is False
        assert config.default_scene_count == 3
        assert config.video.max_retries == 5
        assert config.video.poll_interval_seconds == 1.0
        assert config.video.retry_delay_seconds == 10.0
        assert config.storage.backend == "memory"

    def test_negative_retries_rejected(self):
        with pytest.raises(InvalidConfigError):
            VideoPipelineConfig.from_dict({"max_retries": -1})

    def test_unknown_storage_backend_rejected(self):
        with pytest.raises(InvalidConfigError):
            StorageConfig.from_dict({"backend": "s3"})


class TestLoadConfig:
    """Tests for config loading."""

    def test_missing_file_returns_defaults(self, temp_dir):
        config = load_config(temp_dir / "absent.json")

        assert isinstance(config, SidVidConfig)
        assert config.video.max_retries == 3

    def test_load_config_from_file(self, temp_dir):
        """Test loading config from JSON file."""
        config_path = temp_dir / "sidvid_config.json"
        config_path.write_text(json.dumps({"video": {"settle_delay_seconds": 2}}))

        config = load_config(config_path)

        assert config.video.settle_delay_seconds == 2.0

    def test_invalid_json_raises(self, temp_dir):
        config_path = temp_dir / "broken.json"
        config_path.write_text("{not json")

        with pytest.raises(InvalidConfigError):
            load_config(config_path)

    def test_invalid_values_raise_configuration_error(self, temp_dir):
        config_path = temp_dir / "bad.json"
        config_path.write_text(json.dumps({"default_scene_count": "many"}))

        with pytest.raises(ConfigurationError):
            load_config(config_path)

    def test_env_overrides(self, temp_dir, monkeypatch):
        """Environment variables take precedence over file values."""
        monkeypatch.setenv("SIDVID_STORAGE_PATH", str(temp_dir / "store"))
        monkeypatch.setenv("SIDVID_VIDEO_PROVIDER", "kling")

        config = load_config(temp_dir / "absent.json")

        assert config.storage.base_path == temp_dir / "store"
        assert config.video.provider == "kling"


class TestGlobalConfig:
    """Tests for the global config accessor."""

    def test_set_and_get(self):
        config = SidVidConfig(default_scene_count=7)
        set_config(config)
        try:
            assert get_config() is config
        finally:
            set_config(None)
