"""
Centralized environment variable loading for SidVid.

Loads .env once and exposes helpers to read SidVid settings from the environment.

Usage:
    from sidvid.core.env_loader import ensure_env_loaded
    ensure_env_loaded()
"""

import os
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

_env_loaded = False

ENV_STORAGE_PATH = "SIDVID_STORAGE_PATH"
ENV_LOG_LEVEL = "SIDVID_LOG_LEVEL"
ENV_VIDEO_PROVIDER = "SIDVID_VIDEO_PROVIDER"


def get_project_root() -> Path:
    """Get the project root directory (where .env is located)."""
    return Path(__file__).parent.parent.parent


def ensure_env_loaded(env_path: Optional[Path] = None, override: bool = True) -> bool:
    """
    Ensure environment variables from .env are loaded.

    Args:
        env_path: Explicit .env path; defaults to the project root, then the cwd
        override: If True, .env values take precedence over existing variables

    Returns:
        True if a .env file was loaded, False if already loaded or not found
    """
    global _env_loaded

    if _env_loaded:
        return False

    candidates = [env_path] if env_path else [get_project_root() / ".env", Path.cwd() / ".env"]
    for candidate in candidates:
        if candidate and candidate.exists():
            load_dotenv(candidate, override=override)
            _env_loaded = True
            return True

    return False


def get_env(key_name: str, fallback_keys: Optional[list[str]] = None) -> Optional[str]:
    """
    Get a setting from the environment, with fallback options.

    Args:
        key_name: Primary environment variable name
        fallback_keys: List of fallback variable names to try

    Returns:
        Value or None if not set (empty strings count as unset)
    """
    ensure_env_loaded()

    value = os.getenv(key_name)
    if value:
        return value

    for fallback in fallback_keys or []:
        value = os.getenv(fallback)
        if value:
            return value

    return None
