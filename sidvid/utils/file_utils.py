"""
SidVid File Utilities

JSON file operations with error handling and atomic writes.
"""

import json
import os
import tempfile
from pathlib import Path
from typing import Any, Union

from sidvid.core.exceptions import StorageError


def read_json(path: Union[str, Path], encoding: str = 'utf-8') -> Any:
    """
    Read and parse a JSON file.

    Args:
        path: Path to JSON file
        encoding: File encoding (default: utf-8)

    Returns:
        Parsed JSON data

    Raises:
        StorageError: If file cannot be read or parsed
    """
    path = Path(path)
    if not path.exists():
        raise StorageError(f"File not found: {path}")

    try:
        with open(path, 'r', encoding=encoding) as f:
            return json.load(f)
    except json.JSONDecodeError as e:
        raise StorageError(f"Invalid JSON in {path}: {e}")
    except OSError as e:
        raise StorageError(f"Failed to read {path}: {e}")


def write_json(
    path: Union[str, Path],
    data: Any,
    encoding: str = 'utf-8',
    indent: int = 2,
    ensure_ascii: bool = False
) -> None:
    """
    Write data to a JSON file atomically.

    The payload goes to a temporary file in the same directory which then
    replaces the target, so readers never observe a partial write.

    Args:
        path: Path to JSON file
        data: Data to write
        encoding: File encoding (default: utf-8)
        indent: JSON indentation (default: 2)
        ensure_ascii: If False, allow non-ASCII characters
    """
    path = Path(path)
    ensure_directory(path.parent)

    fd, tmp_name = tempfile.mkstemp(dir=path.parent, prefix=f".{path.name}.", suffix=".tmp")
    try:
        with os.fdopen(fd, 'w', encoding=encoding) as f:
            json.dump(data, f, indent=indent, ensure_ascii=ensure_ascii)
        os.replace(tmp_name, path)
    except (OSError, TypeError, ValueError) as e:
        if os.path.exists(tmp_name):
            os.unlink(tmp_name)
        raise StorageError(f"Failed to write {path}: {e}")


def ensure_directory(path: Union[str, Path]) -> Path:
    """
    Ensure a directory exists, creating it if necessary.

    Args:
        path: Directory path

    Returns:
        Path object for the directory
    """
    path = Path(path)
    path.mkdir(parents=True, exist_ok=True)
    return path
