"""
SidVid Utilities
"""

from .file_utils import read_json, write_json, ensure_directory

__all__ = ['read_json', 'write_json', 'ensure_directory']
