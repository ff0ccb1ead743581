"""
SidVid Core Module

Contains core systems including configuration, constants, exceptions, logging and retry policy.
"""

from .config import SidVidConfig, load_config, get_config, set_config
from .constants import *
from .exceptions import *
from .logging_config import setup_logging, get_logger, LogLevel

__all__ = [
    'SidVidConfig',
    'load_config',
    'get_config',
    'set_config',
    'setup_logging',
    'get_logger',
    'LogLevel',
]
