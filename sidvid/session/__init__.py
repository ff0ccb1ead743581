"""
SidVid Sessions

Session state, persistence and the session registry.
"""

from .session import Session, ScenePipeline, ExtractionState
from .session_manager import SessionManager
from .schemas import SessionSnapshotSchema, validate_session_data

__all__ = [
    'Session',
    'ScenePipeline',
    'ExtractionState',
    'SessionManager',
    'SessionSnapshotSchema',
    'validate_session_data',
]
