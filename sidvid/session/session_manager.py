"""
SidVid Session Manager

Creates, loads, lists, deletes, exports and imports sessions.

The manager keeps an identity cache so that every caller asking for a session
id gets the same Session object, and an "active session" pointer. The session
index (``sessions/index``) holds one metadata entry per session.
"""

import asyncio
import json
from typing import Any, Dict, List, Optional, Union

from sidvid.core.config import SidVidConfig, get_config
from sidvid.core.constants import SESSION_INDEX_KEY, SESSIONS_PREFIX, session_key
from sidvid.core.exceptions import (
    InvalidSessionDataError,
    SessionNotFoundError,
    StorageKeyNotFoundError,
)
from sidvid.core.logging_config import get_logger
from sidvid.generation.service import GenerationService
from sidvid.models.common import new_id
from sidvid.models.session import SessionMetadata
from sidvid.storage.adapter import StorageAdapter
from .schemas import validate_session_data
from .session import Session

logger = get_logger("session.manager")


class SessionManager:
    """
    Registry of sessions backed by a StorageAdapter.

    Args:
        storage: Persistence backend
        service: Generation backend handed to every session
        config: Settings; defaults to the global config
    """

    def __init__(
        self,
        storage: StorageAdapter,
        service: GenerationService,
        config: Optional[SidVidConfig] = None
    ):
        self.storage = storage
        self.service = service
        self.config = config or get_config()

        self._cache: Dict[str, Session] = {}
        self._active_id: Optional[str] = None
        self._load_lock = asyncio.Lock()
        self._index_lock = asyncio.Lock()

    @property
    def active_session_id(self) -> Optional[str]:
        return self._active_id

    # -------------------------------------------------------------------------
    # Index
    # -------------------------------------------------------------------------

    async def _read_index(self) -> List[Dict[str, Any]]:
        try:
            index = await self.storage.load(SESSION_INDEX_KEY)
        except StorageKeyNotFoundError:
            return []
        return index if isinstance(index, list) else []

    async def _upsert_index(self, session: Session) -> None:
        async with self._index_lock:
            entries = [e for e in await self._read_index() if e.get("id") != session.id]
            entries.append(session.get_metadata().to_dict())
            await self.storage.save(SESSION_INDEX_KEY, entries)

    async def _remove_from_index(self, session_id: str) -> bool:
        async with self._index_lock:
            entries = await self._read_index()
            remaining = [e for e in entries if e.get("id") != session_id]
            if len(remaining) != len(entries):
                await self.storage.save(SESSION_INDEX_KEY, remaining)
                return True
            return False

    @staticmethod
    def _is_reserved(session_id: str) -> bool:
        """Ids whose storage key collides with the index are never session ids."""
        return session_key(session_id) == SESSION_INDEX_KEY

    async def _is_registered(self, session_id: str) -> bool:
        if session_id in self._cache:
            return True
        return any(e.get("id") == session_id for e in await self._read_index())

    # -------------------------------------------------------------------------
    # Lifecycle
    # -------------------------------------------------------------------------

    def _adopt(self, session: Session) -> Session:
        """Put a session under management: cache it and keep its index entry fresh."""
        session.set_save_listener(self._upsert_index)
        if self.config.auto_save:
            session.enable_auto_save()
        self._cache[session.id] = session
        return session

    async def create_session(self, name: Optional[str] = None) -> Session:
        """
        Create and register a new session.

        The new session becomes active if no session is active yet.
        """
        session = self._adopt(Session(self.service, self.storage, name=name, config=self.config))
        await session.save()
        if self._active_id is None:
            self._active_id = session.id
        logger.info(f"Created session {session.id} ('{session.name}')")
        return session

    async def load_session(self, session_id: str) -> Session:
        """
        Return the session for an id.

        Repeated calls return the same instance.

        Raises:
            SessionNotFoundError: If the id is unknown
        """
        cached = self._cache.get(session_id)
        if cached is not None:
            return cached

        async with self._load_lock:
            cached = self._cache.get(session_id)
            if cached is not None:
                return cached
            if self._is_reserved(session_id):
                raise SessionNotFoundError(session_id)
            try:
                data = await self.storage.load(session_key(session_id))
            except StorageKeyNotFoundError:
                raise SessionNotFoundError(session_id)
            if not isinstance(data, dict):
                logger.warning(f"Stored value for session {session_id} is not a session snapshot")
                raise SessionNotFoundError(session_id)
            session = Session.from_dict(data, self.service, self.storage, config=self.config, session_id=session_id)
            logger.debug(f"Loaded session {session_id} from storage")
            return self._adopt(session)

    async def list_sessions(self) -> List[SessionMetadata]:
        """Metadata of every session, most recently updated first."""
        by_id = {}
        for entry in await self._read_index():
            if "id" in entry:
                by_id[entry["id"]] = SessionMetadata.from_dict(entry)
        for session_id, session in self._cache.items():
            by_id[session_id] = session.get_metadata()
        return sorted(by_id.values(), key=lambda m: m.updated_at, reverse=True)

    async def delete_session(self, session_id: str) -> None:
        """
        Delete a session from the cache, storage and index.

        Raises:
            SessionNotFoundError: If the id is unknown
        """
        if self._is_reserved(session_id):
            raise SessionNotFoundError(session_id)

        session = self._cache.pop(session_id, None)
        if session is not None:
            session.video_pipeline.teardown()
            session.set_save_listener(None)
            session.disable_auto_save()

        removed_from_index = await self._remove_from_index(session_id)
        try:
            await self.storage.delete(session_key(session_id))
            removed_from_storage = True
        except StorageKeyNotFoundError:
            removed_from_storage = False

        if session is None and not removed_from_index and not removed_from_storage:
            raise SessionNotFoundError(session_id)

        if self._active_id == session_id:
            self._active_id = None
        logger.info(f"Deleted session {session_id}")

    async def rename_session(self, session_id: str, name: str) -> Session:
        """Rename a session and refresh its index entry."""
        session = await self.load_session(session_id)
        await session.set_name(name)
        if not session.auto_save_enabled:
            await self._upsert_index(session)
        return session

    async def set_active_session(self, session_id: str) -> Session:
        """
        Make a session active, loading it if needed.

        Pending video timers of the previously active session are cancelled.
        """
        session = await self.load_session(session_id)
        previous = self._cache.get(self._active_id) if self._active_id else None
        if previous is not None and previous is not session:
            previous.video_pipeline.teardown()
        self._active_id = session_id
        return session

    def get_active_session(self) -> Optional[Session]:
        if self._active_id is None:
            return None
        return self._cache.get(self._active_id)

    def teardown(self) -> None:
        """Cancel video timers of every cached session (on shutdown)."""
        for session in self._cache.values():
            session.video_pipeline.teardown()

    async def delete_all_sessions(self) -> None:
        for session in self._cache.values():
            session.video_pipeline.teardown()
            session.set_save_listener(None)
            session.disable_auto_save()
        self._cache.clear()
        self._active_id = None

        async with self._index_lock:
            for key in await self.storage.list(SESSIONS_PREFIX):
                await self.storage.delete(key)
        logger.info("Deleted all sessions")

    # -------------------------------------------------------------------------
    # Export / import
    # -------------------------------------------------------------------------

    async def export_session(self, session_id: str) -> str:
        session = await self.load_session(session_id)
        return json.dumps(session.to_dict(), indent=2)

    async def import_session(self, data: Union[str, Dict[str, Any]]) -> Session:
        """
        Import one exported session.

        The session keeps its id unless that id is already registered, in
        which case it gets a fresh one.

        Raises:
            InvalidSessionDataError: If the data is not a valid session snapshot
        """
        snapshot = validate_session_data(_decode(data))
        return await self._register_import(snapshot)

    async def export_all_sessions(self) -> str:
        ids = [m.id for m in await self.list_sessions()]
        snapshots = [(await self.load_session(i)).to_dict() for i in ids]
        return json.dumps(snapshots, indent=2)

    async def import_all_sessions(self, data: Union[str, List[Dict[str, Any]]]) -> List[Session]:
        """Import many sessions; nothing is imported if any entry is invalid."""
        decoded = _decode(data)
        if not isinstance(decoded, list):
            raise InvalidSessionDataError(details={"reason": "expected a JSON array"})

        snapshots = []
        for position, item in enumerate(decoded):
            try:
                snapshots.append(validate_session_data(item))
            except InvalidSessionDataError as e:
                raise InvalidSessionDataError(details={"index": position, **e.details})

        return [await self._register_import(s) for s in snapshots]

    async def _register_import(self, snapshot: Dict[str, Any]) -> Session:
        session_id = snapshot["id"]
        if self._is_reserved(session_id) or await self._is_registered(session_id):
            session_id = new_id()
        session = self._adopt(
            Session.from_dict(snapshot, self.service, self.storage, config=self.config, session_id=session_id)
        )
        await session.save()
        logger.info(f"Imported session {session.id} ('{session.name}')")
        return session


def _decode(data: Any) -> Any:
    if isinstance(data, (str, bytes)):
        try:
            return json.loads(data)
        except json.JSONDecodeError as e:
            raise InvalidSessionDataError(details={"reason": f"invalid JSON: {e}"})
    return data
