"""
Upload session registry.

Maps upload ids to live sessions and bounds how many may be active.
"""
from contextlib import AsyncExitStack
from datetime import datetime
from pathlib import Path
from typing import Callable, Dict, List, Optional
import asyncio
import re
import shutil

import aiofiles.os

from ...exceptions import CapacityExceededError, InvalidChunkError, SessionNotFoundError
from ...logging import get_logger
from ..models import UploadSession, utcnow

UPLOAD_ID_PATTERN = re.compile(r'^[A-Za-z0-9_-]{1,128}$')


def validate_upload_id(upload_id: str) -> str:
    """
    Check an upload id is safe to use as a directory name.
    
    Raises:
        InvalidChunkError: If the id is empty, too long, or has other characters
    """
    if not isinstance(upload_id, str) or not UPLOAD_ID_PATTERN.match(upload_id):
        raise InvalidChunkError(
            f"Invalid upload id {upload_id!r}: use 1-128 of [A-Za-z0-9_-]",
            error_code='invalid_upload_id'
        )
    return upload_id


class SessionStore:
    """
    Concurrent registry of upload sessions.
    
    The registry lock guards only inserts and removals. I/O inside a
    session never runs under it.
    
    Removed ids are kept as tombstones for ``tombstone_ttl`` seconds so a
    late chunk for a finished upload is refused instead of silently
    starting a new session.
    """
    
    def __init__(
        self,
        temp_path: Path,
        max_active_sessions: int = 100,
        tombstone_ttl: float = 3600.0,
        clock: Callable[[], datetime] = utcnow
    ):
        """
        Initialize session store.
        
        Args:
            temp_path: Root under which each session gets a staging directory
            max_active_sessions: Capacity bound (<= 0 disables it)
            tombstone_ttl: Seconds a removed id stays refused
            clock: Returns the current UTC time
        """
        self._temp_path = Path(temp_path)
        self._max_active = max_active_sessions
        self._tombstone_ttl = tombstone_ttl
        self._clock = clock
        self._sessions: Dict[str, UploadSession] = {}
        self._tombstones: Dict[str, datetime] = {}
        self._lock = asyncio.Lock()
        self._logger = get_logger('chunkpy.upload.session')
    
    @property
    def temp_path(self) -> Path:
        return self._temp_path
    
    @property
    def active_count(self) -> int:
        return len(self._sessions)
    
    def __contains__(self, upload_id: str) -> bool:
        return upload_id in self._sessions
    
    def now(self) -> datetime:
        return self._clock()
    
    async def open(self, upload_id: str) -> UploadSession:
        """
        Return the session for an id, creating it if needed.
        
        Args:
            upload_id: Session key
            
        Returns:
            Existing or newly registered session
            
        Raises:
            InvalidChunkError: If the id is malformed
            SessionNotFoundError: If the id was recently finalized
            CapacityExceededError: If a new session would exceed the limit
            OSError: If the staging directory cannot be created
        """
        validate_upload_id(upload_id)
        session = self._sessions.get(upload_id)
        if session is not None:
            return session
        
        async with AsyncExitStack() as stack:
            async with self._lock:
                session = self._sessions.get(upload_id)
                if session is not None:
                    return session
                
                self._purge_tombstones()
                if upload_id in self._tombstones:
                    raise SessionNotFoundError(upload_id)
                
                if 0 < self._max_active <= len(self._sessions):
                    self._logger.warning(
                        f"Refusing upload {upload_id}: {len(self._sessions)} active sessions"
                    )
                    raise CapacityExceededError(self._max_active)
                
                now = self._clock()
                session = UploadSession(
                    upload_id=upload_id,
                    staging_dir=self._temp_path / upload_id,
                    created_at=now,
                    last_activity_at=now
                )
                # held until the staging directory exists; a fresh guard admits at once
                await stack.enter_async_context(session.guard.exclusive())
                self._sessions[upload_id] = session
            
            try:
                await aiofiles.os.makedirs(session.staging_dir, exist_ok=True)
            except BaseException:
                await asyncio.shield(self._abandon(session))
                raise
        
        self._logger.info(f"Opened upload session {upload_id}")
        return session
    
    def get(self, upload_id: str) -> UploadSession:
        """
        Return a live session.
        
        Raises:
            SessionNotFoundError: If the id is unknown or removal has begun
        """
        session = self._sessions.get(upload_id)
        if session is None or session.guard.closed:
            raise SessionNotFoundError(upload_id)
        return session
    
    def touch(self, upload_id: str) -> None:
        """Refresh a session's last activity time."""
        self.get(upload_id).touch(self._clock())
    
    def expired(self, ttl_seconds: float) -> List[str]:
        """Returns ids of idle sessions past ttl_seconds that nobody is using."""
        now = self._clock()
        return [
            upload_id for upload_id, session in list(self._sessions.items())
            if not session.guard.busy and session.is_expired(now, ttl_seconds)
        ]
    
    async def evict(self, upload_id: str, ttl_seconds: float) -> bool:
        """
        Remove a session if it is expired and idle.
        
        Never waits on in-flight chunk writes: a busy session is skipped and
        left for a later sweep.
        
        Returns:
            True if the session was removed by this call
        """
        session = self._sessions.get(upload_id)
        if session is None or session.guard.busy:
            return False
        if not session.is_expired(self._clock(), ttl_seconds):
            return False
        return await self.remove(upload_id)
    
    async def remove(self, upload_id: str) -> bool:
        """
        Close a session, unregister it and delete its staging directory.
        
        Waits for in-flight chunk writes to finish. Idempotent.
        
        Args:
            upload_id: Session key
            
        Returns:
            True if a session was removed by this call
        """
        session = self._sessions.get(upload_id)
        if session is None:
            return False
        
        async with session.guard.exclusive() as admitted:
            if not admitted:
                return False
            await session.guard.close()
        return await self.discard(session)
    
    async def discard(self, session: UploadSession) -> bool:
        """
        Unregister an already closed session and delete its staging directory.
        
        Used by callers that closed the session while holding its guard.
        """
        async with self._lock:
            if self._sessions.get(session.upload_id) is not session:
                return False
            del self._sessions[session.upload_id]
            self._tombstones[session.upload_id] = self._clock()
        
        await self._delete_staging(session.staging_dir)
        self._logger.info(f"Removed upload session {session.upload_id}")
        return True
    
    async def clear(self) -> None:
        """Remove every session."""
        for upload_id in list(self._sessions):
            await self.remove(upload_id)
    
    async def _abandon(self, session: UploadSession) -> None:
        # staging directory never came into existence; no tombstone
        await session.guard.close()
        async with self._lock:
            if self._sessions.get(session.upload_id) is session:
                del self._sessions[session.upload_id]
    
    async def _delete_staging(self, staging_dir: Path) -> None:
        try:
            await asyncio.to_thread(shutil.rmtree, staging_dir)
        except FileNotFoundError:
            pass
        except OSError as e:
            self._logger.error(f"Failed to delete staging directory {staging_dir}: {e}")
    
    def _purge_tombstones(self) -> None:
        if self._tombstone_ttl <= 0:
            self._tombstones.clear()
            return
        now = self._clock()
        for upload_id, removed_at in list(self._tombstones.items()):
            if (now - removed_at).total_seconds() > self._tombstone_ttl:
                del self._tombstones[upload_id]
