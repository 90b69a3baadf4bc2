"""
Session eviction service.

Removes sessions that have been idle for longer than their TTL.
"""
from typing import List, Optional
import asyncio

from ...logging import get_logger
from .session_store import SessionStore


class EvictionSweeper:
    """
    Expires idle sessions through the same path as an explicit abort.
    Sessions with a chunk write or completion in flight are skipped.
    
    Runs lazily via ``sweep()`` and, when started, periodically on a
    background task.
    """
    
    def __init__(
        self,
        store: SessionStore,
        session_ttl: float,
        interval: Optional[float] = None
    ):
        """
        Initialize sweeper.
        
        Args:
            store: Session registry to sweep
            session_ttl: Idle seconds before expiry (<= 0 disables)
            interval: Seconds between background sweeps (None = no background task)
        """
        self._store = store
        self._ttl = session_ttl
        self._interval = interval
        self._task: Optional[asyncio.Task] = None
        self._logger = get_logger('chunkpy.upload.eviction')
    
    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()
    
    async def sweep(self) -> List[str]:
        """
        Remove every expired session.
        
        Returns:
            Ids removed by this sweep
        """
        if self._ttl <= 0:
            return []
        
        evicted = []
        for upload_id in self._store.expired(self._ttl):
            if await self._store.evict(upload_id, self._ttl):
                self._logger.warning(f"Evicted idle upload session {upload_id}")
                evicted.append(upload_id)
        return evicted
    
    def start(self) -> None:
        """Start the background sweep task (no-op without an interval)."""
        if self._interval is None or self._ttl <= 0 or self.running:
            return
        self._task = asyncio.create_task(self._run(), name='chunkpy-eviction')
        self._logger.debug(f"Eviction sweep started (every {self._interval}s)")
    
    async def stop(self) -> None:
        """Stop the background sweep task."""
        if self._task is None:
            return
        self._task.cancel()
        try:
            await self._task
        except asyncio.CancelledError:
            pass
        self._task = None
    
    async def _run(self) -> None:
        while True:
            await asyncio.sleep(self._interval)
            try:
                await self.sweep()
            except Exception as e:
                self._logger.error(f"Eviction sweep failed: {e}")
