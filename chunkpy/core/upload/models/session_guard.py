"""
Per-session concurrency guard.
"""
from contextlib import asynccontextmanager
from typing import AsyncIterator
import asyncio


class SessionGuard:
    """
    Coordinates chunk writers with the session's terminal transition.
    
    Any number of writers may hold the guard at once. ``exclusive()``
    waits for in-flight writers to drain and blocks new ones; after
    ``close()`` no writer is ever admitted again.
    
    Example:
        >>> async with guard.writer():
        ...     await write_chunk()
        >>> async with guard.exclusive():
        ...     await merge()
    """
    
    def __init__(self):
        self._condition = asyncio.Condition()
        self._writers = 0
        self._exclusive = False
        self._closed = False
    
    @property
    def closed(self) -> bool:
        return self._closed
    
    @property
    def writers(self) -> int:
        return self._writers
    
    @property
    def busy(self) -> bool:
        """True while a writer or an exclusive holder is inside."""
        return self._writers > 0 or self._exclusive
    
    @asynccontextmanager
    async def writer(self) -> AsyncIterator[bool]:
        """
        Enter as a writer.
        
        Yields False (without admitting) if the session is closed.
        Waits while an exclusive holder is active.
        """
        async with self._condition:
            await self._condition.wait_for(lambda: not self._exclusive or self._closed)
            if self._closed:
                admitted = False
            else:
                self._writers += 1
                admitted = True
        try:
            yield admitted
        finally:
            if admitted:
                await asyncio.shield(self._release(writer=True))
    
    @asynccontextmanager
    async def exclusive(self) -> AsyncIterator[bool]:
        """
        Enter exclusively once all writers have left.
        
        Yields False if the session was closed meanwhile.
        """
        async with self._condition:
            await self._condition.wait_for(lambda: not self._exclusive or self._closed)
            if self._closed:
                admitted = False
            else:
                self._exclusive = True
                try:
                    await self._condition.wait_for(lambda: self._writers == 0)
                except BaseException:
                    # cancelled while draining: let writers back in
                    self._exclusive = False
                    self._condition.notify_all()
                    raise
                admitted = True
        try:
            yield admitted
        finally:
            if admitted:
                await asyncio.shield(self._release(writer=False))
    
    async def close(self) -> None:
        """Mark closed; pending and future entrants are refused."""
        async with self._condition:
            self._closed = True
            self._condition.notify_all()
    
    async def _release(self, writer: bool) -> None:
        async with self._condition:
            if writer:
                self._writers -= 1
            else:
                self._exclusive = False
            self._condition.notify_all()
