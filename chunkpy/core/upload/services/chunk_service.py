"""
Chunk staging service.

Persists individual chunks into a session's staging directory.
"""
from pathlib import Path
import asyncio
import secrets

import aiofiles
import aiofiles.os

from ...exceptions import InvalidChunkError
from ...logging import get_logger
from ..models import ChunkSubmission, ChunkData, UploadSession


class ChunkWriter:
    """
    Writes chunk payloads to staging storage.
    
    Responsibilities:
    - Validate chunk index and size
    - Stream bytes to a temporary file
    - Publish the chunk atomically under its index name
    - Record declared totals on the session
    
    A chunk is either fully present under its final name or absent:
    partial writes only ever exist under a temporary name.
    """
    
    def __init__(self, max_chunk_size: int = 0):
        """
        Initialize chunk writer.
        
        Args:
            max_chunk_size: Maximum bytes per chunk (0 = unlimited)
        """
        self._max_chunk_size = max_chunk_size
        self._logger = get_logger('chunkpy.upload.chunk')
    
    def validate(self, session: UploadSession, submission: ChunkSubmission) -> None:
        """
        Check a submission against the session before writing.
        
        Raises:
            InvalidChunkError: If the index or declared sizes are invalid
        """
        if submission.index < 1:
            raise InvalidChunkError(
                f"Chunk index must be 1 or greater, got {submission.index}",
                error_code='invalid_index'
            )
        total = session.total_chunks or (submission.total_chunks if submission.total_chunks and submission.total_chunks > 0 else None)
        if total is not None and submission.index > total:
            raise InvalidChunkError(
                f"Chunk index {submission.index} exceeds declared total {total}",
                error_code='index_out_of_range'
            )
        if submission.size is not None and submission.size < 0:
            raise InvalidChunkError(f"Invalid chunk size {submission.size}", error_code='invalid_size')
        if self._max_chunk_size and submission.size and submission.size > self._max_chunk_size:
            raise InvalidChunkError(
                f"Chunk size {submission.size} bytes exceeds maximum allowed chunk size of {self._max_chunk_size} bytes",
                error_code='chunk_too_large'
            )
    
    def record(self, session: UploadSession, submission: ChunkSubmission) -> None:
        """
        Learn totals and file details from a submission.
        
        The first positive total wins; later submissions never change it.
        """
        if submission.total_chunks and submission.total_chunks > 0:
            if session.total_chunks is None:
                session.total_chunks = submission.total_chunks
            elif submission.total_chunks != session.total_chunks:
                self._logger.warning(
                    f"Upload {session.upload_id}: ignoring total_chunks={submission.total_chunks}, "
                    f"keeping {session.total_chunks}"
                )
        if submission.file_size is not None and session.file_size is None:
            session.file_size = submission.file_size
        if submission.file_name and session.file_name is None:
            session.file_name = submission.file_name
        if submission.content_type and session.content_type is None:
            session.content_type = submission.content_type
    
    async def write(self, session: UploadSession, submission: ChunkSubmission) -> Path:
        """
        Write a chunk, replacing any previous bytes for its index.
        
        Args:
            session: Owning session
            submission: Chunk to write
            
        Returns:
            Path of the published chunk file
            
        Raises:
            InvalidChunkError: If the written size disagrees with the declared size
            OSError: If writing fails
        """
        target = session.chunk_path(submission.index)
        temp = target.with_name(f".{target.name}.{secrets.token_hex(4)}.tmp")
        published = False
        
        try:
            written = await self._stream_to(temp, submission.data)
            
            if submission.size is not None and written != submission.size:
                raise InvalidChunkError(
                    f"Chunk {submission.index} declared {submission.size} bytes but {written} were received",
                    error_code='size_mismatch'
                )
            if self._max_chunk_size and written > self._max_chunk_size:
                raise InvalidChunkError(
                    f"Chunk size {written} bytes exceeds maximum allowed chunk size of {self._max_chunk_size} bytes",
                    error_code='chunk_too_large'
                )
            
            await aiofiles.os.replace(temp, target)
            published = True
        finally:
            if not published:
                await self._discard(temp)
        
        self._logger.debug(
            f"Upload {session.upload_id}: stored chunk {submission.index} ({written} bytes)"
        )
        return target
    
    async def _stream_to(self, path: Path, data: ChunkData) -> int:
        written = 0
        async with aiofiles.open(path, 'wb') as f:
            if isinstance(data, (bytes, bytearray, memoryview)):
                await f.write(data)
                written = memoryview(data).nbytes
            else:
                async for block in data:
                    await f.write(block)
                    written += len(block)
                    if self._max_chunk_size and written > self._max_chunk_size:
                        break
        return written
    
    async def _discard(self, path: Path) -> None:
        # also runs on cancellation
        await asyncio.shield(self._remove(path))

    async def _remove(self, path: Path) -> None:
        try:
            await aiofiles.os.remove(path)
        except FileNotFoundError:
            pass
        except OSError as e:
            self._logger.warning(f"Could not remove temporary chunk {path}: {e}")
