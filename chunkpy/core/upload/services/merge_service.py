"""
Chunk merge service.

Reassembles a session's staged chunks into one file in index order.
"""
from pathlib import Path
from typing import Dict, List, Optional
import asyncio
import re

import aiofiles
import aiofiles.os

from ...exceptions import IncompleteUploadError
from ...logging import get_logger
from ..models import MergeOutcome, UploadSession

CHUNK_NAME_PATTERN = re.compile(r'^(\d+)\.part$')


class ChunkMerger:
    """
    Concatenates chunk files in ascending numeric index.
    
    Order comes from the index parsed out of each file name, never from
    directory listing order.
    """
    
    DEFAULT_BUFFER_SIZE = 81920
    
    def __init__(self, buffer_size: int = DEFAULT_BUFFER_SIZE):
        """
        Initialize merger.
        
        Args:
            buffer_size: Copy buffer in bytes
        """
        self._buffer_size = buffer_size
        self._logger = get_logger('chunkpy.upload.merge')
    
    async def discover(self, staging_dir: Path) -> Dict[int, Path]:
        """
        Find published chunk files.
        
        Args:
            staging_dir: Session staging directory
            
        Returns:
            Mapping of chunk index to file path
        """
        chunks: Dict[int, Path] = {}
        for name in await aiofiles.os.listdir(staging_dir):
            match = CHUNK_NAME_PATTERN.match(name)
            if match:
                chunks[int(match.group(1))] = staging_dir / name
        return chunks
    
    def verify(
        self,
        upload_id: str,
        indices: List[int],
        total_chunks: Optional[int]
    ) -> None:
        """
        Check the discovered indices form a complete sequence.
        
        Raises:
            IncompleteUploadError: If chunks are missing or unexpected
        """
        if not indices:
            raise IncompleteUploadError(upload_id, missing=range(1, (total_chunks or 0) + 1))
        if total_chunks is None:
            return
        
        present = set(indices)
        expected = set(range(1, total_chunks + 1))
        if present != expected:
            raise IncompleteUploadError(
                upload_id,
                missing=expected - present,
                unexpected=present - expected
            )
    
    async def merge(self, session: UploadSession, destination: Path) -> MergeOutcome:
        """
        Merge a session's chunks into destination.
        
        Args:
            session: Session whose chunks are merged
            destination: Output file (overwritten)
            
        Returns:
            Merge outcome with size and merged indices
            
        Raises:
            IncompleteUploadError: If the chunk set is incomplete
            OSError: If reading or writing fails
        """
        chunks = await self.discover(session.staging_dir)
        indices = sorted(chunks)
        self.verify(session.upload_id, indices, session.total_chunks)
        
        await aiofiles.os.makedirs(destination.parent, exist_ok=True)
        size = 0
        completed = False
        try:
            async with aiofiles.open(destination, 'wb') as target:
                for index in indices:
                    async with aiofiles.open(chunks[index], 'rb') as source:
                        while True:
                            block = await source.read(self._buffer_size)
                            if not block:
                                break
                            await target.write(block)
                            size += len(block)
            completed = True
        finally:
            if not completed:
                await asyncio.shield(self._remove_partial(destination))
        
        if session.file_size is not None and session.file_size != size:
            self._logger.warning(
                f"Upload {session.upload_id}: merged {size} bytes, client declared {session.file_size}"
            )
        
        self._logger.info(
            f"Upload {session.upload_id}: merged {len(indices)} chunks ({size} bytes)"
        )
        return MergeOutcome(path=destination, size=size, indices=indices)
    
    async def _remove_partial(self, path: Path) -> None:
        try:
            await aiofiles.os.remove(path)
        except FileNotFoundError:
            pass
        except OSError as e:
            self._logger.warning(f"Could not remove partial merge {path}: {e}")
