"""
Upload facade.

Provides a simplified interface for pushing a local file through the
chunk upload coordinator.
"""
from pathlib import Path
from typing import Optional, Union, Dict
import uuid
import zlib

import aiofiles

from ..exceptions import ChunkUploadError
from ..logging import get_logger
from ..result import Result
from ..storage import BlobStorage
from .coordinator import ChunkUploadCoordinator
from .models import ChunkSubmission, CompletionRequest, CompletionResult
from .strategies import ChunkingStrategy, FixedSizeChunkingStrategy


class ChunkUploadFacade:
    """
    Simplified interface for chunked uploads of local files.

    Splits the file, submits every chunk, then completes with the
    client-side CRC-32 so the coordinator can cross-check it.

    Example:
        >>> facade = ChunkUploadFacade(coordinator)
        >>> result = await facade.upload_file("video.mp4", directory="media")
        >>> print(result.unwrap().blob.full_name)
    """

    def __init__(
        self,
        coordinator: ChunkUploadCoordinator,
        chunking_strategy: Optional[ChunkingStrategy] = None
    ):
        """
        Initialize upload facade.

        Args:
            coordinator: Coordinator receiving the chunks
            chunking_strategy: Optional custom chunking strategy
        """
        self._coordinator = coordinator
        self._chunking = chunking_strategy or FixedSizeChunkingStrategy()
        self._logger = get_logger('chunkpy.upload')

    async def upload_file(
        self,
        file_path: Union[str, Path],
        upload_id: Optional[str] = None,
        file_name: Optional[str] = None,
        directory: Optional[str] = None,
        content_type: Optional[str] = None,
        metadata: Optional[Dict[str, str]] = None,
        commit_to_storage: bool = True,
        storage: Optional[BlobStorage] = None
    ) -> Result[CompletionResult]:
        """
        Upload a local file in chunks.

        On any chunk failure the session is aborted and that failure returned.

        Args:
            file_path: Path to file to upload
            upload_id: Session key (random if omitted)
            file_name: Blob name (defaults to the file's name)
            directory: Target directory in the blob store
            content_type: MIME type
            metadata: Metadata forwarded to the blob store
            commit_to_storage: Upload the merged file to the blob store
            storage: Blob store overriding the coordinator default

        Returns:
            Completion result
        """
        path = Path(file_path) if isinstance(file_path, str) else file_path
        upload_id = upload_id or uuid.uuid4().hex
        name = file_name or path.name

        try:
            file_size = path.stat().st_size
        except OSError as e:
            self._logger.error(f"Cannot read {path}: {e}")
            return Result.fail(ChunkUploadError(f"Cannot read {path}: {e}", error_code='source_unreadable'))

        chunks = self._chunking.calculate_chunks(file_size)
        if not chunks:
            return Result.fail(ChunkUploadError("Cannot upload empty file", error_code='empty_file'))

        self._logger.info(f"Uploading {path.name} as {upload_id} in {len(chunks)} chunks")
        crc = 0
        async with aiofiles.open(path, 'rb') as f:
            for chunk in chunks:
                await f.seek(chunk.start)
                data = await f.read(chunk.size)
                crc = zlib.crc32(data, crc)

                result = await self._coordinator.append_chunk(ChunkSubmission(
                    upload_id=upload_id,
                    index=chunk.index,
                    data=data,
                    size=len(data),
                    total_chunks=len(chunks),
                    file_name=name,
                    content_type=content_type,
                    file_size=file_size
                ))
                if result.is_failure:
                    await self._coordinator.abort(upload_id)
                    return Result.fail(result.error)

        return await self._coordinator.complete(
            CompletionRequest(
                upload_id=upload_id,
                file_name=name,
                directory=directory,
                content_type=content_type,
                metadata=metadata,
                commit_to_storage=commit_to_storage,
                expected_checksum=crc & 0xFFFFFFFF
            ),
            storage=storage
        )
