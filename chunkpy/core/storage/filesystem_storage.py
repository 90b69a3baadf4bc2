"""
Local filesystem blob store.

Stores blobs as plain files under a base folder.
"""
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional, Tuple, Union, List
import mimetypes
import aiofiles
import aiofiles.os

from ..exceptions import StorageCommitError
from ..logging import get_logger
from ..result import Result
from .models import UploadOptions, BlobDescriptor
from .protocols import AsyncReadable

logger = get_logger('chunkpy.storage')


class FileSystemBlobStorage:
    """
    Blob store backed by a local directory.
    
    Blob names may carry '/' separated directories; they are combined
    with ``UploadOptions.directory``. Any '..' segment is rejected so a
    blob can never land outside the base folder.
    
    Example:
        >>> storage = FileSystemBlobStorage("/srv/blobs")
        >>> result = await storage.upload(stream, UploadOptions("video.bin"))
        >>> print(result.value.full_name)
    """
    
    DEFAULT_BUFFER_SIZE = 4 * 1024 * 1024
    
    def __init__(
        self,
        base_folder: Union[str, Path],
        buffer_size: int = DEFAULT_BUFFER_SIZE
    ):
        """
        Initialize filesystem storage.
        
        Args:
            base_folder: Root directory for blobs (created on demand)
            buffer_size: Copy buffer size in bytes
        """
        self._base = Path(base_folder).resolve()
        self._buffer_size = buffer_size
    
    @property
    def base_folder(self) -> Path:
        return self._base
    
    async def upload(
        self,
        stream: AsyncReadable,
        options: UploadOptions
    ) -> Result[BlobDescriptor]:
        """
        Copy a stream into the store.
        
        Args:
            stream: Async binary stream
            options: Upload options
            
        Returns:
            Result with blob descriptor, or a failed result
        """
        try:
            path = self.resolve_path(options.file_name, options.directory)
            await aiofiles.os.makedirs(path.parent, exist_ok=True)
            
            async with aiofiles.open(path, 'wb') as target:
                while True:
                    block = await stream.read(self._buffer_size)
                    if not block:
                        break
                    await target.write(block)
            
            descriptor = await self._describe(path, options.content_type, options.metadata)
            logger.debug(f"Stored blob {descriptor.full_name} ({descriptor.length} bytes)")
            return Result.succeed(descriptor)
        except StorageCommitError as e:
            logger.error(f"Rejected blob {options.file_name}: {e}")
            return Result.fail(e)
        except OSError as e:
            logger.error(f"Failed to store blob {options.file_name}: {e}")
            return Result.fail(StorageCommitError(str(e), error_code='io_error'))
    
    async def get_metadata(
        self,
        file_name: str,
        directory: Optional[str] = None
    ) -> Result[BlobDescriptor]:
        """
        Describe an existing blob.
        
        Args:
            file_name: Blob name
            directory: Optional directory
            
        Returns:
            Result with blob descriptor, or a failed result if missing
        """
        try:
            path = self.resolve_path(file_name, directory)
            if not await aiofiles.os.path.isfile(path):
                return Result.fail(StorageCommitError("File not found", error_code='not_found'))
            return Result.succeed(await self._describe(path))
        except StorageCommitError as e:
            return Result.fail(e)
        except OSError as e:
            return Result.fail(StorageCommitError(str(e), error_code='io_error'))
    
    def resolve_path(self, file_name: str, directory: Optional[str] = None) -> Path:
        """
        Map a blob name to a path under the base folder.
        
        Raises:
            StorageCommitError: If the name is empty or escapes the base folder
        """
        if not file_name or not file_name.strip():
            raise StorageCommitError("File name cannot be empty", error_code='invalid_name')
        
        name_directory, name = self._split_directory(file_name)
        segments = self._segments(directory) + self._segments(name_directory)
        if not name or name in ('.', '..'):
            raise StorageCommitError(f"Invalid file name: {file_name}", error_code='invalid_name')
        
        path = self._base.joinpath(*segments, name).resolve()
        if self._base != path and self._base not in path.parents:
            raise StorageCommitError(
                f"Access to path '{file_name}' is denied. Path traversal detected.",
                error_code='path_traversal'
            )
        return path
    
    @staticmethod
    def _split_directory(file_name: str) -> Tuple[Optional[str], str]:
        normalized = file_name.replace('\\', '/')
        if '/' not in normalized:
            return None, normalized
        directory, _, name = normalized.rpartition('/')
        return directory, name
    
    @staticmethod
    def _segments(directory: Optional[str]) -> List[str]:
        if not directory:
            return []
        segments = [s for s in directory.replace('\\', '/').split('/') if s]
        for segment in segments:
            if segment in ('.', '..'):
                raise StorageCommitError(
                    f"Access to path '{directory}' is denied. Path traversal detected.",
                    error_code='path_traversal'
                )
        return segments
    
    async def _describe(
        self,
        path: Path,
        content_type: Optional[str] = None,
        metadata: Optional[dict] = None
    ) -> BlobDescriptor:
        stat = await aiofiles.os.stat(path)
        return BlobDescriptor(
            name=path.name,
            full_name=path.relative_to(self._base).as_posix(),
            length=stat.st_size,
            content_type=content_type or mimetypes.guess_type(path.name)[0] or 'application/octet-stream',
            last_modified=datetime.fromtimestamp(stat.st_mtime, tz=timezone.utc),
            metadata=dict(metadata or {})
        )
