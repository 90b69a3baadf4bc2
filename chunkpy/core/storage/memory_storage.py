"""
In-memory blob store implementation.

Provides non-persistent blob storage for testing and temporary use.
"""
from datetime import datetime, timezone
from typing import Dict, Optional, Tuple
import mimetypes

from ..exceptions import StorageCommitError
from ..result import Result
from .models import UploadOptions, BlobDescriptor
from .protocols import AsyncReadable


class MemoryBlobStorage:
    """
    In-memory blob store.
    
    Blobs are lost when the object is destroyed.
    
    Useful for:
    - Unit testing
    - Running the coordinator without a backend (commit_to_storage=True)
    
    Example:
        >>> storage = MemoryBlobStorage()
        >>> await storage.upload(stream, UploadOptions("a.bin"))
        >>> storage.get("a.bin")
    """
    
    def __init__(self):
        """Initialize memory storage."""
        self._blobs: Dict[str, Tuple[bytes, BlobDescriptor]] = {}
    
    async def upload(
        self,
        stream: AsyncReadable,
        options: UploadOptions
    ) -> Result[BlobDescriptor]:
        """
        Read the stream fully and keep it in memory.
        
        Args:
            stream: Async binary stream
            options: Upload options
            
        Returns:
            Result with blob descriptor
        """
        if not options.file_name:
            return Result.fail(StorageCommitError("File name cannot be empty", error_code='invalid_name'))
        
        data = await stream.read()
        full_name = self._key(options.file_name, options.directory)
        descriptor = BlobDescriptor(
            name=full_name.rsplit('/', 1)[-1],
            full_name=full_name,
            length=len(data),
            content_type=options.content_type or mimetypes.guess_type(full_name)[0] or 'application/octet-stream',
            last_modified=datetime.now(timezone.utc),
            metadata=dict(options.metadata or {})
        )
        self._blobs[full_name] = (data, descriptor)
        return Result.succeed(descriptor)
    
    def get(self, file_name: str, directory: Optional[str] = None) -> Optional[bytes]:
        """Returns stored bytes or None."""
        entry = self._blobs.get(self._key(file_name, directory))
        return entry[0] if entry else None
    
    def describe(self, file_name: str, directory: Optional[str] = None) -> Optional[BlobDescriptor]:
        """Returns stored descriptor or None."""
        entry = self._blobs.get(self._key(file_name, directory))
        return entry[1] if entry else None
    
    def __len__(self) -> int:
        return len(self._blobs)
    
    @staticmethod
    def _key(file_name: str, directory: Optional[str]) -> str:
        parts = [p for p in (directory or '').replace('\\', '/').split('/') if p]
        parts.extend(p for p in file_name.replace('\\', '/').split('/') if p)
        return '/'.join(parts)
