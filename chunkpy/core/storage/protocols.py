"""
Protocol definitions for blob storage backends.

The chunk upload coordinator only needs one capability from a backend:
store a stream under a name and describe the result.
"""
from typing import Protocol, runtime_checkable

from ..result import Result
from .models import UploadOptions, BlobDescriptor


@runtime_checkable
class AsyncReadable(Protocol):
    """Async binary stream (e.g. an ``aiofiles`` handle)."""
    
    async def read(self, size: int = -1) -> bytes: ...


@runtime_checkable
class BlobStorage(Protocol):
    """
    Protocol for durable blob stores.
    
    Implementations report failures as a failed ``Result`` carrying a
    ``StorageCommitError``; they should not raise.
    """
    
    async def upload(
        self,
        stream: AsyncReadable,
        options: UploadOptions
    ) -> Result[BlobDescriptor]:
        """
        Upload a stream.
        
        Args:
            stream: Async binary stream positioned at the start of the data
            options: Name, directory, content type and metadata
            
        Returns:
            Result with the blob descriptor
        """
        ...
