"""
Blob storage module.

Defines the storage capability consumed by the chunk upload coordinator
and two backends: local filesystem and in-memory.
"""
from .models import UploadOptions, BlobDescriptor
from .protocols import BlobStorage, AsyncReadable
from .filesystem_storage import FileSystemBlobStorage
from .memory_storage import MemoryBlobStorage

__all__ = [
    'UploadOptions',
    'BlobDescriptor',
    'BlobStorage',
    'AsyncReadable',
    'FileSystemBlobStorage',
    'MemoryBlobStorage',
]
