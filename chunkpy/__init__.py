"""
chunkpy - Async chunked upload coordinator.

Usage:
    >>> from chunkpy import ChunkUploadCoordinator, ChunkSubmission, CompletionRequest
    >>> 
    >>> async with ChunkUploadCoordinator(storage=MemoryBlobStorage()) as uploads:
    ...     await uploads.append_chunk(ChunkSubmission("upload-1", 1, data, total_chunks=1))
    ...     result = await uploads.complete(CompletionRequest("upload-1", file_name="a.bin"))
    ...     print(result.unwrap().checksum)
"""
import logging

from .core.config import ChunkUploadConfig
from .core.result import Result
from .core.exceptions import (
    ChunkUploadError,
    CapacityExceededError,
    StagingIOError,
    IncompleteUploadError,
    SessionNotFoundError,
    StorageCommitError,
    InvalidChunkError,
    ChecksumMismatchError
)
from .core.logging import configure_logging

# Upload pipeline
from .core.upload import (
    ChunkUploadCoordinator,
    ChunkUploadFacade,
    ChunkSubmission,
    CompletionRequest,
    CompletionResult,
    FixedSizeChunkingStrategy,
    ChunkCountStrategy
)

# Blob storage
from .core.storage import (
    BlobStorage,
    BlobDescriptor,
    UploadOptions,
    FileSystemBlobStorage,
    MemoryBlobStorage
)

__version__ = '1.0.0'


def setup_logging(level=logging.INFO):
    """
    Configure logging for chunkpy modules.
    
    Args:
        level: Logging level (default: logging.INFO)
    """
    configure_logging(level)


__all__ = [
    'ChunkUploadCoordinator',
    'ChunkUploadFacade',
    'ChunkSubmission',
    'CompletionRequest',
    'CompletionResult',
    'FixedSizeChunkingStrategy',
    'ChunkCountStrategy',
    'ChunkUploadConfig',
    'Result',
    'ChunkUploadError',
    'CapacityExceededError',
    'StagingIOError',
    'IncompleteUploadError',
    'SessionNotFoundError',
    'StorageCommitError',
    'InvalidChunkError',
    'ChecksumMismatchError',
    'BlobStorage',
    'BlobDescriptor',
    'UploadOptions',
    'FileSystemBlobStorage',
    'MemoryBlobStorage',
    'setup_logging',
]
