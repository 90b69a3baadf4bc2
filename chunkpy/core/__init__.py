"""Core chunked upload components."""
from .config import ChunkUploadConfig
from .result import Result
from .exceptions import (
    ChunkUploadError,
    CapacityExceededError,
    StagingIOError,
    IncompleteUploadError,
    SessionNotFoundError,
    StorageCommitError,
    InvalidChunkError,
    ChecksumMismatchError
)

__all__ = [
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
]
