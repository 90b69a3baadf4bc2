"""
Custom exceptions for chunked upload operations.

Every failure a public operation can report is one of these classes.
The ``kind`` attribute is a stable identifier the transport layer maps
to protocol responses.
"""
from typing import Optional, Iterable, List


class ChunkUploadError(Exception):
    """Base exception for all chunk upload errors."""
    
    kind = 'ChunkUploadError'
    
    def __init__(self, message: str, error_code: Optional[str] = None) -> None:
        """
        Initialize the exception.
        
        Args:
            message: Error message
            error_code: Machine-readable error code (if available)
        """
        self.message = message
        self.error_code = error_code
        super().__init__(message)
    
    def to_dict(self) -> dict:
        """Serializable representation used in transport responses."""
        result = {'error': self.kind, 'message': self.message}
        if self.error_code is not None:
            result['code'] = self.error_code
        return result


class CapacityExceededError(ChunkUploadError):
    """Raised when a new session would exceed the active session limit."""
    
    kind = 'CapacityExceeded'
    
    def __init__(self, limit: int) -> None:
        self.limit = limit
        super().__init__(
            f"Maximum number of parallel chunk uploads exceeded ({limit})",
            error_code='capacity_exceeded'
        )


class StagingIOError(ChunkUploadError):
    """Raised when reading or writing staging storage fails."""
    
    kind = 'IOFailure'


class IncompleteUploadError(ChunkUploadError):
    """Raised when a merge finds gaps in the chunk sequence."""
    
    kind = 'IncompleteUpload'
    
    def __init__(
        self,
        upload_id: str,
        missing: Iterable[int] = (),
        unexpected: Iterable[int] = ()
    ) -> None:
        """
        Initialize the exception.
        
        Args:
            upload_id: Upload whose chunk set is incomplete
            missing: Indices the caller must resend
            unexpected: Indices present beyond the declared total
        """
        self.upload_id = upload_id
        self.missing: List[int] = sorted(missing)
        self.unexpected: List[int] = sorted(unexpected)
        if self.missing:
            detail = f"missing chunks {self.missing}"
        elif self.unexpected:
            detail = f"unexpected chunks {self.unexpected}"
        else:
            detail = "no chunks received"
        super().__init__(
            f"Upload {upload_id} is incomplete: {detail}",
            error_code='incomplete_upload'
        )
    
    def to_dict(self) -> dict:
        result = super().to_dict()
        result['missing'] = self.missing
        if self.unexpected:
            result['unexpected'] = self.unexpected
        return result


class SessionNotFoundError(ChunkUploadError):
    """Raised for operations against an unknown or finalized upload id."""
    
    kind = 'SessionNotFound'
    
    def __init__(self, upload_id: str) -> None:
        self.upload_id = upload_id
        super().__init__(
            f"Upload session {upload_id} not found",
            error_code='session_not_found'
        )


class StorageCommitError(ChunkUploadError):
    """Raised when the blob store rejects the reassembled file."""
    
    kind = 'StorageCommitFailed'


class InvalidChunkError(ChunkUploadError, ValueError):
    """Raised when a submission or upload id is malformed."""
    
    kind = 'InvalidChunk'


class ChecksumMismatchError(ChunkUploadError):
    """Raised when the merged file does not match the client's checksum."""
    
    kind = 'ChecksumMismatch'
    
    def __init__(self, upload_id: str, expected: int, actual: int) -> None:
        self.upload_id = upload_id
        self.expected = expected
        self.actual = actual
        super().__init__(
            f"Checksum mismatch for upload {upload_id}: "
            f"expected {expected:#010x}, got {actual:#010x}",
            error_code='checksum_mismatch'
        )
    
    def to_dict(self) -> dict:
        result = super().to_dict()
        result['expected'] = self.expected
        result['actual'] = self.actual
        return result
