"""
Data models for upload module.

Uses dataclasses for type-safe data structures.
"""
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Dict, Any, Optional, List, Union, AsyncIterable

from ...storage.models import BlobDescriptor
from .session_guard import SessionGuard

ChunkData = Union[bytes, bytearray, memoryview, AsyncIterable[bytes]]


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class ChunkInfo:
    """
    Byte range of one chunk within a local file.
    
    Attributes:
        index: 1-based chunk index
        start: Start position in bytes
        end: End position in bytes (exclusive)
    """
    index: int
    start: int
    end: int
    
    @property
    def size(self) -> int:
        """Returns chunk size."""
        return self.end - self.start


@dataclass
class ChunkSubmission:
    """
    One chunk of an upload as received from the transport.
    
    Attributes:
        upload_id: Caller-supplied session key
        index: 1-based chunk ordinal
        data: Chunk bytes, or an async iterable of byte blocks
        size: Declared chunk size in bytes (optional, verified when set)
        total_chunks: Declared number of chunks (optional)
        file_name: Name of the logical file
        content_type: MIME type of the logical file
        file_size: Declared size of the logical file
    """
    upload_id: str
    index: int
    data: ChunkData
    size: Optional[int] = None
    total_chunks: Optional[int] = None
    file_name: Optional[str] = None
    content_type: Optional[str] = None
    file_size: Optional[int] = None
    
    @classmethod
    def from_dict(cls, payload: Dict[str, Any], data: ChunkData) -> 'ChunkSubmission':
        """
        Create from transport (camelCase) fields.
        
        Example:
            >>> ChunkSubmission.from_dict({'uploadId': 'u1', 'chunkIndex': 1}, b'...')
        """
        def _int(key: str) -> Optional[int]:
            value = payload.get(key)
            if value is None or value == '':
                return None
            return int(value)
        
        return cls(
            upload_id=payload.get('uploadId', payload.get('upload_id', '')),
            index=_int('chunkIndex') or 0,
            data=data,
            size=_int('chunkSize'),
            total_chunks=_int('totalChunks'),
            file_name=payload.get('fileName') or None,
            content_type=payload.get('contentType') or None,
            file_size=_int('fileSize')
        )


@dataclass
class CompletionRequest:
    """
    Request to finish an upload.
    
    Attributes:
        upload_id: Session to complete
        file_name: Blob name (defaults to the session's file name, then the id)
        directory: Target directory in the blob store
        content_type: MIME type override
        metadata: Metadata forwarded to the blob store
        commit_to_storage: Upload the merged file to the blob store
        keep_merged_file: Keep the merged file on disk after completion
        expected_checksum: CRC-32 computed by the sender, verified if set
    """
    upload_id: str
    file_name: Optional[str] = None
    directory: Optional[str] = None
    content_type: Optional[str] = None
    metadata: Optional[Dict[str, str]] = None
    commit_to_storage: bool = True
    keep_merged_file: bool = False
    expected_checksum: Optional[int] = None
    
    @classmethod
    def from_dict(cls, payload: Dict[str, Any]) -> 'CompletionRequest':
        """Create from transport (camelCase) JSON body."""
        checksum = payload.get('expectedChecksum')
        return cls(
            upload_id=payload.get('uploadId', payload.get('upload_id', '')),
            file_name=payload.get('fileName'),
            directory=payload.get('directory'),
            content_type=payload.get('contentType'),
            metadata=payload.get('metadata'),
            commit_to_storage=bool(payload.get('commitToStorage', True)),
            keep_merged_file=bool(payload.get('keepMergedFile', False)),
            expected_checksum=int(checksum) if checksum is not None else None
        )


@dataclass(frozen=True)
class CompletionResult:
    """
    Result of a successful completion.
    
    Attributes:
        checksum: CRC-32 of the merged file (unsigned 32-bit)
        size: Merged file size in bytes
        chunk_count: Number of chunks merged
        blob: Blob descriptor (only when committed to storage)
        merged_file_path: Merged file location (only when kept)
    """
    checksum: int
    size: int
    chunk_count: int
    blob: Optional[BlobDescriptor] = None
    merged_file_path: Optional[Path] = None
    
    def to_dict(self) -> Dict[str, Any]:
        """Convert to transport response format."""
        result: Dict[str, Any] = {'checksum': self.checksum}
        if self.blob is not None:
            result['metadata'] = self.blob.to_dict()
        return result


@dataclass(frozen=True)
class MergeOutcome:
    """
    Output of the merge engine.
    
    Attributes:
        path: Merged file
        size: Bytes written
        indices: Chunk indices merged, ascending
    """
    path: Path
    size: int
    indices: List[int]


@dataclass
class UploadSession:
    """
    Server-side state of one in-progress upload.
    
    Attributes:
        upload_id: Session key
        staging_dir: Directory owned exclusively by this session
        created_at: Creation time (UTC)
        last_activity_at: Time of the last append (UTC)
        total_chunks: Declared chunk count, learned from submissions
        file_size: Declared file size, learned from submissions
        file_name: File name, learned from submissions
        content_type: MIME type, learned from submissions
        guard: Writer/closer coordination for this session
    """
    upload_id: str
    staging_dir: Path
    created_at: datetime = field(default_factory=utcnow)
    last_activity_at: datetime = field(default_factory=utcnow)
    total_chunks: Optional[int] = None
    file_size: Optional[int] = None
    file_name: Optional[str] = None
    content_type: Optional[str] = None
    guard: SessionGuard = field(default_factory=SessionGuard, repr=False, compare=False)
    
    def touch(self, now: Optional[datetime] = None) -> None:
        """Refresh last activity time."""
        self.last_activity_at = now or utcnow()
    
    def is_expired(self, now: datetime, ttl_seconds: float) -> bool:
        """Returns True if idle for longer than ttl_seconds."""
        if ttl_seconds <= 0:
            return False
        return (now - self.last_activity_at).total_seconds() > ttl_seconds
    
    def chunk_path(self, index: int) -> Path:
        """Returns the artifact path for a chunk index."""
        return self.staging_dir / f"{index:06d}.part"
