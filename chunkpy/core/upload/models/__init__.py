"""Upload models."""
from .session_guard import SessionGuard
from .upload_models import (
    ChunkInfo,
    ChunkSubmission,
    ChunkData,
    CompletionRequest,
    CompletionResult,
    MergeOutcome,
    UploadSession,
    utcnow
)

__all__ = [
    'SessionGuard',
    'ChunkInfo',
    'ChunkSubmission',
    'ChunkData',
    'CompletionRequest',
    'CompletionResult',
    'MergeOutcome',
    'UploadSession',
    'utcnow',
]
