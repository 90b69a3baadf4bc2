"""
Upload module for chunked uploads.

Stages chunks per session, merges them in index order, checksums the
result and commits it to a pluggable blob store.
"""
from .coordinator import ChunkUploadCoordinator
from .facade import ChunkUploadFacade
from .models import (
    ChunkInfo,
    ChunkSubmission,
    CompletionRequest,
    CompletionResult,
    MergeOutcome,
    UploadSession
)
from .strategies import ChunkingStrategy, FixedSizeChunkingStrategy, ChunkCountStrategy

__all__ = [
    # Main classes
    'ChunkUploadCoordinator',
    'ChunkUploadFacade',
    
    # Models
    'ChunkInfo',
    'ChunkSubmission',
    'CompletionRequest',
    'CompletionResult',
    'MergeOutcome',
    'UploadSession',
    
    # Strategies
    'ChunkingStrategy',
    'FixedSizeChunkingStrategy',
    'ChunkCountStrategy',
]
