"""Upload services module."""
from .session_store import SessionStore, validate_upload_id
from .chunk_service import ChunkWriter
from .merge_service import ChunkMerger
from .checksum_service import ChecksumCalculator
from .eviction import EvictionSweeper

__all__ = [
    'SessionStore',
    'validate_upload_id',
    'ChunkWriter',
    'ChunkMerger',
    'ChecksumCalculator',
    'EvictionSweeper',
]
