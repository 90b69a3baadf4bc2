"""
Chunk upload configuration module.

Provides configuration for the chunked upload coordinator.
"""
from dataclasses import dataclass, field
from datetime import timedelta
from pathlib import Path
from typing import Optional, Union
import tempfile


def _default_temp_path() -> Path:
    return Path(tempfile.gettempdir()) / 'chunkpy' / 'chunks'


@dataclass
class ChunkUploadConfig:
    """
    Configuration for the chunk upload service.
    
    Attributes:
        temp_path: Root directory for per-session staging areas
        session_ttl: Seconds of inactivity before a session expires (<= 0 disables)
        max_active_sessions: Maximum concurrent sessions (<= 0 disables the limit)
        max_chunk_size: Maximum bytes per chunk (0 = unlimited)
        merge_buffer_size: Copy buffer used while merging chunks
        checksum_buffer_size: Read buffer used while computing CRC-32
        sweep_interval: Seconds between background eviction sweeps (None = lazy only)
        log_level: If set, applied to every chunkpy logger by the coordinator
    """
    temp_path: Path = field(default_factory=_default_temp_path)
    session_ttl: Union[float, timedelta] = 3600.0
    max_active_sessions: int = 100
    max_chunk_size: int = 0
    merge_buffer_size: int = 81920
    checksum_buffer_size: int = 64 * 1024
    sweep_interval: Optional[float] = None
    log_level: Optional[int] = None
    
    def __post_init__(self):
        """Validate and normalize config."""
        if isinstance(self.temp_path, str):
            self.temp_path = Path(self.temp_path)
        
        if isinstance(self.session_ttl, timedelta):
            self.session_ttl = self.session_ttl.total_seconds()
        
        if self.merge_buffer_size <= 0:
            raise ValueError("merge_buffer_size must be positive")
        if self.checksum_buffer_size <= 0:
            raise ValueError("checksum_buffer_size must be positive")
        if self.sweep_interval is not None and self.sweep_interval <= 0:
            raise ValueError("sweep_interval must be positive")
    
    @property
    def merged_path(self) -> Path:
        """Directory that receives merged files."""
        return self.temp_path / 'merged'
    
    @property
    def expiry_enabled(self) -> bool:
        return self.session_ttl > 0
    
    @classmethod
    def default(cls) -> 'ChunkUploadConfig':
        """Create default configuration."""
        return cls()
