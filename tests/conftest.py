"""Pytest fixtures for chunkpy tests."""
import random
from datetime import datetime, timedelta, timezone
import zlib

import pytest

from chunkpy.core.config import ChunkUploadConfig
from chunkpy.core.storage import MemoryBlobStorage
from chunkpy.core.upload import ChunkUploadCoordinator, ChunkSubmission


class FakeClock:
    """Manually advanced UTC clock."""
    
    def __init__(self):
        self.now = datetime(2024, 1, 1, 12, 0, 0, tzinfo=timezone.utc)
    
    def __call__(self):
        return self.now
    
    def advance(self, seconds: float) -> None:
        self.now = self.now + timedelta(seconds=seconds)


def split(payload: bytes, sizes):
    """Cut payload into consecutive slices of the given sizes."""
    chunks = []
    position = 0
    for size in sizes:
        chunks.append(payload[position:position + size])
        position += size
    assert position == len(payload)
    return chunks


def submissions(upload_id: str, chunks, file_name: str = "video.bin"):
    """Build 1-based submissions for a list of chunk byte strings."""
    return [
        ChunkSubmission(
            upload_id=upload_id,
            index=i + 1,
            data=data,
            size=len(data),
            total_chunks=len(chunks),
            file_name=file_name,
            content_type="application/octet-stream",
            file_size=sum(len(c) for c in chunks)
        )
        for i, data in enumerate(chunks)
    ]


def crc32(data: bytes) -> int:
    return zlib.crc32(data) & 0xFFFFFFFF


@pytest.fixture
def clock():
    """Returns a controllable clock."""
    return FakeClock()


@pytest.fixture
def config(tmp_path):
    """Configuration staging under a temporary directory."""
    return ChunkUploadConfig(
        temp_path=tmp_path / "chunks",
        session_ttl=600,
        max_active_sessions=4
    )


@pytest.fixture
def storage():
    """In-memory blob store."""
    return MemoryBlobStorage()


@pytest.fixture
def coordinator(config, storage, clock):
    """Coordinator wired to memory storage and the fake clock."""
    return ChunkUploadCoordinator(config, storage=storage, clock=clock)


@pytest.fixture
def payload():
    """5 KiB of deterministic random bytes."""
    return random.Random(42).randbytes(5 * 1024)
