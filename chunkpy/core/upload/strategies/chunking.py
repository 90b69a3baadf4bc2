"""
Sender-side chunk planning.

Turns a file size into 1-based byte ranges ready to be submitted as
``ChunkSubmission``s.
"""
from typing import List, Protocol, runtime_checkable

from ..models import ChunkInfo


@runtime_checkable
class ChunkingStrategy(Protocol):
    """Anything that can plan the chunks of a file."""

    def calculate_chunks(self, file_size: int) -> List[ChunkInfo]: ...


def plan_ranges(file_size: int, chunk_size: int) -> List[ChunkInfo]:
    """
    Cut ``file_size`` bytes into consecutive ranges of ``chunk_size``.

    The last range may be shorter. An empty file yields no chunks.
    """
    if file_size < 0:
        raise ValueError(f"File size cannot be negative: {file_size}")
    return [
        ChunkInfo(index=number, start=start, end=min(start + chunk_size, file_size))
        for number, start in enumerate(range(0, file_size, chunk_size), start=1)
    ]


class FixedSizeChunkingStrategy:
    """
    Every chunk is ``chunk_size`` bytes except possibly the last.

    Example:
        >>> [c.size for c in FixedSizeChunkingStrategy(2048).calculate_chunks(5120)]
        [2048, 2048, 1024]
    """

    DEFAULT_CHUNK_SIZE = 5 * 1024 * 1024

    def __init__(self, chunk_size: int = DEFAULT_CHUNK_SIZE):
        if chunk_size <= 0:
            raise ValueError("Chunk size must be positive")
        self.chunk_size = chunk_size

    def calculate_chunks(self, file_size: int) -> List[ChunkInfo]:
        return plan_ranges(file_size, self.chunk_size)


class ChunkCountStrategy:
    """
    Splits a file into at most ``chunk_count`` near-equal chunks.

    Chunks never shrink below ``min_chunk_size`` (small files get fewer
    chunks) nor grow above ``max_chunk_size`` when one is set (large
    files get more).
    """

    def __init__(self, chunk_count: int, min_chunk_size: int = 64 * 1024, max_chunk_size: int = 0):
        """
        Args:
            chunk_count: Desired number of chunks
            min_chunk_size: Smallest chunk worth sending on its own
            max_chunk_size: Largest chunk the receiver accepts (0 = unlimited)
        """
        if chunk_count <= 0:
            raise ValueError("Chunk count must be positive")
        if min_chunk_size <= 0:
            raise ValueError("Minimum chunk size must be positive")
        if max_chunk_size and max_chunk_size < min_chunk_size:
            raise ValueError("Maximum chunk size is smaller than the minimum")
        self.chunk_count = chunk_count
        self.min_chunk_size = min_chunk_size
        self.max_chunk_size = max_chunk_size

    def calculate_chunks(self, file_size: int) -> List[ChunkInfo]:
        # ceiling division keeps the count at or below chunk_count
        chunk_size = max(-(-file_size // self.chunk_count), self.min_chunk_size)
        if self.max_chunk_size:
            chunk_size = min(chunk_size, self.max_chunk_size)
        return plan_ranges(file_size, chunk_size)
