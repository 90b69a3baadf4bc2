"""Chunk planning strategies."""
from .chunking import ChunkingStrategy, FixedSizeChunkingStrategy, ChunkCountStrategy, plan_ranges

__all__ = ['ChunkingStrategy', 'FixedSizeChunkingStrategy', 'ChunkCountStrategy', 'plan_ranges']
