"""Chunk post-processing strategies."""

from docrecall.chunkers.overlap_chunker import OverlapChunker

__all__ = ["OverlapChunker"]
