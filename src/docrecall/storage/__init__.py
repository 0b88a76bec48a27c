"""Chunk persistence, full-text search and activation tracking."""

from docrecall.storage.activation import base_level_activation
from docrecall.storage.query import STOP_WORDS, normalize_query
from docrecall.storage.store import ChunkStore

__all__ = ["ChunkStore", "base_level_activation", "normalize_query", "STOP_WORDS"]
