"""docrecall - document index with activation-ranked full-text search."""

from docrecall.chunkers import OverlapChunker
from docrecall.config import Settings, load_settings
from docrecall.errors import (
    DocRecallError,
    FileNotFound,
    ParseFailure,
    StorageFailure,
    UnsupportedFormat,
)
from docrecall.indexer import DirectoryIndexResult, DocumentIndexer
from docrecall.memory import archive_summary, prune_conversation_chunks
from docrecall.models import Chunk, SearchHit
from docrecall.storage import ChunkStore

__version__ = "0.1.0"

__all__ = [
    "Chunk",
    "SearchHit",
    "ChunkStore",
    "OverlapChunker",
    "DocumentIndexer",
    "DirectoryIndexResult",
    "Settings",
    "load_settings",
    "archive_summary",
    "prune_conversation_chunks",
    "DocRecallError",
    "FileNotFound",
    "UnsupportedFormat",
    "ParseFailure",
    "StorageFailure",
]
