"""Protocol definitions for extensible components."""

from docrecall.protocols.chunker import ChunkingStrategy
from docrecall.protocols.parser import DocumentParser

__all__ = ["DocumentParser", "ChunkingStrategy"]
