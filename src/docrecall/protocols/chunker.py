"""Protocol for chunk post-processing strategies."""

from typing import Protocol, runtime_checkable

from docrecall.models import Chunk


@runtime_checkable
class ChunkingStrategy(Protocol):
    """Protocol for strategies that reshape parser output.

    Implementations must preserve input order and structural lineage.
    """

    def process(self, chunks: list[Chunk]) -> list[Chunk]:
        """Return the processed chunks in order."""
        ...
