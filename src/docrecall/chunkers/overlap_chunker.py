"""Overlapping split of oversized chunks at natural text boundaries."""

from dataclasses import replace

from docrecall.config import DEFAULT_MAX_CHUNK_SIZE, DEFAULT_OVERLAP
from docrecall.models import Chunk

SENTENCE_ENDS = (". ", "! ", "? ")
PARAGRAPH_BREAK = "\n\n"
LINE_BREAK = "\n"


class OverlapChunker:
    """Split chunks above ``max_chunk_size`` into overlapping parts.

    Each window ends at the last sentence end inside it, else the last blank
    line, else the last newline, else exactly at the size limit. The next
    window starts ``overlap`` characters before the previous end so context
    carries across parts. Parts keep the parent's structural metadata.
    """

    def __init__(
        self,
        max_chunk_size: int = DEFAULT_MAX_CHUNK_SIZE,
        overlap: int = DEFAULT_OVERLAP,
    ):
        if max_chunk_size < 1:
            raise ValueError("max_chunk_size must be positive")
        if overlap < 0:
            raise ValueError("overlap must not be negative")
        self.max_chunk_size = max_chunk_size
        self.overlap = overlap

    def split_large(self, chunk: Chunk) -> list[Chunk]:
        """Return the chunk unchanged, or its overlapping parts."""
        content = chunk.content
        if len(content) <= self.max_chunk_size:
            return [chunk]

        parts: list[Chunk] = []
        start = 0
        part_num = 0

        while start < len(content):
            end = min(start + self.max_chunk_size, len(content))
            if end < len(content):
                end = self._find_break(content, start, end)

            text = content[start:end].strip()
            if text:
                parts.append(self._make_part(chunk, text, part_num))

            if end >= len(content):
                break

            # The next window always starts after the current one.
            next_start = end - self.overlap
            start = next_start if next_start > start else end
            part_num += 1

        return parts

    def process(self, chunks: list[Chunk]) -> list[Chunk]:
        """Split every oversized chunk, preserving order."""
        result: list[Chunk] = []
        for chunk in chunks:
            result.extend(self.split_large(chunk))
        return result

    @staticmethod
    def _find_break(content: str, start: int, end: int) -> int:
        """Pick the end of the window ``content[start:end]``."""
        sentence = max(content.rfind(marker, start + 1, end) for marker in SENTENCE_ENDS)
        if sentence > start:
            return sentence + 2

        for marker in (PARAGRAPH_BREAK, LINE_BREAK):
            found = content.rfind(marker, start + 1, end)
            if found > start:
                return found + len(marker)

        return end

    @staticmethod
    def _make_part(chunk: Chunk, text: str, part_num: int) -> Chunk:
        return replace(
            chunk,
            chunk_id=f"{chunk.chunk_id}-p{part_num}",
            name=f"{chunk.name} (part {part_num + 1})",
            content=text,
            parent_chunk_id=chunk.chunk_id,
            section_path=list(chunk.section_path),
            metadata=dict(chunk.metadata),
        )
