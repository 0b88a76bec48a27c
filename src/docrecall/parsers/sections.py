"""Heading-stack section builder shared by the Markdown and DOCX parsers."""

from typing import Optional

from docrecall.models import Chunk


class SectionBuilder:
    """Accumulate body text between headings and emit one chunk per section.

    The stack holds ``(level, title)`` pairs. A heading pops every entry at
    the same or a deeper level before pushing itself, so the stack titles are
    always the breadcrumb of the open section.
    """

    def __init__(self, file_path: str, filename: str, element: str):
        self.file_path = file_path
        self.filename = filename
        self.element = element
        self.chunks: list[Chunk] = []
        self._stack: list[tuple[int, str]] = []
        self._lines: list[str] = []
        self._name = filename
        self._level = 0
        self._seen_heading = False

    @property
    def section_path(self) -> list[str]:
        return [title for _, title in self._stack]

    def heading(self, level: int, title: str) -> None:
        """Close the open section and start a new one under ``title``."""
        self._close()

        while self._stack and self._stack[-1][0] >= level:
            self._stack.pop()
        self._stack.append((level, title))

        self._name = title
        self._level = level
        self._seen_heading = True

    def add(self, text: str) -> None:
        self._lines.append(text)

    def finish(self) -> list[Chunk]:
        """Close the trailing section and return all chunks.

        A document without any heading becomes a single chunk.
        """
        if not self._seen_heading:
            whole = self._body()
            if not whole:
                return []
            return [self._make_chunk(whole, [self.filename])]

        self._close()
        return self.chunks

    def _body(self) -> str:
        return "\n".join(self._lines).strip()

    def _close(self) -> None:
        body = self._body()
        self._lines = []

        # Preamble text before the first heading only counts when non-empty;
        # a heading with no body is kept so the hierarchy stays complete.
        if not body and self._level == 0:
            return

        self.chunks.append(
            self._make_chunk(body or self._name, self.section_path or [self.filename])
        )

    def _make_chunk(self, content: str, section_path: Optional[list[str]]) -> Chunk:
        return Chunk(
            file_path=self.file_path,
            name=self._name,
            content=content,
            element=self.element,
            section_path=list(section_path or []),
            section_level=self._level,
        )
