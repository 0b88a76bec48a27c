"""Plain text parser."""

from pathlib import Path

from docrecall.models import Chunk


class TextParser:
    """One chunk per file; empty files produce nothing."""

    element = "txt"

    def parse(self, path: Path) -> list[Chunk]:
        content = path.read_text(encoding="utf-8", errors="replace").strip()
        if not content:
            return []

        return [
            Chunk(
                file_path=str(path),
                name=path.name,
                content=content,
                element=self.element,
                section_path=[path.name],
                section_level=0,
            )
        ]
