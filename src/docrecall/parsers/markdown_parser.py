"""Markdown parser: one chunk per heading section."""

import re
from pathlib import Path

from docrecall.models import Chunk
from docrecall.parsers.sections import SectionBuilder

HEADING = re.compile(r"^(#{1,6})\s+(.+?)(?:\s+#+)?\s*$")
FENCE = re.compile(r"^\s*(```|~~~)")


class MarkdownParser:
    """Split Markdown on ATX headings, tracking the heading hierarchy.

    Lines inside fenced code blocks are body text even when they start
    with ``#``.
    """

    element = "md"

    def parse(self, path: Path) -> list[Chunk]:
        text = path.read_text(encoding="utf-8", errors="replace")
        builder = SectionBuilder(str(path), path.name, self.element)

        in_fence = False
        for line in text.splitlines():
            if FENCE.match(line):
                in_fence = not in_fence
                builder.add(line)
                continue

            match = None if in_fence else HEADING.match(line)
            if match and match.group(2).strip():
                builder.heading(len(match.group(1)), match.group(2).strip())
            else:
                builder.add(line)

        return builder.finish()
