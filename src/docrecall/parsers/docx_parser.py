"""Word (.docx) parser.

The document is first rendered to a small HTML-like markup (``<hN>`` for
heading paragraphs, ``<p>`` for other paragraphs, ``<tr>`` for table rows)
and then segmented on the heading tags with the same stack algorithm the
Markdown parser uses.
"""

import html
import re
from pathlib import Path

from docx import Document as open_docx
from docx.table import Table

from docrecall.models import Chunk
from docrecall.parsers.sections import SectionBuilder

HEADING_STYLE = re.compile(r"^Heading\s+([1-6])$", re.IGNORECASE)
HEADING_TAG = re.compile(r"<h([1-6])[^>]*>(.*?)</h\1>", re.IGNORECASE | re.DOTALL)
BLOCK_END = re.compile(r"</(?:p|li|tr|div)>", re.IGNORECASE)
TAG = re.compile(r"<[^>]+>")
WHITESPACE = re.compile(r"\s+")


def strip_markup(fragment: str) -> str:
    """Drop tags, decode entities and collapse whitespace."""
    text = html.unescape(TAG.sub("", fragment))
    return WHITESPACE.sub(" ", text).strip()


def _table_markup(table: Table) -> list[str]:
    rows = []
    for row in table.rows:
        cells = [cell.text.strip() for cell in row.cells]
        text = " | ".join(cell for cell in cells if cell)
        if text:
            rows.append(f"<tr>{html.escape(text)}</tr>")
    return rows


def docx_to_markup(path: Path) -> str:
    """Render a .docx body as heading, paragraph and table-row markup.

    Paragraphs and tables are visited in document order.
    """
    document = open_docx(str(path))
    parts = []

    for block in document.iter_inner_content():
        if isinstance(block, Table):
            parts.extend(_table_markup(block))
            continue

        paragraph = block
        text = paragraph.text
        if not text.strip():
            continue

        style = paragraph.style.name if paragraph.style is not None else ""
        match = HEADING_STYLE.match(style or "")
        if match:
            level = match.group(1)
            parts.append(f"<h{level}>{html.escape(text)}</h{level}>")
        else:
            parts.append(f"<p>{html.escape(text)}</p>")

    return "\n".join(parts)


class DocxParser:
    """Section-aware parser for Word documents."""

    element = "docx"

    def parse(self, path: Path) -> list[Chunk]:
        return self.parse_markup(docx_to_markup(path), path)

    def parse_markup(self, markup: str, path: Path) -> list[Chunk]:
        """Segment converted markup into chunks."""
        builder = SectionBuilder(str(path), path.name, self.element)

        position = 0
        for match in HEADING_TAG.finditer(markup):
            self._add_blocks(builder, markup[position : match.start()])
            title = strip_markup(match.group(2))
            if title:
                builder.heading(int(match.group(1)), title)
            position = match.end()
        self._add_blocks(builder, markup[position:])

        return builder.finish()

    @staticmethod
    def _add_blocks(builder: SectionBuilder, fragment: str) -> None:
        for block in BLOCK_END.split(fragment):
            text = strip_markup(block)
            if text:
                builder.add(text)
