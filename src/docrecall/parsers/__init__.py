"""Format parsers for docrecall.

Supported formats form a closed set. ``detect_format`` maps an extension to
its ``DocumentFormat``; ``get_parser`` returns the parser for a path.
"""

from enum import Enum
from pathlib import Path
from typing import Optional

from docrecall.errors import UnsupportedFormat
from docrecall.models import Chunk
from docrecall.parsers.docx_parser import DocxParser
from docrecall.parsers.markdown_parser import MarkdownParser
from docrecall.parsers.pdf_parser import PdfParser
from docrecall.parsers.text_parser import TextParser
from docrecall.protocols import DocumentParser


class DocumentFormat(str, Enum):
    PDF = ".pdf"
    DOCX = ".docx"
    MARKDOWN = ".md"
    TEXT = ".txt"


SUPPORTED_EXTENSIONS = [fmt.value for fmt in DocumentFormat]

_PARSERS: dict[DocumentFormat, DocumentParser] = {
    DocumentFormat.PDF: PdfParser(),
    DocumentFormat.DOCX: DocxParser(),
    DocumentFormat.MARKDOWN: MarkdownParser(),
    DocumentFormat.TEXT: TextParser(),
}


def detect_format(path: Path | str) -> Optional[DocumentFormat]:
    """Return the format for a path's extension, or None if unsupported."""
    suffix = Path(path).suffix.lower()
    for fmt in DocumentFormat:
        if fmt.value == suffix:
            return fmt
    return None


def is_supported(path: Path | str) -> bool:
    return detect_format(path) is not None


def get_parser(path: Path | str) -> DocumentParser:
    """Find the parser for a file.

    Raises:
        UnsupportedFormat: if the extension is not one of SUPPORTED_EXTENSIONS
    """
    fmt = detect_format(path)
    if fmt is None:
        raise UnsupportedFormat(Path(path).suffix, SUPPORTED_EXTENSIONS)
    return _PARSERS[fmt]


def parse_file(path: Path | str) -> list[Chunk]:
    """Parse a file with the parser matching its extension."""
    return get_parser(path).parse(Path(path))


__all__ = [
    "DocumentFormat",
    "SUPPORTED_EXTENSIONS",
    "detect_format",
    "is_supported",
    "get_parser",
    "parse_file",
    "DocxParser",
    "MarkdownParser",
    "PdfParser",
    "TextParser",
]
