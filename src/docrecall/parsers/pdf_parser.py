"""PDF parser with outline-driven sections and a per-page fallback."""

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Callable

from PyPDF2 import PdfReader

from docrecall.models import Chunk

logger = logging.getLogger(__name__)

# Documents with less text than this collapse into one chunk.
SMALL_DOCUMENT_CHARS = 500


@dataclass(frozen=True)
class OutlineEntry:
    """A flattened outline item: title, 1-based depth and 1-based page."""

    title: str
    level: int
    page: int


def flatten_outline(
    items: list[Any],
    resolve_page: Callable[[Any], int],
    level: int = 1,
) -> list[OutlineEntry]:
    """Flatten a nested PyPDF2 outline into document-ordered entries.

    PyPDF2 represents children as a list following their parent. A
    destination that cannot be resolved lands on page 1.
    """
    entries: list[OutlineEntry] = []

    for item in items:
        if isinstance(item, list):
            entries.extend(flatten_outline(item, resolve_page, level + 1))
            continue

        title = str(getattr(item, "title", "") or "").strip()
        try:
            page = int(resolve_page(item))
        except Exception as exc:
            logger.debug(f"Unresolvable outline destination {title!r}: {exc}")
            page = 1

        entries.append(OutlineEntry(title=title, level=level, page=max(page, 1)))

    return entries


def section_path_for(entries: list[OutlineEntry], index: int) -> list[str]:
    """Rebuild the breadcrumb of ``entries[index]`` from levels alone.

    Walks backwards collecting the nearest entry at each shallower level, so
    a malformed or out-of-order outline still yields a sensible path.
    """
    entry = entries[index]
    path = [entry.title]
    level = entry.level

    for previous in reversed(entries[:index]):
        if level <= 1:
            break
        if previous.level < level:
            path.insert(0, previous.title)
            level = previous.level

    return path


def outline_chunks(
    entries: list[OutlineEntry], page_texts: list[str], file_path: str
) -> list[Chunk]:
    """One chunk per outline entry covering ``[page, next page)``."""
    total = len(page_texts)
    if total == 0:
        return []

    chunks = []
    for index, entry in enumerate(entries):
        start = min(entry.page, total)
        if index + 1 < len(entries):
            # Entries sharing a page both get that page.
            end = max(start, min(entries[index + 1].page - 1, total))
        else:
            end = total

        text = _join_pages(page_texts[start - 1 : end])
        if not text:
            continue

        chunks.append(
            Chunk(
                file_path=file_path,
                name=entry.title or f"Page {start}",
                content=text,
                element="pdf",
                page_start=start,
                page_end=end,
                section_path=section_path_for(entries, index),
                section_level=entry.level,
            )
        )

    return chunks


def page_chunks(page_texts: list[str], file_path: str, filename: str) -> list[Chunk]:
    """Per-page chunks, or a single chunk for one-page or tiny documents."""
    full_text = _join_pages(page_texts)
    if not full_text:
        return []

    if len(page_texts) <= 1 or len(full_text) < SMALL_DOCUMENT_CHARS:
        return [
            Chunk(
                file_path=file_path,
                name=filename,
                content=full_text,
                element="pdf",
                page_start=1,
                page_end=max(len(page_texts), 1),
                section_path=[filename],
                section_level=0,
            )
        ]

    chunks = []
    for number, text in enumerate(page_texts, start=1):
        text = text.strip()
        if not text:
            continue
        chunks.append(
            Chunk(
                file_path=file_path,
                name=f"Page {number}",
                content=text,
                element="pdf",
                page_start=number,
                page_end=number,
                section_path=[filename, f"Page {number}"],
                section_level=0,
            )
        )
    return chunks


def _join_pages(texts: list[str]) -> str:
    return "\n\n".join(t.strip() for t in texts if t and t.strip()).strip()


class PdfParser:
    """Outline sections first, page chunks when there is no usable outline."""

    element = "pdf"

    def parse(self, path: Path) -> list[Chunk]:
        reader = PdfReader(str(path))
        page_texts = [page.extract_text() or "" for page in reader.pages]

        entries = flatten_outline(
            reader.outline,
            lambda destination: reader.get_destination_page_number(destination) + 1,
        )
        if entries:
            chunks = outline_chunks(entries, page_texts, str(path))
            if chunks:
                logger.debug(f"{path.name}: {len(chunks)} outline sections")
                return chunks

        return page_chunks(page_texts, str(path), path.name)
