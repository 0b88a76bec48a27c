from __future__ import annotations

import pytest

from docrecall.chunkers import OverlapChunker
from docrecall.models import Chunk


def _chunk(content: str) -> Chunk:
    return Chunk(
        file_path="/docs/manual.pdf",
        name="Manual",
        content=content,
        element="pdf",
        page_start=3,
        page_end=5,
        section_path=["Manual", "Install"],
        section_level=2,
        role="admin",
    )


def test_small_chunk_is_returned_unchanged() -> None:
    chunk = _chunk("short text")

    assert OverlapChunker().split_large(chunk) == [chunk]


def test_chunk_at_exact_limit_is_not_split() -> None:
    chunk = _chunk("a" * 2000)

    assert OverlapChunker().split_large(chunk) == [chunk]


def test_unbroken_text_splits_into_overlapping_windows() -> None:
    content = "".join(chr(ord("a") + i % 26) for i in range(5000))
    parts = OverlapChunker(max_chunk_size=2000, overlap=200).split_large(_chunk(content))

    assert len(parts) == 3
    assert all(len(part.content) <= 2000 for part in parts)
    assert parts[0].content[-200:] == parts[1].content[:200]
    assert parts[1].content[-200:] == parts[2].content[:200]
    assert parts[-1].content.endswith(content[-10:])


def test_windows_end_at_sentence_boundaries() -> None:
    content = "".join(f"Sentence number {i} is here. " for i in range(250))
    parts = OverlapChunker(max_chunk_size=2000, overlap=200).split_large(_chunk(content))

    assert len(parts) > 1
    assert all(len(part.content) <= 2000 for part in parts)
    for part in parts[:-1]:
        assert part.content.endswith(".")


def test_newline_used_when_no_sentence_end() -> None:
    content = "\n".join("word " * 30 for _ in range(40))
    parts = OverlapChunker(max_chunk_size=1000, overlap=100).split_large(_chunk(content))

    assert len(parts) > 1
    for part in parts[:-1]:
        assert part.content.endswith("word")


def test_parts_keep_lineage_and_structure() -> None:
    parent = _chunk("b" * 4500)
    parts = OverlapChunker().split_large(parent)

    assert [part.chunk_id for part in parts] == [
        f"{parent.chunk_id}-p{n}" for n in range(len(parts))
    ]
    assert [part.name for part in parts] == [
        f"Manual (part {n + 1})" for n in range(len(parts))
    ]
    for part in parts:
        assert part.parent_chunk_id == parent.chunk_id
        assert part.file_path == parent.file_path
        assert part.section_path == ["Manual", "Install"]
        assert part.section_level == 2
        assert (part.page_start, part.page_end) == (3, 5)
        assert part.type == "kb"
        assert part.role == "admin"


def test_overlap_larger_than_window_still_terminates() -> None:
    parts = OverlapChunker(max_chunk_size=10, overlap=50).split_large(_chunk("z" * 100))

    assert len(parts) == 10
    assert all(len(part.content) <= 10 for part in parts)
    assert parts[-1].content.endswith("z")


def test_whitespace_only_windows_are_dropped() -> None:
    content = "a" * 10 + " " * 30 + "b" * 10
    parts = OverlapChunker(max_chunk_size=10, overlap=0).split_large(_chunk(content))

    assert [part.content for part in parts] == ["a" * 10, "b" * 10]


def test_process_preserves_order() -> None:
    chunker = OverlapChunker(max_chunk_size=100, overlap=10)
    first = _chunk("first " * 40)
    second = Chunk(file_path="/docs/other.md", name="Other", content="second")

    result = chunker.process([first, second])

    assert result[-1] is second
    assert all(part.parent_chunk_id == first.chunk_id for part in result[:-1])


def test_invalid_configuration_is_rejected() -> None:
    with pytest.raises(ValueError):
        OverlapChunker(max_chunk_size=0)
    with pytest.raises(ValueError):
        OverlapChunker(overlap=-1)


def test_early_sentence_break_does_not_repeat_parts() -> None:
    content = "Ab. " * 60 + "x" * 3000

    parts = OverlapChunker(max_chunk_size=2000, overlap=200).split_large(_chunk(content))

    assert len(parts) == 4
    assert parts[0].content.endswith("Ab.")
    assert len({part.content for part in parts}) == len(parts)
    assert all(len(part.content) <= 2000 for part in parts)
    assert "".join(part.content for part in parts).count("x") >= 3000
