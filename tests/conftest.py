from __future__ import annotations

from pathlib import Path

import pytest

from docrecall.audit import AuditLog
from docrecall.chunkers import OverlapChunker
from docrecall.indexer import DocumentIndexer
from docrecall.models import Chunk
from docrecall.storage import ChunkStore


def make_chunk(
    chunk_id: str,
    content: str,
    *,
    role: str = "public",
    type: str = "kb",
    file_path: str = "/docs/guide.md",
    name: str | None = None,
    created_at: str = "",
) -> Chunk:
    return Chunk(
        chunk_id=chunk_id,
        file_path=file_path,
        name=name or f"chunk {chunk_id}",
        content=content,
        element="md",
        role=role,
        type=type,
        created_at=created_at,
    )


@pytest.fixture
def store(tmp_path: Path) -> ChunkStore:
    chunk_store = ChunkStore(tmp_path / "documents.db")
    chunk_store.initialize()
    return chunk_store


@pytest.fixture
def audit(tmp_path: Path) -> AuditLog:
    return AuditLog(tmp_path / "logs" / "audit.jsonl")


@pytest.fixture
def indexer(store: ChunkStore, audit: AuditLog, tmp_path: Path) -> DocumentIndexer:
    return DocumentIndexer(
        store,
        chunker=OverlapChunker(),
        audit=audit,
        staging_dir=tmp_path / "staging",
    )


@pytest.fixture
def chunk_factory():
    return make_chunk
