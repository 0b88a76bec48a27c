"""Core data models for chunks and access events."""

import hashlib
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Optional

KNOWLEDGE = "kb"
CONVERSATION = "conv"

PUBLIC_ROLE = "public"
ADMIN_ROLE = "admin"


def utc_now() -> str:
    """Return the current time as an ISO-8601 UTC timestamp."""
    return datetime.now(timezone.utc).isoformat()


def user_role(chat_id: str) -> str:
    """Role label for content visible to a single chat."""
    return f"user:{chat_id}"


def generate_chunk_id(file_path: str, name: str, content: str, tag: str = "doc") -> str:
    """Derive a stable chunk id from its location and leading content.

    Only the first 200 characters of ``content`` take part, so identical
    sections re-parsed under the same path and name keep their id.
    """
    digest = hashlib.sha256(f"{file_path}:{name}:{content[:200]}".encode("utf-8"))
    return f"{tag}:{digest.hexdigest()[:16]}"


@dataclass
class Chunk:
    """An addressable piece of a document with its structural context."""

    file_path: str
    name: str = ""
    content: str = ""
    element: str = "txt"
    page_start: int = 0
    page_end: int = 0
    parent_chunk_id: Optional[str] = None
    section_path: list[str] = field(default_factory=list)
    section_level: int = 0
    type: str = KNOWLEDGE
    metadata: dict[str, Any] = field(default_factory=dict)
    role: str = PUBLIC_ROLE
    chunk_id: str = ""
    created_at: str = ""
    updated_at: str = ""

    def __post_init__(self) -> None:
        if not self.chunk_id:
            self.chunk_id = generate_chunk_id(self.file_path, self.name, self.content)
        if not self.created_at:
            self.created_at = utc_now()
        if not self.updated_at:
            self.updated_at = self.created_at

    def to_dict(self) -> dict[str, Any]:
        return {
            "chunk_id": self.chunk_id,
            "file_path": self.file_path,
            "page_start": self.page_start,
            "page_end": self.page_end,
            "element": self.element,
            "name": self.name,
            "content": self.content,
            "parent_chunk_id": self.parent_chunk_id,
            "section_path": list(self.section_path),
            "section_level": self.section_level,
            "type": self.type,
            "metadata": dict(self.metadata),
            "role": self.role,
            "created_at": self.created_at,
            "updated_at": self.updated_at,
        }


@dataclass(frozen=True)
class AccessEvent:
    """One search-triggered retrieval of a chunk."""

    chunk_id: str
    accessed_at: str
    query: Optional[str] = None


@dataclass
class SearchHit:
    """A ranked search result.

    ``rank`` is the blended score: ``bm25 + weight * activation``.
    """

    chunk: Chunk
    bm25: float
    activation: float
    rank: float

    def to_dict(self) -> dict[str, Any]:
        data = self.chunk.to_dict()
        data.update(bm25=self.bm25, activation=self.activation, rank=self.rank)
        return data
