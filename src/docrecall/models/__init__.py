"""Data models for docrecall."""

from docrecall.models.chunk import (
    ADMIN_ROLE,
    CONVERSATION,
    KNOWLEDGE,
    PUBLIC_ROLE,
    AccessEvent,
    Chunk,
    SearchHit,
    generate_chunk_id,
    user_role,
    utc_now,
)

__all__ = [
    "Chunk",
    "AccessEvent",
    "SearchHit",
    "generate_chunk_id",
    "user_role",
    "utc_now",
    "KNOWLEDGE",
    "CONVERSATION",
    "PUBLIC_ROLE",
    "ADMIN_ROLE",
]
