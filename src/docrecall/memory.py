"""Archived conversation summaries.

Summaries produced outside this package are stored as ordinary chunks with
``type='conv'`` under a synthetic ``memory/chats/<chat-id>`` path, so they
are searchable alongside documents and can be filtered by type.
"""

import logging
from datetime import datetime, timedelta, timezone

from docrecall.models import CONVERSATION, PUBLIC_ROLE, Chunk, generate_chunk_id, utc_now
from docrecall.storage import ChunkStore

logger = logging.getLogger(__name__)

MEMORY_ELEMENT = "memory_summary"
DEFAULT_RETENTION_DAYS = 90
DEFAULT_ADMIN_RETENTION_DAYS = 365


def memory_path(chat_id: str) -> str:
    return f"memory/chats/{chat_id}"


def archive_summary(
    store: ChunkStore, chat_id: str, summary: str, role: str = PUBLIC_ROLE
) -> Chunk:
    """Store a conversation summary as a searchable chunk."""
    now = utc_now()
    file_path = memory_path(chat_id)
    name = f"Memory capture {now}"

    chunk = Chunk(
        chunk_id=generate_chunk_id(file_path, name, summary, tag="mem"),
        file_path=file_path,
        name=name,
        content=summary.strip(),
        element=MEMORY_ELEMENT,
        section_path=[chat_id],
        section_level=0,
        type=CONVERSATION,
        metadata={"chat_id": chat_id},
        role=role,
        created_at=now,
        updated_at=now,
    )
    store.save_chunk(chunk)
    logger.info(f"Archived summary for chat {chat_id} as {chunk.chunk_id}")
    return chunk


def prune_conversation_chunks(
    store: ChunkStore,
    max_days: int = DEFAULT_RETENTION_DAYS,
    admin_max_days: int = DEFAULT_ADMIN_RETENTION_DAYS,
) -> int:
    """Delete conversation chunks past their retention window.

    Admin chunks are kept for ``admin_max_days``, everything else for
    ``max_days``. Returns the number of chunks deleted.
    """
    now = datetime.now(timezone.utc)
    cutoff = (now - timedelta(days=max_days)).isoformat()
    admin_cutoff = (now - timedelta(days=admin_max_days)).isoformat()

    deleted = store.prune_conversations(cutoff, admin_cutoff)
    if deleted:
        logger.info(f"Pruned {deleted} conversation chunks")
    return deleted
