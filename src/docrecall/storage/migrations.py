"""Additive schema migrations for stores created by older releases.

Each step inspects the live schema and only runs when its change is
missing, so the whole list can be applied on every open. Older stores used
``element_type``, ``document_type`` and ``scope``; those columns are kept and
read to backfill ``element``, ``type`` and ``role``.
"""

import logging
import sqlite3
from dataclasses import dataclass
from typing import Callable

from docrecall.storage.schema import FULLTEXT

logger = logging.getLogger(__name__)

LEGACY_DOCUMENT_TYPES = ("pdf", "docx", "md", "txt")


def column_names(conn: sqlite3.Connection, table: str) -> set[str]:
    return {row[1] for row in conn.execute(f"PRAGMA table_info({table})")}


def table_exists(conn: sqlite3.Connection, name: str) -> bool:
    row = conn.execute(
        "SELECT 1 FROM sqlite_master WHERE name = ? AND type IN ('table', 'view')",
        (name,),
    ).fetchone()
    return row is not None


@dataclass(frozen=True)
class Migration:
    name: str
    is_needed: Callable[[sqlite3.Connection], bool]
    apply: Callable[[sqlite3.Connection], None]


def _missing(column: str) -> Callable[[sqlite3.Connection], bool]:
    return lambda conn: column not in column_names(conn, "chunks")


def _add_element(conn: sqlite3.Connection) -> None:
    columns = column_names(conn, "chunks")
    conn.execute("ALTER TABLE chunks ADD COLUMN element TEXT DEFAULT 'txt'")
    if "element_type" in columns:
        conn.execute("UPDATE chunks SET element = element_type WHERE element_type IS NOT NULL")
    if "document_type" in columns:
        conn.execute("UPDATE chunks SET element = 'chat' WHERE document_type = 'conversation'")
        placeholders = ", ".join("?" for _ in LEGACY_DOCUMENT_TYPES)
        conn.execute(
            f"UPDATE chunks SET element = document_type WHERE document_type IN ({placeholders})",
            LEGACY_DOCUMENT_TYPES,
        )


def _add_type(conn: sqlite3.Connection) -> None:
    columns = column_names(conn, "chunks")
    conn.execute("ALTER TABLE chunks ADD COLUMN type TEXT DEFAULT 'kb'")
    if "document_type" in columns:
        conn.execute("UPDATE chunks SET type = 'conv' WHERE document_type = 'conversation'")


def _add_role(conn: sqlite3.Connection) -> None:
    columns = column_names(conn, "chunks")
    conn.execute("ALTER TABLE chunks ADD COLUMN role TEXT DEFAULT 'public'")
    if "scope" in columns:
        conn.execute(
            """UPDATE chunks SET role = CASE
                   WHEN scope IS NULL OR scope = 'kb' THEN 'public'
                   ELSE scope
               END"""
        )


def _add_activation(conn: sqlite3.Connection) -> None:
    columns = column_names(conn, "chunks")
    for name, definition in (
        ("activation", "REAL DEFAULT 0.0"),
        ("access_count", "INTEGER DEFAULT 0"),
        ("last_accessed", "TEXT"),
    ):
        if name not in columns:
            conn.execute(f"ALTER TABLE chunks ADD COLUMN {name} {definition}")


def _create_fulltext(conn: sqlite3.Connection) -> None:
    conn.executescript(FULLTEXT)
    # Index rows written before the full-text table existed.
    conn.execute("INSERT INTO chunks_fts(chunks_fts) VALUES ('rebuild')")


MIGRATIONS: list[Migration] = [
    Migration("add_element_column", _missing("element"), _add_element),
    Migration("add_type_column", _missing("type"), _add_type),
    Migration("add_role_column", _missing("role"), _add_role),
    Migration(
        "add_activation_columns",
        lambda conn: not {"activation", "access_count", "last_accessed"}
        <= column_names(conn, "chunks"),
        _add_activation,
    ),
    Migration(
        "create_fulltext_index",
        lambda conn: not table_exists(conn, "chunks_fts"),
        _create_fulltext,
    ),
]


def apply_migrations(conn: sqlite3.Connection) -> list[str]:
    """Apply every pending migration in order; return the names applied."""
    applied = []
    for migration in MIGRATIONS:
        if migration.is_needed(conn):
            migration.apply(conn)
            applied.append(migration.name)
            logger.info(f"Applied migration {migration.name}")
    return applied
