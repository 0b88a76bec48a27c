"""SQLite-backed chunk store with FTS5 search and activation ranking."""

import json
import logging
import sqlite3
from contextlib import contextmanager
from pathlib import Path
from typing import Any, Iterable, Iterator, Optional

from docrecall.config import DEFAULT_ACTIVATION_WEIGHT, DEFAULT_DECAY
from docrecall.errors import StorageFailure
from docrecall.models import ADMIN_ROLE, CONVERSATION, AccessEvent, Chunk, SearchHit, utc_now
from docrecall.storage.activation import MAX_HISTORY, base_level_activation, parse_timestamp
from docrecall.storage.migrations import apply_migrations
from docrecall.storage.query import match_expression, normalize_query
from docrecall.storage.schema import INDEXES, SCHEMA_VERSION, TABLES

logger = logging.getLogger(__name__)

# Full-text candidates fetched per requested result, for activation re-ranking.
CANDIDATE_FACTOR = 3

_CHUNK_COLUMNS = (
    "chunk_id",
    "file_path",
    "page_start",
    "page_end",
    "element",
    "name",
    "content",
    "parent_chunk_id",
    "section_path",
    "section_level",
    "type",
    "metadata",
    "role",
    "created_at",
    "updated_at",
)

_UPSERT = (
    f"INSERT INTO chunks ({', '.join(_CHUNK_COLUMNS)}) "
    f"VALUES ({', '.join('?' for _ in _CHUNK_COLUMNS)}) "
    "ON CONFLICT(chunk_id) DO UPDATE SET "
    + ", ".join(f"{col} = excluded.{col}" for col in _CHUNK_COLUMNS[1:])
)


def _load_list(raw: Optional[str]) -> list[str]:
    # Some older rows hold a JSON string that itself encodes the array.
    value: Any = json.loads(raw or "[]")
    if isinstance(value, str):
        value = json.loads(value)
    return list(value) if isinstance(value, list) else []


def _filter_clause(
    column: str, values: Optional[Iterable[str]], params: list[Any]
) -> str:
    values = list(values or [])
    if not values:
        return ""
    params.extend(values)
    return f" AND {column} IN ({', '.join('?' for _ in values)})"


class ChunkStore:
    """SQLite storage for chunks, their full-text index and access history.

    Every public method runs in its own connection and transaction, so a
    batch is either fully applied or not at all.
    """

    def __init__(
        self,
        path: Path | str,
        decay: float = DEFAULT_DECAY,
        activation_weight: float = DEFAULT_ACTIVATION_WEIGHT,
    ):
        self.path = Path(path)
        self.decay = decay
        self.activation_weight = activation_weight

    @contextmanager
    def connection(self) -> Iterator[sqlite3.Connection]:
        """Context manager for database connections.

        Commits on success, rolls back on any error. SQLite errors surface
        as StorageFailure with the original exception chained.
        """
        try:
            conn = sqlite3.connect(self.path)
        except sqlite3.Error as exc:
            raise StorageFailure(f"Cannot open store {self.path}: {exc}") from exc

        conn.row_factory = sqlite3.Row
        try:
            conn.execute("PRAGMA foreign_keys = ON")
            yield conn
            conn.commit()
        except sqlite3.Error as exc:
            conn.rollback()
            raise StorageFailure(f"Store operation failed: {exc}") from exc
        except Exception:
            conn.rollback()
            raise
        finally:
            conn.close()

    def initialize(self) -> None:
        """Create the schema if absent and migrate older stores."""
        self.path.parent.mkdir(parents=True, exist_ok=True)
        with self.connection() as conn:
            conn.execute("PRAGMA journal_mode = WAL")
            conn.executescript(TABLES)
            applied = apply_migrations(conn)
            conn.executescript(INDEXES)
            conn.execute(
                "INSERT OR REPLACE INTO store_meta (key, value) VALUES ('schema_version', ?)",
                (str(SCHEMA_VERSION),),
            )
            conn.execute(
                "INSERT OR IGNORE INTO store_meta (key, value) VALUES ('created_at', ?)",
                (utc_now(),),
            )
        if applied:
            logger.info(f"Migrated {self.path}: {', '.join(applied)}")

    def get_meta(self, key: str) -> Optional[str]:
        """Retrieve a store metadata value by key."""
        with self.connection() as conn:
            row = conn.execute("SELECT value FROM store_meta WHERE key = ?", (key,)).fetchone()
            return row["value"] if row else None

    # Writes

    def save_chunk(self, chunk: Chunk) -> None:
        """Insert a chunk or replace every field of the existing one."""
        with self.connection() as conn:
            self._upsert(conn, chunk)

    def save_chunks(self, chunks: list[Chunk]) -> None:
        """Save chunks in a single transaction."""
        with self.connection() as conn:
            for chunk in chunks:
                self._upsert(conn, chunk)

    def delete_by_file(self, file_path: str) -> int:
        """Delete every chunk of a file, with its access history."""
        with self.connection() as conn:
            cursor = conn.execute("DELETE FROM chunks WHERE file_path = ?", (file_path,))
            return cursor.rowcount

    def replace_file(self, file_path: str, chunks: list[Chunk]) -> int:
        """Swap a file's chunks for a new set in a single transaction."""
        with self.connection() as conn:
            removed = conn.execute(
                "DELETE FROM chunks WHERE file_path = ?", (file_path,)
            ).rowcount
            for chunk in chunks:
                self._upsert(conn, chunk)
        return removed

    def prune_conversations(self, cutoff: str, admin_cutoff: str) -> int:
        """Delete conversation chunks created before the cutoffs.

        Admin chunks are measured against ``admin_cutoff``, all other roles
        against ``cutoff``.
        """
        with self.connection() as conn:
            others = conn.execute(
                "DELETE FROM chunks WHERE type = ? AND role != ? AND created_at < ?",
                (CONVERSATION, ADMIN_ROLE, cutoff),
            ).rowcount
            admins = conn.execute(
                "DELETE FROM chunks WHERE type = ? AND role = ? AND created_at < ?",
                (CONVERSATION, ADMIN_ROLE, admin_cutoff),
            ).rowcount
        return others + admins

    # Reads

    def get_chunk(self, chunk_id: str) -> Optional[Chunk]:
        with self.connection() as conn:
            row = conn.execute("SELECT * FROM chunks WHERE chunk_id = ?", (chunk_id,)).fetchone()
            return self._row_to_chunk(row) if row else None

    def search(
        self,
        query: str,
        limit: int = 10,
        roles: Optional[list[str]] = None,
        types: Optional[list[str]] = None,
        decay: Optional[float] = None,
    ) -> list[SearchHit]:
        """Full-text search ranked by BM25 blended with activation.

        Fetches ``3 * limit`` BM25 candidates, scores each as
        ``bm25 + activation_weight * activation`` and returns the top
        ``limit``. Queries made only of stop words return nothing.
        """
        terms = normalize_query(query)
        if not terms or limit <= 0:
            return []

        params: list[Any] = [match_expression(terms)]
        filters = _filter_clause("c.role", roles, params) + _filter_clause("c.type", types, params)
        params.append(limit * CANDIDATE_FACTOR)

        sql = f"""
            SELECT c.*, chunks_fts.rank AS fts_rank
            FROM chunks_fts
            JOIN chunks c ON c.rowid = chunks_fts.rowid
            WHERE chunks_fts MATCH ?{filters}
            ORDER BY chunks_fts.rank
            LIMIT ?
        """

        hits = []
        with self.connection() as conn:
            for row in conn.execute(sql, params).fetchall():
                # FTS5 reports better matches as more negative.
                bm25 = -float(row["fts_rank"])
                cached = row["activation"]
                if cached and decay is None:
                    activation = float(cached)
                else:
                    activation = self._compute_activation(conn, row["chunk_id"], decay)
                hits.append(
                    SearchHit(
                        chunk=self._row_to_chunk(row),
                        bm25=bm25,
                        activation=activation,
                        rank=bm25 + self.activation_weight * activation,
                    )
                )

        hits.sort(key=lambda hit: hit.rank, reverse=True)
        logger.debug(f"search {terms} -> {len(hits)} candidates")
        return hits[:limit]

    def recent_by_type(
        self,
        limit: int = 5,
        roles: Optional[list[str]] = None,
        types: Optional[list[str]] = None,
    ) -> list[Chunk]:
        """Most recently created chunks, without full-text matching."""
        params: list[Any] = []
        filters = _filter_clause("role", roles, params) + _filter_clause("type", types, params)
        params.append(limit)

        with self.connection() as conn:
            rows = conn.execute(
                f"SELECT * FROM chunks WHERE 1 = 1{filters} ORDER BY created_at DESC LIMIT ?",
                params,
            ).fetchall()
            return [self._row_to_chunk(row) for row in rows]

    def get_stats(self) -> dict[str, Any]:
        """Chunk totals, counts per type and number of indexed files."""
        with self.connection() as conn:
            total = conn.execute("SELECT COUNT(*) FROM chunks").fetchone()[0]
            by_type = conn.execute(
                "SELECT type, COUNT(*) AS count FROM chunks GROUP BY type"
            ).fetchall()
            files = conn.execute("SELECT COUNT(DISTINCT file_path) FROM chunks").fetchone()[0]

        return {
            "total_chunks": total,
            "by_type": {row["type"]: row["count"] for row in by_type},
            "indexed_files": files,
        }

    # Activation

    def compute_activation(self, chunk_id: str, decay: Optional[float] = None) -> float:
        """Activation derived from the chunk's access history; 0.0 if none."""
        with self.connection() as conn:
            return self._compute_activation(conn, chunk_id, decay)

    def access_history(self, chunk_id: str) -> list[AccessEvent]:
        with self.connection() as conn:
            rows = conn.execute(
                "SELECT chunk_id, accessed_at, query FROM access_history "
                "WHERE chunk_id = ? ORDER BY id",
                (chunk_id,),
            ).fetchall()
            return [AccessEvent(**dict(row)) for row in rows]

    def record_access(self, chunk_id: str, query: Optional[str] = None) -> None:
        """Log one access and refresh the chunk's cached activation."""
        with self.connection() as conn:
            self._record_access(conn, chunk_id, query)

    def record_search_access(
        self, chunk_ids: Optional[list[str]], query: Optional[str] = None
    ) -> None:
        """Record access for every chunk of a result set in one transaction."""
        if not chunk_ids:
            return
        with self.connection() as conn:
            for chunk_id in chunk_ids:
                self._record_access(conn, chunk_id, query)

    # Internals

    def _compute_activation(
        self, conn: sqlite3.Connection, chunk_id: str, decay: Optional[float]
    ) -> float:
        rows = conn.execute(
            "SELECT accessed_at FROM access_history WHERE chunk_id = ? "
            "ORDER BY accessed_at DESC, id DESC LIMIT ?",
            (chunk_id, MAX_HISTORY),
        ).fetchall()
        times = [parse_timestamp(row["accessed_at"]) for row in rows]
        return base_level_activation(times, decay=self.decay if decay is None else decay)

    def _record_access(
        self, conn: sqlite3.Connection, chunk_id: str, query: Optional[str]
    ) -> None:
        now = utc_now()
        conn.execute(
            "INSERT INTO access_history (chunk_id, accessed_at, query) VALUES (?, ?, ?)",
            (chunk_id, now, query),
        )
        activation = self._compute_activation(conn, chunk_id, None)
        conn.execute(
            """UPDATE chunks
               SET access_count = access_count + 1, last_accessed = ?, activation = ?
               WHERE chunk_id = ?""",
            (now, activation, chunk_id),
        )

    @staticmethod
    def _upsert(conn: sqlite3.Connection, chunk: Chunk) -> None:
        chunk.updated_at = utc_now()
        conn.execute(
            _UPSERT,
            (
                chunk.chunk_id,
                chunk.file_path,
                chunk.page_start,
                chunk.page_end,
                chunk.element,
                chunk.name,
                chunk.content,
                chunk.parent_chunk_id,
                json.dumps(chunk.section_path),
                chunk.section_level,
                chunk.type,
                json.dumps(chunk.metadata),
                chunk.role or "public",
                chunk.created_at,
                chunk.updated_at,
            ),
        )

    @staticmethod
    def _row_to_chunk(row: sqlite3.Row) -> Chunk:
        return Chunk(
            chunk_id=row["chunk_id"],
            file_path=row["file_path"],
            page_start=row["page_start"] or 0,
            page_end=row["page_end"] or 0,
            element=row["element"] or "txt",
            name=row["name"] or "",
            content=row["content"] or "",
            parent_chunk_id=row["parent_chunk_id"],
            section_path=_load_list(row["section_path"]),
            section_level=row["section_level"] or 0,
            type=row["type"] or "kb",
            metadata=json.loads(row["metadata"] or "{}"),
            role=row["role"] or "public",
            created_at=row["created_at"],
            updated_at=row["updated_at"],
        )
