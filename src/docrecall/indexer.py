"""Document indexing pipeline: parse, chunk, store."""

import logging
import os
import tempfile
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Iterator, Optional

from docrecall.audit import AuditLog
from docrecall.chunkers import OverlapChunker
from docrecall.config import Settings
from docrecall.errors import (
    DocRecallError,
    FileNotFound,
    ParseFailure,
    UnsupportedFormat,
)
from docrecall.models import PUBLIC_ROLE, Chunk, SearchHit
from docrecall.parsers import get_parser, is_supported
from docrecall.protocols import ChunkingStrategy
from docrecall.storage import ChunkStore

logger = logging.getLogger(__name__)

SKIP_PATTERNS = {
    "__pycache__",
    "node_modules",
    "venv",
    "env",
    "dist",
    "build",
}


@dataclass
class DirectoryIndexResult:
    """Totals for a directory walk plus the files that failed."""

    files: int = 0
    chunks: int = 0
    errors: list[dict[str, str]] = field(default_factory=list)


class DocumentIndexer:
    """Orchestrates parsers, the chunker and the chunk store."""

    def __init__(
        self,
        store: ChunkStore,
        chunker: Optional[ChunkingStrategy] = None,
        audit: Optional[AuditLog] = None,
        staging_dir: Optional[Path] = None,
    ):
        self.store = store
        self.chunker = chunker or OverlapChunker()
        self.audit = audit
        self.staging_dir = Path(staging_dir) if staging_dir else None

    @classmethod
    def from_settings(cls, settings: Settings) -> "DocumentIndexer":
        """Build an indexer over the store described by ``settings``."""
        store = ChunkStore(
            settings.db_path,
            decay=settings.decay,
            activation_weight=settings.activation_weight,
        )
        store.initialize()
        return cls(
            store,
            chunker=OverlapChunker(settings.max_chunk_size, settings.overlap),
            audit=AuditLog(settings.audit_path),
            staging_dir=settings.staging_dir,
        )

    def index_file(self, path: Path | str, role: str = PUBLIC_ROLE) -> int:
        """Parse, chunk and store one file, replacing its previous chunks.

        Returns:
            Number of chunks stored (0 for files with no text)

        Raises:
            FileNotFound: the path does not exist
            UnsupportedFormat: no parser for the extension
            ParseFailure: the parser failed on the document
            StorageFailure: the store rejected the write
        """
        resolved = Path(path).expanduser().resolve()
        if not resolved.is_file():
            raise FileNotFound(str(path))

        parser = get_parser(resolved)

        try:
            raw_chunks = parser.parse(resolved)
        except DocRecallError:
            raise
        except Exception as exc:
            raise ParseFailure(str(resolved), str(exc)) from exc

        chunks = self.chunker.process(raw_chunks)
        for chunk in chunks:
            chunk.role = role

        self.store.replace_file(str(resolved), chunks)

        self._audit(
            "index_file",
            file=str(resolved),
            raw_chunks=len(raw_chunks),
            stored_chunks=len(chunks),
        )
        logger.info(f"Indexed {resolved.name}: {len(chunks)} chunks")
        return len(chunks)

    def index_buffer(self, data: bytes, filename: str, role: str = PUBLIC_ROLE) -> int:
        """Index an in-memory upload by staging it as a file.

        The name must carry a supported extension. The staged file is removed
        whether indexing succeeds or not.
        """
        name = Path(filename).name
        get_parser(name)

        staging_dir = self.staging_dir or Path(tempfile.gettempdir()) / "docrecall"
        staging_dir.mkdir(parents=True, exist_ok=True)

        staged = staging_dir / name
        try:
            staged.write_bytes(data)
            return self.index_file(staged, role=role)
        finally:
            staged.unlink(missing_ok=True)

    def index_directory(
        self, path: Path | str, recursive: bool = True, role: str = PUBLIC_ROLE
    ) -> DirectoryIndexResult:
        """Index every supported file under a directory.

        A file that cannot be found, has no parser or fails to parse is
        logged and audited, and the walk continues. Storage failures abort.
        """
        root = Path(path).expanduser().resolve()
        if not root.is_dir():
            raise FileNotFound(str(path))

        result = DirectoryIndexResult()
        for file_path in self._discover(root, recursive):
            try:
                count = self.index_file(file_path, role=role)
            except (FileNotFound, UnsupportedFormat, ParseFailure) as exc:
                logger.warning(f"Skipping {file_path}: {exc}")
                self._audit(
                    "index_error",
                    file=str(file_path),
                    error=type(exc).__name__,
                    message=str(exc),
                )
                result.errors.append({"file": str(file_path), "error": str(exc)})
                continue

            result.files += 1
            result.chunks += count

        logger.info(f"Indexed {result.files} files, {result.chunks} chunks from {root}")
        return result

    def search(
        self,
        query: str,
        limit: int = 5,
        roles: Optional[list[str]] = None,
        types: Optional[list[str]] = None,
        decay: Optional[float] = None,
    ) -> list[SearchHit]:
        return self.store.search(query, limit=limit, roles=roles, types=types, decay=decay)

    def recent(
        self,
        limit: int = 5,
        roles: Optional[list[str]] = None,
        types: Optional[list[str]] = None,
    ) -> list[Chunk]:
        """Newest chunks; the fallback when a query is all stop words."""
        return self.store.recent_by_type(limit=limit, roles=roles, types=types)

    def record_search_access(self, chunk_ids: Optional[list[str]], query: str) -> None:
        self.store.record_search_access(chunk_ids, query)

    def get_stats(self) -> dict[str, Any]:
        return self.store.get_stats()

    def _discover(self, root: Path, recursive: bool) -> Iterator[Path]:
        for current, dirs, files in os.walk(root):
            dirs[:] = sorted(d for d in dirs if not self._should_skip(d))
            if not recursive:
                dirs[:] = []

            for filename in sorted(files):
                if self._should_skip(filename) or not is_supported(filename):
                    continue
                yield Path(current) / filename

    @staticmethod
    def _should_skip(name: str) -> bool:
        """Skip hidden entries, build artifacts and virtualenvs."""
        return name.startswith(".") or name in SKIP_PATTERNS or name.endswith(".egg-info")

    def _audit(self, action: str, **fields: Any) -> None:
        if self.audit is not None:
            self.audit.record(action, **fields)
