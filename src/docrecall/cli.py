"""CLI entry point for docrecall."""

import argparse
import logging
import sys
from pathlib import Path

from docrecall.config import load_settings
from docrecall.errors import DocRecallError
from docrecall.indexer import DocumentIndexer
from docrecall.models import PUBLIC_ROLE

logging.basicConfig(
    level=logging.INFO,
    format="%(message)s",
)
logger = logging.getLogger(__name__)


def index(path: str, role: str = PUBLIC_ROLE, recursive: bool = True) -> None:
    """Index a file or every supported file in a directory.

    Args:
        path: File or directory to index
        role: Visibility label stamped on the chunks
        recursive: Descend into subdirectories
    """
    indexer = DocumentIndexer.from_settings(load_settings())
    target = Path(path)

    if target.is_dir():
        result = indexer.index_directory(target, recursive=recursive, role=role)
        logger.info(f"Indexed {result.files} files, {result.chunks} chunks")
        for error in result.errors:
            logger.error(f"  failed: {error['file']}: {error['error']}")
    else:
        count = indexer.index_file(target, role=role)
        logger.info(f"Indexed {target.name}: {count} chunks")


def search(query: str, limit: int = 5, roles=None, types=None) -> None:
    """Print ranked results for a query.

    Args:
        query: Search terms
        limit: Maximum number of results
        roles: Restrict to these visibility labels
        types: Restrict to these chunk types (kb, conv)
    """
    indexer = DocumentIndexer.from_settings(load_settings())
    hits = indexer.search(query, limit=limit, roles=roles, types=types)

    if not hits:
        print(f"No results found for: {query}")
        return

    for i, hit in enumerate(hits, 1):
        chunk = hit.chunk
        location = " > ".join(chunk.section_path) or chunk.name
        print(
            f"{i}. [{hit.rank:.3f} = bm25 {hit.bm25:.3f} + act {hit.activation:.3f}] "
            f"{chunk.file_path}"
        )
        print(f"   {location}")
        text = chunk.content[:200].replace("\n", " ")
        if len(chunk.content) > 200:
            text += "..."
        print(f"   {text}")
        print("")


def stats() -> None:
    """Show what the store holds."""
    settings = load_settings()
    indexer = DocumentIndexer.from_settings(settings)
    summary = indexer.get_stats()

    print(f"Store: {settings.db_path}")
    print(f"  Chunks: {summary['total_chunks']}")
    print(f"  Files: {summary['indexed_files']}")
    for chunk_type, count in sorted(summary["by_type"].items()):
        print(f"  {chunk_type}: {count}")


def serve(transport: str = "stdio") -> None:
    """Start the MCP server over the configured store.

    Args:
        transport: Transport protocol (stdio or sse)
    """
    # Import here to avoid loading MCP unless needed
    from typing import Literal, cast

    from docrecall.server import create_mcp_server

    settings = load_settings()
    logger.info(f"Serving {settings.db_path} via {transport}")
    mcp = create_mcp_server(DocumentIndexer.from_settings(settings))
    mcp.run(transport=cast(Literal["stdio", "sse", "streamable-http"], transport))


def main() -> None:
    """Main CLI entry point."""
    parser = argparse.ArgumentParser(
        prog="docrecall",
        description="docrecall - document index with activation-ranked search",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    # index command
    index_parser = subparsers.add_parser("index", help="Index a file or directory")
    index_parser.add_argument("path", help="File or directory to index")
    index_parser.add_argument(
        "--role",
        default=PUBLIC_ROLE,
        help="Visibility label: public, admin or user:<chat-id> (default: public)",
    )
    index_parser.add_argument(
        "--no-recursive",
        action="store_true",
        help="Only index the top level of a directory",
    )

    # search command
    search_parser = subparsers.add_parser("search", help="Search indexed documents")
    search_parser.add_argument("query", help="Search terms")
    search_parser.add_argument(
        "-n", "--limit", type=int, default=5, help="Maximum results (default: 5)"
    )
    search_parser.add_argument(
        "--role", action="append", dest="roles", help="Restrict to a role (repeatable)"
    )
    search_parser.add_argument(
        "--type",
        action="append",
        dest="types",
        choices=["kb", "conv"],
        help="Restrict to a chunk type (repeatable)",
    )

    # stats command
    subparsers.add_parser("stats", help="Show index statistics")

    # serve command
    serve_parser = subparsers.add_parser("serve", help="Start MCP server")
    serve_parser.add_argument(
        "--transport",
        choices=["stdio", "sse"],
        default="stdio",
        help="Transport protocol (default: stdio)",
    )

    args = parser.parse_args()

    try:
        if args.command == "index":
            index(args.path, role=args.role, recursive=not args.no_recursive)
        elif args.command == "search":
            search(args.query, limit=args.limit, roles=args.roles, types=args.types)
        elif args.command == "stats":
            stats()
        elif args.command == "serve":
            serve(args.transport)
    except DocRecallError as exc:
        logger.error(str(exc))
        sys.exit(1)


if __name__ == "__main__":
    main()
