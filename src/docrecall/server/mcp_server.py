"""FastMCP server implementation for docrecall."""

from typing import Optional

from mcp.server.fastmcp import FastMCP

from docrecall.indexer import DocumentIndexer


def format_hits(hits) -> str:
    lines = []
    for i, hit in enumerate(hits, 1):
        chunk = hit.chunk
        location = " > ".join(chunk.section_path) or chunk.name
        pages = f" p.{chunk.page_start}-{chunk.page_end}" if chunk.page_start else ""
        text = chunk.content[:200].replace("\n", " ")
        if len(chunk.content) > 200:
            text += "..."

        lines.append(f"{i}. [{hit.rank:.3f}] {chunk.file_path}{pages}")
        lines.append(f"   {location}")
        lines.append(f"   {text}")
        lines.append("")
    return "\n".join(lines)


def create_mcp_server(indexer: DocumentIndexer) -> FastMCP:
    """Create an MCP server over one document index.

    Args:
        indexer: Indexer wrapping the store to serve

    Returns:
        Configured FastMCP server instance
    """
    mcp = FastMCP(
        name="docrecall",
    )

    @mcp.tool()
    def search(query: str, limit: int = 5, roles: Optional[list[str]] = None) -> str:
        """Keyword search across indexed documents and conversation memory.

        Results are ranked by BM25 relevance boosted by how often and how
        recently each chunk was retrieved before. Returned chunks count as
        accessed.

        Args:
            query: Keywords to look for
            limit: Maximum number of results to return (default: 5)
            roles: Only return chunks visible to these roles (e.g. ["public", "user:42"])

        Returns:
            Ranked list of matching chunks with their section path
        """
        hits = indexer.search(query, limit=limit, roles=roles)
        if not hits:
            return f"No results found for: {query}"

        indexer.record_search_access([hit.chunk.chunk_id for hit in hits], query)
        return format_hits(hits)

    @mcp.tool()
    def stats() -> str:
        """Summarize the index: chunk totals, counts per type, indexed files."""
        summary = indexer.get_stats()
        lines = [
            f"Chunks: {summary['total_chunks']}",
            f"Files: {summary['indexed_files']}",
        ]
        for chunk_type, count in sorted(summary["by_type"].items()):
            lines.append(f"  {chunk_type}: {count}")
        return "\n".join(lines)

    return mcp
