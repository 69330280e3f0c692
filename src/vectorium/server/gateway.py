"""MCP tool gateway for document search."""

from __future__ import annotations

import asyncio
import contextlib
import logging
from pathlib import Path
from typing import Any, Dict, Optional

from mcp.server.fastmcp import FastMCP
from mcp.server.fastmcp.exceptions import ToolError

from vectorium.errors import VectoriumError
from vectorium.index.indexer import Indexer
from vectorium.index.search import DEFAULT_LIMIT, DEFAULT_THRESHOLD, Searcher

logger = logging.getLogger(__name__)

INSTRUCTIONS = (
    "Semantic search over a folder of text documents. "
    "Use search_documents to find files related to a natural-language query; "
    "use reindex_documents after files were added, edited or deleted."
)


def _tool_error(exc: VectoriumError) -> ToolError:
    return ToolError(f"{exc.kind}: {exc}")


class DocumentSearchServer:
    """Exposes the search and indexing pipelines as MCP tools."""

    def __init__(
        self,
        *,
        searcher: Searcher,
        indexer: Indexer,
        documents_dir: Path,
        name: str = "vectorium",
    ) -> None:
        self.searcher = searcher
        self.indexer = indexer
        self.documents_dir = Path(documents_dir)
        self._index_lock = asyncio.Lock()
        self._mcp = FastMCP(name, instructions=INSTRUCTIONS)
        self._register_tools()

    @property
    def mcp(self) -> FastMCP:
        return self._mcp

    async def handle_search(
        self,
        query: Any,
        limit: Any = DEFAULT_LIMIT,
        threshold: Any = DEFAULT_THRESHOLD,
    ) -> Dict[str, Any]:
        try:
            response = await self.searcher.search(query, limit, threshold)
        except VectoriumError as exc:
            logger.warning("search_documents failed (%s): %s", exc.kind, exc)
            raise _tool_error(exc) from exc
        return response.to_dict()

    async def handle_reindex(self) -> Dict[str, Any]:
        async with self._index_lock:
            try:
                report = await self.indexer.run(self.documents_dir)
            except VectoriumError as exc:
                logger.error("reindex_documents failed (%s): %s", exc.kind, exc)
                raise _tool_error(exc) from exc
        return report.to_dict()

    def _register_tools(self) -> None:
        @self._mcp.tool()
        async def search_documents(
            query: str,
            limit: Optional[int] = DEFAULT_LIMIT,
            threshold: Optional[float] = DEFAULT_THRESHOLD,
        ) -> Dict[str, Any]:
            """Find documents semantically similar to a query.

            limit: maximum number of results (1-20, default 5).
            threshold: minimum cosine similarity (0.0-1.0, default 0.7).
            """
            return await self.handle_search(query, limit, threshold)

        @self._mcp.tool()
        async def reindex_documents() -> Dict[str, Any]:
            """Re-scan the document folder and update the index incrementally."""
            return await self.handle_reindex()

    async def _initial_index(self) -> None:
        try:
            await self.handle_reindex()
        except ToolError:
            logger.error("Startup indexing did not complete; serving the existing index")
        except Exception:
            logger.exception("Startup indexing crashed; serving the existing index")

    async def serve_stdio(self) -> None:
        """Serve over stdio while a first index run proceeds in the background."""
        index_task = asyncio.create_task(self._initial_index())
        try:
            await self._mcp.run_stdio_async()
        finally:
            index_task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await index_task
