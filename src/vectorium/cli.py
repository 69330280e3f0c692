"""Command line interface for Vectorium."""

from __future__ import annotations

import asyncio
import logging
from pathlib import Path
from typing import NoReturn, Optional

import typer
from rich.console import Console
from rich.table import Table

from vectorium.config import AppConfig
from vectorium.embedding.encoder import EmbeddingConfig, EmbeddingModel
from vectorium.errors import EmbeddingError, VectoriumError
from vectorium.index.indexer import Indexer
from vectorium.index.scanner import FileScanner
from vectorium.index.search import DEFAULT_LIMIT, DEFAULT_THRESHOLD, Searcher
from vectorium.index.storage import QdrantVectorStore, create_vector_store
from vectorium.server.gateway import DocumentSearchServer

console = Console(stderr=True)
app = typer.Typer(help="Vectorium - incremental semantic search over text files")


def _setup_logging(verbose: bool) -> None:
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(level=level, format="[%(levelname)s] %(message)s")


def _build_config(
    qdrant_url: Optional[str],
    collection: Optional[str],
    model: Optional[str],
    documents_dir: Optional[Path] = None,
) -> AppConfig:
    config = AppConfig.from_env()
    if qdrant_url:
        config.qdrant_url = qdrant_url
    if collection:
        config.collection = collection
    if model:
        config.model_name = model
    if documents_dir is not None:
        config.documents_dir = documents_dir
    return config


def _load_embedder(config: AppConfig) -> EmbeddingModel:
    embedder = EmbeddingModel(
        EmbeddingConfig(model_name=config.model_name, cache_folder=config.cache_dir)
    )
    if embedder.dimension != config.dimension:
        raise EmbeddingError(
            f"Model {config.model_name!r} produces {embedder.dimension}-dimensional vectors, "
            f"the collection expects {config.dimension}"
        )
    return embedder


def _build_indexer(config: AppConfig, embedder: EmbeddingModel, store: QdrantVectorStore) -> Indexer:
    return Indexer(
        embedder,
        store,
        collection=config.collection,
        scanner=FileScanner(config.extensions),
        preview_chars=config.preview_chars,
        embed_chars=config.embed_chars,
        embed_concurrency=config.embed_concurrency,
        store_concurrency=config.store_concurrency,
        embed_timeout=config.embed_timeout,
    )


def _fail(exc: VectoriumError) -> NoReturn:
    console.print(f"[red]{exc.kind}:[/red] {exc}")
    raise typer.Exit(code=1)


async def _index(config: AppConfig, root: Path) -> None:
    embedder = _load_embedder(config)
    store = create_vector_store(config.qdrant_url)
    try:
        await store.ensure_collection(config.collection, config.dimension)
        report = await _build_indexer(config, embedder, store).run(root)
    finally:
        await store.close()

    console.print(
        f"Added: {len(report.added)}, updated: {len(report.updated)}, "
        f"removed: {len(report.removed)}, unchanged: {report.unchanged}, "
        f"skipped: {len(report.skipped)}, failed: {len(report.failed)}"
    )
    for failure in report.failed:
        console.print(f"  [yellow]{failure.path}[/yellow]: {failure.reason}")


@app.command()
def index(
    root: Optional[Path] = typer.Argument(None, help="Document root (default: $DOCUMENTS_DIR or ./data)"),
    qdrant_url: Optional[str] = typer.Option(None, "--qdrant-url", help="Qdrant endpoint"),
    collection: Optional[str] = typer.Option(None, help="Collection name"),
    model: Optional[str] = typer.Option(None, help="Sentence-transformer model name"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Verbose logging"),
) -> None:
    """Incrementally index the text files under a directory."""
    _setup_logging(verbose)
    config = _build_config(qdrant_url, collection, model, root)
    resolved_root = config.resolve_documents_dir(Path.cwd())
    console.print(f"Indexing [bold]{resolved_root}[/bold] into '{config.collection}'...")
    try:
        asyncio.run(_index(config, resolved_root))
    except VectoriumError as exc:
        _fail(exc)


async def _search(config: AppConfig, query: str, limit: int, threshold: float):
    embedder = _load_embedder(config)
    store = create_vector_store(config.qdrant_url)
    try:
        searcher = Searcher(
            embedder, store, collection=config.collection, timeout=config.search_timeout
        )
        return await searcher.search(query, limit, threshold)
    finally:
        await store.close()


@app.command()
def search(
    query: str = typer.Argument(..., help="Query text"),
    limit: int = typer.Option(DEFAULT_LIMIT, help="Number of results (1-20)"),
    threshold: float = typer.Option(DEFAULT_THRESHOLD, help="Minimum similarity (0-1)"),
    qdrant_url: Optional[str] = typer.Option(None, "--qdrant-url", help="Qdrant endpoint"),
    collection: Optional[str] = typer.Option(None, help="Collection name"),
    model: Optional[str] = typer.Option(None, help="Sentence-transformer model name"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Verbose logging"),
) -> None:
    """Execute a semantic search."""
    _setup_logging(verbose)
    config = _build_config(qdrant_url, collection, model)
    try:
        response = asyncio.run(_search(config, query, limit, threshold))
    except VectoriumError as exc:
        _fail(exc)

    if not response.results:
        console.print("[yellow]No matches found.[/yellow]")
        return

    table = Table(show_header=True, header_style="bold magenta")
    table.add_column("Score")
    table.add_column("File")
    table.add_column("Size")
    table.add_column("Preview")

    for hit in response.results:
        table.add_row(f"{hit.score:.4f}", hit.path, str(hit.size), hit.content_preview[:120])

    console.print(table)
    console.print(
        f"{response.total_found} result(s); embedding {response.embedding_time_ms:.1f} ms, "
        f"search {response.search_time_ms:.1f} ms"
    )


async def _serve(config: AppConfig) -> None:
    embedder = _load_embedder(config)
    store = create_vector_store(config.qdrant_url)
    try:
        await store.ensure_collection(config.collection, config.dimension)
        server = DocumentSearchServer(
            searcher=Searcher(
                embedder, store, collection=config.collection, timeout=config.search_timeout
            ),
            indexer=_build_indexer(config, embedder, store),
            documents_dir=config.resolve_documents_dir(Path.cwd()),
        )
        await server.serve_stdio()
    finally:
        await store.close()


@app.command()
def serve(
    documents_dir: Optional[Path] = typer.Option(None, "--documents-dir", help="Document root"),
    qdrant_url: Optional[str] = typer.Option(None, "--qdrant-url", help="Qdrant endpoint"),
    collection: Optional[str] = typer.Option(None, help="Collection name"),
    model: Optional[str] = typer.Option(None, help="Sentence-transformer model name"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Verbose logging"),
) -> None:
    """Run the MCP server over stdio."""
    _setup_logging(verbose)
    config = _build_config(qdrant_url, collection, model, documents_dir)
    try:
        asyncio.run(_serve(config))
    except VectoriumError as exc:
        _fail(exc)
