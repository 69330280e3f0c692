"""Incremental document indexing pipeline.

A run scans the document root, reads back the metadata stored in the vector
store, and applies only the difference: new and modified files are embedded
and upserted, vanished files are deleted. Unchanged files cost one ``stat``.

Concurrency: embedding calls and store calls are each bounded by a semaphore.
Store writes are per point, so a search running during a run sees either the
old or the new version of a document, never a mix.

Embedding timeouts: a timed-out call releases its embedding slot, but the
worker thread running the provider cannot be interrupted and keeps going until
the provider returns. A provider that hangs can therefore leave more than
``embed_concurrency`` threads busy at once.

Cancellation: cancelling the task that awaits `Indexer.run` cancels every
pending file task. Points already written stay written; the next run
recomputes the diff from the store and finishes the job.
"""

from __future__ import annotations

import asyncio
import logging
import time
from pathlib import Path
from typing import Awaitable, Iterable, List, TypeVar

from vectorium.embedding.encoder import EmbeddingProvider, embed_text
from vectorium.errors import EmbeddingError, FilesystemError
from vectorium.index.scanner import FileScanner
from vectorium.index.state import compute_diff, load_snapshot
from vectorium.index.storage import QdrantVectorStore
from vectorium.models import (
    DocumentRecord,
    FailedFile,
    FileOutcome,
    IndexedFile,
    IndexReport,
    SkippedFile,
    point_id_for,
)
from vectorium.utils.files import read_text_file
from vectorium.utils.text import make_preview, prepare_for_embedding

LOGGER = logging.getLogger(__name__)

T = TypeVar("T")


async def gather_all_or_cancel(aws: Iterable[Awaitable[T]]) -> List[T]:
    """Run awaitables as tasks; on the first error or on cancellation, cancel the rest."""
    tasks = [asyncio.ensure_future(aw) for aw in aws]
    if not tasks:
        return []
    try:
        return list(await asyncio.gather(*tasks))
    finally:
        pending = [task for task in tasks if not task.done()]
        for task in pending:
            task.cancel()
        if pending:
            await asyncio.gather(*pending, return_exceptions=True)


class Indexer:
    """Keeps a vector-store collection in sync with a directory of text files."""

    def __init__(
        self,
        embedder: EmbeddingProvider,
        store: QdrantVectorStore,
        *,
        collection: str = "documents",
        scanner: FileScanner | None = None,
        preview_chars: int = 200,
        embed_chars: int = 4000,
        embed_concurrency: int = 4,
        store_concurrency: int = 8,
        embed_timeout: float | None = 30.0,
    ) -> None:
        self.embedder = embedder
        self.store = store
        self.collection = collection
        self.scanner = scanner or FileScanner()
        self.preview_chars = preview_chars
        self.embed_chars = embed_chars
        self.embed_concurrency = embed_concurrency
        self.store_concurrency = store_concurrency
        self.embed_timeout = embed_timeout

    async def run(self, root: Path) -> IndexReport:
        """Bring the collection up to date with ``root``.

        Raises `FilesystemError` if the root is unreadable and the store errors
        if the store fails; per-file problems end up in ``report.failed``.
        """
        started = time.perf_counter()
        root = Path(root).expanduser().resolve()

        current = await asyncio.to_thread(self.scanner.scan, root)
        previous = await load_snapshot(self.store, self.collection)
        diff = compute_diff(previous, current)

        report = IndexReport(unchanged=len(current) - len(diff.added) - len(diff.changed))
        LOGGER.info(
            "Index diff for %s: %d added, %d changed, %d removed, %d unchanged",
            root,
            len(diff.added),
            len(diff.changed),
            len(diff.removed),
            report.unchanged,
        )

        embed_slots = asyncio.Semaphore(self.embed_concurrency)
        store_slots = asyncio.Semaphore(self.store_concurrency)

        outcomes = await gather_all_or_cancel(
            self._index_file(root, path, path in diff.added, embed_slots, store_slots)
            for path in diff.to_embed()
        )
        for outcome in outcomes:
            report.record(outcome)
            if isinstance(outcome, FailedFile):
                LOGGER.warning("Failed to index %s: %s", outcome.path, outcome.reason)

        removed = sorted(diff.removed)
        await gather_all_or_cancel(self._remove_file(path, store_slots) for path in removed)
        report.removed.extend(removed)

        report.duration_ms = (time.perf_counter() - started) * 1000
        LOGGER.info(
            "Indexed %s in %.0f ms: added %d, updated %d, removed %d, skipped %d, failed %d",
            root,
            report.duration_ms,
            len(report.added),
            len(report.updated),
            len(report.removed),
            len(report.skipped),
            len(report.failed),
        )
        return report

    async def _index_file(
        self,
        root: Path,
        path: str,
        is_new: bool,
        embed_slots: asyncio.Semaphore,
        store_slots: asyncio.Semaphore,
    ) -> FileOutcome:
        try:
            async with embed_slots:
                text, info = await asyncio.to_thread(read_text_file, root / path)
                if not text.strip():
                    return await self._skip_blank_file(path, is_new, store_slots)
                vector = await embed_text(
                    self.embedder,
                    prepare_for_embedding(text, max_chars=self.embed_chars),
                    timeout=self.embed_timeout,
                )
        except (FilesystemError, EmbeddingError) as exc:
            return FailedFile(path=path, reason=str(exc))

        record = DocumentRecord(
            path=path,
            size_bytes=info.st_size,
            last_modified=info.st_mtime,
            content_preview=make_preview(text, max_chars=self.preview_chars),
            embedding=vector,
        )
        async with store_slots:
            await self.store.upsert(self.collection, record.id, record.embedding, record.payload())
        LOGGER.debug("Upserted %s", path)
        return IndexedFile(record=record, is_new=is_new)

    async def _skip_blank_file(
        self, path: str, is_new: bool, store_slots: asyncio.Semaphore
    ) -> SkippedFile:
        # A file that became blank must not keep its old vector.
        if not is_new:
            await self._remove_file(path, store_slots)
        LOGGER.info("Skipping %s: whitespace only", path)
        return SkippedFile(path=path, reason="file contains only whitespace")

    async def _remove_file(self, path: str, store_slots: asyncio.Semaphore) -> None:
        async with store_slots:
            await self.store.delete(self.collection, point_id_for(path))
        LOGGER.debug("Deleted %s", path)
