"""Shared fixtures: a deterministic embedder and an in-process Qdrant store."""

from __future__ import annotations

import hashlib
import threading
import time
from pathlib import Path
from typing import AsyncIterator, Iterable

import numpy as np
import pytest
import pytest_asyncio

from vectorium.index.storage import QdrantVectorStore, create_vector_store

DIMENSION = 384
COLLECTION = "documents"


class FakeEmbedder:
    """Hash-seeded unit vectors: identical text maps to an identical vector.

    Unrelated texts land close to orthogonal in 384 dimensions, so their
    cosine similarity stays far below the default threshold.
    """

    def __init__(
        self,
        dimension: int = DIMENSION,
        fail_on: Iterable[str] = (),
        delay: float = 0.0,
    ) -> None:
        self.dimension = dimension
        self.fail_on = set(fail_on)
        self.delay = delay
        self.calls: list[str] = []
        self.active = 0
        self.peak = 0
        self._lock = threading.Lock()

    def embed_query(self, text: str) -> np.ndarray:
        with self._lock:
            self.calls.append(text)
            self.active += 1
            self.peak = max(self.peak, self.active)
        try:
            if self.delay:
                time.sleep(self.delay)
        finally:
            with self._lock:
                self.active -= 1
        if text in self.fail_on:
            raise RuntimeError("model exploded")
        seed = int.from_bytes(hashlib.sha256(text.encode("utf-8")).digest()[:8], "big")
        vector = np.random.default_rng(seed).standard_normal(self.dimension)
        return (vector / np.linalg.norm(vector)).astype("float32")


@pytest.fixture
def embedder() -> FakeEmbedder:
    return FakeEmbedder()


@pytest_asyncio.fixture
async def store() -> AsyncIterator[QdrantVectorStore]:
    vector_store = create_vector_store(":memory:")
    await vector_store.ensure_collection(COLLECTION, DIMENSION)
    yield vector_store
    await vector_store.close()


@pytest.fixture
def docs(tmp_path: Path) -> Path:
    """A document root holding three small text files."""
    root = tmp_path / "docs"
    root.mkdir()
    (root / "a.txt").write_text("Quarterly revenue grew thanks to the new pricing model.")
    (root / "b.md").write_text("# Hiking\n\nTrails in the Alps are best in September.")
    nested = root / "notes"
    nested.mkdir()
    (nested / "c.txt").write_text("Sourdough needs a starter fed twice a day.")
    return root
