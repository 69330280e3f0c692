"""Embedding model management."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, Literal, Protocol, Sequence

import numpy as np
from sentence_transformers import SentenceTransformer

from vectorium.errors import EmbeddingError

DEFAULT_MODEL = "sentence-transformers/all-MiniLM-L6-v2"

logger = logging.getLogger(__name__)


class EmbeddingProvider(Protocol):
    """Anything that turns text into a fixed-length vector."""

    dimension: int

    def embed_query(self, text: str) -> np.ndarray:
        ...


@dataclass(slots=True)
class EmbeddingConfig:
    model_name: str = DEFAULT_MODEL
    batch_size: int = 16
    normalize: bool = True
    backend: Literal["torch", "onnx", "openvino"] = "torch"
    device: str | None = None
    cache_folder: Path | None = None


class EmbeddingModel:
    """Thin wrapper around `SentenceTransformer` for query and document embeddings.

    Loading with a non-torch backend falls back to PyTorch when the optimized
    runtime is missing or the model has no export for it.
    """

    def __init__(self, config: EmbeddingConfig | None = None) -> None:
        self.config = config or EmbeddingConfig()

        try:
            self._model = self._load_model()
        except Exception as e:
            if self.config.backend == "torch":
                raise EmbeddingError(
                    f"Unable to load embedding model {self.config.model_name!r}: {e}"
                ) from e
            logger.warning(
                f"Failed to load model with backend '{self.config.backend}': {e}. "
                "Falling back to PyTorch."
            )
            self.config.backend = "torch"
            self._model = self._load_model()

        self.dimension = int(self._model.get_sentence_embedding_dimension())
        logger.info(
            "Loaded %s (backend: %s, dimension: %d)",
            self.config.model_name,
            self.config.backend,
            self.dimension,
        )

    def _load_model(self) -> SentenceTransformer:
        cache_folder = str(self.config.cache_folder) if self.config.cache_folder else None
        return SentenceTransformer(
            self.config.model_name,
            backend=self.config.backend,
            device=self.config.device,
            cache_folder=cache_folder,
        )

    def embed(self, texts: Sequence[str] | Iterable[str]) -> np.ndarray:
        """Return float32 embeddings for input texts."""
        sentences = list(texts)
        embeddings = self._model.encode(
            sentences,
            batch_size=self.config.batch_size,
            show_progress_bar=False,
            convert_to_numpy=True,
            normalize_embeddings=self.config.normalize,
        )
        return embeddings.astype("float32", copy=False)

    def embed_query(self, text: str) -> np.ndarray:
        """Convenience wrapper for single-text embedding."""
        return self.embed([text])[0]


async def embed_text(
    provider: EmbeddingProvider, text: str, *, timeout: float | None = None
) -> np.ndarray:
    """Embed ``text`` on a worker thread, mapping any failure to `EmbeddingError`."""
    try:
        vector = await asyncio.wait_for(
            asyncio.to_thread(provider.embed_query, text), timeout=timeout
        )
    except asyncio.TimeoutError as exc:
        raise EmbeddingError("Embedding timed out") from exc
    except EmbeddingError:
        raise
    except Exception as exc:
        raise EmbeddingError(f"Embedding failed: {exc}") from exc

    vector = np.asarray(vector, dtype="float32")
    if vector.shape != (provider.dimension,):
        raise EmbeddingError(
            f"Embedding has shape {vector.shape}, expected ({provider.dimension},)"
        )
    if not np.all(np.isfinite(vector)):
        raise EmbeddingError("Embedding contains non-finite values")
    return vector
