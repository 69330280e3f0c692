"""Text embedding providers."""

from vectorium.embedding.encoder import (
    DEFAULT_MODEL,
    EmbeddingConfig,
    EmbeddingModel,
    EmbeddingProvider,
    embed_text,
)

__all__ = [
    "DEFAULT_MODEL",
    "EmbeddingConfig",
    "EmbeddingModel",
    "EmbeddingProvider",
    "embed_text",
]
