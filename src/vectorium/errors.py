"""Error taxonomy shared by the indexing and search pipelines."""

from __future__ import annotations


class VectoriumError(Exception):
    """Base class for every error raised by Vectorium."""

    kind = "internal_error"


class FilesystemError(VectoriumError):
    """Document root or a single file could not be read."""

    kind = "filesystem_error"


class EmbeddingError(VectoriumError):
    """The embedding provider failed or timed out for a given text."""

    kind = "embedding_error"


class StoreUnavailableError(VectoriumError):
    """The vector store could not be reached."""

    kind = "store_unavailable"


class StoreProtocolError(VectoriumError):
    """The vector store answered with something we cannot interpret."""

    kind = "store_protocol_error"


class ValidationError(VectoriumError):
    """Search input that cannot be clamped or defaulted into shape."""

    kind = "validation_error"


class OperationTimeoutError(VectoriumError, TimeoutError):
    """An operation exceeded its deadline."""

    kind = "timeout"
