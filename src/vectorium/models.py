"""Core Vectorium data models."""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, List, Mapping, NamedTuple, Union

import numpy as np

POINT_NAMESPACE = uuid.uuid5(uuid.NAMESPACE_URL, "vectorium/documents")


def point_id_for(path: str) -> str:
    """Deterministic vector-store key for a path relative to the document root."""
    return str(uuid.uuid5(POINT_NAMESPACE, path))


@dataclass(frozen=True, slots=True)
class FileState:
    """Filesystem metadata used for change detection."""

    size: int
    last_modified: float


# path relative to the document root -> metadata
IndexSnapshot = Mapping[str, FileState]


@dataclass(slots=True)
class DocumentRecord:
    """One indexed file: its vector plus the payload stored next to it."""

    path: str
    size_bytes: int
    last_modified: float
    content_preview: str
    embedding: np.ndarray
    id: str = ""

    def __post_init__(self) -> None:
        if not self.id:
            self.id = point_id_for(self.path)

    def payload(self) -> Dict[str, Any]:
        return {
            "path": self.path,
            "size": self.size_bytes,
            "last_modified": self.last_modified,
            "content_preview": self.content_preview,
        }


@dataclass(frozen=True, slots=True)
class IndexDiff:
    added: frozenset[str] = frozenset()
    changed: frozenset[str] = frozenset()
    removed: frozenset[str] = frozenset()

    @property
    def is_empty(self) -> bool:
        return not (self.added or self.changed or self.removed)

    def to_embed(self) -> List[str]:
        """Paths that need a fresh embedding, in a stable order for logging."""
        return sorted(self.added | self.changed)


@dataclass(frozen=True, slots=True)
class IndexedFile:
    record: DocumentRecord
    is_new: bool


@dataclass(frozen=True, slots=True)
class FailedFile:
    path: str
    reason: str


@dataclass(frozen=True, slots=True)
class SkippedFile:
    """An eligible file with nothing to embed (whitespace only)."""

    path: str
    reason: str


FileOutcome = Union[IndexedFile, FailedFile, SkippedFile]


@dataclass(slots=True)
class IndexReport:
    """Summary of one indexing run."""

    added: List[str] = field(default_factory=list)
    updated: List[str] = field(default_factory=list)
    removed: List[str] = field(default_factory=list)
    failed: List[FailedFile] = field(default_factory=list)
    skipped: List[str] = field(default_factory=list)
    unchanged: int = 0
    duration_ms: float = 0.0

    def record(self, outcome: FileOutcome) -> None:
        if isinstance(outcome, FailedFile):
            self.failed.append(outcome)
        elif isinstance(outcome, SkippedFile):
            self.skipped.append(outcome.path)
        elif outcome.is_new:
            self.added.append(outcome.record.path)
        else:
            self.updated.append(outcome.record.path)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "added": sorted(self.added),
            "updated": sorted(self.updated),
            "removed": sorted(self.removed),
            "failed": [{"path": f.path, "reason": f.reason} for f in self.failed],
            "skipped": sorted(self.skipped),
            "unchanged": self.unchanged,
            "duration_ms": round(self.duration_ms, 2),
        }


class StoreHit(NamedTuple):
    """A single nearest-neighbour match as returned by the vector store."""

    id: str
    score: float
    payload: Mapping[str, Any]


@dataclass(frozen=True, slots=True)
class SearchHit:
    path: str
    score: float
    content_preview: str
    size: int
    last_modified: float

    def to_dict(self) -> Dict[str, Any]:
        modified = datetime.fromtimestamp(self.last_modified, tz=timezone.utc)
        return {
            "filename": self.path,
            "similarity_score": self.score,
            "content_preview": self.content_preview,
            "file_size": self.size,
            "last_modified": modified.isoformat(),
        }


@dataclass(frozen=True, slots=True)
class SearchResponse:
    results: List[SearchHit]
    embedding_time_ms: float
    search_time_ms: float

    @property
    def total_found(self) -> int:
        return len(self.results)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "results": [hit.to_dict() for hit in self.results],
            "total_found": self.total_found,
            "query_embedding_time_ms": round(self.embedding_time_ms, 2),
            "search_time_ms": round(self.search_time_ms, 2),
        }
