"""Scanning, change tracking, storage, indexing and search."""

from vectorium.index.indexer import Indexer
from vectorium.index.scanner import FileScanner
from vectorium.index.search import Searcher
from vectorium.index.state import compute_diff, load_snapshot
from vectorium.index.storage import QdrantVectorStore, create_vector_store

__all__ = [
    "FileScanner",
    "Indexer",
    "QdrantVectorStore",
    "Searcher",
    "compute_diff",
    "create_vector_store",
    "load_snapshot",
]
