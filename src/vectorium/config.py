"""Application configuration defaults."""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Mapping, Tuple

from vectorium.embedding.encoder import DEFAULT_MODEL

DEFAULT_QDRANT_URL = "http://localhost:6333"
DEFAULT_COLLECTION = "documents"


def _get_default_cache_dir() -> Path:
    """Model cache location, shared by every project on the machine."""
    xdg_cache = os.environ.get("XDG_CACHE_HOME")
    base = Path(xdg_cache) if xdg_cache else Path.home() / ".cache"
    return base / "vectorium"


@dataclass(slots=True)
class AppConfig:
    qdrant_url: str = DEFAULT_QDRANT_URL
    documents_dir: Path = Path("data")
    cache_dir: Path | None = None
    collection: str = DEFAULT_COLLECTION
    model_name: str = DEFAULT_MODEL
    dimension: int = 384
    preview_chars: int = 200
    embed_chars: int = 4000
    extensions: Tuple[str, ...] = (".txt", ".md")
    embed_concurrency: int = 4
    store_concurrency: int = 8
    embed_timeout: float = 30.0
    search_timeout: float = 5.0

    def __post_init__(self) -> None:
        self.documents_dir = Path(self.documents_dir)
        if self.cache_dir is None:
            self.cache_dir = _get_default_cache_dir()

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> "AppConfig":
        """Build a config from QDRANT_URL, DOCUMENTS_DIR and VECTORIUM_CACHE_DIR."""
        env = os.environ if environ is None else environ
        config = cls()
        if env.get("QDRANT_URL"):
            config.qdrant_url = env["QDRANT_URL"]
        if env.get("DOCUMENTS_DIR"):
            config.documents_dir = Path(env["DOCUMENTS_DIR"])
        if env.get("VECTORIUM_CACHE_DIR"):
            config.cache_dir = Path(env["VECTORIUM_CACHE_DIR"])
        return config

    def resolve_documents_dir(self, base_dir: Path | None = None) -> Path:
        if self.documents_dir.is_absolute() or base_dir is None:
            return self.documents_dir
        return base_dir / self.documents_dir
