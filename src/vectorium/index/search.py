"""Semantic search interface."""

from __future__ import annotations

import asyncio
import logging
import math
import time
from dataclasses import dataclass
from typing import Any, List, Sequence

from vectorium.embedding.encoder import EmbeddingProvider, embed_text
from vectorium.errors import OperationTimeoutError, StoreProtocolError, ValidationError
from vectorium.index.storage import QdrantVectorStore
from vectorium.models import SearchHit, SearchResponse, StoreHit

LOGGER = logging.getLogger(__name__)

DEFAULT_LIMIT = 5
MIN_LIMIT = 1
MAX_LIMIT = 20
DEFAULT_THRESHOLD = 0.7


@dataclass(frozen=True, slots=True)
class SearchRequest:
    query: str
    limit: int
    threshold: float


def _as_number(name: str, value: Any) -> float:
    if isinstance(value, bool):
        raise ValidationError(f"{name} must be a number, got a boolean")
    if isinstance(value, (int, float)):
        number = float(value)
    elif isinstance(value, str):
        try:
            number = float(value.strip())
        except ValueError:
            raise ValidationError(f"{name} must be a number, got {value!r}") from None
    else:
        raise ValidationError(f"{name} must be a number, got {type(value).__name__}")
    if math.isnan(number):
        raise ValidationError(f"{name} must not be NaN")
    return number


def normalize_request(query: Any, limit: Any = None, threshold: Any = None) -> SearchRequest:
    """Validate a raw search request, clamping limit to [1, 20] and threshold to [0, 1].

    A limit of zero or below becomes 1. Missing values take the defaults.
    """
    if not isinstance(query, str) or not query.strip():
        raise ValidationError("query must be a non-empty string")

    if limit is None:
        clamped_limit = DEFAULT_LIMIT
    else:
        raw_limit = _as_number("limit", limit)
        if raw_limit >= MAX_LIMIT:
            clamped_limit = MAX_LIMIT
        elif raw_limit < MIN_LIMIT:
            clamped_limit = MIN_LIMIT
        else:
            clamped_limit = int(raw_limit)

    if threshold is None:
        clamped_threshold = DEFAULT_THRESHOLD
    else:
        clamped_threshold = min(1.0, max(0.0, _as_number("threshold", threshold)))

    return SearchRequest(query=query.strip(), limit=clamped_limit, threshold=clamped_threshold)


def rank_hits(hits: Sequence[StoreHit], *, limit: int, threshold: float) -> List[SearchHit]:
    """Map store hits to results, keeping store order, dropping sub-threshold hits."""
    results: List[SearchHit] = []
    for hit in hits:
        if hit.score < threshold:
            continue
        payload = hit.payload
        try:
            result = SearchHit(
                path=str(payload["path"]),
                score=float(hit.score),
                content_preview=str(payload.get("content_preview", "")),
                size=int(payload["size"]),
                last_modified=float(payload["last_modified"]),
            )
        except (KeyError, TypeError, ValueError) as exc:
            raise StoreProtocolError(f"Point {hit.id} has a malformed payload: {exc!r}") from exc
        results.append(result)
        if len(results) == limit:
            break
    return results


class Searcher:
    """High-level API to query the vector store."""

    def __init__(
        self,
        embedder: EmbeddingProvider,
        store: QdrantVectorStore,
        *,
        collection: str = "documents",
        timeout: float | None = 5.0,
    ) -> None:
        self.embedder = embedder
        self.store = store
        self.collection = collection
        self.timeout = timeout

    async def search(
        self,
        query: Any,
        limit: Any = DEFAULT_LIMIT,
        threshold: Any = DEFAULT_THRESHOLD,
    ) -> SearchResponse:
        """Embed ``query`` and return the stored documents most similar to it.

        Raises `ValidationError` before touching the embedder or the store,
        `OperationTimeoutError` if the whole call exceeds ``self.timeout``.
        """
        request = normalize_request(query, limit, threshold)
        try:
            return await asyncio.wait_for(self._search(request), timeout=self.timeout)
        except asyncio.TimeoutError as exc:
            raise OperationTimeoutError(
                f"Search did not complete within {self.timeout:.1f}s"
            ) from exc

    async def _search(self, request: SearchRequest) -> SearchResponse:
        started = time.perf_counter()
        vector = await embed_text(self.embedder, request.query)
        embedded = time.perf_counter()

        hits = await self.store.query(
            self.collection,
            vector,
            limit=request.limit,
            score_threshold=request.threshold,
        )
        results = rank_hits(hits, limit=request.limit, threshold=request.threshold)
        finished = time.perf_counter()

        response = SearchResponse(
            results=results,
            embedding_time_ms=(embedded - started) * 1000,
            search_time_ms=(finished - embedded) * 1000,
        )
        LOGGER.debug(
            "Query %r: %d results (embed %.1f ms, search %.1f ms)",
            request.query,
            response.total_found,
            response.embedding_time_ms,
            response.search_time_ms,
        )
        return response
