"""Qdrant vector store."""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, List, Mapping, Sequence, Tuple

import numpy as np
from pydantic import ValidationError as PydanticValidationError
from qdrant_client import AsyncQdrantClient
from qdrant_client.http.exceptions import ResponseHandlingException, UnexpectedResponse
from qdrant_client.models import Distance, PointIdsList, PointStruct, VectorParams

from vectorium.errors import StoreProtocolError, StoreUnavailableError, VectoriumError
from vectorium.models import StoreHit

logger = logging.getLogger(__name__)

DISTANCES = {
    "cosine": Distance.COSINE,
    "dot": Distance.DOT,
    "euclid": Distance.EUCLID,
}

SCROLL_PAGE_SIZE = 256


class QdrantVectorStore:
    """Async wrapper around a Qdrant server (or qdrant-client's in-memory mode).

    Every qdrant-client failure is translated into `StoreUnavailableError` or
    `StoreProtocolError`; nothing is swallowed.
    """

    def __init__(self, client: AsyncQdrantClient) -> None:
        self.client = client

    async def close(self) -> None:
        await self.client.close()

    @asynccontextmanager
    async def _translate_errors(self, operation: str) -> AsyncIterator[None]:
        try:
            yield
        except VectoriumError:
            raise
        except UnexpectedResponse as exc:
            if exc.status_code is not None and exc.status_code >= 500:
                raise StoreUnavailableError(f"{operation}: store returned {exc.status_code}") from exc
            raise StoreProtocolError(f"{operation}: unexpected response {exc.status_code}: {exc}") from exc
        except (ResponseHandlingException, ConnectionError) as exc:
            raise StoreUnavailableError(f"{operation}: vector store unreachable ({exc})") from exc
        except (PydanticValidationError, AttributeError, KeyError, TypeError, ValueError) as exc:
            raise StoreProtocolError(f"{operation}: malformed store response ({exc})") from exc

    async def ensure_collection(
        self, name: str, dimension: int, distance: str = "cosine"
    ) -> bool:
        """Create the collection if absent. Returns True when it was created."""
        metric = DISTANCES[distance]
        async with self._translate_errors("ensure_collection"):
            if await self.client.collection_exists(name):
                await self._check_dimension(name, dimension)
                return False
            try:
                await self.client.create_collection(
                    collection_name=name,
                    vectors_config=VectorParams(size=dimension, distance=metric),
                )
            except UnexpectedResponse as exc:
                # Lost a create race with another process.
                if exc.status_code != 409:
                    raise
                await self._check_dimension(name, dimension)
                return False
        logger.info("Created collection '%s' (dim=%d, distance=%s)", name, dimension, distance)
        return True

    async def _check_dimension(self, name: str, dimension: int) -> None:
        info = await self.client.get_collection(collection_name=name)
        vectors = info.config.params.vectors
        existing = getattr(vectors, "size", None)
        if existing != dimension:
            raise StoreProtocolError(
                f"Collection '{name}' exists with dimension {existing}, expected {dimension}. "
                "Delete the collection and re-index."
            )

    async def upsert(
        self,
        collection: str,
        point_id: str,
        vector: Sequence[float] | np.ndarray,
        payload: Mapping[str, Any],
    ) -> None:
        point = PointStruct(
            id=point_id,
            vector=np.asarray(vector, dtype="float32").tolist(),
            payload=dict(payload),
        )
        async with self._translate_errors("upsert"):
            await self.client.upsert(collection_name=collection, points=[point], wait=True)

    async def delete(self, collection: str, point_id: str) -> None:
        async with self._translate_errors("delete"):
            await self.client.delete(
                collection_name=collection,
                points_selector=PointIdsList(points=[point_id]),
                wait=True,
            )

    async def query(
        self,
        collection: str,
        vector: Sequence[float] | np.ndarray,
        *,
        limit: int,
        score_threshold: float | None = None,
    ) -> List[StoreHit]:
        """Nearest neighbours, best first, none scoring below ``score_threshold``."""
        async with self._translate_errors("query"):
            response = await self.client.query_points(
                collection_name=collection,
                query=np.asarray(vector, dtype="float32").tolist(),
                limit=limit,
                score_threshold=score_threshold,
                with_payload=True,
                with_vectors=False,
            )
            return [
                StoreHit(id=str(point.id), score=float(point.score), payload=point.payload or {})
                for point in response.points
            ]

    async def scroll_payloads(self, collection: str) -> List[Tuple[str, Mapping[str, Any]]]:
        """Every point's id and payload, without vectors."""
        points: List[Tuple[str, Mapping[str, Any]]] = []
        offset = None
        async with self._translate_errors("scroll"):
            while True:
                batch, offset = await self.client.scroll(
                    collection_name=collection,
                    limit=SCROLL_PAGE_SIZE,
                    offset=offset,
                    with_payload=True,
                    with_vectors=False,
                )
                points.extend((str(point.id), point.payload or {}) for point in batch)
                if offset is None:
                    break
        return points

    async def count(self, collection: str) -> int:
        async with self._translate_errors("count"):
            result = await self.client.count(collection_name=collection, exact=True)
            return int(result.count)


def create_vector_store(url: str, *, timeout: int = 10) -> QdrantVectorStore:
    """Build a store for ``url``; ``":memory:"`` selects the in-process local mode."""
    if url == ":memory:":
        client = AsyncQdrantClient(location=":memory:")
    else:
        client = AsyncQdrantClient(url=url, timeout=timeout)
    return QdrantVectorStore(client)
