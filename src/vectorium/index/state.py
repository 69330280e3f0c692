"""Index state: what the store holds versus what is on disk.

The vector store is the only source of truth. The previous snapshot is rebuilt
from the payload stored with every point, so a restart needs no recovery step.
"""

from __future__ import annotations

from typing import Any, Dict, Iterable, Mapping, Protocol, Tuple

from vectorium.errors import StoreProtocolError
from vectorium.models import FileState, IndexDiff, IndexSnapshot


class PayloadSource(Protocol):
    async def scroll_payloads(self, collection: str) -> list[Tuple[str, Mapping[str, Any]]]:
        ...


def compute_diff(previous: IndexSnapshot, current: IndexSnapshot) -> IndexDiff:
    """Paths added, changed (size or mtime differ) and removed between snapshots."""
    before = previous.keys()
    after = current.keys()
    changed = {
        path
        for path in before & after
        if previous[path] != current[path]
    }
    return IndexDiff(
        added=frozenset(after - before),
        changed=frozenset(changed),
        removed=frozenset(before - after),
    )


def snapshot_from_payloads(points: Iterable[Tuple[str, Mapping[str, Any]]]) -> IndexSnapshot:
    snapshot: Dict[str, FileState] = {}
    for point_id, payload in points:
        try:
            path = payload["path"]
            state = FileState(
                size=int(payload["size"]),
                last_modified=float(payload["last_modified"]),
            )
        except (KeyError, TypeError, ValueError) as exc:
            raise StoreProtocolError(f"Point {point_id} has a malformed payload: {exc!r}") from exc
        if not isinstance(path, str):
            raise StoreProtocolError(f"Point {point_id} has a non-string path")
        snapshot[path] = state
    return snapshot


async def load_snapshot(store: PayloadSource, collection: str) -> IndexSnapshot:
    """Read back the metadata of every indexed path."""
    return snapshot_from_payloads(await store.scroll_payloads(collection))
