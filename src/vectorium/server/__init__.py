"""Tool-protocol boundary."""

from vectorium.server.gateway import DocumentSearchServer

__all__ = ["DocumentSearchServer"]
