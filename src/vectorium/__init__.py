"""Vectorium - incremental semantic search over a folder of text files."""

__version__ = "0.1.0"
