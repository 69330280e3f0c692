"""Text helpers for previews and embedding input."""

from __future__ import annotations

import re

_WHITESPACE = re.compile(r"\s+")


def normalize_whitespace(text: str) -> str:
    """Collapse every whitespace run into a single space and trim the ends."""
    return _WHITESPACE.sub(" ", text).strip()


def make_preview(text: str, *, max_chars: int = 200) -> str:
    """Whitespace-normalized prefix of ``text``, at most ``max_chars`` code points.

    Python strings index by code point, so a slice never splits a character.
    """
    return normalize_whitespace(text)[:max_chars]


def prepare_for_embedding(text: str, *, max_chars: int = 4000) -> str:
    """Strip and cap the text handed to the encoder."""
    return text.strip()[:max_chars]
