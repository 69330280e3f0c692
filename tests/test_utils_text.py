"""Tests for text utilities."""

from __future__ import annotations

from vectorium.utils.text import make_preview, normalize_whitespace, prepare_for_embedding


class TestNormalizeWhitespace:
    """Test normalize_whitespace function."""

    def test_collapses_runs(self) -> None:
        """Should collapse newlines, tabs and repeated spaces."""
        assert normalize_whitespace("a \n\n\tb   c") == "a b c"

    def test_strips_ends(self) -> None:
        """Should trim leading and trailing whitespace."""
        assert normalize_whitespace("  hello  \n") == "hello"

    def test_empty(self) -> None:
        """Should handle empty and whitespace-only input."""
        assert normalize_whitespace("") == ""
        assert normalize_whitespace(" \n ") == ""


class TestMakePreview:
    """Test make_preview function."""

    def test_short_text_unchanged(self) -> None:
        """Should keep text shorter than the limit."""
        assert make_preview("short text") == "short text"

    def test_truncates_to_200_chars(self) -> None:
        """Should cap the preview at 200 characters by default."""
        assert len(make_preview("x" * 500)) == 200

    def test_counts_code_points(self) -> None:
        """Should never split a multi-byte character."""
        preview = make_preview("é" * 300, max_chars=10)

        assert preview == "é" * 10
        preview.encode("utf-8")

    def test_normalizes_before_truncating(self) -> None:
        """Should collapse whitespace before applying the limit."""
        assert make_preview("a\n\n\nb", max_chars=3) == "a b"


class TestPrepareForEmbedding:
    """Test prepare_for_embedding function."""

    def test_strips(self) -> None:
        """Should strip surrounding whitespace."""
        assert prepare_for_embedding("\n hello \n") == "hello"

    def test_caps_length(self) -> None:
        """Should cap the text at max_chars."""
        assert prepare_for_embedding("y" * 50, max_chars=10) == "y" * 10
