"""Tests for file utility functions."""

from __future__ import annotations

import os
from pathlib import Path
from unittest.mock import patch

import pytest

from vectorium.errors import FilesystemError
from vectorium.utils.files import is_within, iter_text_paths, read_text_file, regular_file_stat


class TestIterTextPaths:
    """Test iter_text_paths function."""

    def test_filters_by_extension(self, tmp_path: Path) -> None:
        """Should yield only files with a matching suffix."""
        (tmp_path / "a.txt").write_text("a")
        (tmp_path / "b.md").write_text("b")
        (tmp_path / "c.pdf").write_text("c")

        names = {p.name for p in iter_text_paths(tmp_path, (".txt", ".md"))}

        assert names == {"a.txt", "b.md"}

    def test_case_insensitive_suffix(self, tmp_path: Path) -> None:
        """Should match upper-case extensions."""
        (tmp_path / "LOUD.TXT").write_text("a")

        assert [p.name for p in iter_text_paths(tmp_path, (".txt",))] == ["LOUD.TXT"]

    def test_recurses_and_skips_hidden_dirs(self, tmp_path: Path) -> None:
        """Should descend into subdirectories but not hidden ones."""
        (tmp_path / "sub").mkdir()
        (tmp_path / "sub" / "inner.txt").write_text("x")
        (tmp_path / ".git").mkdir()
        (tmp_path / ".git" / "HEAD.txt").write_text("x")

        paths = list(iter_text_paths(tmp_path, (".txt",)))

        assert paths == [tmp_path / "sub" / "inner.txt"]

    def test_empty_directory(self, tmp_path: Path) -> None:
        """Should yield nothing for an empty directory."""
        assert list(iter_text_paths(tmp_path, (".txt",))) == []


class TestIsWithin:
    """Test is_within function."""

    def test_inside(self, tmp_path: Path) -> None:
        """Should accept paths under the root."""
        target = tmp_path / "a.txt"
        target.write_text("x")

        assert is_within(target, tmp_path.resolve())

    def test_outside(self, tmp_path: Path) -> None:
        """Should reject paths outside the root."""
        root = tmp_path / "root"
        root.mkdir()
        outside = tmp_path / "outside.txt"
        outside.write_text("x")

        assert not is_within(outside, root.resolve())


class TestRegularFileStat:
    """Test regular_file_stat function."""

    def test_regular_file(self, tmp_path: Path) -> None:
        """Should return the stat of a regular file."""
        target = tmp_path / "a.txt"
        target.write_text("hello")

        info = regular_file_stat(target)

        assert info is not None
        assert info.st_size == 5

    def test_missing_file(self, tmp_path: Path) -> None:
        """Should return None when the file vanished."""
        assert regular_file_stat(tmp_path / "gone.txt") is None

    def test_directory(self, tmp_path: Path) -> None:
        """Should return None for a directory."""
        folder = tmp_path / "folder.txt"
        folder.mkdir()

        assert regular_file_stat(folder) is None


class TestReadTextFile:
    """Test read_text_file function."""

    def test_reads_utf8(self, tmp_path: Path) -> None:
        """Should decode UTF-8 and return the stat taken at read time."""
        target = tmp_path / "a.txt"
        target.write_text("naïve café", encoding="utf-8")

        text, info = read_text_file(target)

        assert text == "naïve café"
        assert info.st_size == target.stat().st_size

    def test_invalid_utf8(self, tmp_path: Path) -> None:
        """Should raise FilesystemError for undecodable bytes."""
        target = tmp_path / "bin.txt"
        target.write_bytes(b"\xff\xfe\xfa\x00")

        with pytest.raises(FilesystemError, match="not valid UTF-8"):
            read_text_file(target)

    def test_missing_file(self, tmp_path: Path) -> None:
        """Should raise FilesystemError when the file is gone."""
        with pytest.raises(FilesystemError, match="Cannot read"):
            read_text_file(tmp_path / "gone.txt")

    def test_modified_during_read(self, tmp_path: Path) -> None:
        """Should raise FilesystemError if the file changes between stats."""
        target = tmp_path / "a.txt"
        target.write_text("before")
        original = Path.read_bytes

        def read_and_touch(self: Path) -> bytes:
            data = original(self)
            self.write_text("after, and longer")
            os.utime(self, (1, 1))
            return data

        with patch.object(Path, "read_bytes", read_and_touch):
            with pytest.raises(FilesystemError, match="modified while being read"):
                read_text_file(target)
