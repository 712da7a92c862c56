"""Tests for path sanitization."""

from __future__ import annotations

from pathlib import Path

import pytest

from northbase import InvalidPathError, sanitize
from northbase.paths import mirror_path, normalize_prefix


class TestSanitize:
    """Tests for sanitize()."""

    @pytest.mark.parametrize(
        "path", ["../x", "/a/../b", "", "a//b", "./a", "a/.", "a/ /b", "/", None]
    )
    def test_rejects_unsafe_paths(self, path: str | None) -> None:
        """Test that traversal, empty and blank segments are rejected."""
        with pytest.raises(InvalidPathError):
            sanitize(path)

    @pytest.mark.parametrize("path", ["a/b/c", "a.txt", "notes/2026-10-19.md"])
    def test_accepts_clean_paths_unchanged(self, path: str) -> None:
        """Test that clean relative paths normalize to themselves."""
        assert sanitize(path) == path

    def test_strips_leading_slashes(self) -> None:
        """Test that leading slashes are dropped."""
        assert sanitize("///a/b") == "a/b"

    def test_normalizes_backslashes(self) -> None:
        """Test that Windows separators become forward slashes."""
        assert sanitize("notes\\day.md") == "notes/day.md"

    def test_backslash_traversal_is_rejected(self) -> None:
        """Test that backslashes are normalized before validation."""
        with pytest.raises(InvalidPathError):
            sanitize("a\\..\\b")

    def test_error_mentions_rejected_path(self) -> None:
        """Test that the error keeps the caller's input."""
        with pytest.raises(InvalidPathError) as exc_info:
            sanitize("../secret")

        assert exc_info.value.path == "../secret"
        assert "Unsafe path" in str(exc_info.value)


class TestNormalizePrefix:
    """Tests for listing prefixes."""

    def test_empty_prefix_means_no_filter(self) -> None:
        assert normalize_prefix(None) is None
        assert normalize_prefix("") is None
        assert normalize_prefix("/") is None

    def test_trailing_slash_is_kept(self) -> None:
        assert normalize_prefix("/notes/") == "notes/"

    def test_traversal_is_rejected(self) -> None:
        with pytest.raises(InvalidPathError):
            normalize_prefix("../")


class TestMirrorPath:
    """Tests for mapping relative paths onto the mirror root."""

    def test_joins_under_root(self, tmp_path: Path) -> None:
        assert mirror_path(tmp_path, "a/b.md") == tmp_path / "a" / "b.md"

    def test_rejects_unsafe_path(self, tmp_path: Path) -> None:
        with pytest.raises(InvalidPathError):
            mirror_path(tmp_path, "../escape")
