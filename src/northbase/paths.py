"""Validation of user and server supplied relative paths."""

from __future__ import annotations

from pathlib import Path

from northbase.exceptions import InvalidPathError


def _clean(path: str) -> str:
    return path.replace("\\", "/").lstrip("/")


def sanitize(path: str | None) -> str:
    """Normalize a relative path and reject anything that could escape the mirror.

    Backslashes become slashes and leading slashes are dropped. The result
    must be non-empty and every segment must be a real name (not empty,
    whitespace, ``.`` or ``..``).

    Raises:
        InvalidPathError: If the path is unsafe
    """
    cleaned = _clean(path or "")
    if not cleaned:
        raise InvalidPathError(path)
    for segment in cleaned.split("/"):
        if segment in (".", "..") or not segment.strip():
            raise InvalidPathError(path)
    return cleaned


def normalize_prefix(prefix: str | None) -> str | None:
    """Normalize a listing prefix; ``None`` means no filter.

    Unlike :func:`sanitize`, a trailing slash is allowed so ``notes/``
    matches only the contents of ``notes``.
    """
    if not prefix:
        return None
    cleaned = _clean(prefix)
    if not cleaned:
        return None
    segments = cleaned.split("/")
    if segments[-1] == "":
        segments = segments[:-1]
    for segment in segments:
        if segment in (".", "..") or not segment.strip():
            raise InvalidPathError(prefix)
    return cleaned


def mirror_path(root: Path, path: str) -> Path:
    """Return the local file for a relative path under the mirror root."""
    return root.joinpath(*sanitize(path).split("/"))
