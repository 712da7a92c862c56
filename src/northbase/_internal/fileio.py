"""Crash-safe file writes."""

from __future__ import annotations

import contextlib
import os
import secrets
from pathlib import Path

_OPEN_FLAGS = os.O_WRONLY | os.O_CREAT | os.O_EXCL | getattr(os, "O_BINARY", 0)


def _create_temp(dest: Path) -> tuple[int, Path]:
    # 0o666 lets the process umask decide, like a plain open() would.
    while True:
        temp_path = dest.parent / f".{dest.name}.{secrets.token_hex(6)}.tmp"
        try:
            return os.open(temp_path, _OPEN_FLAGS, 0o666), temp_path
        except FileExistsError:
            continue


def atomic_write_bytes(dest: Path, data: bytes, *, mode: int | None = None) -> None:
    """Write bytes to dest via a temp file in the same directory and a rename.

    Readers see either the old file or the complete new one. Without ``mode``
    the file gets the usual umask-derived permissions; with it the temp file
    is set to exactly ``mode`` before any data is written.
    """
    dest.parent.mkdir(parents=True, exist_ok=True)
    fd, temp_path = _create_temp(dest)
    try:
        with os.fdopen(fd, "wb") as f:
            if mode is not None:
                os.fchmod(f.fileno(), mode)
            f.write(data)
            f.flush()
            os.fsync(f.fileno())
        os.replace(temp_path, dest)
    except BaseException:
        with contextlib.suppress(OSError):
            os.unlink(temp_path)
        raise
