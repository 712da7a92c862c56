"""Persisted index of what the local mirror last synchronized."""

from __future__ import annotations

import json
import logging
import threading
from pathlib import Path
from typing import Any

from northbase._internal.fileio import atomic_write_bytes
from northbase.models import CacheEntry

logger = logging.getLogger(__name__)


class CacheIndex:
    """Mapping from relative path to the marker and size last written locally.

    The whole mapping is stored as one JSON snapshot::

        {"files": {"notes/a.md": {"updated_at": "...", "bytes": 12}}}

    A missing or corrupt file is treated as an empty history, which only
    costs a remote refresh on the next access.
    """

    def __init__(self, index_path: Path | str) -> None:
        self.index_path = Path(index_path)
        self._entries: dict[str, CacheEntry] | None = None
        self._lock = threading.Lock()

    def load(self) -> dict[str, CacheEntry]:
        """Read the snapshot from disk, replacing the in-memory copy."""
        entries = self._read()
        with self._lock:
            self._entries = entries
            return dict(entries)

    def _read(self) -> dict[str, CacheEntry]:
        if not self.index_path.exists():
            return {}
        try:
            data = json.loads(self.index_path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as e:
            logger.warning(f"Ignoring unreadable cache index {self.index_path}: {e}")
            return {}

        files = data.get("files") if isinstance(data, dict) else None
        if not isinstance(files, dict):
            logger.warning(f"Ignoring malformed cache index {self.index_path}")
            return {}

        entries: dict[str, CacheEntry] = {}
        for path, value in files.items():
            entry = self._parse_entry(path, value)
            if entry is not None:
                entries[path] = entry
        return entries

    @staticmethod
    def _parse_entry(path: Any, value: Any) -> CacheEntry | None:
        if not isinstance(path, str) or not isinstance(value, dict):
            return None
        marker = value.get("updated_at")
        size = value.get("bytes", 0)
        if marker is not None and not isinstance(marker, str):
            marker = str(marker)
        if not isinstance(size, int) or isinstance(size, bool):
            return None
        return CacheEntry(path=path, marker=marker, byte_size=size)

    def _ensure_loaded(self) -> dict[str, CacheEntry]:
        if self._entries is None:
            self.load()
        assert self._entries is not None
        return self._entries

    def get(self, path: str) -> CacheEntry | None:
        """Look up the entry for a path, or None if it was never synchronized."""
        entries = self._ensure_loaded()
        with self._lock:
            return entries.get(path)

    def put(self, entry: CacheEntry) -> None:
        """Insert or replace the entry for ``entry.path`` in memory."""
        entries = self._ensure_loaded()
        with self._lock:
            entries[entry.path] = entry

    def save(self, mapping: dict[str, CacheEntry] | None = None) -> None:
        """Write the whole mapping to disk atomically.

        Args:
            mapping: Entries to persist; defaults to the in-memory snapshot
        """
        with self._lock:
            if mapping is not None:
                self._entries = dict(mapping)
            elif self._entries is None:
                self._entries = {}
            payload = {
                "files": {path: entry.to_dict() for path, entry in self._entries.items()}
            }
        data = json.dumps(payload, indent=2, sort_keys=True) + "\n"
        atomic_write_bytes(self.index_path, data.encode("utf-8"))
        logger.debug(f"Saved cache index with {len(payload['files'])} entries")

    def __len__(self) -> int:
        return len(self._ensure_loaded())
