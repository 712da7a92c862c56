"""Conditional get, write-through put and bulk pull against the remote store."""

from __future__ import annotations

import logging
from pathlib import Path

from northbase._internal.fileio import atomic_write_bytes
from northbase._internal.store_client import RemoteStoreClient
from northbase.cache_index import CacheIndex
from northbase.config import DEFAULT_CONCURRENCY
from northbase.exceptions import FileTooLargeError, InvalidPathError, RemoteNotFoundError
from northbase.executor import run_bounded
from northbase.models import CacheEntry, PullResult, PutResult, RemoteRecord
from northbase.paths import mirror_path, normalize_prefix, sanitize
from northbase.session import SessionManager

logger = logging.getLogger(__name__)

MAX_FILE_BYTES = 500_000

_DOWNLOADED = "downloaded"
_SKIPPED = "skipped"


def check_size(size: int) -> None:
    """Raise FileTooLargeError if ``size`` exceeds the per-file limit."""
    if size > MAX_FILE_BYTES:
        raise FileTooLargeError(size, MAX_FILE_BYTES)


class SyncEngine:
    """Keeps the local mirror under ``files_dir`` coherent with the remote store.

    The remote always confirms before the mirror and cache index change, so a
    crash in between only leaves a stale entry that the next ``get`` notices
    by its marker.
    """

    def __init__(
        self,
        sessions: SessionManager,
        cache_index: CacheIndex,
        files_dir: Path | str,
        *,
        concurrency: int = DEFAULT_CONCURRENCY,
    ) -> None:
        self.sessions = sessions
        self.cache_index = cache_index
        self.files_dir = Path(files_dir)
        self.concurrency = concurrency

    def _read_local(self, path: str) -> bytes | None:
        full = mirror_path(self.files_dir, path)
        try:
            return full.read_bytes()
        except FileNotFoundError:
            return None

    def _download(self, handle: RemoteStoreClient, path: str) -> bytes:
        """Fetch content, then write the mirror and record it in the index."""
        remote = handle.fetch_content(path)
        if remote is None:
            raise RemoteNotFoundError(path)
        check_size(len(remote.content))
        atomic_write_bytes(mirror_path(self.files_dir, path), remote.content)
        self.cache_index.put(
            CacheEntry(path=path, marker=remote.marker, byte_size=len(remote.content))
        )
        return remote.content

    def get(self, path: str) -> bytes:
        """Return the content of ``path``, transferring it only when stale.

        Raises:
            InvalidPathError: If the path is unsafe
            RemoteNotFoundError: If there is neither a local nor a remote copy
            FileTooLargeError: If the remote content exceeds the limit
        """
        rel = sanitize(path)
        with self.sessions.acquire_handle() as handle:
            self.cache_index.load()
            local = self._read_local(rel)

            if local is not None:
                remote_marker = handle.fetch_marker(rel)
                if remote_marker is None:
                    # Remote has no record yet; the local copy is all there is.
                    logger.info(f"GET local-only {rel}")
                    return local
                cached = self.cache_index.get(rel)
                if cached is not None and cached.marker == remote_marker:
                    logger.info(f"GET local-hit {rel}")
                    return local

            logger.info(f"GET remote-refresh {rel}")
            content = self._download(handle, rel)
        self.cache_index.save()
        return content

    def put(self, path: str, content: bytes) -> PutResult:
        """Upload ``content`` to ``path``, then mirror it locally.

        Raises:
            InvalidPathError: If the path is unsafe
            FileTooLargeError: If the content exceeds the limit (nothing is sent)
        """
        rel = sanitize(path)
        size = len(content)
        check_size(size)

        with self.sessions.acquire_handle() as handle:
            handle.upsert(rel, content)
            marker = handle.fetch_marker(rel)

        self.cache_index.load()
        atomic_write_bytes(mirror_path(self.files_dir, rel), content)
        self.cache_index.put(CacheEntry(path=rel, marker=marker, byte_size=size))
        self.cache_index.save()
        logger.info(f"PUT {rel} bytes={size} updated_at={marker}")
        return PutResult(path=rel, byte_size=size, marker=marker)

    def pull(self, prefix: str | None = None) -> PullResult:
        """Download every remote file whose marker differs from the cache index.

        The index is saved once, after the batch finishes or fails. Any single
        failure aborts the pull.
        """
        normalized = normalize_prefix(prefix)
        with self.sessions.acquire_handle() as handle:
            records = handle.list(normalized)
            self.cache_index.load()

            def sync_one(record: RemoteRecord) -> str:
                rel = sanitize(record.path)
                cached = self.cache_index.get(rel)
                if cached is not None and cached.marker == record.marker:
                    return _SKIPPED
                self._download(handle, rel)
                logger.debug(f"PULL downloaded {rel}")
                return _DOWNLOADED

            try:
                outcomes = run_bounded(records, self.concurrency, sync_one)
            finally:
                self.cache_index.save()

        result = PullResult(
            total=len(records),
            downloaded=outcomes.count(_DOWNLOADED),
            skipped=outcomes.count(_SKIPPED),
        )
        logger.info(
            f"PULL total={result.total} downloaded={result.downloaded} skipped={result.skipped}"
        )
        return result

    def list_remote(self, prefix: str | None = None) -> list[tuple[RemoteRecord, bool]]:
        """List remote files, flagging those the local cache already has current.

        Index lookups use the same sanitized key that ``pull`` records under.
        Paths that cannot be mirrored are listed but never current.
        """
        normalized = normalize_prefix(prefix)
        with self.sessions.acquire_handle() as handle:
            records = handle.list(normalized)
        self.cache_index.load()
        listing = []
        for record in records:
            try:
                key = sanitize(record.path)
            except InvalidPathError:
                logger.warning(f"Remote path {record.path!r} cannot be mirrored")
                listing.append((record, False))
                continue
            cached = self.cache_index.get(key)
            listing.append((record, cached is not None and cached.marker == record.marker))
        return listing
