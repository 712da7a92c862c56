"""Shared test helpers for northbase tests."""

from __future__ import annotations

import threading
from typing import Any

from northbase.exceptions import InvalidSessionError
from northbase.models import Credential, RemoteFile, RemoteRecord

NOW = 1_800_000_000


class FakeRemote:
    """In-memory remote store shared by every handle it creates."""

    def __init__(self) -> None:
        self.files: dict[str, tuple[bytes, str]] = {}
        self.valid_access_tokens: set[str] = set()
        self.refresh_result: Credential | None = None
        self.refresh_error: Exception | None = None
        self.authenticate_result: Credential | None = None
        self.authenticate_error: Exception | None = None
        self.sign_out_error: Exception | None = None
        self.fetch_content_error: Exception | None = None
        self.upsert_error: Exception | None = None
        self.handles: list[FakeHandle] = []
        self.calls: list[tuple[str, Any]] = []
        self._version = 0
        self._lock = threading.Lock()

    def set_file(self, path: str, content: bytes) -> str:
        """Store content remotely and return its new marker."""
        with self._lock:
            self._version += 1
            marker = f"2026-01-01T00:00:{self._version:02d}+00:00"
            self.files[path] = (content, marker)
            return marker

    def marker(self, path: str) -> str:
        return self.files[path][1]

    def record(self, name: str, arg: Any = None) -> None:
        with self._lock:
            self.calls.append((name, arg))

    def count(self, name: str) -> int:
        return sum(1 for call, _ in self.calls if call == name)

    def factory(self) -> FakeHandle:
        handle = FakeHandle(self)
        self.handles.append(handle)
        return handle


class FakeHandle:
    """Stands in for RemoteStoreClient."""

    def __init__(self, remote: FakeRemote) -> None:
        self.remote = remote
        self.access_token: str | None = None
        self.closed = False

    def __enter__(self) -> FakeHandle:
        return self

    def __exit__(self, *args: object) -> None:
        self.close()

    def close(self) -> None:
        self.closed = True

    def authenticate(self, email: str, password: str) -> Credential:
        self.remote.record("authenticate", email)
        if self.remote.authenticate_error is not None:
            raise self.remote.authenticate_error
        assert self.remote.authenticate_result is not None
        return self.remote.authenticate_result

    def refresh(self, refresh_token: str) -> Credential:
        self.remote.record("refresh", refresh_token)
        if self.remote.refresh_error is not None:
            raise self.remote.refresh_error
        assert self.remote.refresh_result is not None
        self.remote.valid_access_tokens.add(self.remote.refresh_result.access_token)
        return self.remote.refresh_result

    def apply_session(self, access_token: str, refresh_token: str) -> dict[str, Any]:
        self.remote.record("apply_session", access_token)
        if access_token not in self.remote.valid_access_tokens:
            raise InvalidSessionError("invalid JWT", status_code=401)
        self.access_token = access_token
        return {"id": "user-1"}

    def sign_out(self) -> None:
        self.remote.record("sign_out")
        if self.remote.sign_out_error is not None:
            raise self.remote.sign_out_error

    def fetch_marker(self, path: str) -> str | None:
        self.remote.record("fetch_marker", path)
        entry = self.remote.files.get(path)
        return entry[1] if entry else None

    def fetch_content(self, path: str) -> RemoteFile | None:
        self.remote.record("fetch_content", path)
        if self.remote.fetch_content_error is not None:
            raise self.remote.fetch_content_error
        entry = self.remote.files.get(path)
        if entry is None:
            return None
        return RemoteFile(content=entry[0], marker=entry[1])

    def upsert(self, path: str, content: bytes) -> None:
        self.remote.record("upsert", path)
        if self.remote.upsert_error is not None:
            raise self.remote.upsert_error
        self.remote.set_file(path, content)

    def list(self, prefix: str | None = None) -> list[RemoteRecord]:
        self.remote.record("list", prefix)
        return [
            RemoteRecord(path=path, marker=marker)
            for path, (_, marker) in sorted(self.remote.files.items())
            if prefix is None or path.startswith(prefix)
        ]


def make_credential(
    access: str = "access-1",
    refresh: str = "refresh-1",
    expires_at: int = 0,
    email: str = "test@example.com",
) -> Credential:
    return Credential(
        access_token=access,
        refresh_token=refresh,
        expires_at=expires_at,
        user={"id": "user-1", "email": email},
    )
