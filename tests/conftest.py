"""Pytest fixtures for northbase tests."""

from __future__ import annotations

from pathlib import Path

import pytest
from helpers import NOW, FakeRemote, make_credential

from northbase.cache_index import CacheIndex
from northbase.config import Settings
from northbase.session import SessionManager
from northbase.session_store import SessionStore
from northbase.sync import SyncEngine


@pytest.fixture
def settings(tmp_path: Path) -> Settings:
    """Settings rooted in a temporary configuration directory."""
    return Settings(home=tmp_path / ".northbase", debug=False, concurrency=3)


@pytest.fixture
def remote() -> FakeRemote:
    """An in-memory remote store."""
    return FakeRemote()


@pytest.fixture
def session_store(settings: Settings) -> SessionStore:
    return SessionStore(settings.session_path)


@pytest.fixture
def logged_in(session_store: SessionStore, remote: FakeRemote) -> SessionStore:
    """A stored credential that is valid for another ten minutes."""
    credential = make_credential(expires_at=NOW + 600)
    session_store.save(credential)
    remote.valid_access_tokens.add(credential.access_token)
    return session_store


@pytest.fixture
def manager(session_store: SessionStore, remote: FakeRemote) -> SessionManager:
    return SessionManager(session_store, remote.factory, clock=lambda: NOW)


@pytest.fixture
def engine(
    settings: Settings, manager: SessionManager, logged_in: SessionStore
) -> SyncEngine:
    """A SyncEngine wired to the fake remote with a valid session."""
    return SyncEngine(
        manager,
        CacheIndex(settings.index_path),
        settings.files_dir,
        concurrency=settings.concurrency,
    )
