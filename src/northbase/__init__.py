"""northbase - a command-line client that mirrors a remote file store locally.

Example usage:
    from northbase import CacheIndex, SessionManager, SessionStore, SyncEngine
    from northbase.config import get_settings

    settings = get_settings()
    sessions = SessionManager(SessionStore(settings.session_path))
    sessions.login("user@example.com", "password")

    engine = SyncEngine(sessions, CacheIndex(settings.index_path), settings.files_dir)
    engine.put("notes/today.md", b"# Today\\n")
    print(engine.get("notes/today.md").decode())
    print(engine.pull("notes/"))
"""

from northbase.cache_index import CacheIndex
from northbase.exceptions import (
    AuthenticationError,
    FileTooLargeError,
    InvalidGrantError,
    InvalidPathError,
    InvalidSessionError,
    NorthbaseError,
    NotAuthenticatedError,
    RemoteError,
    RemoteNotFoundError,
    SessionError,
    SessionRefreshFailedError,
    SessionRevokedError,
)
from northbase.executor import run_bounded
from northbase.models import (
    CacheEntry,
    Credential,
    PullResult,
    PutResult,
    RemoteFile,
    RemoteRecord,
    SessionStatus,
)
from northbase.paths import sanitize
from northbase.session import SessionManager
from northbase.session_store import SessionStore
from northbase.sync import MAX_FILE_BYTES, SyncEngine

__version__ = "0.1.0"

__all__ = [
    # Engine
    "SyncEngine",
    "SessionManager",
    "SessionStore",
    "CacheIndex",
    "run_bounded",
    "sanitize",
    "MAX_FILE_BYTES",
    # Models
    "CacheEntry",
    "Credential",
    "PullResult",
    "PutResult",
    "RemoteFile",
    "RemoteRecord",
    "SessionStatus",
    # Exceptions
    "NorthbaseError",
    "InvalidPathError",
    "FileTooLargeError",
    "SessionError",
    "NotAuthenticatedError",
    "SessionRevokedError",
    "SessionRefreshFailedError",
    "RemoteError",
    "AuthenticationError",
    "InvalidGrantError",
    "InvalidSessionError",
    "RemoteNotFoundError",
]
