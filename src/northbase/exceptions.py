"""Exception hierarchy for the northbase client."""

from __future__ import annotations


class NorthbaseError(Exception):
    """Base exception for all northbase errors."""

    pass


class InvalidPathError(NorthbaseError):
    """Raised when a relative path fails sanitization."""

    def __init__(self, path: str | None) -> None:
        super().__init__(f"Unsafe path: {path!r}")
        self.path = path


class FileTooLargeError(NorthbaseError):
    """Raised when content exceeds the per-file byte limit."""

    def __init__(self, size: int, limit: int) -> None:
        super().__init__(f"File too large ({size} bytes, limit {limit})")
        self.size = size
        self.limit = limit


class SessionError(NorthbaseError):
    """Raised when there's an issue with the stored session."""

    pass


class NotAuthenticatedError(SessionError):
    """Raised when no usable local session exists."""

    def __init__(self, message: str = "Not logged in. Run `northbase login`.") -> None:
        super().__init__(message)


class SessionRevokedError(SessionError):
    """Raised when the refresh token was rejected; the local session is gone."""

    def __init__(
        self, message: str = "Session expired. Run `northbase login` again."
    ) -> None:
        super().__init__(message)


class SessionRefreshFailedError(SessionError):
    """Raised when a refresh failed for a transient reason.

    The stored session is left intact, so the command can simply be retried.
    """

    pass


class RemoteError(NorthbaseError):
    """Raised when a remote store call fails."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class AuthenticationError(RemoteError):
    """Raised when an email/password exchange is rejected."""

    pass


class InvalidGrantError(RemoteError):
    """Raised when the remote rejects a refresh token."""

    pass


class InvalidSessionError(RemoteError):
    """Raised when the remote rejects an access token."""

    pass


class RemoteNotFoundError(RemoteError):
    """Raised when a path has no record in the remote store."""

    def __init__(self, path: str) -> None:
        super().__init__(f"No remote file at {path}", status_code=None)
        self.path = path
