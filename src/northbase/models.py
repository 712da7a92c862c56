"""Data models for the northbase client."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from northbase.exceptions import SessionError

# Anything above this is a millisecond timestamp.
_MILLISECONDS_THRESHOLD = 1e12


def normalize_expires_at(value: Any) -> int:
    """Coerce an expiry value to whole epoch seconds.

    Missing or non-numeric values become 0, which callers treat as
    "unknown, refresh before use".
    """
    if value is None or isinstance(value, bool):
        return 0
    try:
        seconds = float(value)
    except (TypeError, ValueError):
        return 0
    if seconds != seconds or seconds < 0:  # NaN or negative
        return 0
    if seconds > _MILLISECONDS_THRESHOLD:
        seconds /= 1000
    return int(seconds)


@dataclass(frozen=True)
class CacheEntry:
    """Last synchronized state of one mirrored path."""

    path: str
    marker: str | None
    byte_size: int

    def to_dict(self) -> dict[str, Any]:
        return {"updated_at": self.marker, "bytes": self.byte_size}


@dataclass(frozen=True)
class Credential:
    """An access/refresh token pair plus expiry and the owning user."""

    access_token: str
    refresh_token: str
    expires_at: int = 0
    user: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, data: Any, now: float | None = None) -> Credential:
        """Build a credential from a session file or a token response.

        Args:
            data: Parsed JSON object
            now: Current epoch seconds, used when only ``expires_in`` is given

        Raises:
            SessionError: If either token is missing
        """
        if not isinstance(data, dict):
            raise SessionError("Session data is not an object")
        access_token = data.get("access_token")
        refresh_token = data.get("refresh_token")
        if not access_token or not refresh_token:
            raise SessionError("Session is missing its access or refresh token")

        expires_at = normalize_expires_at(data.get("expires_at"))
        if not expires_at and now is not None:
            expires_in = normalize_expires_at(data.get("expires_in"))
            if expires_in:
                expires_at = int(now) + expires_in

        user = data.get("user")
        return cls(
            access_token=str(access_token),
            refresh_token=str(refresh_token),
            expires_at=expires_at,
            user=user if isinstance(user, dict) else {},
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "access_token": self.access_token,
            "refresh_token": self.refresh_token,
            "expires_at": normalize_expires_at(self.expires_at),
            "user": self.user,
        }

    @property
    def email(self) -> str | None:
        return self.user.get("email")

    @property
    def user_id(self) -> str | None:
        return self.user.get("id")


@dataclass(frozen=True)
class RemoteRecord:
    """A path listed by the remote store with its current marker."""

    path: str
    marker: str | None


@dataclass(frozen=True)
class RemoteFile:
    """Content fetched from the remote store."""

    content: bytes
    marker: str | None


@dataclass(frozen=True)
class PutResult:
    """Result of a put operation."""

    path: str
    byte_size: int
    marker: str | None


@dataclass(frozen=True)
class PullResult:
    """Counts reported by a pull operation."""

    total: int
    downloaded: int
    skipped: int


@dataclass(frozen=True)
class SessionStatus:
    """Offline view of the stored credential."""

    user: dict[str, Any]
    expires_at: int
    seconds_remaining: int | None
    needs_refresh: bool
