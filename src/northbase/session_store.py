"""On-disk storage for the single active credential."""

from __future__ import annotations

import contextlib
import json
import logging
from pathlib import Path

from northbase._internal.fileio import atomic_write_bytes
from northbase.exceptions import NotAuthenticatedError, SessionError
from northbase.models import Credential

logger = logging.getLogger(__name__)

SESSION_FILE_MODE = 0o600


class SessionStore:
    """Owns the session file; nothing else reads or writes it."""

    def __init__(self, session_path: Path | str) -> None:
        self.session_path = Path(session_path)

    def exists(self) -> bool:
        return self.session_path.exists()

    def load(self) -> Credential:
        """Read the stored credential.

        Raises:
            NotAuthenticatedError: If the file is missing, unreadable or incomplete
        """
        try:
            data = json.loads(self.session_path.read_text(encoding="utf-8"))
        except FileNotFoundError:
            raise NotAuthenticatedError() from None
        except (OSError, ValueError) as e:
            logger.debug(f"Unreadable session file {self.session_path}: {e}")
            raise NotAuthenticatedError() from e

        try:
            return Credential.from_dict(data)
        except SessionError as e:
            logger.debug(f"Incomplete session file {self.session_path}: {e}")
            raise NotAuthenticatedError() from e

    def save(self, credential: Credential) -> None:
        """Persist a credential with owner-only permissions.

        Raises:
            SessionError: If the credential lacks either token
        """
        if not credential.access_token or not credential.refresh_token:
            raise SessionError("Refusing to save a session without both tokens")
        data = json.dumps(credential.to_dict(), indent=2) + "\n"
        atomic_write_bytes(self.session_path, data.encode("utf-8"), mode=SESSION_FILE_MODE)
        logger.debug(f"Saved session expiring at {credential.to_dict()['expires_at']}")

    def delete(self) -> None:
        """Remove the session file if present."""
        with contextlib.suppress(FileNotFoundError):
            self.session_path.unlink()
