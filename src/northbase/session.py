"""Session lifecycle: login, refresh with token rotation, and logout."""

from __future__ import annotations

import logging
import time
from collections.abc import Callable
from typing import Any

from northbase._internal.store_client import RemoteStoreClient
from northbase.exceptions import (
    InvalidGrantError,
    InvalidSessionError,
    NorthbaseError,
    NotAuthenticatedError,
    RemoteError,
    SessionRefreshFailedError,
    SessionRevokedError,
)
from northbase.models import Credential, SessionStatus
from northbase.session_store import SessionStore

logger = logging.getLogger(__name__)

# Refresh this many seconds before the access token actually expires.
REFRESH_MARGIN_SECONDS = 60


def needs_refresh(credential: Credential, now: float) -> bool:
    """True if the access token is unknown-expiry or about to expire."""
    return credential.expires_at == 0 or credential.expires_at - now <= REFRESH_MARGIN_SECONDS


class SessionManager:
    """Hands out authenticated remote store handles.

    Every remote access goes through :meth:`acquire_handle`, which loads the
    stored credential, refreshes it when needed, and keeps the session file in
    step with the tokens it actually used.

    Example:
        manager = SessionManager(SessionStore(settings.session_path))
        with manager.acquire_handle() as handle:
            handle.fetch_marker("notes/today.md")
    """

    def __init__(
        self,
        store: SessionStore,
        client_factory: Callable[[], RemoteStoreClient] = RemoteStoreClient,
        *,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self.store = store
        self._client_factory = client_factory
        self._clock = clock

    def acquire_handle(self) -> RemoteStoreClient:
        """Return a remote store handle with a valid session applied.

        Raises:
            NotAuthenticatedError: If no session is stored
            SessionRevokedError: If the refresh token was rejected (session deleted)
            SessionRefreshFailedError: If refreshing failed for another reason
            RemoteError: If validating a fresh access token failed outright
        """
        credential = self.store.load()
        handle = self._client_factory()
        try:
            if needs_refresh(credential, self._clock()):
                logger.info("Session refreshing (access token expiring)")
                self._refresh(handle, credential)
            else:
                try:
                    handle.apply_session(credential.access_token, credential.refresh_token)
                except InvalidSessionError:
                    logger.info("Session refreshing (access token rejected)")
                    self._refresh(handle, credential)
        except BaseException:
            handle.close()
            raise
        return handle

    def _refresh(self, handle: RemoteStoreClient, credential: Credential) -> Credential:
        try:
            fresh = handle.refresh(credential.refresh_token)
        except InvalidGrantError as e:
            logger.warning(f"Refresh token rejected; removing stored session: {e}")
            self.store.delete()
            raise SessionRevokedError() from e
        except RemoteError as e:
            raise SessionRefreshFailedError(
                f"Could not refresh session ({e}). Try again."
            ) from e

        if not fresh.user and credential.user:
            fresh = Credential(
                access_token=fresh.access_token,
                refresh_token=fresh.refresh_token,
                expires_at=fresh.expires_at,
                user=credential.user,
            )
        # The stored refresh token must always be the live one.
        self.store.save(fresh)
        if fresh.refresh_token != credential.refresh_token:
            logger.debug("Refresh token rotated")

        try:
            handle.apply_session(fresh.access_token, fresh.refresh_token)
        except RemoteError as e:
            raise SessionRefreshFailedError(
                f"Refreshed session was not accepted ({e}). Try again."
            ) from e
        return fresh

    def login(self, email: str, password: str) -> Credential:
        """Exchange credentials for a new session, replacing any stored one.

        Raises:
            AuthenticationError: If the credentials are rejected
        """
        with self._client_factory() as client:
            credential = client.authenticate(email, password)
        self.store.save(credential)
        logger.info(f"Logged in as {credential.email or '(unknown)'}")
        return credential

    def logout(self) -> bool:
        """Sign out remotely if possible and always forget the local session.

        Returns:
            True if the remote sign-out succeeded
        """
        signed_out = False
        try:
            handle = self.acquire_handle()
        except NorthbaseError as e:
            logger.debug(f"Skipping remote sign-out: {e}")
            handle = None

        if handle is not None:
            with handle:
                try:
                    handle.sign_out()
                    signed_out = True
                except RemoteError as e:
                    logger.warning(f"Remote sign-out failed: {e}")

        self.store.delete()
        return signed_out

    def current_user(self) -> dict[str, Any] | None:
        """Return the stored user without touching the network."""
        try:
            return self.store.load().user
        except NotAuthenticatedError:
            return None

    def status(self) -> SessionStatus:
        """Describe the stored credential without touching the network.

        Raises:
            NotAuthenticatedError: If no session is stored
        """
        credential = self.store.load()
        now = self._clock()
        remaining = int(credential.expires_at - now) if credential.expires_at else None
        return SessionStatus(
            user=credential.user,
            expires_at=credential.expires_at,
            seconds_remaining=remaining,
            needs_refresh=needs_refresh(credential, now),
        )
