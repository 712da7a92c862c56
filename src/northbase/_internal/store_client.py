"""httpx client for the Supabase auth and ``files`` table endpoints."""

from __future__ import annotations

import logging
import time
from typing import Any

import httpx

from northbase.config import SUPABASE_KEY, SUPABASE_URL
from northbase.exceptions import (
    AuthenticationError,
    InvalidGrantError,
    InvalidSessionError,
    RemoteError,
)
from northbase.models import Credential, RemoteFile, RemoteRecord

logger = logging.getLogger(__name__)

FILES_TABLE = "files"
LIST_PAGE_SIZE = 1000


def _error_message(response: httpx.Response) -> str:
    """Pull a readable message out of a GoTrue or PostgREST error body."""
    try:
        body = response.json()
    except ValueError:
        return response.text or f"HTTP {response.status_code}"
    if isinstance(body, dict):
        for key in ("error_description", "msg", "message", "error"):
            value = body.get(key)
            if value:
                return str(value)
    return f"HTTP {response.status_code}"


def _like_pattern(prefix: str) -> str:
    # PostgREST reads every "*" as "%", so a "*" cannot be matched literally.
    # The pattern stops before the first one and list() filters the rows.
    literal = prefix.split("*", 1)[0]
    return literal.replace("%", r"\%").replace("_", r"\_") + "*"


class RemoteStoreClient:
    """Remote record store keyed by path, plus the auth calls that guard it.

    One instance is one handle: it is unauthenticated until
    :meth:`apply_session` succeeds. The underlying ``httpx.Client`` is safe to
    share between threads.
    """

    def __init__(
        self,
        url: str = SUPABASE_URL,
        api_key: str = SUPABASE_KEY,
        *,
        timeout: float = 30.0,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        self.url = url.rstrip("/")
        self._api_key = api_key
        self._access_token: str | None = None
        self._refresh_token: str | None = None
        self._client = httpx.Client(
            base_url=self.url,
            headers={"apikey": api_key, "Authorization": f"Bearer {api_key}"},
            timeout=timeout,
            transport=transport,
        )

    def __enter__(self) -> RemoteStoreClient:
        return self

    def __exit__(self, *args: object) -> None:
        self.close()

    @property
    def is_authenticated(self) -> bool:
        return self._access_token is not None

    def close(self) -> None:
        self._client.close()

    def _request(self, method: str, endpoint: str, **kwargs: Any) -> httpx.Response:
        """Send a request, turning transport and HTTP failures into RemoteError."""
        try:
            response = self._client.request(method, endpoint, **kwargs)
        except httpx.HTTPError as e:
            raise RemoteError(f"{method} {endpoint} failed: {e}") from e
        if response.is_error:
            raise RemoteError(
                f"{method} {endpoint} failed: {_error_message(response)}",
                status_code=response.status_code,
            )
        return response

    def _json(self, response: httpx.Response) -> Any:
        try:
            return response.json()
        except ValueError as e:
            raise RemoteError(
                f"Invalid JSON from {response.request.url.path}", response.status_code
            ) from e

    # -- auth ---------------------------------------------------------------

    def _token_grant(self, grant_type: str, payload: dict[str, str]) -> Credential:
        response = self._request(
            "POST", "/auth/v1/token", params={"grant_type": grant_type}, json=payload
        )
        return Credential.from_dict(self._json(response), now=time.time())

    def authenticate(self, email: str, password: str) -> Credential:
        """Exchange email and password for a fresh credential.

        Raises:
            AuthenticationError: If the credentials are rejected
        """
        try:
            return self._token_grant("password", {"email": email, "password": password})
        except RemoteError as e:
            if e.status_code is not None and 400 <= e.status_code < 500:
                raise AuthenticationError(str(e), e.status_code) from e
            raise

    def refresh(self, refresh_token: str) -> Credential:
        """Trade a refresh token for a new credential; the token may rotate.

        Raises:
            InvalidGrantError: If the refresh token is invalid or expired
            RemoteError: On any other failure
        """
        try:
            return self._token_grant("refresh_token", {"refresh_token": refresh_token})
        except RemoteError as e:
            if e.status_code in (400, 401):
                raise InvalidGrantError(str(e), e.status_code) from e
            raise

    def apply_session(self, access_token: str, refresh_token: str) -> dict[str, Any]:
        """Check the access token with the auth server and use it from now on.

        Returns:
            The user object reported by the server

        Raises:
            InvalidSessionError: If the access token is rejected
        """
        try:
            response = self._request(
                "GET",
                "/auth/v1/user",
                headers={"Authorization": f"Bearer {access_token}"},
            )
        except RemoteError as e:
            if e.status_code in (401, 403):
                raise InvalidSessionError(str(e), e.status_code) from e
            raise
        self._access_token = access_token
        self._refresh_token = refresh_token
        self._client.headers["Authorization"] = f"Bearer {access_token}"
        user = self._json(response)
        return user if isinstance(user, dict) else {}

    def sign_out(self) -> None:
        """Revoke the applied session on the server."""
        self._request("POST", "/auth/v1/logout", params={"scope": "local"})
        self._access_token = None
        self._refresh_token = None
        self._client.headers["Authorization"] = f"Bearer {self._api_key}"

    # -- files --------------------------------------------------------------

    def _select_one(self, path: str, columns: str) -> dict[str, Any] | None:
        response = self._request(
            "GET",
            f"/rest/v1/{FILES_TABLE}",
            params={"select": columns, "path": f"eq.{path}", "limit": "1"},
        )
        rows = self._json(response)
        if isinstance(rows, list) and rows and isinstance(rows[0], dict):
            return rows[0]
        return None

    def fetch_marker(self, path: str) -> str | None:
        """Return the remote last-modified marker, or None for unknown paths."""
        row = self._select_one(path, "updated_at")
        marker = row.get("updated_at") if row else None
        return str(marker) if marker is not None else None

    def fetch_content(self, path: str) -> RemoteFile | None:
        """Return content and marker, or None for unknown paths."""
        row = self._select_one(path, "content,updated_at")
        if row is None:
            return None
        marker = row.get("updated_at")
        return RemoteFile(
            content=(row.get("content") or "").encode("utf-8"),
            marker=str(marker) if marker is not None else None,
        )

    def upsert(self, path: str, content: bytes) -> None:
        """Insert or replace the record for ``path``."""
        try:
            text = content.decode("utf-8")
        except UnicodeDecodeError as e:
            raise RemoteError(f"Content for {path} is not valid UTF-8") from e
        self._request(
            "POST",
            f"/rest/v1/{FILES_TABLE}",
            params={"on_conflict": "path"},
            headers={"Prefer": "resolution=merge-duplicates,return=minimal"},
            json={"path": path, "content": text},
        )

    def list(self, prefix: str | None = None) -> list[RemoteRecord]:
        """List every path (optionally under a prefix), ordered by path."""
        params: dict[str, str] = {"select": "path,updated_at", "order": "path.asc"}
        if prefix:
            params["path"] = f"like.{_like_pattern(prefix)}"

        records: list[RemoteRecord] = []
        offset = 0
        while True:
            page_params = {**params, "limit": str(LIST_PAGE_SIZE), "offset": str(offset)}
            rows = self._json(
                self._request("GET", f"/rest/v1/{FILES_TABLE}", params=page_params)
            )
            if not isinstance(rows, list):
                raise RemoteError("Unexpected listing response")
            for row in rows:
                if prefix and not str(row["path"]).startswith(prefix):
                    continue
                marker = row.get("updated_at")
                records.append(
                    RemoteRecord(
                        path=str(row["path"]),
                        marker=str(marker) if marker is not None else None,
                    )
                )
            if len(rows) < LIST_PAGE_SIZE:
                break
            offset += LIST_PAGE_SIZE
        logger.debug(f"Listed {len(records)} remote files (prefix={prefix!r})")
        return records
